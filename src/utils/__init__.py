"""Utility modules for oracle-rag.

Available utility modules (all re-exported here for convenience):

- **scoring** -- clamping, phrase/keyword matching and weighted sums used
  by every heuristic scorer.
- **errors** -- Domain-specific exception hierarchy rooted at OracleError;
  each pipeline stage raises its own subclass so callers can handle failures
  granularly without broad ``except Exception`` blocks.
- **concurrency** -- settle-all window scheduling for batch ingestion.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    AnalysisError,
    AssemblyError,
    ConfigurationError,
    EmbeddingError,
    ExtractionError,
    IngestionError,
    InputValidationError,
    LLMError,
    OracleError,
    ProviderUnavailableError,
    StorageError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import windowed_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import bound_context, configure_logging, get_logger

# -- Scoring math ----------------------------------------------------------
from src.utils.scoring import (
    clamp,
    count_phrases,
    count_word_matches,
    matched_phrases,
    mean,
    weighted_score,
)

__all__ = [
    "AnalysisError",
    "AssemblyError",
    "ConfigurationError",
    "EmbeddingError",
    "ExtractionError",
    "IngestionError",
    "InputValidationError",
    "LLMError",
    "OracleError",
    "ProviderUnavailableError",
    "StorageError",
    "bound_context",
    "clamp",
    "configure_logging",
    "count_phrases",
    "count_word_matches",
    "get_logger",
    "matched_phrases",
    "mean",
    "weighted_score",
    "windowed_gather",
]
