"""Custom exception hierarchy for oracle-rag.

All application exceptions inherit from :class:`OracleError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "openai", "sqlite_store", "url_extractor") caused the
failure.

The hierarchy follows the error taxonomy of the two pipelines:

    OracleError  (base -- catch-all for any oracle-rag error)
    +-- InputValidationError     (rejected before any stage starts)
    +-- ExtractionError          (file / url / video extraction)
    +-- AnalysisError            (framework detection -- advisory, degraded)
    +-- EmbeddingError           (embedding service failure)
    +-- StorageError             (datastore write / read failure)
    +-- AssemblyError            (ranking / assembly defect -- propagates)
    +-- ConfigurationError       (startup / missing or malformed config)
    +-- LLMError                 (prose rendering call failure)
    +-- ProviderUnavailableError (external service down / unreachable)

Ingestion converts every subclass raised inside a stage into a failed
stage on the job record.  Query-time code lets them propagate.
"""


class OracleError(Exception):
    """Base exception for all oracle-rag errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[url_extractor] Request timeout``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class InputValidationError(OracleError):
    """Raised for malformed input (empty/oversized batch, bad source, bad options)."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(OracleError):
    """Raised when a source cannot be turned into plain text (unreachable URL, private video)."""

    def __init__(
        self,
        message: str = "Content extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AnalysisError(OracleError):
    """Raised when framework detection fails.

    The orchestrator catches this and continues with an empty detection
    list, since framework tags are advisory.
    """

    def __init__(
        self,
        message: str = "Content analysis failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(OracleError):
    """Raised when the embedding service fails or returns a malformed batch."""

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(OracleError):
    """Raised when a datastore operation fails (constraint violation, connectivity)."""

    def __init__(
        self,
        message: str = "Datastore operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionError(OracleError):
    """Raised when an ingestion stage runs without the state an earlier stage produces."""

    def __init__(
        self,
        message: str = "Ingestion job is in an inconsistent state",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Query-time errors
# ---------------------------------------------------------------------------

class AssemblyError(OracleError):
    """Raised when ranking or response assembly hits a defect.

    These are pure computations over already-fetched data, so the error is
    never retried -- it propagates to the caller with full context.
    """

    def __init__(
        self,
        message: str = "Response assembly failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(OracleError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(OracleError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(OracleError):
    """Raised when an external service or provider is unreachable."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
