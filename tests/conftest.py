"""Shared pytest fixtures for the oracle-rag test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import ScoringTables
from src.config.settings import Settings
from src.interfaces.content_store import IContentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.query import BusinessQueryContext, UserIntent
from src.models.ranking import RankedResult, ScoreBreakdown, SearchCandidate

EMBEDDING_DIM = 8


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def settings() -> Settings:
    """Settings with no .env file and no API keys."""
    return Settings(_env_file=None, openai_api_key="", youtube_api_key="")


@pytest.fixture
def tables() -> ScoringTables:
    return default_scoring_tables()


# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_business_text() -> str:
    """A short business article that mentions several frameworks."""
    return (
        "How to Build a Grand Slam Offer\n\n"
        "A grand slam offer is an irresistible offer that makes prospects feel "
        "stupid saying no. Start with the value equation: dream outcome times "
        "perceived likelihood, divided by time delay and effort and sacrifice.\n\n"
        "1. Identify the dream outcome your customer wants.\n"
        "2. Increase the perceived likelihood of success with a guarantee.\n"
        "3. Decrease the time delay with a quick win in the first week.\n\n"
        "Pricing: charge a premium and add a bonus stack instead of discounting. "
        "Track your conversion rate and customer lifetime value every week so you "
        "can see whether the offer improves revenue and profit for the business."
    )


def make_words(count: int, word: str = "word") -> str:
    """``count`` distinct whitespace-separated tokens."""
    return " ".join(f"{word}{i}" for i in range(count))


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


def _fake_embed(texts: list[str]) -> list[list[float]]:
    return [[1.0] + [0.0] * (EMBEDDING_DIM - 1) for _ in texts]


@pytest.fixture
def mock_store() -> MagicMock:
    """IContentStore mock; every async method is an AsyncMock."""
    store = MagicMock(spec=IContentStore)
    store.store_chunks.side_effect = lambda content_id, chunks: len(chunks)
    store.delete_chunks_by_content.return_value = 0
    store.search_chunks.return_value = []
    store.archive_content_item.return_value = True
    store.list_content_items.return_value = []
    store.get_stats.return_value = {
        "total_items": 0,
        "items_by_status": {},
        "total_chunks": 0,
        "frameworks": {},
    }
    store.get_provider_name.return_value = "mock_store"
    return store


@pytest.fixture
def mock_embedder() -> MagicMock:
    embedder = MagicMock(spec=IEmbeddingProvider)
    embedder.embed.side_effect = _fake_embed
    embedder.embed_single.return_value = [1.0] + [0.0] * (EMBEDDING_DIM - 1)
    embedder.get_dimension.return_value = EMBEDDING_DIM
    embedder.get_provider_name.return_value = "mock-embedding"
    embedder.is_available.return_value = True
    return embedder


@pytest.fixture
def mock_llm() -> MagicMock:
    llm = MagicMock(spec=ILLMProvider)
    llm.complete.return_value = "Rendered answer."
    llm.get_provider_name.return_value = "mock-llm"
    llm.is_available.return_value = True
    return llm


# ---------------------------------------------------------------------------
# Query-side builders
# ---------------------------------------------------------------------------


def make_context(**overrides: Any) -> BusinessQueryContext:
    values: dict[str, Any] = {
        "query": "How do I improve my offer?",
        "intent": UserIntent.IMPLEMENTATION,
        "industry": "general",
        "business_stage": "startup",
        "functional_area": "sales",
    }
    values.update(overrides)
    return BusinessQueryContext(**values)


def make_candidate(chunk_id: str, text: str, **overrides: Any) -> SearchCandidate:
    values: dict[str, Any] = {
        "chunk_id": chunk_id,
        "content_id": f"item-{chunk_id}",
        "title": f"Source {chunk_id}",
        "text": text,
        "similarity": 0.85,
    }
    values.update(overrides)
    return SearchCandidate(**values)


def make_ranked(
    chunk_id: str,
    text: str,
    overall: float = 0.8,
    authority: float = 0.8,
    business_relevance: float = 0.8,
    frameworks: list[str] | None = None,
    **candidate_overrides: Any,
) -> RankedResult:
    candidate = make_candidate(
        chunk_id, text, detected_frameworks=frameworks or [], **candidate_overrides
    )
    return RankedResult(
        candidate=candidate,
        scores=ScoreBreakdown(
            business_relevance=business_relevance,
            context_fit=0.7,
            implementation_fit=0.8,
            authority=authority,
            freshness=0.8,
        ),
        overall_score=overall,
        explanation="Good match with relevant insights",
        related_frameworks=frameworks or [],
    )
