"""Retrieval and ranking models.

:class:`SearchCandidate` is what the content store's similarity search
returns; :class:`RankedResult` is that candidate annotated by the
BusinessSearchRanker with five sub-scores, a combined score and a
human-readable explanation.  Both are recomputed per query.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchCandidate(BaseModel):
    """A chunk returned by similarity search, with its parent's metadata.

    ``metadata`` carries the ranking inputs: industry_verticals,
    lifecycle_stage, functional_areas, frameworks, user_intent_mapping,
    content_type, category, difficulty_level, complexity, authority_score
    and freshness_score.  Any of them may be absent.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    content_id: str = ""
    title: str = ""
    content_type: str = "text"
    text: str
    chunk_index: int = 0
    detected_frameworks: list[str] = Field(default_factory=list)
    importance_score: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity: float = 0.0
    source: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScoreBreakdown(BaseModel):
    """The five independently computed ranking sub-scores."""

    model_config = ConfigDict(frozen=True)

    business_relevance: float = Field(ge=0.0, le=1.0)
    context_fit: float = Field(ge=0.0, le=1.0)
    implementation_fit: float = Field(ge=0.0, le=1.0)
    authority: float = Field(ge=0.0, le=1.0)
    freshness: float = Field(ge=0.0, le=1.0)

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()


class RankedResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: SearchCandidate
    scores: ScoreBreakdown
    overall_score: float = Field(ge=0.0, le=1.0)
    explanation: str
    implementation_guidance: list[str] = Field(default_factory=list)
    related_frameworks: list[str] = Field(default_factory=list)
