"""Query-time models: the analyzed business context of a user question.

A :class:`BusinessQueryContext` is derived from one free-text question by
the BusinessQueryAnalyzer and is never persisted beyond the request.  It
drives ranking weights, assembly strategy selection and roadmap content.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UserIntent(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """The fixed intent enumeration; declaration order breaks ties."""

    LEARNING = "learning"
    IMPLEMENTATION = "implementation"
    TROUBLESHOOTING = "troubleshooting"
    BENCHMARKING = "benchmarking"
    VALIDATION = "validation"
    OPTIMIZATION = "optimization"
    RESEARCH = "research"
    PLANNING = "planning"


class QueryComplexity(str, Enum):  # noqa: UP042
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class KnownContext(BaseModel):
    """Caller-supplied facts that override inference entirely when present."""

    model_config = ConfigDict(frozen=True)

    industry: str | None = None
    business_stage: str | None = None
    functional_area: str | None = None


class UserProfile(BaseModel):
    """Optional per-user preferences consulted by the ranker."""

    model_config = ConfigDict(frozen=True)

    experience_level: str | None = Field(
        default=None,
        description="beginner / intermediate / advanced / expert",
    )
    preferred_frameworks: list[str] = Field(default_factory=list)


class BusinessQueryContext(BaseModel):
    """Structured interpretation of one user question."""

    model_config = ConfigDict(frozen=True)

    query: str
    intent: UserIntent = UserIntent.LEARNING
    intent_matches: int = Field(default=0, ge=0)
    industry: str = "general"
    business_stage: str = "startup"
    functional_area: str = "strategy"
    metrics: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    urgency_signals: list[str] = Field(default_factory=list)
    implementation_readiness: float = Field(default=0.5, ge=0.0, le=1.0)
    complexity: QueryComplexity = QueryComplexity.SIMPLE
    business_scenarios: list[str] = Field(default_factory=list)

    @property
    def is_urgent(self) -> bool:
        return bool(self.urgency_signals)


class QueryOptions(BaseModel):
    """Options accepted by the query-time entry point."""

    model_config = ConfigDict(frozen=True)

    max_results: int = Field(default=10, ge=1, le=100)
    similarity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    response_length: str = Field(
        default="medium",
        pattern="^(short|medium|long|comprehensive)$",
    )
    citation_detail: str = Field(
        default="moderate",
        pattern="^(minimal|moderate|detailed|comprehensive)$",
    )
    content_types: list[str] | None = None
    frameworks: list[str] | None = None
    gap_handling: str | None = Field(
        default=None,
        pattern="^(acknowledge|research_additional|infer_safely)$",
    )
    render_prose: bool = False
