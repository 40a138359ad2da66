"""Assembled-answer models produced by the ContextAssemblyEngine.

An :class:`AssembledResponse` is built fresh per query and never persisted
by the core.  Its quality metrics and confidence assessment are computed
independently of each other, so they may disagree (e.g. high business
relevance but low consensus); that disagreement is part of the output.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.models.query import BusinessQueryContext
from src.models.ranking import RankedResult


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Strategy enumerations
# ---------------------------------------------------------------------------
class ContentOrganization(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    FRAMEWORK_BASED = "framework_based"
    ACTION_ORIENTED = "action_oriented"
    PROBLEM_SOLUTION = "problem_solution"
    EDUCATIONAL = "educational"


class GapHandling(str, Enum):  # noqa: UP042
    ACKNOWLEDGE = "acknowledge"
    RESEARCH_ADDITIONAL = "research_additional"
    INFER_SAFELY = "infer_safely"


class ConflictStrategy(str, Enum):  # noqa: UP042
    PRIORITIZATION = "prioritization"
    CONTEXTUALIZATION = "contextualization"
    CONDITIONAL_APPLICATION = "conditional_application"
    SEQUENTIAL_IMPLEMENTATION = "sequential_implementation"


class InsightPriority(str, Enum):  # noqa: UP042
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ImplementationComplexity(str, Enum):  # noqa: UP042
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class ExpectedImpact(str, Enum):  # noqa: UP042
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"
    TRANSFORMATIONAL = "transformational"


class EvidenceType(str, Enum):  # noqa: UP042
    STATISTICAL = "statistical"
    CASE_STUDY = "case_study"
    EXPERT_OPINION = "expert_opinion"
    FRAMEWORK_PRINCIPLE = "framework_principle"


class RiskLevel(str, Enum):  # noqa: UP042
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AssemblyStrategy(BaseModel):
    """How sources are combined and organized for one intent."""

    model_config = ConfigDict(frozen=True)

    synthesis_approach: str = "balanced"
    source_integration_method: str = "priority"
    content_organization: ContentOrganization = ContentOrganization.FRAMEWORK_BASED
    redundancy_handling: str = "consolidate"
    gap_handling: GapHandling = GapHandling.ACKNOWLEDGE


# ---------------------------------------------------------------------------
# Source integration
# ---------------------------------------------------------------------------
class ConflictResolution(BaseModel):
    """A detected disagreement between two sources and how it was resolved."""

    model_config = ConfigDict(frozen=True)

    source_ids: list[str]
    topic: str
    strategy: ConflictStrategy
    kept_source_ids: list[str]
    note: str


class ContentSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    section_id: str
    title: str
    content_type: str
    priority: int = Field(ge=1)
    source_ids: list[str] = Field(default_factory=list)


class IntegrationPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    framework_a: str
    framework_b: str
    integration_type: str = "complementary"
    description: str


class ContentStructure(BaseModel):
    model_config = ConfigDict(frozen=True)

    organization: ContentOrganization
    sections: list[ContentSection] = Field(default_factory=list)
    integration_points: list[IntegrationPoint] = Field(default_factory=list)


class FormattedCitation(BaseModel):
    model_config = ConfigDict(frozen=True)

    citation_text: str
    source_id: str
    source_title: str = ""
    source_type: str = ""
    authority_level: str = "medium"
    relevance_to_query: float = Field(default=0.0, ge=0.0, le=1.0)


# ---------------------------------------------------------------------------
# Synthesized content
# ---------------------------------------------------------------------------
class FrameworkIntegration(BaseModel):
    model_config = ConfigDict(frozen=True)

    framework: str
    note: str
    source_ids: list[str] = Field(default_factory=list)


class ActionableInsight(BaseModel):
    model_config = ConfigDict(frozen=True)

    insight_id: str
    insight_text: str
    priority: InsightPriority
    complexity: ImplementationComplexity
    expected_impact: ExpectedImpact
    prerequisites: list[str] = Field(default_factory=list)
    success_metrics: list[str] = Field(default_factory=list)
    timeframe: str
    source_id: str = ""
    frameworks: list[str] = Field(default_factory=list)


class Evidence(BaseModel):
    model_config = ConfigDict(frozen=True)

    evidence_id: str
    evidence_text: str
    source_chunk_id: str
    evidence_type: EvidenceType
    strength: float = Field(ge=0.0, le=1.0)
    relevance: float = Field(ge=0.0, le=1.0)
    citation: FormattedCitation


# ---------------------------------------------------------------------------
# Roadmap
# ---------------------------------------------------------------------------
class RoadmapAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    action_id: str
    description: str
    priority: int = Field(ge=1)
    estimated_effort: str
    dependencies: list[str] = Field(default_factory=list)
    success_criteria: list[str] = Field(default_factory=list)
    frameworks_applied: list[str] = Field(default_factory=list)


class Milestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    milestone_id: str
    description: str
    target_timeframe: str
    success_indicators: list[str] = Field(default_factory=list)
    measurement_methods: list[str] = Field(default_factory=list)


class RiskMitigation(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_description: str
    probability: RiskLevel
    impact: RiskLevel
    mitigation_strategies: list[str] = Field(default_factory=list)


class ImplementationRoadmap(BaseModel):
    model_config = ConfigDict(frozen=True)

    immediate_actions: list[RoadmapAction] = Field(default_factory=list)
    short_term_actions: list[RoadmapAction] = Field(default_factory=list)
    long_term_actions: list[RoadmapAction] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    risk_mitigations: list[RiskMitigation] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Quality / confidence
# ---------------------------------------------------------------------------
class QualityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_quality: float = Field(ge=0.0, le=1.0)
    source_diversity: float = Field(ge=0.0, le=1.0)
    completeness: float = Field(ge=0.0, le=1.0)
    consistency: float = Field(ge=0.0, le=1.0)
    actionability: float = Field(ge=0.0, le=1.0)
    evidence_strength: float = Field(ge=0.0, le=1.0)
    business_relevance: float = Field(ge=0.0, le=1.0)


class ConfidenceFactor(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor_name: str
    impact_on_confidence: float
    explanation: str


class ConfidenceAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_confidence: float = Field(ge=0.0, le=1.0)
    source_reliability: float = Field(ge=0.0, le=1.0)
    completeness: float = Field(ge=0.0, le=1.0)
    consensus_level: float = Field(ge=0.0, le=1.0)
    implementation_feasibility: float = Field(ge=0.0, le=1.0)
    uncertainty_areas: list[str] = Field(default_factory=list)
    confidence_factors: list[ConfidenceFactor] = Field(default_factory=list)


class AssemblyMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    assembled_at: datetime = Field(default_factory=_utcnow)
    duration_ms: float = Field(default=0.0, ge=0.0)
    source_count: int = Field(default=0, ge=0)
    version: str = "1.0.0"
    quality_checks_passed: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# AssembledResponse -- the structured answer.
# ---------------------------------------------------------------------------
class AssembledResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_id: str
    query: str
    strategy: AssemblyStrategy
    executive_summary: str
    detailed_explanation: str
    framework_integrations: list[FrameworkIntegration] = Field(default_factory=list)
    actionable_insights: list[ActionableInsight] = Field(default_factory=list)
    evidence: list[Evidence] = Field(default_factory=list)
    limitations: list[str] = Field(default_factory=list)
    conflicts: list[ConflictResolution] = Field(default_factory=list)
    structure: ContentStructure
    roadmap: ImplementationRoadmap
    quality: QualityMetrics
    confidence: ConfidenceAssessment
    metadata: AssemblyMetadata


# ---------------------------------------------------------------------------
# QueryAnswer -- what the query-time entry point returns.
# ---------------------------------------------------------------------------
class QueryTimings(BaseModel):
    """Per-phase wall-clock timings in milliseconds."""

    model_config = ConfigDict(frozen=True)

    analysis_ms: float = 0.0
    embedding_ms: float = 0.0
    search_ms: float = 0.0
    ranking_ms: float = 0.0
    assembly_ms: float = 0.0
    rendering_ms: float = 0.0
    total_ms: float = 0.0


class QueryAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    response: AssembledResponse
    query_context: BusinessQueryContext
    ranked_results: list[RankedResult] = Field(default_factory=list)
    rendered_answer: str | None = None
    timings: QueryTimings = Field(default_factory=QueryTimings)
