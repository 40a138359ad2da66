"""Typed view over ``config/scoring_tables.yaml``.

Every heuristic scorer (chunker, document scorer, framework detector,
query analyzer, ranker, assembly engine) reads its vocabulary and weights
from a :class:`ScoringTables` instance rather than inline literals.  The
models are frozen so a loaded table can be shared safely between
components.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChunkingTables(BaseModel):
    """Vocabulary for per-chunk importance, concepts and entities."""

    model_config = ConfigDict(frozen=True)

    business_keywords: list[str]
    concept_patterns: dict[str, str]
    entity_patterns: list[str]
    max_entities_per_pattern: int = 5
    max_entities: int = 10


class DocumentTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    relevance_keywords: list[str]
    relevance_points_per_keyword: int = 8
    quality_base: int = 50
    # word-count threshold -> points, each awarded when the count is above it
    quality_length_bonuses: dict[int, int] = Field(
        default_factory=lambda: {100: 10, 500: 15, 1000: 15}
    )
    quality_structure_bonus: int = 10
    quality_tiers: dict[str, int] = Field(
        default_factory=lambda: {"premium": 90, "high": 75, "medium": 50}
    )


class VideoTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    relevance_keywords: list[str]
    relevance_points_per_keyword: int = 10


class FrameworkDefinition(BaseModel):
    """One named business framework and the signals that identify it."""

    model_config = ConfigDict(frozen=True)

    name: str
    required_matches: int = Field(ge=1)
    keywords: list[str]
    phrases: list[str]
    context_patterns: list[str] = Field(default_factory=list)
    explanation: str = ""

    @field_validator("keywords", mode="before")
    @classmethod
    def _stringify_keywords(cls, value: list[object]) -> list[str]:
        # YAML 1.1 reads a bare ``no`` as a boolean.
        return [str(v).lower() if isinstance(v, bool) else str(v) for v in value]


class ReadinessTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=1.0)
    phrases: list[str]


class ComplexityThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    simple_max_words: int = 8
    moderate_max_words: int = 20
    complex_framework_count: int = 2


class QueryTables(BaseModel):
    """Trigger-phrase tables for the business query analyzer.

    Dict ordering matters: the first-declared entry wins ties.
    """

    model_config = ConfigDict(frozen=True)

    intents: dict[str, list[str]]
    default_intent: str = "learning"
    industries: dict[str, list[str]]
    default_industry: str = "general"
    stages: dict[str, list[str]]
    default_stage: str = "startup"
    functional_areas: dict[str, list[str]]
    default_functional_area: str = "strategy"
    metrics: list[str]
    framework_indicators: dict[str, list[str]]
    urgency: list[str]
    readiness: dict[str, ReadinessTier]
    default_readiness: float = 0.5
    complexity: ComplexityThresholds = Field(default_factory=ComplexityThresholds)


class BusinessRelevanceWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: float = 0.5
    industry: float = 0.2
    stage: float = 0.2
    functional_area: float = 0.15
    per_framework: float = 0.05
    framework_cap: float = 0.15


class ContextFitWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: float = 0.5
    intent: float = 0.3
    urgency: float = 0.2
    experience: float = 0.1
    preferred_framework: float = 0.1


class ExplanationTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold: float
    label: str


class RankingTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    business_relevance: BusinessRelevanceWeights = Field(default_factory=BusinessRelevanceWeights)
    context_fit: ContextFitWeights = Field(default_factory=ContextFitWeights)
    complexity_levels: dict[str, float]
    default_complexity: str = "medium"
    default_authority: float = 0.7
    default_freshness: float = 0.8
    intent_weights: dict[str, dict[str, float]]
    default_weights: dict[str, float]
    explanation_tiers: list[ExplanationTier]
    explanation_fallback: str

    @field_validator("intent_weights")
    @classmethod
    def _profiles_sum_to_one(
        cls, value: dict[str, dict[str, float]]
    ) -> dict[str, dict[str, float]]:
        for intent, weights in value.items():
            total = sum(weights.values())
            if abs(total - 1.0) > 1e-6:
                raise ValueError(f"weights for intent '{intent}' sum to {total}, expected 1.0")
        return value


class AssemblyStrategyTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    synthesis_approach: str
    source_integration_method: str
    content_organization: str
    redundancy_handling: str
    gap_handling: str


class AssemblyTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategies: dict[str, AssemblyStrategyTable]
    default_strategy: AssemblyStrategyTable
    immediacy_terms: list[str]
    strategic_terms: list[str]
    long_term_terms: list[str]
    problem_terms: list[str]
    solution_terms: list[str]
    imperative_verbs: list[str] = Field(default_factory=list)
    case_study_terms: list[str] = Field(default_factory=list)
    opposing_directives: list[tuple[str, str]]
    prioritization_authority_gap: float = 0.2
    sequential_immediacy: float = 0.7
    low_confidence_threshold: float = 0.5
    warning_confidence: float = 0.7
    min_sources: int = 3
    response_length_chars: dict[str, int]
    default_success_metrics: list[str]
    framework_success_metrics: dict[str, list[str]] = Field(default_factory=dict)


class ScoringTables(BaseModel):
    """All scoring vocabularies and weights, loaded from one YAML file."""

    model_config = ConfigDict(frozen=True)

    chunking: ChunkingTables
    document: DocumentTables
    video: VideoTables
    frameworks: list[FrameworkDefinition]
    query: QueryTables
    ranking: RankingTables
    assembly: AssemblyTables
