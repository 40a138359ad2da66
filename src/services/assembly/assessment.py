"""Quality metrics and confidence assessment for an assembled response.

The two assessments are computed independently and never reconciled:
a response can show high business relevance and low consensus at the
same time, and both numbers are reported as-is.  Every sub-score with no
data behind it (no sources) is 0, so an empty response always lands
below the low-confidence threshold.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.models.assembly import (
    ActionableInsight,
    ConfidenceAssessment,
    ConfidenceFactor,
    Evidence,
    EvidenceType,
    ImplementationComplexity,
    QualityMetrics,
)
from src.models.query import BusinessQueryContext
from src.services.assembly.conflicts import ConflictOutcome
from src.services.assembly.sources import PreparedSource
from src.utils.scoring import clamp, mean

_DIVERSITY_TYPES = 3
_INSIGHTS_FOR_FULL_ACTIONABILITY = 3
_EVIDENCE_FOR_FULL_STRENGTH = 5
_RELIABLE_SOURCE_COUNT = 3
_NO_INSIGHT_FEASIBILITY = 0.5


@dataclass(frozen=True)
class SynthesisSnapshot:
    """The synthesized fields the assessments look at."""

    sources: list[PreparedSource]
    summary: str
    explanation: str
    insights: list[ActionableInsight]
    evidence: list[Evidence]
    conflicts: ConflictOutcome

    @property
    def has_sources(self) -> bool:
        return bool(self.sources)


def completeness(snapshot: SynthesisSnapshot) -> float:
    if not snapshot.has_sources:
        return 0.0
    score = 0.0
    if snapshot.summary:
        score += 0.3
    if snapshot.explanation:
        score += 0.3
    if snapshot.insights:
        score += 0.2
    if snapshot.evidence:
        score += 0.2
    return clamp(score)


def conflict_agreement(snapshot: SynthesisSnapshot) -> float:
    """``1 - conflicts / max(1, pairs)``; 0 when there are no sources."""
    if not snapshot.has_sources:
        return 0.0
    pairs = max(1, snapshot.conflicts.pair_count)
    return clamp(1 - len(snapshot.conflicts.resolutions) / pairs)


def assess_quality(snapshot: SynthesisSnapshot) -> QualityMetrics:
    sources = snapshot.sources
    diversity = min(1.0, len({s.content_type for s in sources}) / _DIVERSITY_TYPES)
    scores = {
        "source_diversity": diversity,
        "completeness": completeness(snapshot),
        "consistency": conflict_agreement(snapshot),
        "actionability": min(
            1.0, len(snapshot.insights) / _INSIGHTS_FOR_FULL_ACTIONABILITY
        ),
        "evidence_strength": min(
            1.0, len(snapshot.evidence) / _EVIDENCE_FOR_FULL_STRENGTH
        ),
        "business_relevance": mean([s.business_alignment for s in sources]),
    }
    return QualityMetrics(overall_quality=mean(list(scores.values())), **scores)


def assess_confidence(
    snapshot: SynthesisSnapshot, context: BusinessQueryContext, min_sources: int
) -> ConfidenceAssessment:
    sources = snapshot.sources
    reliability = min(1.0, len(sources) / _RELIABLE_SOURCE_COUNT)
    complete = completeness(snapshot)
    consensus = conflict_agreement(snapshot)
    if snapshot.insights:
        simple = sum(
            1 for i in snapshot.insights if i.complexity == ImplementationComplexity.SIMPLE
        )
        feasibility = simple / len(snapshot.insights)
    else:
        feasibility = _NO_INSIGHT_FEASIBILITY

    factors = [
        ConfidenceFactor(
            factor_name="source_reliability",
            impact_on_confidence=reliability - 0.5,
            explanation=f"{len(sources)} source(s) support this answer.",
        ),
        ConfidenceFactor(
            factor_name="completeness",
            impact_on_confidence=complete - 0.5,
            explanation="Share of summary, explanation, insights and evidence present.",
        ),
        ConfidenceFactor(
            factor_name="consensus",
            impact_on_confidence=consensus - 0.5,
            explanation=f"{len(snapshot.conflicts.resolutions)} conflict(s) between sources.",
        ),
        ConfidenceFactor(
            factor_name="implementation_feasibility",
            impact_on_confidence=feasibility - 0.5,
            explanation="Share of insights that are simple to implement.",
        ),
    ]
    return ConfidenceAssessment(
        overall_confidence=mean([reliability, complete, consensus, feasibility]),
        source_reliability=reliability,
        completeness=complete,
        consensus_level=consensus,
        implementation_feasibility=feasibility,
        uncertainty_areas=_uncertainty_areas(snapshot, context, min_sources),
        confidence_factors=factors,
    )


def _uncertainty_areas(
    snapshot: SynthesisSnapshot, context: BusinessQueryContext, min_sources: int
) -> list[str]:
    areas = []
    if len(snapshot.sources) < min_sources:
        areas.append("Limited source coverage for this question")
    for resolution in snapshot.conflicts.resolutions:
        areas.append(f"Conflicting guidance on {resolution.topic}")
    if not any(e.evidence_type == EvidenceType.STATISTICAL for e in snapshot.evidence):
        areas.append("No quantitative evidence in the sources")
    if context.industry == "general":
        areas.append("Industry not identified in the question")
    return areas


def quality_checks(snapshot: SynthesisSnapshot, quality: QualityMetrics) -> list[str]:
    """Names of the structural checks this response passes."""
    checks = {
        "has_sources": snapshot.has_sources,
        "has_summary": snapshot.has_sources and bool(snapshot.summary),
        "has_actionable_insights": bool(snapshot.insights),
        "has_supporting_evidence": bool(snapshot.evidence),
        "no_unresolved_conflicts": not snapshot.conflicts.unresolved,
        "diverse_sources": quality.source_diversity >= 2 / _DIVERSITY_TYPES,
    }
    return [name for name, passed in checks.items() if passed]
