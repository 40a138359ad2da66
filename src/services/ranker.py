"""Business-aware re-ranking of similarity search candidates.

Similarity alone says a chunk is *about* the question; the ranker asks
whether it fits *this* asker.  Five sub-scores are computed independently
for every candidate:

    business_relevance  0.5 base + industry / stage / functional area /
                        framework overlap with the query context
    context_fit         0.5 base + intent mapping, urgency alignment and
                        user-profile preferences
    implementation_fit  1 - |readiness - content complexity|
    authority           metadata ``authority_score`` (default 0.7)
    freshness           metadata ``freshness_score`` (default 0.8)

and combined with the weight vector of the query's intent.  Weights and
increments come from the ``ranking`` section of the scoring tables.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import structlog

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import RankingTables
from src.models.query import BusinessQueryContext, UserProfile
from src.models.ranking import RankedResult, ScoreBreakdown, SearchCandidate
from src.utils.scoring import clamp, weighted_score

logger = structlog.get_logger(logger_name=__name__)

_TROUBLESHOOTING_CONTENT = "troubleshooting"
_CRISIS_CATEGORY = "crisis_management"


def normalize_framework(name: str) -> str:
    """Fold framework labels so ``"Grand Slam Offer"`` meets ``grand_slam_offers``."""
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return slug.removesuffix("s")


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _as_score(value: Any, default: float) -> float:
    if isinstance(value, Mapping):
        value = value.get("overall_freshness")
    if value is None:
        return default
    try:
        return clamp(float(value))
    except (TypeError, ValueError):
        return default


class BusinessSearchRanker:
    """Scores and orders :class:`SearchCandidate` objects for one query.

    Parameters
    ----------
    tables:
        Ranking weights; defaults to the packaged scoring tables.
    """

    def __init__(self, tables: RankingTables | None = None) -> None:
        self._tables = tables or default_scoring_tables().ranking

    def rank(
        self,
        candidates: list[SearchCandidate],
        context: BusinessQueryContext,
        user_profile: UserProfile | None = None,
    ) -> list[RankedResult]:
        """Return *candidates* as ranked results, best first.

        The sort is stable, so equally scored candidates keep their
        input order.
        """
        weights = self._tables.intent_weights.get(
            context.intent.value, self._tables.default_weights
        )
        ranked = [self._rank_one(c, context, user_profile, weights) for c in candidates]
        ranked.sort(key=lambda r: r.overall_score, reverse=True)

        logger.debug(
            "candidates_ranked",
            count=len(ranked),
            intent=context.intent.value,
            top_score=ranked[0].overall_score if ranked else None,
        )
        return ranked

    def explain(self, overall_score: float) -> str:
        """Tier label for *overall_score* (strict ``>`` thresholds)."""
        for tier in self._tables.explanation_tiers:
            if overall_score > tier.threshold:
                return tier.label
        return self._tables.explanation_fallback

    # ------------------------------------------------------------------
    # Sub-scores
    # ------------------------------------------------------------------

    def business_relevance(
        self, candidate: SearchCandidate, context: BusinessQueryContext
    ) -> float:
        w = self._tables.business_relevance
        meta = candidate.metadata
        score = w.base
        if context.industry in _as_list(meta.get("industry_verticals")):
            score += w.industry
        if meta.get("lifecycle_stage") == context.business_stage:
            score += w.stage
        if context.functional_area in _as_list(meta.get("functional_areas")):
            score += w.functional_area

        tagged = {normalize_framework(f) for f in self._frameworks_of(candidate)}
        overlap = sum(1 for f in context.frameworks if normalize_framework(f) in tagged)
        score += min(w.framework_cap, overlap * w.per_framework)
        return clamp(score)

    def context_fit(
        self,
        candidate: SearchCandidate,
        context: BusinessQueryContext,
        user_profile: UserProfile | None = None,
    ) -> float:
        w = self._tables.context_fit
        meta = candidate.metadata
        score = w.base
        if context.intent.value in _as_list(meta.get("user_intent_mapping")):
            score += w.intent
        if context.is_urgent and (
            meta.get("content_type") == _TROUBLESHOOTING_CONTENT
            or meta.get("category") == _CRISIS_CATEGORY
        ):
            score += w.urgency
        if user_profile is not None:
            level = user_profile.experience_level
            if level is not None and level == meta.get("difficulty_level"):
                score += w.experience
            tagged = {normalize_framework(f) for f in self._frameworks_of(candidate)}
            if any(normalize_framework(f) in tagged for f in user_profile.preferred_frameworks):
                score += w.preferred_framework
        return clamp(score)

    def implementation_fit(
        self, candidate: SearchCandidate, context: BusinessQueryContext
    ) -> float:
        levels = self._tables.complexity_levels
        declared = candidate.metadata.get("complexity") or candidate.metadata.get(
            "implementation_complexity"
        )
        fallback = levels.get(self._tables.default_complexity, 0.5)
        complexity = levels.get(str(declared).lower(), fallback) if declared else fallback
        return clamp(1 - abs(context.implementation_readiness - complexity))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _rank_one(
        self,
        candidate: SearchCandidate,
        context: BusinessQueryContext,
        user_profile: UserProfile | None,
        weights: Mapping[str, float],
    ) -> RankedResult:
        scores = ScoreBreakdown(
            business_relevance=self.business_relevance(candidate, context),
            context_fit=self.context_fit(candidate, context, user_profile),
            implementation_fit=self.implementation_fit(candidate, context),
            authority=_as_score(
                candidate.metadata.get("authority_score"), self._tables.default_authority
            ),
            freshness=_as_score(
                candidate.metadata.get("freshness_score"), self._tables.default_freshness
            ),
        )
        overall = clamp(weighted_score(scores.as_dict(), weights))
        return RankedResult(
            candidate=candidate,
            scores=scores,
            overall_score=overall,
            explanation=self.explain(overall),
            implementation_guidance=self._guidance(context),
            related_frameworks=self._frameworks_of(candidate),
        )

    @staticmethod
    def _frameworks_of(candidate: SearchCandidate) -> list[str]:
        frameworks = list(candidate.detected_frameworks)
        for name in _as_list(candidate.metadata.get("frameworks")):
            if name not in frameworks:
                frameworks.append(name)
        return frameworks

    @staticmethod
    def _guidance(context: BusinessQueryContext) -> list[str]:
        readiness = context.implementation_readiness
        if readiness > 0.8:
            guidance = ["You appear ready to implement - focus on execution steps"]
        elif readiness > 0.5:
            guidance = ["Consider planning phase before implementation"]
        else:
            guidance = ["Start with understanding fundamentals before implementation"]
        if context.is_urgent:
            guidance.append("Priority implementation recommended based on urgency signals")
        if context.frameworks:
            guidance.append(f"Focus on {context.frameworks[0]} framework components")
        return guidance
