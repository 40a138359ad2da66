"""Business query analysis -- turns one free-text question into a context.

The analyzer is a pure function of its inputs: no I/O, no model calls.
Every vocabulary it consults lives in the ``query`` section of
``config/scoring_tables.yaml``.

How a question is read
----------------------
1. **Intent** -- each of the eight intents owns a list of trigger phrases.
   The intent with the most phrases present in the lower-cased query wins;
   ties go to whichever intent is declared first.  No match means
   ``learning``.
2. **Industry / stage / functional area** -- same "most matches wins"
   rule over their own tables, each with a default.  Caller-supplied
   ``KnownContext`` values replace inference entirely.
3. **Metrics, frameworks, urgency** -- plain substring search over fixed
   vocabularies.
4. **Readiness** -- high / medium / low phrase tiers, checked in that
   order, defaulting to 0.5.
5. **Complexity** -- word count thresholds, forced to ``complex`` when
   the query mentions two or more frameworks.
"""

from __future__ import annotations

import structlog

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import QueryTables
from src.models.query import (
    BusinessQueryContext,
    KnownContext,
    QueryComplexity,
    UserIntent,
)
from src.utils.scoring import count_phrases, matched_phrases

logger = structlog.get_logger(logger_name=__name__)


def _best_match(text: str, table: dict[str, list[str]], default: str) -> tuple[str, int]:
    """Return the key with the most phrase matches and its match count.

    A later key replaces the current best only on a strictly greater
    count, so declaration order breaks ties.
    """
    best, best_count = default, 0
    for key, phrases in table.items():
        hits = count_phrases(text, phrases)
        if hits > best_count:
            best, best_count = key, hits
    return best, best_count


class BusinessQueryAnalyzer:
    """Infers intent, business context and readiness from a question.

    Parameters
    ----------
    tables:
        Query vocabularies; defaults to the packaged scoring tables.
    """

    def __init__(self, tables: QueryTables | None = None) -> None:
        self._tables = tables or default_scoring_tables().query

    def analyze(
        self, query: str, known_context: KnownContext | None = None
    ) -> BusinessQueryContext:
        """Build the :class:`BusinessQueryContext` for *query*."""
        text = query.lower()
        tables = self._tables
        known = known_context or KnownContext()

        intent_key, intent_hits = _best_match(text, tables.intents, tables.default_intent)
        industry = known.industry or _best_match(
            text, tables.industries, tables.default_industry
        )[0]
        stage = known.business_stage or _best_match(
            text, tables.stages, tables.default_stage
        )[0]
        area = known.functional_area or _best_match(
            text, tables.functional_areas, tables.default_functional_area
        )[0]

        frameworks = [
            name
            for name, indicators in tables.framework_indicators.items()
            if count_phrases(text, indicators)
        ]
        urgency = matched_phrases(text, tables.urgency)

        context = BusinessQueryContext(
            query=query,
            intent=UserIntent(intent_key),
            intent_matches=intent_hits,
            industry=industry,
            business_stage=stage,
            functional_area=area,
            metrics=matched_phrases(text, tables.metrics),
            frameworks=frameworks,
            urgency_signals=urgency,
            implementation_readiness=self._readiness(text),
            complexity=self._complexity(query, frameworks),
            business_scenarios=self._scenarios(industry, stage, area, urgency),
        )
        logger.debug(
            "query_analyzed",
            intent=context.intent.value,
            industry=industry,
            stage=stage,
            functional_area=area,
            frameworks=frameworks,
            urgent=context.is_urgent,
        )
        return context

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _readiness(self, text: str) -> float:
        for tier in self._tables.readiness.values():
            if count_phrases(text, tier.phrases):
                return tier.score
        return self._tables.default_readiness

    def _complexity(self, query: str, frameworks: list[str]) -> QueryComplexity:
        thresholds = self._tables.complexity
        if len(frameworks) >= thresholds.complex_framework_count:
            return QueryComplexity.COMPLEX
        words = len(query.split())
        if words < thresholds.simple_max_words:
            return QueryComplexity.SIMPLE
        if words < thresholds.moderate_max_words:
            return QueryComplexity.MODERATE
        return QueryComplexity.COMPLEX

    @staticmethod
    def _scenarios(industry: str, stage: str, area: str, urgency: list[str]) -> list[str]:
        scenarios = [f"{industry}:{stage}:{area}"]
        if urgency:
            scenarios.append(f"{industry}:crisis:troubleshooting")
        return scenarios
