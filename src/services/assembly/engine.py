"""Context assembly engine -- ranked results in, structured answer out.

# ─── ASSEMBLY PIPELINE ────────────────────────────────────────────────
#
#   ranked results
#     │ 1. prepare   score immediacy / strategic / long-term, alignment
#     │ 2. resolve   detect opposing guidance, apply a conflict strategy
#     │ 3. organize  framework / action / problem-solution / educational
#     │ 4. synthesize summary, explanation, insights, evidence, limits
#     │ 5. roadmap   immediate / short-term / long-term + milestones, risks
#     ▼ 6. assess    quality metrics and confidence (independent)
#   AssembledResponse
#
# The engine is a pure function of its inputs: no I/O, no awaits.  An
# empty result list is a normal input and yields a low-confidence answer
# that acknowledges the gap.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import secrets
import time

import structlog

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import AssemblyTables
from src.models.assembly import (
    AssembledResponse,
    AssemblyMetadata,
    AssemblyStrategy,
    GapHandling,
)
from src.models.query import BusinessQueryContext
from src.models.ranking import RankedResult
from src.services.assembly.assessment import (
    SynthesisSnapshot,
    assess_confidence,
    assess_quality,
    quality_checks,
)
from src.services.assembly.conflicts import ConflictResolver
from src.services.assembly.roadmap import build_roadmap
from src.services.assembly.sources import prepare_sources
from src.services.assembly.structure import build_structure
from src.services.assembly.synthesis import ResponseSynthesizer
from src.utils.logging import get_logger


def new_response_id() -> str:
    return f"resp_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


class ContextAssemblyEngine:
    """Assembles an :class:`AssembledResponse` from ranked search results.

    Parameters
    ----------
    tables:
        Assembly strategies, vocabularies and thresholds; defaults to the
        packaged scoring tables.
    """

    def __init__(self, tables: AssemblyTables | None = None) -> None:
        self._tables = tables or default_scoring_tables().assembly
        self._resolver = ConflictResolver(self._tables)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def low_confidence_threshold(self) -> float:
        return self._tables.low_confidence_threshold

    def strategy_for(
        self, context: BusinessQueryContext, gap_handling: GapHandling | str | None = None
    ) -> AssemblyStrategy:
        """The assembly strategy for the query's intent, with optional gap override."""
        row = self._tables.strategies.get(context.intent.value, self._tables.default_strategy)
        strategy = AssemblyStrategy.model_validate(row.model_dump())
        if gap_handling is not None:
            strategy = strategy.model_copy(update={"gap_handling": GapHandling(gap_handling)})
        return strategy

    def assemble(
        self,
        context: BusinessQueryContext,
        results: list[RankedResult],
        gap_handling: GapHandling | str | None = None,
        citation_detail: str = "moderate",
        max_explanation_chars: int = 0,
    ) -> AssembledResponse:
        """Run the six assembly steps over *results*.

        Parameters
        ----------
        context:
            Analyzed query context.
        results:
            Ranked results, best first.  May be empty.
        gap_handling:
            Overrides the strategy's gap policy when given.
        citation_detail:
            ``minimal`` / ``moderate`` / ``detailed`` / ``comprehensive``.
        max_explanation_chars:
            Cap on the detailed explanation; 0 means unlimited.
        """
        started = time.perf_counter()
        tables = self._tables
        strategy = self.strategy_for(context, gap_handling)
        gap = strategy.gap_handling
        synthesizer = ResponseSynthesizer(tables, citation_detail)

        prepared = prepare_sources(results, tables)
        conflicts = self._resolver.resolve(prepared)
        sources = conflicts.sources
        structure = build_structure(strategy.content_organization, sources, context)

        summary = synthesizer.executive_summary(sources, context, gap)
        explanation = synthesizer.detailed_explanation(
            structure, sources, context, gap, max_explanation_chars
        )
        insights = synthesizer.actionable_insights(structure, sources, context)
        evidence = synthesizer.evidence(sources)
        limitations = synthesizer.limitations(sources, evidence, conflicts, context, gap)

        snapshot = SynthesisSnapshot(
            sources=sources,
            summary=summary,
            explanation=explanation,
            insights=insights,
            evidence=evidence,
            conflicts=conflicts,
        )
        quality = assess_quality(snapshot)
        confidence = assess_confidence(snapshot, context, tables.min_sources)

        warnings = []
        if confidence.overall_confidence < tables.warning_confidence:
            warnings.append("Low confidence score")
        if len(sources) < tables.min_sources:
            warnings.append("Limited source diversity")
        if conflicts.unresolved:
            warnings.append("Unresolved source conflicts")

        duration_ms = (time.perf_counter() - started) * 1000
        response = AssembledResponse(
            response_id=new_response_id(),
            query=context.query,
            strategy=strategy,
            executive_summary=summary,
            detailed_explanation=explanation,
            framework_integrations=synthesizer.framework_integrations(sources, context),
            actionable_insights=insights,
            evidence=evidence,
            limitations=limitations,
            conflicts=conflicts.resolutions,
            structure=structure,
            roadmap=build_roadmap(insights, context, conflicts),
            quality=quality,
            confidence=confidence,
            metadata=AssemblyMetadata(
                duration_ms=duration_ms,
                source_count=len(results),
                quality_checks_passed=quality_checks(snapshot, quality),
                warnings=warnings,
            ),
        )
        self._logger.info(
            "response_assembled",
            response_id=response.response_id,
            sources=len(sources),
            conflicts=len(conflicts.resolutions),
            organization=structure.organization.value,
            quality=round(quality.overall_quality, 3),
            confidence=round(confidence.overall_confidence, 3),
            duration_ms=round(duration_ms, 1),
        )
        return response
