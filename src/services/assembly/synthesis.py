"""Response synthesis: turning structured sources into answer fields.

Everything here is extractive.  Sentences are lifted from the sources,
never generated, so every claim in an assembled response can be traced
back to a chunk id.
"""

from __future__ import annotations

import re

from src.config.scoring_tables import AssemblyTables
from src.models.assembly import (
    ActionableInsight,
    ContentStructure,
    Evidence,
    EvidenceType,
    ExpectedImpact,
    FormattedCitation,
    FrameworkIntegration,
    GapHandling,
    ImplementationComplexity,
    InsightPriority,
)
from src.models.query import BusinessQueryContext
from src.services.assembly.conflicts import ConflictOutcome
from src.services.assembly.sources import PreparedSource
from src.utils.scoring import count_phrases

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+|\n+")
_NUMBERED_RE = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+")
_STATISTIC_RE = re.compile(r"\d+(?:\.\d+)?\s*%|\$\s?\d|\b\d+(?:[.,]\d+)?\b")
_WORD_RE = re.compile(r"[a-z']+")

_SUMMARY_SOURCES = 3
_LEAD_MAX_CHARS = 240
_INSIGHTS_PER_SOURCE = 3
_MAX_INSIGHTS = 10
_MIN_INSIGHT_WORDS = 4

_EVIDENCE_BASE_STRENGTH = {
    EvidenceType.STATISTICAL: 0.9,
    EvidenceType.CASE_STUDY: 0.8,
    EvidenceType.FRAMEWORK_PRINCIPLE: 0.7,
    EvidenceType.EXPERT_OPINION: 0.6,
}

_COMPLEXITY_MAP = {
    "low": ImplementationComplexity.SIMPLE,
    "simple": ImplementationComplexity.SIMPLE,
    "medium": ImplementationComplexity.MODERATE,
    "moderate": ImplementationComplexity.MODERATE,
    "high": ImplementationComplexity.COMPLEX,
    "expert": ImplementationComplexity.COMPLEX,
    "complex": ImplementationComplexity.COMPLEX,
}

_TIMEFRAMES = {
    InsightPriority.CRITICAL: "This week",
    InsightPriority.HIGH: "Next 2 weeks",
    InsightPriority.MEDIUM: "Next 30-60 days",
    InsightPriority.LOW: "Next quarter",
}

GAP_TEXT = {
    GapHandling.ACKNOWLEDGE: (
        "This gap is acknowledged; adding content on this topic to the knowledge "
        "base will improve future answers."
    ),
    GapHandling.RESEARCH_ADDITIONAL: (
        "Additional research is recommended: ingest sources on {area} for "
        "{industry} businesses before acting."
    ),
    GapHandling.INFER_SAFELY: (
        "Any guidance offered here is inferred from general principles and should "
        "be validated before acting."
    ),
}


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s and s.strip()]


def lead_sentence(text: str, max_chars: int = _LEAD_MAX_CHARS) -> str:
    sentences = split_sentences(text)
    if not sentences:
        return ""
    return truncate(sentences[0], max_chars)


def truncate(text: str, max_chars: int) -> str:
    """Cut *text* at a word boundary; ``max_chars <= 0`` means unlimited."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    cut = text[: max_chars - 3].rsplit(" ", 1)[0].rstrip(",;:")
    return cut + "..."


def gap_text(gap_handling: GapHandling, context: BusinessQueryContext) -> str:
    return GAP_TEXT[gap_handling].format(
        area=context.functional_area, industry=context.industry
    )


def authority_level(authority: float) -> str:
    if authority >= 0.8:
        return "high"
    if authority >= 0.5:
        return "medium"
    return "low"


class ResponseSynthesizer:
    """Builds the synthesized fields of an assembled response.

    Parameters
    ----------
    tables:
        Assembly vocabularies (imperative verbs, case-study terms,
        success metrics, minimum source count).
    citation_detail:
        ``minimal`` / ``moderate`` / ``detailed`` / ``comprehensive``.
    """

    def __init__(self, tables: AssemblyTables, citation_detail: str = "moderate") -> None:
        self._tables = tables
        self._citation_detail = citation_detail
        self._imperatives = {v.lower() for v in tables.imperative_verbs}

    # ------------------------------------------------------------------
    # Summary / explanation
    # ------------------------------------------------------------------

    def executive_summary(
        self,
        sources: list[PreparedSource],
        context: BusinessQueryContext,
        gap_handling: GapHandling,
    ) -> str:
        if not sources:
            return (
                f'No knowledge-base content matched "{context.query}". '
                f"{gap_text(gap_handling, context)}"
            )
        leads = [lead_sentence(s.text) for s in sources[:_SUMMARY_SOURCES]]
        focus = context.functional_area.replace("_", " ")
        return f"Key guidance on {focus}: " + " ".join(lead for lead in leads if lead)

    def detailed_explanation(
        self,
        structure: ContentStructure,
        sources: list[PreparedSource],
        context: BusinessQueryContext,
        gap_handling: GapHandling,
        max_chars: int = 0,
    ) -> str:
        if not sources:
            return gap_text(gap_handling, context)
        by_id = {s.source_id: s for s in sources}
        blocks = []
        for section in structure.sections:
            lines = [f"## {section.title}"]
            for source_id in section.source_ids:
                source = by_id.get(source_id)
                if source is None:
                    continue
                body = " ".join(split_sentences(source.text)[:2])
                lines.append(f"- {body} [{source.title}]")
            blocks.append("\n".join(lines))
        return truncate("\n\n".join(blocks), max_chars)

    # ------------------------------------------------------------------
    # Frameworks
    # ------------------------------------------------------------------

    def framework_integrations(
        self, sources: list[PreparedSource], context: BusinessQueryContext
    ) -> list[FrameworkIntegration]:
        grouped: dict[str, list[str]] = {}
        for source in sources:
            for framework in source.frameworks:
                grouped.setdefault(framework, []).append(source.source_id)

        asked = {f.replace("_", " ").lower() for f in context.frameworks}
        integrations = []
        for framework, ids in grouped.items():
            note = f"{framework} is supported by {len(ids)} source(s)"
            if any(a in framework.lower() or framework.lower() in a for a in asked):
                note += " and matches a framework referenced in your question"
            integrations.append(
                FrameworkIntegration(framework=framework, note=note + ".", source_ids=ids)
            )
        return integrations

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def actionable_insights(
        self,
        structure: ContentStructure,
        sources: list[PreparedSource],
        context: BusinessQueryContext,
    ) -> list[ActionableInsight]:
        section_priority: dict[str, int] = {}
        for section in structure.sections:
            for source_id in section.source_ids:
                section_priority.setdefault(source_id, section.priority)

        insights: list[ActionableInsight] = []
        for source in sources:
            for sentence in self._actionable_sentences(source.text)[:_INSIGHTS_PER_SOURCE]:
                if len(insights) >= _MAX_INSIGHTS:
                    return insights
                priority = self._insight_priority(
                    section_priority.get(source.source_id, 4), source.immediacy
                )
                complexity = _COMPLEXITY_MAP.get(
                    source.complexity_label.lower(), ImplementationComplexity.MODERATE
                )
                insights.append(
                    ActionableInsight(
                        insight_id=f"insight_{len(insights) + 1}",
                        insight_text=sentence,
                        priority=priority,
                        complexity=complexity,
                        expected_impact=self._impact(source.overall_score),
                        prerequisites=self._prerequisites(complexity, source.frameworks),
                        success_metrics=self._success_metrics(context, source.frameworks),
                        timeframe=_TIMEFRAMES[priority],
                        source_id=source.source_id,
                        frameworks=list(source.frameworks),
                    )
                )
        return insights

    def _actionable_sentences(self, text: str) -> list[str]:
        found = []
        for sentence in split_sentences(text):
            stripped = _NUMBERED_RE.sub("", sentence)
            words = _WORD_RE.findall(stripped.lower())
            if len(words) < _MIN_INSIGHT_WORDS:
                continue
            if _NUMBERED_RE.match(sentence) or words[0] in self._imperatives:
                found.append(truncate(stripped, _LEAD_MAX_CHARS))
        return found

    @staticmethod
    def _insight_priority(section_priority: int, immediacy: float) -> InsightPriority:
        if section_priority == 1 and immediacy > 0.7:
            return InsightPriority.CRITICAL
        if section_priority == 1 or immediacy > 0.7:
            return InsightPriority.HIGH
        if section_priority == 2:
            return InsightPriority.MEDIUM
        return InsightPriority.LOW

    @staticmethod
    def _impact(score: float) -> ExpectedImpact:
        if score > 0.85:
            return ExpectedImpact.TRANSFORMATIONAL
        if score > 0.7:
            return ExpectedImpact.SIGNIFICANT
        if score > 0.5:
            return ExpectedImpact.MODERATE
        return ExpectedImpact.MINIMAL

    @staticmethod
    def _prerequisites(
        complexity: ImplementationComplexity, frameworks: list[str]
    ) -> list[str]:
        if complexity == ImplementationComplexity.SIMPLE:
            return []
        prerequisites = ["Baseline measurement of current performance"]
        if complexity == ImplementationComplexity.COMPLEX:
            prerequisites.extend(f"Working understanding of {f}" for f in frameworks[:2])
        return prerequisites

    def _success_metrics(
        self, context: BusinessQueryContext, frameworks: list[str]
    ) -> list[str]:
        if context.metrics:
            return [f"Measurable improvement in {m}" for m in context.metrics]
        for framework in frameworks:
            metrics = self._tables.framework_success_metrics.get(framework)
            if metrics:
                return list(metrics)
        return list(self._tables.default_success_metrics)

    # ------------------------------------------------------------------
    # Evidence / citations
    # ------------------------------------------------------------------

    def evidence(self, sources: list[PreparedSource]) -> list[Evidence]:
        items = []
        for number, source in enumerate(sources, start=1):
            evidence_type, sentence = self._classify_evidence(source)
            if not sentence:
                continue
            base = _EVIDENCE_BASE_STRENGTH[evidence_type]
            items.append(
                Evidence(
                    evidence_id=f"evidence_{number}",
                    evidence_text=truncate(sentence, _LEAD_MAX_CHARS),
                    source_chunk_id=source.source_id,
                    evidence_type=evidence_type,
                    strength=min(1.0, base * (0.5 + 0.5 * source.authority)),
                    relevance=source.overall_score,
                    citation=self.citation(source, number),
                )
            )
        return items

    def _classify_evidence(self, source: PreparedSource) -> tuple[EvidenceType, str]:
        sentences = split_sentences(source.text)
        for sentence in sentences:
            if _STATISTIC_RE.search(sentence) and not _NUMBERED_RE.match(sentence):
                return EvidenceType.STATISTICAL, sentence
        for sentence in sentences:
            if count_phrases(sentence, self._tables.case_study_terms):
                return EvidenceType.CASE_STUDY, sentence
        lead = sentences[0] if sentences else ""
        if source.frameworks:
            return EvidenceType.FRAMEWORK_PRINCIPLE, lead
        return EvidenceType.EXPERT_OPINION, lead

    def citation(self, source: PreparedSource, number: int) -> FormattedCitation:
        level = authority_level(source.authority)
        text = f"[{number}] {source.title}"
        if self._citation_detail in ("moderate", "detailed", "comprehensive"):
            text += f" ({source.content_type})"
        if self._citation_detail in ("detailed", "comprehensive"):
            origin = source.result.candidate.source
            if origin:
                text += f", {origin}"
            text += f", {level} authority"
        if self._citation_detail == "comprehensive":
            text += f", relevance {source.overall_score:.2f}, chunk {source.source_id}"
        return FormattedCitation(
            citation_text=text,
            source_id=source.source_id,
            source_title=source.title,
            source_type=source.content_type,
            authority_level=level,
            relevance_to_query=source.overall_score,
        )

    # ------------------------------------------------------------------
    # Limitations
    # ------------------------------------------------------------------

    def limitations(
        self,
        sources: list[PreparedSource],
        evidence: list[Evidence],
        conflicts: ConflictOutcome,
        context: BusinessQueryContext,
        gap_handling: GapHandling,
    ) -> list[str]:
        limitations = []
        if not sources:
            limitations.append(
                "No relevant sources were found in the knowledge base for this question."
            )
            limitations.append(gap_text(gap_handling, context))
        elif len(sources) < self._tables.min_sources:
            limitations.append(
                f"Only {len(sources)} source(s) matched this question; "
                "conclusions may be incomplete."
            )
        if not evidence:
            limitations.append("No supporting evidence could be extracted from the sources.")
        for resolution in conflicts.unresolved:
            limitations.append(
                f"Sources disagree on {resolution.topic}; weigh both positions "
                "against your situation."
            )
        return limitations
