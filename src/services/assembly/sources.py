"""Source preparation: scoring ranked results for assembly.

A :class:`PreparedSource` wraps one :class:`RankedResult` with the content
analysis the later assembly steps lean on:

* immediacy / strategic / long-term value from the ``assembly`` term tables
  (0.25 per distinct term, +0.3 immediacy for numbered steps),
* problem and solution signal counts for problem/solution layouts,
* business alignment (the ranker's business relevance),
* quality indicators (authority, recency, accuracy),
* integration potential, used to order sources for everything downstream.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from src.config.scoring_tables import AssemblyTables
from src.models.ranking import RankedResult
from src.utils.scoring import clamp, count_phrases

_TERM_WEIGHT = 0.25
_NUMBERED_STEP_BONUS = 0.3
_NUMBERED_STEP_RE = re.compile(r"(?m)^\s*(?:\d+[.)]|step\s+\d+)\s+", re.IGNORECASE)

# Integration potential = overall * 0.6 + alignment * 0.4
_OVERALL_WEIGHT = 0.6
_ALIGNMENT_WEIGHT = 0.4

DIFFICULTY_RANK = {"beginner": 0, "intermediate": 1, "advanced": 2, "expert": 3}


@dataclass(frozen=True)
class PreparedSource:
    """A ranked result annotated for assembly."""

    result: RankedResult
    immediacy: float
    strategic: float
    long_term: float
    problem_signals: int
    solution_signals: int
    business_alignment: float
    authority: float
    recency: float
    accuracy: float
    integration_potential: float
    frameworks: list[str] = field(default_factory=list)
    concepts: list[str] = field(default_factory=list)

    @property
    def source_id(self) -> str:
        return self.result.candidate.chunk_id

    @property
    def text(self) -> str:
        return self.result.candidate.text

    @property
    def title(self) -> str:
        return self.result.candidate.title or self.source_id

    @property
    def content_type(self) -> str:
        return self.result.candidate.content_type

    @property
    def overall_score(self) -> float:
        return self.result.overall_score

    @property
    def lifecycle_stage(self) -> str | None:
        return self.result.candidate.metadata.get("lifecycle_stage")

    @property
    def industries(self) -> list[str]:
        value = self.result.candidate.metadata.get("industry_verticals") or []
        return [value] if isinstance(value, str) else list(value)

    @property
    def difficulty_rank(self) -> int:
        level = str(self.result.candidate.metadata.get("difficulty_level") or "").lower()
        return DIFFICULTY_RANK.get(level, 1)

    @property
    def complexity_label(self) -> str:
        meta = self.result.candidate.metadata
        return str(meta.get("complexity") or meta.get("implementation_complexity") or "medium")


def prepare_sources(results: list[RankedResult], tables: AssemblyTables) -> list[PreparedSource]:
    """Annotate *results* and order them by descending integration potential.

    The sort is stable, so ties keep the ranker's order.
    """
    prepared = [_prepare(result, tables) for result in results]
    prepared.sort(key=lambda s: s.integration_potential, reverse=True)
    return prepared


def _prepare(result: RankedResult, tables: AssemblyTables) -> PreparedSource:
    candidate = result.candidate
    text = candidate.text
    immediacy = count_phrases(text, tables.immediacy_terms) * _TERM_WEIGHT
    if _NUMBERED_STEP_RE.search(text):
        immediacy += _NUMBERED_STEP_BONUS
    alignment = result.scores.business_relevance
    concepts = candidate.metadata.get("business_concepts") or []
    return PreparedSource(
        result=result,
        immediacy=clamp(immediacy),
        strategic=clamp(count_phrases(text, tables.strategic_terms) * _TERM_WEIGHT),
        long_term=clamp(count_phrases(text, tables.long_term_terms) * _TERM_WEIGHT),
        problem_signals=count_phrases(text, tables.problem_terms),
        solution_signals=count_phrases(text, tables.solution_terms),
        business_alignment=alignment,
        authority=result.scores.authority,
        recency=result.scores.freshness,
        accuracy=candidate.importance_score,
        integration_potential=clamp(
            result.overall_score * _OVERALL_WEIGHT + alignment * _ALIGNMENT_WEIGHT
        ),
        frameworks=list(result.related_frameworks),
        concepts=[str(c) for c in concepts],
    )
