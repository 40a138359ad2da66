"""Conflict detection and resolution between prepared sources.

Two sources conflict when they share a topic (a framework, else a business
concept) and sit on opposite sides of one of the ``opposing_directives``
pairs, e.g. one says *increase* and the other *decrease*.

Resolution is checked in a fixed order:

1. **prioritization** -- authority differs by at least
   ``prioritization_authority_gap``: keep only the more authoritative source.
2. **sequential_implementation** -- both sources are action-oriented
   (immediacy above ``sequential_immediacy``): keep both as ordered steps.
3. **conditional_application** -- the sources target different lifecycle
   stages or industries: keep both, each with its condition.
4. **contextualization** -- otherwise keep both with a note.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations

import structlog

from src.config.scoring_tables import AssemblyTables
from src.models.assembly import ConflictResolution, ConflictStrategy
from src.services.assembly.sources import PreparedSource
from src.services.ranker import normalize_framework
from src.utils.scoring import count_word_matches

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class ConflictOutcome:
    """Surviving sources plus one resolution record per detected conflict."""

    sources: list[PreparedSource]
    resolutions: list[ConflictResolution] = field(default_factory=list)
    pair_count: int = 0

    @property
    def unresolved(self) -> list[ConflictResolution]:
        return [
            r for r in self.resolutions if r.strategy == ConflictStrategy.CONTEXTUALIZATION
        ]


class ConflictResolver:
    def __init__(self, tables: AssemblyTables) -> None:
        self._tables = tables

    def resolve(self, sources: list[PreparedSource]) -> ConflictOutcome:
        """Detect pairwise conflicts in *sources* and apply a strategy to each.

        Pairs are visited in source order; a source dropped by an earlier
        prioritization takes no part in later pairs.
        """
        dropped: set[str] = set()
        resolutions: list[ConflictResolution] = []

        for a, b in combinations(sources, 2):
            if a.source_id in dropped or b.source_id in dropped:
                continue
            topic = self.shared_topic(a, b)
            if topic is None or not self.opposing(a.text, b.text):
                continue
            resolution = self._resolve_pair(a, b, topic, sources)
            if resolution.strategy == ConflictStrategy.PRIORITIZATION:
                dropped.update(set(resolution.source_ids) - set(resolution.kept_source_ids))
            resolutions.append(resolution)

        if resolutions:
            logger.info(
                "source_conflicts_resolved",
                conflicts=len(resolutions),
                dropped=len(dropped),
                strategies=[r.strategy.value for r in resolutions],
            )
        n = len(sources)
        return ConflictOutcome(
            sources=[s for s in sources if s.source_id not in dropped],
            resolutions=resolutions,
            pair_count=n * (n - 1) // 2,
        )

    @staticmethod
    def shared_topic(a: PreparedSource, b: PreparedSource) -> str | None:
        """First framework both sources carry, else the first shared concept."""
        b_frameworks = {normalize_framework(f) for f in b.frameworks}
        for framework in a.frameworks:
            if normalize_framework(framework) in b_frameworks:
                return framework
        b_concepts = {c.lower() for c in b.concepts}
        for concept in a.concepts:
            if concept.lower() in b_concepts:
                return concept
        return None

    def opposing(self, text_a: str, text_b: str) -> bool:
        for left, right in self._tables.opposing_directives:
            a_left, a_right = count_word_matches(text_a, left), count_word_matches(text_a, right)
            b_left, b_right = count_word_matches(text_b, left), count_word_matches(text_b, right)
            # One-sided on each side, and the sides differ.
            if a_left and not a_right and b_right and not b_left:
                return True
            if a_right and not a_left and b_left and not b_right:
                return True
        return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve_pair(
        self,
        a: PreparedSource,
        b: PreparedSource,
        topic: str,
        sources: list[PreparedSource],
    ) -> ConflictResolution:
        tables = self._tables
        position = {s.source_id: i for i, s in enumerate(sources)}
        first, second = sorted(
            (a, b), key=lambda s: (-s.authority, -s.overall_score, position[s.source_id])
        )
        ids = [a.source_id, b.source_id]

        if abs(a.authority - b.authority) >= tables.prioritization_authority_gap:
            return ConflictResolution(
                source_ids=ids,
                topic=topic,
                strategy=ConflictStrategy.PRIORITIZATION,
                kept_source_ids=[first.source_id],
                note=(
                    f"Preferred '{first.title}' (authority {first.authority:.2f}) over "
                    f"'{second.title}' (authority {second.authority:.2f}) on {topic}."
                ),
            )

        if a.immediacy > tables.sequential_immediacy and b.immediacy > tables.sequential_immediacy:
            return ConflictResolution(
                source_ids=ids,
                topic=topic,
                strategy=ConflictStrategy.SEQUENTIAL_IMPLEMENTATION,
                kept_source_ids=[first.source_id, second.source_id],
                note=(
                    f"Both sources give steps on {topic}; apply '{first.title}' first, "
                    f"then '{second.title}'."
                ),
            )

        if self._different_targets(a, b):
            return ConflictResolution(
                source_ids=ids,
                topic=topic,
                strategy=ConflictStrategy.CONDITIONAL_APPLICATION,
                kept_source_ids=[first.source_id, second.source_id],
                note=(
                    f"Guidance on {topic} depends on context: '{a.title}' applies to "
                    f"{self._target(a)}, '{b.title}' applies to {self._target(b)}."
                ),
            )

        return ConflictResolution(
            source_ids=ids,
            topic=topic,
            strategy=ConflictStrategy.CONTEXTUALIZATION,
            kept_source_ids=[first.source_id, second.source_id],
            note=f"Sources disagree on {topic}; both positions are presented for comparison.",
        )

    @staticmethod
    def _different_targets(a: PreparedSource, b: PreparedSource) -> bool:
        if a.lifecycle_stage and b.lifecycle_stage and a.lifecycle_stage != b.lifecycle_stage:
            return True
        return bool(a.industries and b.industries and not set(a.industries) & set(b.industries))

    @staticmethod
    def _target(source: PreparedSource) -> str:
        parts = [source.lifecycle_stage or "any stage"]
        parts.append(", ".join(source.industries) if source.industries else "any industry")
        return " / ".join(parts)
