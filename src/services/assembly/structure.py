"""Content structure builders, one per :class:`ContentOrganization`.

Each builder returns a :class:`ContentStructure` whose sections reference
sources by id and are ordered by ascending priority.  Empty sections are
omitted, and sources no section claims are collected into a trailing
guidance section so every source appears somewhere.
"""

from __future__ import annotations

from collections.abc import Callable
from itertools import combinations

from src.models.assembly import (
    ContentOrganization,
    ContentSection,
    ContentStructure,
    IntegrationPoint,
)
from src.models.query import BusinessQueryContext
from src.services.assembly.sources import PreparedSource
from src.services.ranker import normalize_framework

_GENERAL = "general"

StructureBuilder = Callable[[list[PreparedSource], BusinessQueryContext], ContentStructure]


def build_structure(
    organization: ContentOrganization,
    sources: list[PreparedSource],
    context: BusinessQueryContext,
) -> ContentStructure:
    return _BUILDERS[organization](sources, context)


def framework_based(
    sources: list[PreparedSource], context: BusinessQueryContext
) -> ContentStructure:
    groups: dict[str, list[PreparedSource]] = {}
    for source in sources:
        for framework in source.frameworks or [_GENERAL]:
            groups.setdefault(framework, []).append(source)

    asked = {normalize_framework(f) for f in context.frameworks}
    sections = []
    for framework, members in groups.items():
        if framework == _GENERAL:
            title, priority = "General Business Guidance", 3
        else:
            title = framework
            priority = 1 if normalize_framework(framework) in asked else 2
        sections.append(
            ContentSection(
                section_id=f"framework_{normalize_framework(framework)}",
                title=title,
                content_type="framework_explanation",
                priority=priority,
                source_ids=[s.source_id for s in members],
            )
        )
    sections.sort(key=lambda s: s.priority)

    points = []
    named = [(f, m) for f, m in groups.items() if f != _GENERAL]
    for (fw_a, members_a), (fw_b, members_b) in combinations(named, 2):
        shared = {s.source_id for s in members_a} & {s.source_id for s in members_b}
        points.append(
            IntegrationPoint(
                framework_a=fw_a,
                framework_b=fw_b,
                integration_type="overlapping" if shared else "complementary",
                description=(
                    f"{fw_a} and {fw_b} are discussed together in {len(shared)} source(s)."
                    if shared
                    else f"Apply {fw_a} alongside {fw_b}."
                ),
            )
        )
    return ContentStructure(
        organization=ContentOrganization.FRAMEWORK_BASED,
        sections=_with_fallback(sections, sources),
        integration_points=points,
    )


def action_oriented(
    sources: list[PreparedSource], context: BusinessQueryContext
) -> ContentStructure:
    layout = [
        ("immediate_actions", "Immediate Actions", "actionable_steps", 1,
         lambda s: s.immediacy > 0.7),
        ("strategic_actions", "Strategic Implementation", "strategic_guidance", 2,
         lambda s: s.strategic > 0.6),
        ("long_term_optimization", "Long-term Optimization", "optimization_guidance", 3,
         lambda s: s.long_term > 0.5),
    ]
    return ContentStructure(
        organization=ContentOrganization.ACTION_ORIENTED,
        sections=_with_fallback(_sections_from(layout, sources), sources),
    )


def problem_solution(
    sources: list[PreparedSource], context: BusinessQueryContext
) -> ContentStructure:
    layout = [
        ("problem_analysis", "Problem Analysis", "problem_statement", 1,
         lambda s: s.problem_signals > 0),
        ("solutions", "Solutions", "solution_steps", 2,
         lambda s: s.solution_signals > 0),
    ]
    return ContentStructure(
        organization=ContentOrganization.PROBLEM_SOLUTION,
        sections=_with_fallback(_sections_from(layout, sources), sources),
    )


def educational(
    sources: list[PreparedSource], context: BusinessQueryContext
) -> ContentStructure:
    ordered = sorted(sources, key=lambda s: s.difficulty_rank)
    layout = [
        ("fundamentals", "Fundamentals", "concept_explanation", 1,
         lambda s: s.difficulty_rank == 0),
        ("core_concepts", "Core Concepts", "concept_explanation", 2,
         lambda s: s.difficulty_rank == 1),
        ("advanced_topics", "Advanced Topics", "advanced_guidance", 3,
         lambda s: s.difficulty_rank >= 2),
    ]
    return ContentStructure(
        organization=ContentOrganization.EDUCATIONAL,
        sections=_with_fallback(_sections_from(layout, ordered), ordered),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sections_from(
    layout: list[tuple[str, str, str, int, Callable[[PreparedSource], bool]]],
    sources: list[PreparedSource],
) -> list[ContentSection]:
    sections = []
    for section_id, title, content_type, priority, keep in layout:
        ids = [s.source_id for s in sources if keep(s)]
        if ids:
            sections.append(
                ContentSection(
                    section_id=section_id,
                    title=title,
                    content_type=content_type,
                    priority=priority,
                    source_ids=ids,
                )
            )
    return sections


def _with_fallback(
    sections: list[ContentSection], sources: list[PreparedSource]
) -> list[ContentSection]:
    covered = {sid for section in sections for sid in section.source_ids}
    leftover = [s.source_id for s in sources if s.source_id not in covered]
    if not leftover:
        return sections
    return [
        *sections,
        ContentSection(
            section_id="general_guidance",
            title="Additional Guidance" if sections else "General Guidance",
            content_type="general",
            priority=4,
            source_ids=leftover,
        ),
    ]


_BUILDERS: dict[ContentOrganization, StructureBuilder] = {
    ContentOrganization.FRAMEWORK_BASED: framework_based,
    ContentOrganization.ACTION_ORIENTED: action_oriented,
    ContentOrganization.PROBLEM_SOLUTION: problem_solution,
    ContentOrganization.EDUCATIONAL: educational,
}
