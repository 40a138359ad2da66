"""Implementation roadmap: actionable insights bucketed by horizon.

critical / high -> immediate, medium -> short-term, low -> long-term.
Each later bucket depends on the one before it (falling back to the last
non-empty bucket), every non-empty bucket gets a milestone, and risk items
cover urgency, low readiness and detected source conflicts.
"""

from __future__ import annotations

from src.models.assembly import (
    ActionableInsight,
    ImplementationComplexity,
    ImplementationRoadmap,
    InsightPriority,
    Milestone,
    RiskLevel,
    RiskMitigation,
    RoadmapAction,
)
from src.models.query import BusinessQueryContext
from src.services.assembly.conflicts import ConflictOutcome

_LOW_READINESS = 0.5

_EFFORT = {
    ImplementationComplexity.SIMPLE: "1-2 days",
    ImplementationComplexity.MODERATE: "1-2 weeks",
    ImplementationComplexity.COMPLEX: "1-3 months",
}

_BUCKETS = (
    ("immediate", (InsightPriority.CRITICAL, InsightPriority.HIGH),
     "Quick wins implemented", "Within 2 weeks"),
    ("short_term", (InsightPriority.MEDIUM,),
     "Core initiatives in place", "Within 60 days"),
    ("long_term", (InsightPriority.LOW,),
     "Long-term optimizations compounding", "Within 6 months"),
)


def build_roadmap(
    insights: list[ActionableInsight],
    context: BusinessQueryContext,
    conflicts: ConflictOutcome,
) -> ImplementationRoadmap:
    buckets: dict[str, list[RoadmapAction]] = {}
    milestones: list[Milestone] = []
    previous_ids: list[str] = []
    counter = 0

    for name, priorities, milestone_text, timeframe in _BUCKETS:
        members = [i for i in insights if i.priority in priorities]
        actions = []
        for rank, insight in enumerate(members, start=1):
            counter += 1
            actions.append(
                RoadmapAction(
                    action_id=f"action_{counter}",
                    description=insight.insight_text,
                    priority=rank,
                    estimated_effort=_EFFORT[insight.complexity],
                    dependencies=list(previous_ids),
                    success_criteria=list(insight.success_metrics),
                    frameworks_applied=list(insight.frameworks),
                )
            )
        buckets[name] = actions
        if actions:
            previous_ids = [a.action_id for a in actions]
            milestones.append(_milestone(name, milestone_text, timeframe, actions, context))

    return ImplementationRoadmap(
        immediate_actions=buckets["immediate"],
        short_term_actions=buckets["short_term"],
        long_term_actions=buckets["long_term"],
        milestones=milestones,
        risk_mitigations=_risks(context, conflicts),
    )


def _milestone(
    name: str,
    description: str,
    timeframe: str,
    actions: list[RoadmapAction],
    context: BusinessQueryContext,
) -> Milestone:
    indicators: list[str] = []
    for action in actions:
        for criterion in action.success_criteria:
            if criterion not in indicators:
                indicators.append(criterion)
    methods = [f"Track {m} against the pre-implementation baseline" for m in context.metrics]
    return Milestone(
        milestone_id=f"milestone_{name}",
        description=f"{description} ({len(actions)} action(s))",
        target_timeframe=timeframe,
        success_indicators=indicators[:3],
        measurement_methods=methods or ["Weekly review of completed actions and results"],
    )


def _risks(context: BusinessQueryContext, conflicts: ConflictOutcome) -> list[RiskMitigation]:
    risks = []
    if context.is_urgent:
        risks.append(
            RiskMitigation(
                risk_description="Rushed implementation under time pressure",
                probability=RiskLevel.HIGH,
                impact=RiskLevel.MEDIUM,
                mitigation_strategies=[
                    "Ship the smallest immediate action first",
                    "Review results before scaling any change",
                ],
            )
        )
    if context.implementation_readiness < _LOW_READINESS:
        risks.append(
            RiskMitigation(
                risk_description="Low implementation readiness",
                probability=RiskLevel.MEDIUM,
                impact=RiskLevel.HIGH,
                mitigation_strategies=[
                    "Work through the fundamentals before committing budget",
                    "Assign a single owner to each immediate action",
                ],
            )
        )
    if conflicts.resolutions:
        topics = sorted({r.topic for r in conflicts.resolutions})
        risks.append(
            RiskMitigation(
                risk_description=f"Sources disagree on {', '.join(topics)}",
                probability=RiskLevel.MEDIUM,
                impact=RiskLevel.MEDIUM,
                mitigation_strategies=[
                    "Pilot competing approaches on a small segment first",
                    "Prefer the more authoritative guidance when results are unclear",
                ],
            )
        )
    return risks
