"""
Executive summary composition.

Turns the metric outputs for a report into a structured ExecutiveSummary.
The summary carries no wording; dashboard.build_narrative picks the text
for each tier.
"""

import logging
from dataclasses import asdict, dataclass

from .aggregator import AggregatedReport
from .metrics import (
    SatisfactionTier,
    classify_satisfaction,
    estimated_respondent_count,
    improvement_points,
    overall_satisfaction,
    strong_points,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutiveSummary:
    overall_satisfaction: float
    strong_point_count: int
    improvement_point_count: int
    top_improvement: str | None
    top_strength: str | None
    narrative_tier: SatisfactionTier
    respondent_count: int = 0
    question_count: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["narrative_tier"] = self.narrative_tier.value
        return data


def compose_summary(report: AggregatedReport) -> ExecutiveSummary:
    """Build the ExecutiveSummary for *report*.

    An empty report gives a zero-valued summary in the LOW tier.
    """
    overall = overall_satisfaction(report)
    strengths = strong_points(report)
    improvements = improvement_points(report)

    summary = ExecutiveSummary(
        overall_satisfaction=overall,
        strong_point_count=len(strengths),
        improvement_point_count=len(improvements),
        top_improvement=improvements[0].question_label if improvements else None,
        top_strength=strengths[0].question_label if strengths else None,
        narrative_tier=classify_satisfaction(overall),
        respondent_count=estimated_respondent_count(report),
        question_count=len(report),
    )

    if report.is_empty():
        logger.warning("Composing summary for an empty report")
    return summary
