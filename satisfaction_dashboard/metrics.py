"""
Metric computation functions — pure functions with no side effects.

Provides per-question satisfaction / insatisfaction percentages, the
response-weighted overall satisfaction, strong-point and improvement-point
classification, and the respondent-count estimate. Every function is
defined for empty reports and zero-response questions.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from .aggregator import AggregatedReport
from .config import (
    HIGH_TIER_MIN,
    INSATISFACTION_THRESHOLD,
    MEDIUM_TIER_MIN,
    SATISFACTION_THRESHOLD,
)
from .rating import NEGATIVE_OPTIONS, POSITIVE_OPTIONS, RatingOption, all_categories

logger = logging.getLogger(__name__)


class SatisfactionTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class SatisfactionMetric:
    question_label: str
    positive_percent: float
    total_responses: int


@dataclass(frozen=True)
class InsightItem:
    """A question that crossed the strong-point or improvement-point threshold."""

    question_label: str
    percent: float
    total_responses: int


def total_for(distribution: Mapping[RatingOption, int]) -> int:
    return sum(distribution.get(option, 0) for option in all_categories())


def _share(distribution: Mapping[RatingOption, int], options) -> float:
    total = total_for(distribution)
    if total == 0:
        return 0.0
    return sum(distribution.get(option, 0) for option in options) / total * 100


def positive_percent(distribution: Mapping[RatingOption, int]) -> float:
    """Return (good + very good) / total * 100, or 0.0 when there are no responses."""
    return _share(distribution, POSITIVE_OPTIONS)


def negative_percent(distribution: Mapping[RatingOption, int]) -> float:
    """Return (bad + very bad) / total * 100, or 0.0 when there are no responses."""
    return _share(distribution, NEGATIVE_OPTIONS)


def overall_satisfaction(report: AggregatedReport) -> float:
    """Response-weighted satisfaction across all questions.

    This is sum(positives) / sum(totals), not the mean of per-question
    percentages: questions with more responses weigh more.
    """
    positives = 0
    grand_total = 0
    for distribution in report.values():
        positives += sum(distribution.get(option, 0) for option in POSITIVE_OPTIONS)
        grand_total += total_for(distribution)
    if grand_total == 0:
        return 0.0
    return positives / grand_total * 100


def question_metrics(report: AggregatedReport) -> list[SatisfactionMetric]:
    """One SatisfactionMetric per question, in report order."""
    return [
        SatisfactionMetric(
            question_label=question,
            positive_percent=positive_percent(distribution),
            total_responses=total_for(distribution),
        )
        for question, distribution in report.items()
    ]


def _ranked(report: AggregatedReport, percent_fn, threshold: float) -> list[InsightItem]:
    items = []
    for question, distribution in report.items():
        percent = percent_fn(distribution)
        if percent >= threshold:
            items.append(InsightItem(question, percent, total_for(distribution)))
    # sorted() is stable, so ties keep report order
    return sorted(items, key=lambda item: item.percent, reverse=True)


def strong_points(report: AggregatedReport) -> list[InsightItem]:
    """Questions with positive_percent >= SATISFACTION_THRESHOLD, best first."""
    return _ranked(report, positive_percent, SATISFACTION_THRESHOLD)


def improvement_points(report: AggregatedReport) -> list[InsightItem]:
    """Questions with negative_percent >= INSATISFACTION_THRESHOLD, worst first."""
    return _ranked(report, negative_percent, INSATISFACTION_THRESHOLD)


def estimated_respondent_count(report: AggregatedReport) -> int:
    """Approximate number of respondents: total responses / question count.

    Assumes every respondent answered every question; respondents who skip
    questions make this an under- or over-count. Halves round up.
    """
    if len(report) == 0:
        return 0
    grand_total = sum(total_for(d) for d in report.values())
    return math.floor(grand_total / len(report) + 0.5)


def option_shares(distribution: Mapping[RatingOption, int]) -> dict[RatingOption, int]:
    """Rounded percentage of each option, as shown in the results table.

    Shares are rounded independently and may not sum to exactly 100.
    """
    total = total_for(distribution)
    shares = {}
    for option in all_categories():
        count = distribution.get(option, 0)
        shares[option] = math.floor(count / total * 100 + 0.5) if total else 0
    return shares


def classify_satisfaction(percent: float) -> SatisfactionTier:
    """Return HIGH (>= 70), MEDIUM (>= 50) or LOW for a satisfaction percentage."""
    if percent >= HIGH_TIER_MIN:
        return SatisfactionTier.HIGH
    if percent >= MEDIUM_TIER_MIN:
        return SatisfactionTier.MEDIUM
    return SatisfactionTier.LOW
