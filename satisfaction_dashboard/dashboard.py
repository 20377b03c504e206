"""
Dashboard-ready output functions.

These are the primary entry points for the Streamlit front end. Each
function takes an AggregatedReport (or an ExecutiveSummary) and returns
plain dicts or DataFrames suitable for rendering cards, charts, tables and
the executive-summary narrative.
"""

import logging

import pandas as pd

from .aggregator import AggregatedReport
from .config import (
    INSATISFACTION_THRESHOLD,
    SATISFACTION_THRESHOLD,
    SERIES_PALETTE,
    TIER_COLORS,
)
from .insights import ExecutiveSummary, compose_summary
from .metrics import (
    SatisfactionTier,
    classify_satisfaction,
    improvement_points,
    negative_percent,
    option_shares,
    positive_percent,
    strong_points,
    total_for,
)
from .rating import all_categories

logger = logging.getLogger(__name__)

# Options listed best first in tables and charts
_DISPLAY_OPTIONS = tuple(reversed(all_categories()))


def series_color(index: int) -> str:
    """Deterministic colour for the *index*-th series of a chart."""
    return SERIES_PALETTE[index % len(SERIES_PALETTE)]


def get_report_overview(report: AggregatedReport) -> dict:
    """Values for the top-level dashboard cards.

    Returns
    -------
    Dict with structure:
    {
        "overall_satisfaction": 81.3,
        "tier": "high",
        "tier_color": "#2ecc71",
        "respondent_count": 42,
        "question_count": 6,
        "strong_point_count": 3,
        "improvement_point_count": 1,
    }
    """
    summary = compose_summary(report)
    return {
        "overall_satisfaction": summary.overall_satisfaction,
        "tier": summary.narrative_tier.value,
        "tier_color": TIER_COLORS[summary.narrative_tier.value],
        "respondent_count": summary.respondent_count,
        "question_count": summary.question_count,
        "strong_point_count": summary.strong_point_count,
        "improvement_point_count": summary.improvement_point_count,
    }


def get_results_table(report: AggregatedReport) -> pd.DataFrame:
    """Per-question results table.

    Returns
    -------
    DataFrame with columns:
        question_no, question, <option> and <option>_pct for each option
        (best first), total, satisfaction_pct, tier
    """
    columns = ["question_no", "question"]
    for option in _DISPLAY_OPTIONS:
        columns += [option.label, f"{option.label}_pct"]
    columns += ["total", "satisfaction_pct", "tier"]

    rows = []
    for i, (question, distribution) in enumerate(report.items(), start=1):
        shares = option_shares(distribution)
        satisfaction = positive_percent(distribution)
        row = {"question_no": f"P{i}", "question": question}
        for option in _DISPLAY_OPTIONS:
            row[option.label] = distribution[option]
            row[f"{option.label}_pct"] = shares[option]
        row["total"] = total_for(distribution)
        row["satisfaction_pct"] = satisfaction
        row["tier"] = classify_satisfaction(satisfaction).value
        rows.append(row)

    if not rows:
        logger.warning("No questions in report — returning empty results table")
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def get_default_question(report: AggregatedReport) -> str | None:
    """Question preselected in the per-question view: alphabetically first."""
    if report.is_empty():
        return None
    return sorted(report.questions)[0]


def get_question_detail(report: AggregatedReport, question: str) -> dict:
    """Distribution and classification of a single question.

    Raises KeyError if *question* is not in the report.
    """
    distribution = report[question]
    satisfaction = positive_percent(distribution)
    insatisfaction = negative_percent(distribution)
    shares = option_shares(distribution)
    tier = classify_satisfaction(satisfaction)

    return {
        "question": question,
        "total": total_for(distribution),
        "counts": {o.label: distribution[o] for o in _DISPLAY_OPTIONS},
        "shares": {o.label: shares[o] for o in _DISPLAY_OPTIONS},
        "colors": {o.label: o.color for o in _DISPLAY_OPTIONS},
        "satisfaction_pct": satisfaction,
        "insatisfaction_pct": insatisfaction,
        "tier": tier.value,
        "is_strong_point": satisfaction >= SATISFACTION_THRESHOLD,
        "is_improvement_point": insatisfaction >= INSATISFACTION_THRESHOLD,
        "comment": _QUESTION_COMMENTS[tier],
    }


def get_chart_series(report: AggregatedReport) -> list[dict]:
    """Stacked-bar series, one per rating option, across all questions."""
    questions = report.questions
    return [
        {
            "name": option.label,
            "x": questions,
            "y": [report[q][option] for q in questions],
            "color": option.color,
        }
        for option in _DISPLAY_OPTIONS
    ]


def get_satisfaction_series(report: AggregatedReport) -> pd.DataFrame:
    """Satisfaction per question with a palette colour keyed by position.

    Returns
    -------
    DataFrame with columns: question, satisfaction_pct, total, color
    """
    rows = [
        {
            "question": question,
            "satisfaction_pct": positive_percent(distribution),
            "total": total_for(distribution),
            "color": series_color(i),
        }
        for i, (question, distribution) in enumerate(report.items())
    ]
    return pd.DataFrame(rows, columns=["question", "satisfaction_pct", "total", "color"])


def get_insight_tables(report: AggregatedReport) -> dict[str, pd.DataFrame]:
    """Ranked improvement and strong points as tables.

    Returns
    -------
    {"improvement": DataFrame, "strong": DataFrame}, each with columns
    rank, question, percent, affected, total_responses. "affected" is the
    number of dissatisfied (improvement) or satisfied (strong) respondents.
    """
    columns = ["rank", "question", "percent", "affected", "total_responses"]

    def _table(items, polarity: str) -> pd.DataFrame:
        rows = []
        for rank, item in enumerate(items, start=1):
            distribution = report[item.question_label]
            affected = sum(
                distribution[o] for o in all_categories() if o.polarity == polarity
            )
            rows.append({
                "rank": rank,
                "question": item.question_label,
                "percent": item.percent,
                "affected": affected,
                "total_responses": item.total_responses,
            })
        return pd.DataFrame(rows, columns=columns)

    return {
        "improvement": _table(improvement_points(report), "negative"),
        "strong": _table(strong_points(report), "positive"),
    }


# ---------------------------------------------------------------------------
# Narrative wording
# ---------------------------------------------------------------------------

_QUESTION_COMMENTS = {
    SatisfactionTier.HIGH: "This aspect shows a high level of satisfaction. It is a strength to maintain.",
    SatisfactionTier.MEDIUM: "This aspect shows a moderate level of satisfaction. There is room for improvement.",
    SatisfactionTier.LOW: "This aspect shows a low level of satisfaction. It needs priority attention.",
}

_TIER_FINDINGS = {
    SatisfactionTier.HIGH: "Overall satisfaction is high, indicating a good perception of the service.",
    SatisfactionTier.MEDIUM: "Overall satisfaction is moderate, with opportunities for improvement.",
    SatisfactionTier.LOW: "Overall satisfaction is low and requires immediate attention.",
}

_TIER_RECOMMENDATIONS = {
    SatisfactionTier.HIGH: "Continue the current strategies and look for opportunities for excellence.",
    SatisfactionTier.MEDIUM: "Implement specific improvements in the points identified as critical.",
    SatisfactionTier.LOW: "Develop a comprehensive action plan to raise overall satisfaction.",
}

_TIER_CONCLUSIONS = {
    SatisfactionTier.HIGH: (
        "Results indicate a good level of overall satisfaction. Keep the current "
        "practices and focus on the few critical points identified."
    ),
    SatisfactionTier.MEDIUM: (
        "Results show a moderate level of satisfaction. Specific areas need attention "
        "to improve the overall perception of the service."
    ),
    SatisfactionTier.LOW: (
        "Results reveal a low level of satisfaction. Significant changes are needed "
        "in several areas to improve the perception of the service."
    ),
}

TIER_LABELS = {
    SatisfactionTier.HIGH: "High satisfaction",
    SatisfactionTier.MEDIUM: "Medium satisfaction",
    SatisfactionTier.LOW: "Low satisfaction",
}


def build_narrative(
    summary: ExecutiveSummary,
    sector_name: str,
    section_name: str | None = None,
) -> dict:
    """Executive-summary text for *summary*, selected by its narrative tier.

    Returns
    -------
    Dict with keys: tier_label, analysis, key_findings (list),
    recommendations (list), conclusion.
    """
    tier = summary.narrative_tier
    where = sector_name + (f" (Section: {section_name})" if section_name else "")

    findings = [
        f"{summary.strong_point_count} strong points identified.",
        f"{summary.improvement_point_count} priority improvement points identified.",
        _TIER_FINDINGS[tier],
    ]

    recommendations = []
    if summary.top_improvement:
        recommendations.append(f"Prioritise improvement in: {summary.top_improvement}")
    if summary.top_strength:
        recommendations.append(f"Keep the good practices in: {summary.top_strength}")
    recommendations.append(_TIER_RECOMMENDATIONS[tier])

    return {
        "tier_label": TIER_LABELS[tier],
        "analysis": (
            f"Based on the answers of {summary.respondent_count} respondents at {where}, "
            f"overall satisfaction is {summary.overall_satisfaction:.1f}%."
        ),
        "key_findings": findings,
        "recommendations": recommendations,
        "conclusion": _TIER_CONCLUSIONS[tier],
    }
