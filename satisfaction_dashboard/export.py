"""
Report export: write the aggregated results and executive summary to an
Excel workbook (pandas + openpyxl).
"""

import logging
import re
from datetime import date, datetime, timezone

import pandas as pd

from .aggregator import AggregatedReport
from .dashboard import build_narrative, get_insight_tables, get_results_table
from .insights import compose_summary

logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip())


def report_filename(
    sector_name: str,
    section_name: str | None = None,
    today: date | None = None,
    extension: str = "xlsx",
) -> str:
    """Export file name, e.g. ``Reporte_Central_Station_Seccion_Front_Desk_2024-03-15.xlsx``."""
    today = today or datetime.now(timezone.utc).date()
    name = f"Reporte_{_slug(sector_name)}"
    if section_name:
        name += f"_Seccion_{_slug(section_name)}"
    return f"{name}_{today.isoformat()}.{extension}"


def _summary_frame(report: AggregatedReport, sector_name: str, section_name: str | None) -> pd.DataFrame:
    summary = compose_summary(report)
    narrative = build_narrative(summary, sector_name, section_name)

    rows = [
        ("Sector", sector_name),
        ("Section", section_name or "All"),
        ("Estimated respondents", summary.respondent_count),
        ("Questions", summary.question_count),
        ("Overall satisfaction (%)", round(summary.overall_satisfaction, 1)),
        ("Satisfaction level", narrative["tier_label"]),
        ("Strong points", summary.strong_point_count),
        ("Improvement points", summary.improvement_point_count),
        ("Top improvement", summary.top_improvement or ""),
        ("Top strength", summary.top_strength or ""),
        ("Analysis", narrative["analysis"]),
    ]
    rows += [("Key finding", text) for text in narrative["key_findings"]]
    rows += [("Recommendation", text) for text in narrative["recommendations"]]
    rows.append(("Conclusion", narrative["conclusion"]))
    return pd.DataFrame(rows, columns=["field", "value"])


def export_report_excel(
    report: AggregatedReport,
    target,
    sector_name: str,
    section_name: str | None = None,
) -> None:
    """Write the report workbook to *target* (path or binary buffer).

    Sheets: Summary, Questions, Improvement points, Strong points. An empty
    report still produces every sheet, with headers only.
    """
    results = get_results_table(report)
    insights = get_insight_tables(report)

    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        _summary_frame(report, sector_name, section_name).to_excel(
            writer, sheet_name="Summary", index=False
        )
        results.to_excel(writer, sheet_name="Questions", index=False)
        insights["improvement"].to_excel(writer, sheet_name="Improvement points", index=False)
        insights["strong"].to_excel(writer, sheet_name="Strong points", index=False)

    logger.info(
        "Exported report for %s (%d questions) to %s",
        sector_name, len(report), getattr(target, "name", target),
    )
