"""
Satisfaction Survey Dashboard — end-to-end analytics pipeline.

Runs the full pipeline from a survey store to dashboard-ready outputs and
prints smoke-test summaries. Uses the live store when SURVEY_STORE_URL is
set, the offline workbook export when present, and simulated data
otherwise.

Usage:
    python main.py
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from satisfaction_dashboard.config import SAMPLE_WORKBOOK_FILE, STORE_URL
from satisfaction_dashboard.dashboard import (
    build_narrative,
    get_insight_tables,
    get_report_overview,
    get_results_table,
)
from satisfaction_dashboard.filters import FilterSpec, PeriodMode, to_query_params
from satisfaction_dashboard.insights import compose_summary
from satisfaction_dashboard.simulator import build_simulated_store
from satisfaction_dashboard.store import FrameSurveyStore, RestSurveyStore, fetch_report

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def open_store():
    """Pick the live store, the workbook export or the simulator, in that order."""
    if STORE_URL:
        logger.info("Using live survey store at %s", STORE_URL)
        return RestSurveyStore.from_env()
    if SAMPLE_WORKBOOK_FILE.exists():
        logger.info("Using workbook export %s", SAMPLE_WORKBOOK_FILE)
        return FrameSurveyStore.from_workbook(SAMPLE_WORKBOOK_FILE)
    logger.info("No store configured — using simulated responses")
    return build_simulated_store()


def main() -> None:
    """Run the full analytics pipeline and print smoke-test outputs."""

    print("=" * 70)
    print("  SATISFACTION SURVEY DASHBOARD")
    print("  Analytics Pipeline Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Catalogue
    # ------------------------------------------------------------------
    print("[ 1 ] CATALOGUE")
    print("-" * 40)

    store = open_store()
    sectors = store.list_sectors()
    print(f"\nSectors: {len(sectors)}")
    for sector in sectors:
        sections = store.list_sections(sector.id)
        print(f"  {sector.id:>4s} | {sector.name} ({len(sections)} sections)")

    if not sectors:
        print("\nNo sectors available — nothing to report.")
        return

    # ------------------------------------------------------------------
    # 2. Reports per period
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] REPORTS BY PERIOD")
    print("-" * 40)

    sector = sectors[0]
    reports = {}
    for mode in (PeriodMode.ALL_TIME, PeriodMode.LAST_MONTH, PeriodMode.LAST_WEEK):
        spec = FilterSpec(sector_id=sector.id, period_mode=mode)
        report = fetch_report(store, spec)
        reports[mode] = report
        overview = get_report_overview(report)
        print(f"\n{mode.value:>10s} | params={to_query_params(spec)}")
        print(
            f"{'':>10s} | questions={overview['question_count']} "
            f"respondents~{overview['respondent_count']} "
            f"satisfaction={overview['overall_satisfaction']:.1f}% ({overview['tier']})"
        )

    report = reports[PeriodMode.ALL_TIME]

    # ------------------------------------------------------------------
    # 3. Dashboard outputs
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] DASHBOARD OUTPUTS")
    print("-" * 40)

    results = get_results_table(report)
    print(f"\nResults table — {sector.name}:")
    if not results.empty:
        print(results[["question_no", "question", "total", "satisfaction_pct", "tier"]].to_string(index=False))

    insights = get_insight_tables(report)
    print("\nImprovement points:")
    print(insights["improvement"].to_string(index=False) if not insights["improvement"].empty else "  (none)")
    print("\nStrong points:")
    print(insights["strong"].to_string(index=False) if not insights["strong"].empty else "  (none)")

    summary = compose_summary(report)
    narrative = build_narrative(summary, sector.name)
    print("\nExecutive summary:")
    print(f"  {narrative['analysis']}")
    for line in narrative["key_findings"]:
        print(f"  - {line}")
    for line in narrative["recommendations"]:
        print(f"  > {line}")
    print(f"  {narrative['conclusion']}")

    # ------------------------------------------------------------------
    # 4. Acceptance checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] ACCEPTANCE CRITERIA CHECKS")
    print("-" * 40)

    strong = set(insights["strong"]["question"])
    improve = set(insights["improvement"]["question"])
    check1 = not (strong & improve)
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] Strong and improvement points are disjoint")

    check2 = all(len(report[q]) == 5 for q in report)
    print(f"  [{'PASS' if check2 else 'FAIL'}] Every question carries all five options")

    check3 = 0.0 <= summary.overall_satisfaction <= 100.0
    print(f"  [{'PASS' if check3 else 'FAIL'}] Overall satisfaction within 0-100 ({summary.overall_satisfaction:.1f}%)")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
