"""
Satisfaction Survey Dashboard — Interactive Dashboard

Run with:  streamlit run app.py
"""

import sys
from datetime import date
from io import BytesIO
from pathlib import Path

import streamlit as st
import plotly.graph_objects as go

sys.path.insert(0, str(Path(__file__).resolve().parent))

from satisfaction_dashboard.config import (
    ALL_SECTIONS,
    APP_NAME,
    PERIOD_LABELS,
    SAMPLE_WORKBOOK_FILE,
    STORE_URL,
    TIER_COLORS,
)
from satisfaction_dashboard.dashboard import (
    TIER_LABELS,
    build_narrative,
    get_chart_series,
    get_default_question,
    get_insight_tables,
    get_question_detail,
    get_report_overview,
    get_results_table,
    get_satisfaction_series,
)
from satisfaction_dashboard.exceptions import DataFetchError, InvalidFilterError
from satisfaction_dashboard.export import export_report_excel, report_filename
from satisfaction_dashboard.filters import FilterSpec, PeriodMode, subtract_one_month
from satisfaction_dashboard.insights import compose_summary
from satisfaction_dashboard.simulator import build_simulated_store
from satisfaction_dashboard.store import FrameSurveyStore, RestSurveyStore, fetch_report

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title=APP_NAME,
    page_icon="📋",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------------------------------------------------------
# Store (cached)
# ---------------------------------------------------------------------------
@st.cache_resource
def get_store():
    if STORE_URL:
        return RestSurveyStore.from_env()
    if SAMPLE_WORKBOOK_FILE.exists():
        return FrameSurveyStore.from_workbook(SAMPLE_WORKBOOK_FILE)
    return build_simulated_store()


store = get_store()

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title(APP_NAME)
st.sidebar.markdown("Satisfaction analytics by sector and section")
st.sidebar.divider()

try:
    sectors = store.list_sectors()
except DataFetchError as exc:
    st.error(f"Could not load sectors: {exc}")
    st.stop()

if not sectors:
    st.info("No sectors defined yet.")
    st.stop()

sector_names = {s.id: s.name for s in sectors}
sector_id = st.sidebar.selectbox(
    "Sector", list(sector_names), format_func=lambda sid: sector_names[sid]
)

try:
    sections = store.list_sections(sector_id)
except DataFetchError as exc:
    st.sidebar.warning(f"Could not load sections: {exc}")
    sections = []
section_names = {ALL_SECTIONS: "All sections", **{s.id: s.name for s in sections}}
section_id = st.sidebar.selectbox(
    "Section",
    list(section_names),
    format_func=lambda sid: section_names[sid],
    disabled=not sections,
)

period_mode = st.sidebar.selectbox(
    "Period", list(PeriodMode), format_func=lambda m: PERIOD_LABELS[m.value]
)

start_date = end_date = None
if period_mode is PeriodMode.CUSTOM:
    today = date.today()
    start_date = st.sidebar.date_input("Start date", subtract_one_month(today))
    end_date = st.sidebar.date_input("End date", today)

page = st.sidebar.radio("Navigate", ["General View", "By Question", "Insights"])

st.sidebar.divider()
st.sidebar.caption("Responses are anonymous. Respondent count is an estimate.")

# ---------------------------------------------------------------------------
# Load report for the current filter
# ---------------------------------------------------------------------------
try:
    spec = FilterSpec(
        sector_id=sector_id,
        section_id=section_id,
        period_mode=period_mode,
        start_date=start_date,
        end_date=end_date,
    )
except InvalidFilterError as exc:
    st.warning(str(exc))
    st.stop()

try:
    report = fetch_report(store, spec)
except DataFetchError as exc:
    st.error(f"Could not load results: {exc}")
    st.stop()

sector_name = sector_names[sector_id]
section_name = section_names[section_id] if section_id != ALL_SECTIONS else None

if report.is_empty():
    st.warning("No data available for the selected sector and section in the chosen period.")
    st.stop()

summary = compose_summary(report)
overview = get_report_overview(report)

buffer = BytesIO()
export_report_excel(report, buffer, sector_name, section_name)
st.sidebar.download_button(
    "Export report (Excel)",
    data=buffer.getvalue(),
    file_name=report_filename(sector_name, section_name),
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)


# ---------------------------------------------------------------------------
# Helper: metric card
# ---------------------------------------------------------------------------
def metric_card(label: str, value: str, color: str = "#3498db"):
    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {color}22, {color}11);
                    border-left: 4px solid {color};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{value}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# ===========================================================================
# PAGE: General View
# ===========================================================================
if page == "General View":
    st.title("General View")
    st.caption(f"Sector: **{sector_name}**" + (f" | Section: **{section_name}**" if section_name else ""))

    tier_color = overview["tier_color"]
    cols = st.columns(4)
    with cols[0]:
        metric_card("Respondents (est.)", f"{overview['respondent_count']:,}")
    with cols[1]:
        metric_card("Overall satisfaction", f"{overview['overall_satisfaction']:.1f}%", tier_color)
    with cols[2]:
        metric_card("Strong points", str(overview["strong_point_count"]), TIER_COLORS["high"])
    with cols[3]:
        metric_card("Improvement points", str(overview["improvement_point_count"]), TIER_COLORS["low"])

    col1, col2 = st.columns([2, 1])

    with col1:
        st.subheader("Responses by question")
        fig = go.Figure()
        for series in get_chart_series(report):
            fig.add_trace(go.Bar(
                x=series["x"],
                y=series["y"],
                name=series["name"],
                marker_color=series["color"],
            ))
        fig.update_layout(
            barmode="stack",
            height=420,
            plot_bgcolor="rgba(0,0,0,0)",
            margin=dict(l=10, r=10, t=10, b=40),
        )
        st.plotly_chart(fig, use_container_width=True)

    with col2:
        st.subheader("Overall satisfaction")
        satisfied = overview["overall_satisfaction"]
        fig = go.Figure(go.Pie(
            labels=["Satisfied", "Not satisfied"],
            values=[satisfied, 100 - satisfied],
            hole=0.7,
            marker_colors=["#4CAF50", "#F44336"],
            sort=False,
        ))
        fig.update_layout(height=300, showlegend=False, margin=dict(l=10, r=10, t=10, b=10))
        st.plotly_chart(fig, use_container_width=True)
        st.markdown(
            f"<div style='text-align:center; color:{tier_color}; font-weight:600;'>"
            f"{TIER_LABELS[summary.narrative_tier]}</div>",
            unsafe_allow_html=True,
        )

    st.subheader("Detailed results")
    table = get_results_table(report)
    display_df = table.copy()
    display_df["satisfaction_pct"] = display_df["satisfaction_pct"].apply(lambda x: f"{x:.1f}%")

    def color_tier(val):
        color = TIER_COLORS.get(val, "#95a5a6")
        return f"background-color: {color}22; color: {color}"

    styled = display_df.style.map(color_tier, subset=["tier"])
    st.dataframe(styled, use_container_width=True, hide_index=True)

    st.subheader("Satisfaction by question")
    sat = get_satisfaction_series(report)
    fig = go.Figure(go.Bar(
        x=sat["satisfaction_pct"],
        y=sat["question"],
        orientation="h",
        marker_color=sat["color"],
        text=sat["satisfaction_pct"].apply(lambda x: f"{x:.1f}%"),
        textposition="outside",
    ))
    fig.update_layout(
        height=max(300, len(sat) * 45),
        xaxis_title="Satisfaction %",
        xaxis_range=[0, 110],
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=10, b=40),
    )
    st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: By Question
# ===========================================================================
elif page == "By Question":
    st.title("Results by Question")

    questions = sorted(report.questions)
    default = get_default_question(report)
    question = st.selectbox("Select a question", questions, index=questions.index(default))
    detail = get_question_detail(report, question)

    col1, col2 = st.columns([2, 1])

    with col1:
        labels = list(detail["counts"])
        fig = go.Figure(go.Pie(
            labels=labels,
            values=[detail["counts"][label] for label in labels],
            marker_colors=[detail["colors"][label] for label in labels],
            sort=False,
        ))
        fig.update_layout(title=question, height=400)
        st.plotly_chart(fig, use_container_width=True)

    with col2:
        st.markdown("**Distribution**")
        for label in labels:
            color = detail["colors"][label]
            st.markdown(
                f"<div style='border-left: 3px solid {color}; padding: 4px 8px; margin: 4px 0;'>"
                f"<b>{label}</b>: {detail['counts'][label]} ({detail['shares'][label]}%)</div>",
                unsafe_allow_html=True,
            )
        st.caption(f"Total responses: {detail['total']}")

    tier_color = TIER_COLORS[detail["tier"]]
    st.markdown(
        f"**Satisfaction level:** <span style='color:{tier_color}'>{detail['satisfaction_pct']:.1f}%</span>",
        unsafe_allow_html=True,
    )
    st.write(detail["comment"])
    if detail["is_improvement_point"]:
        st.error(
            f"Critical improvement point: {detail['insatisfaction_pct']:.1f}% of respondents "
            "are dissatisfied with this aspect."
        )
    if detail["is_strong_point"]:
        st.success(
            f"Strong point: {detail['satisfaction_pct']:.1f}% of respondents are satisfied "
            "with this aspect."
        )


# ===========================================================================
# PAGE: Insights
# ===========================================================================
elif page == "Insights":
    st.title("Improvement Points and Strengths")

    tables = get_insight_tables(report)
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Improvement points")
        if tables["improvement"].empty:
            st.info("No critical improvement points identified.")
        for _, row in tables["improvement"].iterrows():
            st.markdown(f"**{row['rank']}. {row['question']}** — {row['percent']:.1f}% dissatisfied")
            st.progress(min(row["percent"] / 100, 1.0))
            st.caption(f"{row['affected']} of {row['total_responses']} people are dissatisfied")

    with col2:
        st.subheader("Strong points")
        if tables["strong"].empty:
            st.info("No notable strong points identified.")
        for _, row in tables["strong"].iterrows():
            st.markdown(f"**{row['rank']}. {row['question']}** — {row['percent']:.1f}% satisfied")
            st.progress(min(row["percent"] / 100, 1.0))
            st.caption(f"{row['affected']} of {row['total_responses']} people are satisfied")

    st.divider()
    st.subheader("Executive summary")
    narrative = build_narrative(summary, sector_name, section_name)
    st.write(narrative["analysis"])

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Key findings**")
        st.markdown("\n".join(f"- {line}" for line in narrative["key_findings"]))
    with col2:
        st.markdown("**Recommendations**")
        st.markdown("\n".join(f"- {line}" for line in narrative["recommendations"]))

    st.info(f"Conclusion: {narrative['conclusion']}")
