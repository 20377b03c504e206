"""
Satisfaction Survey Dashboard — aggregation and insight backend

Turns per-question rating tallies from the survey store into satisfaction
metrics, strong / improvement points and an executive summary.

To swap the data source:
    Any object with fetch_tallies / list_sectors / list_sections can stand
    in for the store (see store.SurveyStore). RestSurveyStore talks to the
    live backend; FrameSurveyStore serves offline workbook exports and the
    simulator.

To connect to Streamlit:
    Call store.fetch_report(store, FilterSpec(...)) to get an
    AggregatedReport, then the dashboard.get_* functions for cards, tables
    and chart series, and dashboard.build_narrative for the summary text.

To tune classification:
    Edit SATISFACTION_THRESHOLD, INSATISFACTION_THRESHOLD and the tier
    bounds in config.
"""
