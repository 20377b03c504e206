"""Unit tests for the DataFrame-backed and HTTP survey stores."""

import json
import logging
from datetime import date
from unittest.mock import MagicMock

import httpx
import pandas as pd
import pytest

from satisfaction_dashboard.aggregator import ResponseTally
from satisfaction_dashboard.exceptions import DataFetchError
from satisfaction_dashboard.filters import FilterSpec, PeriodMode
from satisfaction_dashboard.rating import RatingOption
from satisfaction_dashboard.store import (
    FrameSurveyStore,
    RestSurveyStore,
    Section,
    Sector,
    fetch_report,
)

NOW = date(2024, 3, 15)


@pytest.fixture()
def frame_store(responses_frame, catalog_frames):
    sectors, sections = catalog_frames
    return FrameSurveyStore(responses_frame, sectors, sections)


# ---------------------------------------------------------------------------
# fetch_report
# ---------------------------------------------------------------------------

def test_fetch_report_passes_resolved_filter_to_store():
    store = MagicMock()
    store.fetch_tallies.return_value = [ResponseTally("Q1", "Bueno", 3)]
    spec = FilterSpec(sector_id="1", section_id="10", period_mode=PeriodMode.LAST_WEEK)

    report = fetch_report(store, spec, now=NOW)

    store.fetch_tallies.assert_called_once_with("1", "10", date(2024, 3, 8), NOW)
    assert report["Q1"][RatingOption.GOOD] == 3


def test_fetch_report_propagates_store_errors():
    store = MagicMock()
    store.fetch_tallies.side_effect = DataFetchError("store down")
    with pytest.raises(DataFetchError, match="store down"):
        fetch_report(store, FilterSpec(sector_id="1"))


# ---------------------------------------------------------------------------
# FrameSurveyStore
# ---------------------------------------------------------------------------

def test_frame_store_sector_report(frame_store):
    report = fetch_report(frame_store, FilterSpec(sector_id="1"), now=NOW)

    assert report.questions == ["Courtesy", "Waiting time"]
    assert report["Courtesy"][RatingOption.VERY_GOOD] == 3
    assert report["Courtesy"][RatingOption.BAD] == 1
    assert report["Courtesy"][RatingOption.GOOD] == 0
    assert report["Waiting time"][RatingOption.NEUTRAL] == 2


def test_frame_store_section_filter(frame_store):
    report = fetch_report(frame_store, FilterSpec(sector_id="1", section_id="10"), now=NOW)
    assert report["Courtesy"].total == 3
    assert report["Courtesy"][RatingOption.BAD] == 0


def test_frame_store_all_sectors(frame_store):
    report = fetch_report(frame_store, FilterSpec(), now=NOW)
    assert report["Courtesy"].total == 8


def test_frame_store_last_month_excludes_older_answers(frame_store):
    spec = FilterSpec(sector_id="1", period_mode=PeriodMode.LAST_MONTH)
    report = fetch_report(frame_store, spec, now=NOW)
    assert report["Courtesy"][RatingOption.BAD] == 0
    assert report["Courtesy"][RatingOption.VERY_GOOD] == 3


def test_frame_store_date_bounds_are_inclusive(frame_store):
    spec = FilterSpec(
        sector_id="1",
        period_mode=PeriodMode.CUSTOM,
        start_date=date(2024, 3, 14),
        end_date=date(2024, 3, 14),
    )
    report = fetch_report(frame_store, spec, now=NOW)
    assert report.questions == ["Waiting time"]


def test_frame_store_inverted_range_is_empty(frame_store):
    assert frame_store.fetch_tallies("1", None, date(2024, 3, 15), date(2024, 3, 1)) == []


def test_frame_store_unknown_sector_is_empty(frame_store):
    report = fetch_report(frame_store, FilterSpec(sector_id="99"), now=NOW)
    assert report.is_empty()


def test_frame_store_tallies(frame_store):
    tallies = frame_store.fetch_tallies("2")
    assert tallies == [ResponseTally("Courtesy", "Bueno", 4)]


def test_frame_store_catalogue(frame_store):
    assert frame_store.list_sectors() == [
        Sector("1", "Central Station"),
        Sector("2", "North Branch"),
    ]
    assert frame_store.list_sections("1") == [
        Section("11", "Complaints", "1"),
        Section("10", "Front Desk", "1"),
    ]
    assert len(frame_store.list_sections()) == 3


def test_frame_store_without_catalogue(responses_frame):
    store = FrameSurveyStore(responses_frame)
    assert store.list_sectors() == []
    assert store.list_sections("1") == []


def test_frame_store_missing_columns():
    with pytest.raises(ValueError, match="fecha"):
        FrameSurveyStore(pd.DataFrame(columns=["pregunta", "opcion", "sector_id", "seccion_id"]))


# ---------------------------------------------------------------------------
# RestSurveyStore
# ---------------------------------------------------------------------------

def _rest_store(handler) -> RestSurveyStore:
    client = httpx.Client(
        base_url="https://store.test",
        transport=httpx.MockTransport(handler),
    )
    return RestSurveyStore("https://store.test", client=client)


def test_rest_fetch_tallies_posts_rpc_params():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[
            {"pregunta": "Courtesy", "opcion": "Muy bueno", "total_respuestas": 8},
            {"pregunta": "Courtesy", "opcion": "Bueno", "total_respuestas": "2"},
        ])

    store = _rest_store(handler)
    tallies = store.fetch_tallies("1", "10", date(2024, 2, 15), date(2024, 3, 15))

    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/rpc/obtener_reporte_por_sector_seccion_fecha"
    assert json.loads(request.content) == {
        "p_sector_id": "1",
        "p_seccion_id": "10",
        "fecha_inicio": "2024-02-15",
        "fecha_fin": "2024-03-15",
    }
    assert tallies == [
        ResponseTally("Courtesy", "Muy bueno", 8),
        ResponseTally("Courtesy", "Bueno", 2),
    ]


def test_rest_fetch_report_all_sections_all_time():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=[
            {"pregunta": "Q1", "opcion": "Malo", "total_respuestas": 4},
            {"pregunta": "Q1", "opcion": "Pésimo", "total_respuestas": 1},
        ])

    report = fetch_report(_rest_store(handler), FilterSpec(sector_id="1"), now=NOW)

    assert bodies == [{"p_sector_id": "1", "p_seccion_id": None}]
    assert report["Q1"][RatingOption.BAD] == 4
    assert report.skipped_rows == 1


def test_rest_empty_body_is_no_rows():
    store = _rest_store(lambda request: httpx.Response(200))
    assert store.fetch_tallies("1") == []


def test_rest_http_error_raises_data_fetch_error():
    store = _rest_store(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(DataFetchError, match="500"):
        store.fetch_tallies("1")


def test_rest_transport_error_raises_data_fetch_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DataFetchError, match="connection refused"):
        _rest_store(handler).list_sectors()


def test_rest_invalid_json_raises_data_fetch_error():
    store = _rest_store(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(DataFetchError, match="invalid JSON"):
        store.fetch_tallies("1")


def test_rest_non_list_payload_raises_data_fetch_error():
    store = _rest_store(lambda request: httpx.Response(200, json={"message": "nope"}))
    with pytest.raises(DataFetchError, match="expected a list"):
        store.fetch_tallies("1")
    with pytest.raises(DataFetchError, match="expected a list"):
        store.list_sectors()


def test_rest_list_sectors():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1, "nombre": "Central Station"}])

    assert _rest_store(handler).list_sectors() == [Sector("1", "Central Station")]
    assert seen[0].url.path == "/rest/v1/sectores"
    assert seen[0].url.params["order"] == "nombre"


def test_rest_list_sections_filters_by_sector():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": 10, "nombre": "Front Desk", "sector_id": 1}])

    store = _rest_store(handler)
    assert store.list_sections("1") == [Section("10", "Front Desk", "1")]
    assert seen[0].url.params["sector_id"] == "eq.1"

    store.list_sections()
    assert "sector_id" not in seen[1].url.params


def test_rest_list_sectors_skips_malformed_rows(caplog):
    rows = [{"id": 1, "nombre": "Central Station"}, {"id": 2}, "bogus", None]
    store = _rest_store(lambda request: httpx.Response(200, json=rows))

    with caplog.at_level(logging.WARNING, logger="satisfaction_dashboard.store"):
        sectors = store.list_sectors()

    assert sectors == [Sector("1", "Central Station")]
    assert caplog.text.count("Skipping malformed sector record") == 3


def test_rest_list_sections_skips_malformed_rows(caplog):
    rows = [
        {"id": 1, "nombre": "Front Desk"},
        {"id": 11, "nombre": "Complaints", "sector_id": 1},
        ["not", "a", "row"],
    ]
    store = _rest_store(lambda request: httpx.Response(200, json=rows))

    with caplog.at_level(logging.WARNING, logger="satisfaction_dashboard.store"):
        sections = store.list_sections("1")

    assert sections == [Section("11", "Complaints", "1")]
    assert caplog.text.count("Skipping malformed section record") == 2


def test_rest_submit_responses():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201)

    store = _rest_store(handler)
    rows = [{"pregunta_id": "7", "opcion_id": "5"}]
    store.submit_responses(rows)

    (request,) = seen
    assert request.url.path == "/rest/v1/respuestas"
    assert request.headers["prefer"] == "return=minimal"
    assert json.loads(request.content) == rows


def test_rest_submit_nothing_sends_no_request():
    seen = []
    store = _rest_store(lambda request: seen.append(request) or httpx.Response(201))
    store.submit_responses([])
    assert seen == []


def test_rest_store_requires_base_url():
    with pytest.raises(ValueError):
        RestSurveyStore("")


def test_rest_store_sets_auth_headers():
    store = RestSurveyStore("https://store.test/", api_key="secret")
    try:
        assert store._client.headers["apikey"] == "secret"
        assert store._client.headers["authorization"] == "Bearer secret"
    finally:
        store.close()


def test_rest_store_context_manager_closes_client():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with RestSurveyStore("https://store.test", client=client):
        pass
    assert client.is_closed
