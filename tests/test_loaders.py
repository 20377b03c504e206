"""Tests for the offline workbook loader and its helpers."""

import logging
from datetime import datetime

import openpyxl
import pandas as pd
import pytest

from satisfaction_dashboard.filters import FilterSpec
from satisfaction_dashboard.loaders import load_responses_workbook
from satisfaction_dashboard.loaders.utils import normalise_date, safe_int, to_snake_case
from satisfaction_dashboard.rating import RatingOption
from satisfaction_dashboard.store import FrameSurveyStore, fetch_report


def _write_workbook(path, sheets: dict[str, list[list]]):
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


@pytest.fixture()
def export_workbook(tmp_path):
    return _write_workbook(tmp_path / "export.xlsx", {
        "sectores": [["ID", "Nombre"], [1, "Central Station"], [2, "North Branch"]],
        "secciones": [["id", "nombre", "Sector ID"], [10, "Front Desk", 1], [20, "Front Desk", 2]],
        "respuestas": [
            ["Pregunta", "Opción", "Sector", "Sección", "created_at"],
            ["Courtesy", " Muy bueno ", 1, 10, datetime(2024, 3, 10, 14, 30)],
            ["Courtesy", "Malo", 1, 10, "2024-03-12"],
            ["Courtesy", "Bueno", 2, 20, None],
        ],
    })


def test_load_responses_workbook(export_workbook, caplog):
    with caplog.at_level(logging.WARNING):
        tables = load_responses_workbook(str(export_workbook))

    assert set(tables) == {"sectores", "secciones", "respuestas"}
    assert tables["sectores"]["id"].tolist() == ["1", "2"]
    assert tables["secciones"]["sector_id"].tolist() == ["1", "2"]

    responses = tables["respuestas"]
    assert list(responses.columns) == ["pregunta", "opcion", "sector_id", "seccion_id", "fecha"]
    assert len(responses) == 2
    assert responses["opcion"].tolist() == ["Muy bueno", "Malo"]
    assert responses["seccion_id"].tolist() == ["10", "10"]
    assert responses["fecha"].tolist() == [
        pd.Timestamp("2024-03-10 14:30"),
        pd.Timestamp("2024-03-12"),
    ]
    assert "Dropping 1 responses" in caplog.text


def test_store_from_workbook(export_workbook):
    store = FrameSurveyStore.from_workbook(export_workbook)
    report = fetch_report(store, FilterSpec(sector_id="1"))

    assert [s.name for s in store.list_sectors()] == ["Central Station", "North Branch"]
    assert report["Courtesy"][RatingOption.VERY_GOOD] == 1
    assert report["Courtesy"][RatingOption.BAD] == 1


def test_missing_sheet(tmp_path):
    path = _write_workbook(tmp_path / "partial.xlsx", {"sectores": [["id", "nombre"]]})
    with pytest.raises(ValueError, match="secciones"):
        load_responses_workbook(str(path))


def test_missing_column(tmp_path):
    path = _write_workbook(tmp_path / "bad.xlsx", {
        "sectores": [["id", "nombre"]],
        "secciones": [["id", "nombre", "sector_id"]],
        "respuestas": [["pregunta", "opcion", "sector_id", "seccion_id"]],
    })
    with pytest.raises(ValueError, match="fecha"):
        load_responses_workbook(str(path))


def test_missing_file_is_logged_and_raised(tmp_path, caplog):
    with caplog.at_level(logging.ERROR), pytest.raises(FileNotFoundError):
        load_responses_workbook(str(tmp_path / "nope.xlsx"))
    assert "Failed to open survey workbook" in caplog.text


# ---------------------------------------------------------------------------
# utils
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "value, expected",
    [
        (45366, pd.Timestamp("2024-03-15")),
        ("2024-03-15", pd.Timestamp("2024-03-15")),
        (datetime(2024, 3, 15, 9, 0), pd.Timestamp("2024-03-15 09:00")),
        ("2024-03-15T10:00:00+02:00", pd.Timestamp("2024-03-15 08:00")),
        (None, None),
        (float("nan"), None),
        ("not a date", None),
    ],
)
def test_normalise_date(value, expected):
    assert normalise_date(value) == expected


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Sección", "sección"),
        ("Fecha Respuesta", "fecha_respuesta"),
        ("Sector ID", "sector_id"),
        ("createdAt", "created_at"),
        ("  Total (%) ", "total_pct"),
    ],
)
def test_to_snake_case(header, expected):
    assert to_snake_case(header) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3), (3.0, 3), ("3.0", 3), (" 12 ", 12), (3.5, None), ("abc", None), ("", None), (None, None), (True, None)],
)
def test_safe_int(value, expected):
    assert safe_int(value) == expected
