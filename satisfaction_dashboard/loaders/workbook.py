"""
Loader for the offline survey export workbook.

The workbook mirrors the store tables, one sheet each:
    sectores   — id, nombre
    secciones  — id, nombre, sector_id
    respuestas — pregunta, opcion, sector_id, seccion_id, fecha

Headers are on row 1. Header spelling varies between exports (accents,
capitals, "created_at" instead of "fecha"), so headers are snake-cased and
mapped through _COLUMN_ALIASES.
"""

import logging

import openpyxl
import pandas as pd

from .utils import normalise_date, safe_int, to_snake_case

logger = logging.getLogger(__name__)

_SHEETS = {
    "sectores": ["id", "nombre"],
    "secciones": ["id", "nombre", "sector_id"],
    "respuestas": ["pregunta", "opcion", "sector_id", "seccion_id", "fecha"],
}

_COLUMN_ALIASES = {
    "opción": "opcion",
    "sector": "sector_id",
    "sección": "seccion_id",
    "seccion": "seccion_id",
    "sección_id": "seccion_id",
    "created_at": "fecha",
    "fecha_respuesta": "fecha",
}

_ID_COLUMNS = {"id", "sector_id", "seccion_id"}


def _normalise_id(val) -> str | None:
    if val is None:
        return None
    as_int = safe_int(val)
    if as_int is not None:
        return str(as_int)
    text = str(val).strip()
    return text or None


def _read_sheet(ws, expected: list[str]) -> pd.DataFrame:
    rows = ws.iter_rows(values_only=True)
    try:
        header = next(rows)
    except StopIteration:
        logger.warning("Sheet '%s' is empty", ws.title)
        return pd.DataFrame(columns=expected)

    names = []
    for cell in header:
        key = to_snake_case(cell) if cell is not None else ""
        names.append(_COLUMN_ALIASES.get(key, key))

    missing = set(expected).difference(names)
    if missing:
        raise ValueError(f"Sheet '{ws.title}' missing columns: {sorted(missing)}")

    positions = {name: names.index(name) for name in expected}
    records = []
    for row in rows:
        if row is None or all(v is None for v in row):
            continue
        record = {}
        for name, idx in positions.items():
            val = row[idx] if idx < len(row) else None
            if name in _ID_COLUMNS:
                val = _normalise_id(val)
            elif name == "fecha":
                val = normalise_date(val)
            elif isinstance(val, str):
                val = val.strip()
            record[name] = val
        records.append(record)

    return pd.DataFrame(records, columns=expected)


def load_responses_workbook(path: str) -> dict[str, pd.DataFrame]:
    """Load the sector, section and response sheets from an export workbook.

    Returns
    -------
    Dict with keys "sectores", "secciones", "respuestas" mapping to
    DataFrames with the columns listed in the module docstring. Response
    rows without a parseable date are dropped.
    """
    try:
        wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
    except Exception:
        logger.exception("Failed to open survey workbook: %s", path)
        raise

    try:
        tables = {}
        for sheet_name, expected in _SHEETS.items():
            if sheet_name not in wb.sheetnames:
                raise ValueError(f"Workbook {path} has no '{sheet_name}' sheet")
            tables[sheet_name] = _read_sheet(wb[sheet_name], expected)
    finally:
        wb.close()

    responses = tables["respuestas"]
    undated = responses["fecha"].isna()
    if undated.any():
        logger.warning("Dropping %d responses without a valid date", int(undated.sum()))
        responses = responses[~undated].reset_index(drop=True)
    responses["fecha"] = pd.to_datetime(responses["fecha"])
    tables["respuestas"] = responses

    logger.info(
        "Loaded %d sectors, %d sections, %d responses from %s",
        len(tables["sectores"]), len(tables["secciones"]), len(responses), path,
    )
    return tables
