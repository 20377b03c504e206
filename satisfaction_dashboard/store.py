"""
Survey store clients.

The dashboard reads two things from persistence: rating tallies for a
filter, and the sector/section catalogue. Two implementations share the
SurveyStore interface:

RestSurveyStore
    PostgREST-style HTTP backend (report RPC + table endpoints) via httpx.
FrameSurveyStore
    pandas-backed store over raw response rows, used for the offline
    workbook export, the simulator and tests. It reproduces the report RPC
    by filtering and counting responses per question and option.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

import httpx
import pandas as pd

from . import config
from .aggregator import (
    COUNT_COLUMN,
    OPTION_COLUMN,
    QUESTION_COLUMN,
    AggregatedReport,
    ResponseTally,
    aggregate_tallies,
    tallies_from_frame,
    tallies_from_records,
)
from .exceptions import DataFetchError
from .filters import FilterSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sector:
    id: str
    name: str


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    sector_id: str


class SurveyStore(Protocol):
    def fetch_tallies(
        self,
        sector_id: str | None,
        section_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ResponseTally]: ...

    def list_sectors(self) -> list[Sector]: ...

    def list_sections(self, sector_id: str | None = None) -> list[Section]: ...


def fetch_report(
    store: SurveyStore,
    spec: FilterSpec,
    now: date | datetime | None = None,
) -> AggregatedReport:
    """Resolve *spec*, fetch its tallies from *store* and aggregate them.

    Store errors propagate unchanged.
    """
    period = spec.resolve(now)
    tallies = store.fetch_tallies(
        spec.sector_id,
        spec.section_filter,
        period.start,
        period.end,
    )
    return aggregate_tallies(tallies)


# ---------------------------------------------------------------------------
# HTTP store
# ---------------------------------------------------------------------------

def _catalog_entries(rows: list, kind: str, build) -> list:
    """Build catalogue entries from store rows.

    Rows missing a required key, or that are not objects, are skipped with
    a warning so one bad row does not hide the whole catalogue.
    """
    entries = []
    for row in rows:
        try:
            entries.append(build(row))
        except (KeyError, TypeError):
            logger.warning("Skipping malformed %s record: %r", kind, row)
    return entries


class RestSurveyStore:
    """Client for a PostgREST-style survey backend."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = config.STORE_TIMEOUT,
        client: httpx.Client | None = None,
    ):
        if not base_url:
            raise ValueError("base_url is required for RestSurveyStore")
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    @classmethod
    def from_env(cls) -> "RestSurveyStore":
        return cls(config.STORE_URL, config.STORE_KEY, config.STORE_TIMEOUT)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs):
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DataFetchError(
                f"{method} {path} failed with status {exc.response.status_code}: "
                f"{exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DataFetchError(f"{method} {path} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DataFetchError(f"{method} {path} returned invalid JSON") from exc

    def _get_rows(self, path: str, params: dict) -> list[dict]:
        payload = self._request("GET", path, params=params)
        if not isinstance(payload, list):
            raise DataFetchError(f"GET {path} returned {type(payload).__name__}, expected a list")
        return payload

    def fetch_tallies(
        self,
        sector_id: str | None,
        section_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ResponseTally]:
        params: dict = {
            "p_sector_id": sector_id or None,
            "p_seccion_id": None if section_id in (None, config.ALL_SECTIONS) else section_id,
        }
        if start_date is not None:
            params["fecha_inicio"] = start_date.isoformat()
        if end_date is not None:
            params["fecha_fin"] = end_date.isoformat()

        path = f"/rest/v1/rpc/{config.REPORT_RPC}"
        payload = self._request("POST", path, json=params)
        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise DataFetchError(f"Report RPC returned {type(payload).__name__}, expected a list")

        tallies = tallies_from_records(payload)
        logger.info("Fetched %d tally rows for sector=%s section=%s", len(tallies), sector_id, section_id)
        return tallies

    def list_sectors(self) -> list[Sector]:
        rows = self._get_rows(
            f"/rest/v1/{config.SECTORS_TABLE}",
            {"select": "*", "order": "nombre"},
        )
        return _catalog_entries(
            rows, "sector", lambda r: Sector(id=str(r["id"]), name=r["nombre"])
        )

    def list_sections(self, sector_id: str | None = None) -> list[Section]:
        params = {"select": "id,nombre,sector_id", "order": "nombre"}
        if sector_id:
            params["sector_id"] = f"eq.{sector_id}"
        rows = self._get_rows(f"/rest/v1/{config.SECTIONS_TABLE}", params)
        return _catalog_entries(
            rows,
            "section",
            lambda r: Section(id=str(r["id"]), name=r["nombre"], sector_id=str(r["sector_id"])),
        )

    def list_options(self) -> list[dict]:
        """Raw answer-option catalogue rows (id, texto)."""
        return self._get_rows(f"/rest/v1/{config.OPTIONS_TABLE}", {"select": "id,texto"})

    def submit_responses(self, rows: Iterable[Mapping]) -> None:
        """Insert one response row per answered question."""
        rows = list(rows)
        if not rows:
            return
        self._request(
            "POST",
            f"/rest/v1/{config.RESPONSES_TABLE}",
            json=rows,
            headers={"Prefer": "return=minimal"},
        )
        logger.info("Submitted %d responses", len(rows))


# ---------------------------------------------------------------------------
# DataFrame store
# ---------------------------------------------------------------------------

RESPONSE_COLUMNS = [QUESTION_COLUMN, OPTION_COLUMN, "sector_id", "seccion_id", "fecha"]


class FrameSurveyStore:
    """In-memory store over raw response, sector and section tables.

    Parameters
    ----------
    responses : one row per submitted answer with columns
        pregunta, opcion, sector_id, seccion_id, fecha.
    sectors : columns id, nombre.
    sections : columns id, nombre, sector_id.
    """

    def __init__(
        self,
        responses: pd.DataFrame,
        sectors: pd.DataFrame | None = None,
        sections: pd.DataFrame | None = None,
    ):
        missing = set(RESPONSE_COLUMNS).difference(responses.columns)
        if missing:
            raise ValueError(f"Response table missing columns: {sorted(missing)}")

        df = responses[RESPONSE_COLUMNS].copy()
        df["sector_id"] = df["sector_id"].astype(str)
        df["seccion_id"] = df["seccion_id"].astype(str)
        df["fecha"] = pd.to_datetime(df["fecha"]).dt.normalize()
        self._responses = df

        self._sectors = sectors if sectors is not None else pd.DataFrame(columns=["id", "nombre"])
        self._sections = (
            sections if sections is not None
            else pd.DataFrame(columns=["id", "nombre", "sector_id"])
        )

    @classmethod
    def from_workbook(cls, path) -> "FrameSurveyStore":
        from .loaders import load_responses_workbook

        tables = load_responses_workbook(str(path))
        return cls(tables["respuestas"], tables["sectores"], tables["secciones"])

    def _filtered(
        self,
        sector_id: str | None,
        section_id: str | None,
        start_date: date | None,
        end_date: date | None,
    ) -> pd.DataFrame:
        df = self._responses
        if sector_id:
            df = df[df["sector_id"] == str(sector_id)]
        if section_id not in (None, "", config.ALL_SECTIONS):
            df = df[df["seccion_id"] == str(section_id)]
        if start_date is not None:
            df = df[df["fecha"] >= pd.Timestamp(start_date)]
        if end_date is not None:
            df = df[df["fecha"] <= pd.Timestamp(end_date)]
        return df

    def tally_frame(
        self,
        sector_id: str | None,
        section_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> pd.DataFrame:
        """Counts per (pregunta, opcion), in order of first appearance."""
        df = self._filtered(sector_id, section_id, start_date, end_date)
        if df.empty:
            return pd.DataFrame(columns=[QUESTION_COLUMN, OPTION_COLUMN, COUNT_COLUMN])
        return (
            df.groupby([QUESTION_COLUMN, OPTION_COLUMN], sort=False)
            .size()
            .reset_index(name=COUNT_COLUMN)
        )

    def fetch_tallies(
        self,
        sector_id: str | None,
        section_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ResponseTally]:
        return tallies_from_frame(self.tally_frame(sector_id, section_id, start_date, end_date))

    def list_sectors(self) -> list[Sector]:
        df = self._sectors.sort_values("nombre")
        return [Sector(id=str(r["id"]), name=str(r["nombre"])) for _, r in df.iterrows()]

    def list_sections(self, sector_id: str | None = None) -> list[Section]:
        df = self._sections.sort_values("nombre")
        if sector_id:
            df = df[df["sector_id"].astype(str) == str(sector_id)]
        return [
            Section(id=str(r["id"]), name=str(r["nombre"]), sector_id=str(r["sector_id"]))
            for _, r in df.iterrows()
        ]
