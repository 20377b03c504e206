"""
Filter resolution: period selector + sector/section choice -> store query.

Period modes
------------
- ALL_TIME:   no date bounds.
- LAST_WEEK:  today - 7 days .. today.
- LAST_MONTH: same day of the previous month .. today. The month field is
              decremented and the date normalised, so a day that does not
              exist in the previous month rolls forward (2024-03-31 ->
              "2024-02-31" -> 2024-03-02).
- CUSTOM:     caller-supplied dates, passed through verbatim.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import NamedTuple

from .config import ALL_SECTIONS
from .exceptions import InvalidFilterError

logger = logging.getLogger(__name__)


class PeriodMode(str, Enum):
    ALL_TIME = "all_time"
    LAST_WEEK = "last_week"
    LAST_MONTH = "last_month"
    CUSTOM = "custom"


class DateRange(NamedTuple):
    start: date | None
    end: date | None


def _as_date(value: date | datetime | None) -> date:
    """Today's UTC date when *value* is None; datetimes are truncated."""
    if value is None:
        return datetime.now(timezone.utc).date()
    if isinstance(value, datetime):
        return value.date()
    return value


def subtract_one_month(day: date) -> date:
    """Return *day* with its month decremented, rolling overflow days forward.

    2024-03-15 -> 2024-02-15, 2024-01-10 -> 2023-12-10,
    2024-03-31 -> 2024-03-02, 2023-03-29 -> 2023-03-01.
    """
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return date(year, month, 1) + timedelta(days=day.day - 1)


def resolve_period(
    mode: PeriodMode,
    now: date | datetime | None = None,
    start: date | None = None,
    end: date | None = None,
) -> DateRange:
    """Convert a period selector into concrete start/end dates.

    CUSTOM dates are returned as given, without checking their order; an
    inverted range simply matches nothing in the store.
    """
    mode = PeriodMode(mode)

    if mode is PeriodMode.ALL_TIME:
        return DateRange(None, None)
    if mode is PeriodMode.CUSTOM:
        return DateRange(start, end)

    today = _as_date(now)
    if mode is PeriodMode.LAST_WEEK:
        return DateRange(today - timedelta(days=7), today)
    return DateRange(subtract_one_month(today), today)


@dataclass(frozen=True)
class FilterSpec:
    """Validated dashboard filter.

    section_id may be None or ALL_SECTIONS, both meaning "no section filter".
    CUSTOM periods require both dates with start_date <= end_date.
    """

    sector_id: str | None = None
    section_id: str | None = ALL_SECTIONS
    period_mode: PeriodMode = PeriodMode.ALL_TIME
    start_date: date | None = None
    end_date: date | None = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "period_mode", PeriodMode(self.period_mode))
        except ValueError as exc:
            raise InvalidFilterError(f"Unknown period mode '{self.period_mode}'") from exc

        # datetimes are truncated so bounds compare and serialise as dates
        for name in ("start_date", "end_date"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())

        if self.period_mode is PeriodMode.CUSTOM:
            if self.start_date is None or self.end_date is None:
                raise InvalidFilterError("Custom period requires both start_date and end_date")
            if self.start_date > self.end_date:
                raise InvalidFilterError(
                    f"start_date {self.start_date} is after end_date {self.end_date}"
                )

    @property
    def section_filter(self) -> str | None:
        """The section id to query, or None when all sections are selected."""
        if self.section_id in (None, "", ALL_SECTIONS):
            return None
        return self.section_id

    def resolve(self, now: date | datetime | None = None) -> DateRange:
        return resolve_period(self.period_mode, now, self.start_date, self.end_date)


def to_query_params(spec: FilterSpec, now: date | datetime | None = None) -> dict:
    """Build the report RPC parameters for *spec*.

    Returns
    -------
    Dict with keys p_sector_id, p_seccion_id and, when the period is
    bounded, fecha_inicio / fecha_fin as ISO date strings.
    """
    params: dict = {
        "p_sector_id": spec.sector_id or None,
        "p_seccion_id": spec.section_filter,
    }
    period = spec.resolve(now)
    if period.start is not None and period.end is not None:
        params["fecha_inicio"] = period.start.isoformat()
        params["fecha_fin"] = period.end.isoformat()

    logger.debug("Resolved filter %s to params %s", spec, params)
    return params
