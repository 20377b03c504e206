"""
Shared utilities for data ingestion: date normalisation, header renaming,
numeric coercion.
"""

import logging
import re
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


def normalise_date(val: Any) -> pd.Timestamp | None:
    """Convert an Excel serial number, string or datetime to a naive pd.Timestamp.

    Excel serial numbers use the 1899-12-30 epoch. Timezone-aware values
    are converted to UTC and made naive. Returns None for unparseable values.
    """
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        try:
            return pd.Timestamp("1899-12-30") + pd.Timedelta(days=int(val))
        except (ValueError, OverflowError):
            logger.warning("Could not convert serial number %s to date", val)
            return None
    try:
        ts = pd.Timestamp(val)
    except (ValueError, TypeError):
        logger.warning("Could not parse date value: %s", val)
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def to_snake_case(name: str) -> str:
    """Convert a column header to snake_case.

    Accented characters are kept as-is ("Sección" -> "sección"), so
    callers map known aliases explicitly.
    """
    s = str(name).strip()
    s = s.replace("%", "pct").replace("/", "_").replace("(", "").replace(")", "")
    s = s.replace("-", "_").replace(".", "_")
    s = re.sub(r"([a-z])([A-Z])", r"\1_\2", s)
    s = re.sub(r"[^\w]+", "_", s)
    s = s.lower().strip("_")
    s = re.sub(r"_+", "_", s)
    return s


def safe_int(val: Any) -> int | None:
    """Coerce a value to int, returning None for non-integral values."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str):
        val = val.strip()
        if not val:
            return None
        try:
            val = float(val)
        except ValueError:
            return None
    try:
        f = float(val)
    except (ValueError, TypeError):
        return None
    if pd.isna(f) or not f.is_integer():
        return None
    return int(f)
