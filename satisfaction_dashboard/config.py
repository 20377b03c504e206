"""
Configuration: rating registry, insight thresholds, store settings, constants.

RATING_REGISTRY maps each canonical option label (as stored by the survey
backend) to its scale position, polarity and display colour.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# File paths: offline workbook export used when no store URL is configured
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent

SAMPLE_WORKBOOK_FILE = DATA_DIR / "encuestas_export.xlsx"

# ---------------------------------------------------------------------------
# Rating registry
# ---------------------------------------------------------------------------
# score: position on the 1-5 scale used at submission time
# polarity: "negative", "neutral" or "positive"
# color: chart / badge colour
RATING_REGISTRY: dict[str, dict] = {
    "Muy malo": {
        "score": 1,
        "polarity": "negative",
        "color": "#F44336",
    },
    "Malo": {
        "score": 2,
        "polarity": "negative",
        "color": "#FF9933",
    },
    "Regular": {
        "score": 3,
        "polarity": "neutral",
        "color": "#FFC107",
    },
    "Bueno": {
        "score": 4,
        "polarity": "positive",
        "color": "#2196F3",
    },
    "Muy bueno": {
        "score": 5,
        "polarity": "positive",
        "color": "#4CAF50",
    },
}

# ---------------------------------------------------------------------------
# Insight thresholds (percentage points)
# ---------------------------------------------------------------------------
SATISFACTION_THRESHOLD = 70.0
INSATISFACTION_THRESHOLD = 30.0

# Narrative tier lower bounds on overall satisfaction
HIGH_TIER_MIN = 70.0
MEDIUM_TIER_MIN = 50.0

TIER_COLORS: dict[str, str] = {
    "high": "#2ecc71",
    "medium": "#f39c12",
    "low": "#e74c3c",
}

# Multi-series charts pick colours by series index
SERIES_PALETTE: list[str] = [
    "#3498db",
    "#e67e22",
    "#9b59b6",
    "#1abc9c",
    "#e74c3c",
    "#34495e",
    "#f1c40f",
    "#95a5a6",
]

# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------
ALL_SECTIONS = "all"

PERIOD_LABELS: dict[str, str] = {
    "all_time": "All time",
    "last_week": "Last week",
    "last_month": "Last month",
    "custom": "Custom range",
}

# ---------------------------------------------------------------------------
# Survey store (PostgREST-style backend)
# ---------------------------------------------------------------------------
STORE_URL = os.getenv("SURVEY_STORE_URL", "")
STORE_KEY = os.getenv("SURVEY_STORE_KEY", "")
STORE_TIMEOUT = float(os.getenv("SURVEY_STORE_TIMEOUT", "10"))

REPORT_RPC = "obtener_reporte_por_sector_seccion_fecha"
SECTORS_TABLE = "sectores"
SECTIONS_TABLE = "secciones"
OPTIONS_TABLE = "opciones_respuesta"
RESPONSES_TABLE = "respuestas"

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
APP_NAME = "Satisfaction Survey Dashboard"
