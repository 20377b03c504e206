"""
Simulated survey data generator for the satisfaction dashboard.

Generates sectors, sections and individual responses with per-question
satisfaction profiles, so the dashboard runs without a live store.
All values are synthetic. Output is deterministic for a given seed.
"""

import numpy as np
import pandas as pd

from .rating import all_categories
from .store import FrameSurveyStore

# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
_SECTORS = [
    ("1", "Central Station"),
    ("2", "North Branch"),
    ("3", "Riverside Office"),
]

_SECTIONS = [
    ("10", "Front Desk", "1"),
    ("11", "Complaints", "1"),
    ("12", "Records", "1"),
    ("20", "Front Desk", "2"),
    ("21", "Investigations", "2"),
    ("30", "Front Desk", "3"),
]

# Question -> probability of each option, VERY_BAD..VERY_GOOD
_QUESTION_PROFILES = {
    "Courtesy of the staff": [0.03, 0.05, 0.12, 0.40, 0.40],
    "Waiting time before being served": [0.25, 0.25, 0.20, 0.18, 0.12],
    "Clarity of the information received": [0.05, 0.10, 0.20, 0.40, 0.25],
    "Cleanliness of the facilities": [0.08, 0.12, 0.30, 0.30, 0.20],
    "Resolution of your request": [0.15, 0.20, 0.25, 0.25, 0.15],
    "Overall service experience": [0.04, 0.08, 0.18, 0.40, 0.30],
}

# Per-sector shift of probability mass from negative to positive options
_SECTOR_BIAS = {
    "1": 0.05,
    "2": -0.08,
    "3": 0.0,
}


def _shifted(profile: list[float], bias: float) -> np.ndarray:
    p = np.array(profile, dtype=float)
    shift = np.array([-bias, -bias / 2, 0.0, bias / 2, bias])
    p = np.clip(p + shift, 0.01, None)
    return p / p.sum()


def generate_catalog() -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return (sectors, sections) tables."""
    sectors = pd.DataFrame(_SECTORS, columns=["id", "nombre"])
    sections = pd.DataFrame(_SECTIONS, columns=["id", "nombre", "sector_id"])
    return sectors, sections


def generate_responses(
    end_date: str | pd.Timestamp | None = None,
    n_days: int = 90,
    respondents_per_day: int = 6,
    seed: int = 42,
    skip_rate: float = 0.05,
) -> pd.DataFrame:
    """Generate simulated individual responses.

    Each simulated respondent visits one section and answers every
    question, except that each answer is dropped with probability
    *skip_rate* to mimic partially completed surveys.

    Returns
    -------
    DataFrame with columns: pregunta, opcion, sector_id, seccion_id, fecha
    """
    rng = np.random.default_rng(seed)
    end = pd.Timestamp(end_date) if end_date is not None else pd.Timestamp.today()
    days = pd.date_range(end=end.normalize(), periods=n_days, freq="D")
    labels = [option.label for option in all_categories()]

    section_ids = [s[0] for s in _SECTIONS]
    section_sector = {s[0]: s[2] for s in _SECTIONS}

    rows = []
    for day in days:
        n = rng.poisson(respondents_per_day)
        for _ in range(n):
            section_id = section_ids[rng.integers(len(section_ids))]
            sector_id = section_sector[section_id]
            bias = _SECTOR_BIAS.get(sector_id, 0.0)
            for question, profile in _QUESTION_PROFILES.items():
                if rng.random() < skip_rate:
                    continue
                option = labels[rng.choice(len(labels), p=_shifted(profile, bias))]
                rows.append({
                    "pregunta": question,
                    "opcion": option,
                    "sector_id": sector_id,
                    "seccion_id": section_id,
                    "fecha": day,
                })

    return pd.DataFrame(rows, columns=["pregunta", "opcion", "sector_id", "seccion_id", "fecha"])


def build_simulated_store(
    end_date: str | pd.Timestamp | None = None,
    seed: int = 42,
    **kwargs,
) -> FrameSurveyStore:
    """FrameSurveyStore over a freshly generated catalogue and response set."""
    sectors, sections = generate_catalog()
    responses = generate_responses(end_date=end_date, seed=seed, **kwargs)
    return FrameSurveyStore(responses, sectors, sections)
