"""Shared fixtures for the dashboard backend tests."""

import pandas as pd
import pytest

from satisfaction_dashboard.aggregator import ResponseTally, aggregate_tallies
from satisfaction_dashboard.rating import RatingOption


def make_report(questions: dict[str, dict[RatingOption, int]]):
    """Build an AggregatedReport from {question: {option: count}}."""
    rows = [
        ResponseTally(question, option.label, count)
        for question, counts in questions.items()
        for option, count in counts.items()
    ]
    return aggregate_tallies(rows)


@pytest.fixture
def mixed_report():
    return make_report({
        "Courtesy": {RatingOption.VERY_GOOD: 8, RatingOption.GOOD: 2},
        "Waiting time": {
            RatingOption.GOOD: 1,
            RatingOption.NEUTRAL: 1,
            RatingOption.BAD: 4,
            RatingOption.VERY_BAD: 4,
        },
        "Cleanliness": {
            RatingOption.GOOD: 5,
            RatingOption.NEUTRAL: 3,
            RatingOption.BAD: 2,
        },
    })


@pytest.fixture
def responses_frame():
    rows = []

    def add(question, option, n, sector, section, day):
        rows.extend(
            {
                "pregunta": question,
                "opcion": option,
                "sector_id": sector,
                "seccion_id": section,
                "fecha": pd.Timestamp(day),
            }
            for _ in range(n)
        )

    add("Courtesy", "Muy bueno", 3, "1", "10", "2024-03-10")
    add("Courtesy", "Malo", 1, "1", "11", "2024-02-01")
    add("Waiting time", "Regular", 2, "1", "10", "2024-03-14")
    add("Courtesy", "Bueno", 4, "2", "20", "2024-03-12")
    return pd.DataFrame(rows)


@pytest.fixture
def catalog_frames():
    sectors = pd.DataFrame([("2", "North Branch"), ("1", "Central Station")], columns=["id", "nombre"])
    sections = pd.DataFrame(
        [("11", "Complaints", "1"), ("10", "Front Desk", "1"), ("20", "Front Desk", "2")],
        columns=["id", "nombre", "sector_id"],
    )
    return sectors, sections
