"""
Response aggregation: group pre-aggregated rating tallies into a
per-question distribution report.

The survey store returns one row per (question, option) with the number
of responses matching the active filter. This module turns those rows into
an immutable AggregatedReport whose distributions always carry all five
rating options.
"""

import logging
import numbers
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

import pandas as pd

from .rating import RatingOption, all_categories, parse_label

logger = logging.getLogger(__name__)

# Column names used by the report RPC and the offline workbook
QUESTION_COLUMN = "pregunta"
OPTION_COLUMN = "opcion"
COUNT_COLUMN = "total_respuestas"


@dataclass(frozen=True)
class ResponseTally:
    question_label: str
    option_label: str
    count: int


def _valid_count(value) -> bool:
    return (
        isinstance(value, numbers.Integral)
        and not isinstance(value, bool)
        and value >= 0
    )


class QuestionDistribution(Mapping):
    """Read-only option -> count mapping with all five options present.

    Raises ValueError if a count is not a non-negative integer.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Mapping[RatingOption, int] | None = None):
        counts = counts or {}
        self._counts = {}
        for option in all_categories():
            count = counts.get(option, 0)
            if not _valid_count(count):
                raise ValueError(
                    f"Count for {option.label!r} must be a non-negative integer, got {count!r}"
                )
            self._counts[option] = int(count)

    def __getitem__(self, option: RatingOption) -> int:
        return self._counts[option]

    def __iter__(self) -> Iterator[RatingOption]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        inner = ", ".join(f"{o.name}={c}" for o, c in self._counts.items())
        return f"QuestionDistribution({inner})"

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def by_label(self) -> dict[str, int]:
        """Plain label -> count dict for tables and JSON."""
        return {option.label: count for option, count in self._counts.items()}


class AggregatedReport(Mapping):
    """Ordered, read-only question -> QuestionDistribution mapping.

    Questions keep the order in which they first appeared in the source
    rows. ``skipped_rows`` counts malformed rows dropped during aggregation.
    """

    __slots__ = ("_questions", "skipped_rows")

    def __init__(
        self,
        questions: Mapping[str, QuestionDistribution] | None = None,
        skipped_rows: int = 0,
    ):
        self._questions = dict(questions or {})
        self.skipped_rows = skipped_rows

    def __getitem__(self, question: str) -> QuestionDistribution:
        return self._questions[question]

    def __iter__(self) -> Iterator[str]:
        return iter(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __repr__(self) -> str:
        return f"AggregatedReport({len(self)} questions, skipped_rows={self.skipped_rows})"

    @property
    def questions(self) -> list[str]:
        return list(self._questions)

    def is_empty(self) -> bool:
        return not self._questions


def aggregate_tallies(rows: Iterable[ResponseTally]) -> AggregatedReport:
    """Group tally rows into an AggregatedReport.

    Rules
    -----
    - An unseen question is inserted with all five options at 0.
    - ``distribution[option] = count``; a duplicate question+option row
      overwrites the earlier one.
    - Rows with a blank question, an unknown option label or a negative /
      non-integer count are skipped with a warning.
    - Empty input yields an empty report.
    """
    grouped: dict[str, dict[RatingOption, int]] = {}
    skipped = 0

    for row in rows:
        question = row.question_label.strip() if isinstance(row.question_label, str) else ""
        option = parse_label(row.option_label)

        if not question:
            logger.warning("Skipping tally row without question label: %r", row)
            skipped += 1
            continue
        if option is None:
            logger.warning(
                "Skipping tally row with unknown option %r for question '%s'",
                row.option_label, question,
            )
            skipped += 1
            continue
        if not _valid_count(row.count):
            logger.warning(
                "Skipping tally row with invalid count %r for question '%s'",
                row.count, question,
            )
            skipped += 1
            continue

        counts = grouped.setdefault(question, {o: 0 for o in all_categories()})
        counts[option] = row.count

    report = AggregatedReport(
        {question: QuestionDistribution(counts) for question, counts in grouped.items()},
        skipped_rows=skipped,
    )
    logger.info(
        "Aggregated %d questions (%d rows skipped)", len(report), report.skipped_rows
    )
    return report


def _coerce_count(value):
    """Return an int for integral numeric values, otherwise the raw value."""
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return value


def tallies_from_records(records: Iterable[Mapping]) -> list[ResponseTally]:
    """Convert store JSON records into ResponseTally rows.

    Records missing any of the three expected keys are skipped with a
    warning; value validation is left to aggregate_tallies.
    """
    tallies = []
    for record in records:
        try:
            tallies.append(
                ResponseTally(
                    question_label=record[QUESTION_COLUMN],
                    option_label=record[OPTION_COLUMN],
                    count=_coerce_count(record[COUNT_COLUMN]),
                )
            )
        except (KeyError, TypeError):
            logger.warning("Skipping malformed tally record: %r", record)
    return tallies


def tallies_from_frame(df: pd.DataFrame) -> list[ResponseTally]:
    """Convert a tally DataFrame (pregunta, opcion, total_respuestas) into rows."""
    if df.empty:
        return []
    missing = {QUESTION_COLUMN, OPTION_COLUMN, COUNT_COLUMN}.difference(df.columns)
    if missing:
        raise ValueError(f"Tally frame missing columns: {sorted(missing)}")
    return tallies_from_records(
        df[[QUESTION_COLUMN, OPTION_COLUMN, COUNT_COLUMN]].to_dict("records")
    )


def report_to_frame(report: AggregatedReport) -> pd.DataFrame:
    """Wide table: one row per question, one column per option label, plus total.

    Returns
    -------
    DataFrame with columns:
        question, Muy bueno, Bueno, Regular, Malo, Muy malo, total
    """
    labels = [option.label for option in reversed(all_categories())]
    columns = ["question", *labels, "total"]

    rows = []
    for question, distribution in report.items():
        counts = distribution.by_label()
        rows.append({
            "question": question,
            **{label: counts[label] for label in labels},
            "total": distribution.total,
        })

    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)
