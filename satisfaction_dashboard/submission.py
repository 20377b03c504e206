"""
Response submission: turn a respondent's 1-5 answers into store rows.

The public survey form collects one numeric rating per question. Each
rating is decoded through the rating vocabulary and mapped to the id of
the matching row in the answer-option catalogue.
"""

import logging
from collections.abc import Iterable, Mapping

from .exceptions import DataFetchError, IncompleteSubmissionError
from .rating import RatingOption, all_categories, numeric_to_category, parse_label

logger = logging.getLogger(__name__)


def option_ids_from_catalog(records: Iterable[Mapping]) -> dict[RatingOption, str]:
    """Map each rating option to its catalogue id.

    Records use the store columns ``id`` and ``texto``; unknown labels are
    ignored.
    """
    ids = {}
    for record in records:
        option = parse_label(record.get("texto"))
        if option is None:
            logger.debug("Ignoring unknown answer option %r", record.get("texto"))
            continue
        ids[option] = str(record["id"])
    return ids


def _is_unanswered(value) -> bool:
    # only None and the int 0 mean "no answer"; False and 0.0 are bad ratings
    return value is None or (type(value) is int and value == 0)


def build_response_rows(
    answers: Mapping[str, int | None],
    option_ids: Mapping[RatingOption, str],
) -> list[dict]:
    """Build ``{pregunta_id, opcion_id}`` rows for a completed survey.

    Parameters
    ----------
    answers : question id -> rating 1..5; 0 or None means unanswered.
    option_ids : rating option -> catalogue id, see option_ids_from_catalog.

    Raises
    ------
    IncompleteSubmissionError if any question is unanswered.
    InvalidRatingError if a rating is outside 1..5.
    DataFetchError if the option catalogue lacks one of the five options.
    """
    missing_options = [o.label for o in all_categories() if o not in option_ids]
    if missing_options:
        raise DataFetchError(f"Answer option catalogue is missing: {', '.join(missing_options)}")

    unanswered = [qid for qid, value in answers.items() if _is_unanswered(value)]
    if unanswered:
        raise IncompleteSubmissionError(unanswered)

    rows = []
    for question_id, value in answers.items():
        option = numeric_to_category(value)
        rows.append({"pregunta_id": question_id, "opcion_id": option_ids[option]})
    return rows
