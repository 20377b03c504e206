"""
Rating vocabulary: the closed five-point satisfaction scale.

Option values are the canonical labels stored by the survey backend. The
numeric encoding (1-5) is only used when a respondent submits a rating;
aggregation treats options as plain mapping keys.
"""

from enum import Enum

from .config import RATING_REGISTRY
from .exceptions import InvalidRatingError


class RatingOption(Enum):
    VERY_BAD = "Muy malo"
    BAD = "Malo"
    NEUTRAL = "Regular"
    GOOD = "Bueno"
    VERY_GOOD = "Muy bueno"

    @property
    def label(self) -> str:
        return self.value

    @property
    def score(self) -> int:
        return RATING_REGISTRY[self.value]["score"]

    @property
    def polarity(self) -> str:
        return RATING_REGISTRY[self.value]["polarity"]

    @property
    def color(self) -> str:
        return RATING_REGISTRY[self.value]["color"]

    def __lt__(self, other):
        if not isinstance(other, RatingOption):
            return NotImplemented
        return self.score < other.score


_ORDERED = tuple(sorted(RatingOption, key=lambda option: option.score))
_BY_SCORE = {option.score: option for option in _ORDERED}
_BY_LABEL = {option.value.casefold(): option for option in _ORDERED}

POSITIVE_OPTIONS = tuple(o for o in _ORDERED if o.polarity == "positive")
NEGATIVE_OPTIONS = tuple(o for o in _ORDERED if o.polarity == "negative")


def all_categories() -> tuple[RatingOption, ...]:
    """Return the five options in scale order, VERY_BAD first."""
    return _ORDERED


def numeric_to_category(value) -> RatingOption:
    """Map a submitted 1-5 rating to its option.

    Raises InvalidRatingError for anything that is not an int in range;
    bools and floats are rejected rather than coerced.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRatingError(value)
    try:
        return _BY_SCORE[value]
    except KeyError:
        raise InvalidRatingError(value) from None


def category_to_numeric(option: RatingOption) -> int:
    return option.score


def parse_label(label) -> RatingOption | None:
    """Return the option for a store label, or None if it is not one of the five."""
    if isinstance(label, RatingOption):
        return label
    if not isinstance(label, str):
        return None
    return _BY_LABEL.get(label.strip().casefold())
