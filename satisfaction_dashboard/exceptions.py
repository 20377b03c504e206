"""Project-wide custom exception types."""


class SurveyDashboardError(RuntimeError):
    """Base class for errors raised by the dashboard backend."""


class DataFetchError(SurveyDashboardError):
    """Raised when the survey store call fails or returns an unusable payload."""


class InvalidRatingError(ValueError):
    """Raised when a numeric rating falls outside the 1-5 scale."""

    def __init__(self, value) -> None:
        self.value = value
        super().__init__(f"Rating must be an integer between 1 and 5, got {value!r}")


class InvalidFilterError(ValueError):
    """Raised when a FilterSpec violates its date invariants."""


class IncompleteSubmissionError(ValueError):
    """Raised when a survey submission leaves questions unanswered."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"{len(missing)} question(s) left unanswered: {', '.join(missing)}")
