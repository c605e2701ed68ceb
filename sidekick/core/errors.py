class SidekickStatsError(Exception):
    """Base class for errors raised by the statistics core."""


class RegistrationError(SidekickStatsError):
    """A collector, metric or endpoint was registered twice.

    Raised while wiring the process together; callers are expected to abort
    startup rather than retry.
    """


class StatusCodeOutOfRange(SidekickStatsError, IndexError):
    """A failure counter was addressed outside the tracked status range."""

    def __init__(self, status_code: int, low: int, high: int) -> None:
        super().__init__(
            f"status code {status_code} outside tracked range [{low}, {high}]"
        )
        self.status_code = status_code


class FailureVectorLengthError(SidekickStatsError, ValueError):
    """A batch of failure counts did not cover every tracked status code."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"failure counts must have {expected} entries (one per status code), got {actual}"
        )
        self.expected = expected
        self.actual = actual
