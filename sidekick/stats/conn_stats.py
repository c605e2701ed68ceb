"""Per-backend request statistics.

Every field is written with a single reference store and read with a single
load, so no lock is held on the request path. There is no consistency across
fields: a scrape may see ``total_calls`` from one update and the byte
counters from the next. Min/max latency are the last values handed in, not
running extrema; the proxy is expected to aggregate before calling.
"""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import timedelta
from typing import TYPE_CHECKING

from sidekick.core.errors import (
    FailureVectorLengthError,
    SidekickStatsError,
    StatusCodeOutOfRange,
)
from sidekick.stats.bucket import bucket_from_path

if TYPE_CHECKING:
    from sidekick.metrics.latency import LatencyRecorder

FIRST_ERROR_STATUS = 400
LAST_ERROR_STATUS = 511
ERROR_HTTP_STATUS_CODES = LAST_ERROR_STATUS - FIRST_ERROR_STATUS + 1

_UINT64_MASK = (1 << 64) - 1


def as_uint64(n: int) -> int:
    return int(n) & _UINT64_MASK


def to_nanos(duration: int | timedelta) -> int:
    if isinstance(duration, timedelta):
        return (duration // timedelta(microseconds=1)) * 1000
    return int(duration)


def _slot(status_code: int) -> int:
    if not FIRST_ERROR_STATUS <= status_code <= LAST_ERROR_STATUS:
        raise StatusCodeOutOfRange(status_code, FIRST_ERROR_STATUS, LAST_ERROR_STATUS)
    return status_code - FIRST_ERROR_STATUS


class ConnStats:
    def __init__(self, endpoint: str, recorder: LatencyRecorder | None = None) -> None:
        self._endpoint = endpoint
        self._recorder = recorder
        self._total_input_bytes = 0
        self._total_output_bytes = 0
        self._total_calls = 0
        self._total_failed_calls = [0] * ERROR_HTTP_STATUS_CODES
        self._min_latency = 0
        self._max_latency = 0

    def __repr__(self) -> str:
        return f"ConnStats(endpoint={self._endpoint!r})"

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def set_input_bytes(self, n: int) -> None:
        self._total_input_bytes = as_uint64(n)

    def set_output_bytes(self, n: int) -> None:
        self._total_output_bytes = as_uint64(n)

    def set_total_calls(self, n: int) -> None:
        self._total_calls = as_uint64(n)

    def get_total_input_bytes(self) -> int:
        return self._total_input_bytes

    def get_total_output_bytes(self) -> int:
        return self._total_output_bytes

    def get_total_calls(self) -> int:
        return self._total_calls

    def set_total_call_failures(self, counts: Sequence[int]) -> None:
        """Replace every failure slot from ``counts`` (indexed by status - 400).

        Slots are stored one at a time; a concurrent scrape can observe a
        mix of old and new values.
        """
        if len(counts) != ERROR_HTTP_STATUS_CODES:
            raise FailureVectorLengthError(ERROR_HTTP_STATUS_CODES, len(counts))
        slots = self._total_failed_calls
        for index, value in enumerate(counts):
            slots[index] = as_uint64(value)

    def set_failed_calls(self, status_code: int, n: int) -> None:
        self._total_failed_calls[_slot(status_code)] = as_uint64(n)

    def get_failed_calls(self, status_code: int) -> int:
        return self._total_failed_calls[_slot(status_code)]

    def failed_calls(self) -> Iterator[tuple[int, int]]:
        """Yield ``(status_code, count)`` for every slot with failures."""
        for index, value in enumerate(self._total_failed_calls):
            if value > 0:
                yield FIRST_ERROR_STATUS + index, value

    def set_min_latency(self, duration: int | timedelta) -> None:
        self._min_latency = to_nanos(duration)

    def set_max_latency(self, duration: int | timedelta) -> None:
        self._max_latency = to_nanos(duration)

    def get_min_latency(self) -> int:
        return self._min_latency

    def get_max_latency(self) -> int:
        return self._max_latency

    def set_avg_latency(self, duration: int | timedelta, method: str, path: str) -> None:
        """Feed one request latency into the summary for this endpoint."""
        if self._recorder is None:
            raise SidekickStatsError(f"no latency recorder bound to {self._endpoint!r}")
        self._recorder.observe(self._endpoint, method, bucket_from_path(path), duration)
