"""Request latency summary, labelled by endpoint, method and bucket.

Label values must stay within small sets: endpoints are fixed at startup,
methods are HTTP verbs and the bucket is only the first path segment. Any
other label source (full paths, object keys) would grow the number of
series without bound.

The recorder is a describe/collect provider; it reaches a scrape only once
registered with :class:`sidekick.metrics.exporter.MetricsExporter`.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from prometheus_client.core import Metric
from prometheus_summary import Summary

from sidekick.stats.bucket import bucket_from_path
from sidekick.stats.conn_stats import to_nanos

LATENCY_LABELS = ("endpoint", "method", "bucket")

# (quantile, allowed rank error)
LATENCY_OBJECTIVES = ((0.5, 0.05), (0.9, 0.01), (0.99, 0.001))

_NANOS_PER_SECOND = 1e9


class LatencyRecorder:
    def __init__(
        self,
        namespace: str = "sidekick",
        max_age_seconds: int = 600,
        age_buckets: int = 5,
    ) -> None:
        self._summary = Summary(
            "latency_seconds",
            "HTTP requests latency in current SideKick server instance",
            labelnames=LATENCY_LABELS,
            namespace=namespace,
            subsystem="requests",
            registry=None,
            invariants=LATENCY_OBJECTIVES,
            max_age_seconds=max_age_seconds,
            age_buckets=age_buckets,
        )

    def describe(self) -> Iterable[Metric]:
        return self._summary.describe()

    def collect(self) -> Iterable[Metric]:
        return self._summary.collect()

    def observe(
        self, endpoint: str, method: str, bucket: str, duration: int | timedelta
    ) -> None:
        """Record one request duration (nanoseconds or timedelta), exported in seconds."""
        seconds = to_nanos(duration) / _NANOS_PER_SECOND
        self._summary.labels(endpoint, method, bucket).observe(seconds)

    def observe_request(
        self, endpoint: str, method: str, path: str, duration: int | timedelta
    ) -> None:
        self.observe(endpoint, method, bucket_from_path(path), duration)
