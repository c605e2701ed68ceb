"""Pull-based collector for the per-endpoint counters."""
from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from prometheus_client.core import CounterMetricFamily, Metric

from sidekick.stats.registry import StatsRegistry


class SnapshotProvider(Protocol):
    def describe(self) -> Iterable[Metric]: ...
    def collect(self) -> Iterable[Metric]: ...


class StatsCollector:
    """Exports a :class:`StatsRegistry` as Prometheus counters.

    ``describe`` only builds empty families from static names and never
    reads the registry. ``collect`` walks the registry once; each value is an
    independent read, so a scrape is a best-effort snapshot rather than a
    consistent cut across fields.
    """

    def __init__(self, stats: StatsRegistry, namespace: str = "sidekick") -> None:
        self._stats = stats
        self._namespace = namespace

    def _families(self) -> tuple[CounterMetricFamily, ...]:
        ns = self._namespace
        return (
            CounterMetricFamily(
                f"{ns}_requests_total",
                "Total number of calls in current SideKick server instance",
                labels=["endpoint"],
            ),
            CounterMetricFamily(
                f"{ns}_errors_total",
                "Total number of failed calls in current SideKick server instance",
                labels=["endpoint", "status_code"],
            ),
            CounterMetricFamily(
                f"{ns}_rx_bytes_total",
                "Total number of bytes received by current SideKick server instance",
                labels=["endpoint"],
            ),
            CounterMetricFamily(
                f"{ns}_tx_bytes_total",
                "Total number of bytes sent by current SideKick server instance",
                labels=["endpoint"],
            ),
        )

    def describe(self) -> Iterable[Metric]:
        return list(self._families())

    def collect(self) -> Iterable[Metric]:
        calls, errors, rx, tx = self._families()
        for stats in self._stats:
            if stats is None:
                continue
            endpoint = stats.endpoint
            calls.add_metric([endpoint], float(stats.get_total_calls()))
            for status_code, count in stats.failed_calls():
                errors.add_metric([endpoint, str(status_code)], float(count))
            rx.add_metric([endpoint], float(stats.get_total_input_bytes()))
            tx.add_metric([endpoint], float(stats.get_total_output_bytes()))
        return [family for family in (calls, errors, rx, tx) if family.samples]
