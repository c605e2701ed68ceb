"""Scrape-time rendering of the statistics registry.

The exporter owns a private :class:`CollectorRegistry`. Every provider in it,
including the latency summary and the exporter's own scrape metrics, goes
through :meth:`MetricsExporter.register` and is wrapped so that it can fail
on its own. On each scrape the process-global registry (process, platform
and GC metrics) is rendered first, then each provider family by family.

Rendering continues on error: a provider that raises during ``collect``, or
a family that cannot be formatted, is logged and left out of that scrape.
Everything else is still emitted.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)
from prometheus_client.core import Metric

from sidekick.core.errors import RegistrationError
from sidekick.metrics.collector import SnapshotProvider

logger = logging.getLogger("sidekick.metrics")


class _ContinueOnError:
    """Adapter that keeps whatever a provider yielded before it failed."""

    def __init__(self, provider: SnapshotProvider) -> None:
        self.provider = provider

    def describe(self) -> Iterable[Metric]:
        return self.provider.describe()

    def collect(self) -> Iterable[Metric]:
        families: list[Metric] = []
        try:
            for family in self.provider.collect():
                families.append(family)
        except Exception:
            logger.exception(
                "collector failed during scrape",
                extra={"event": {"provider": type(self.provider).__name__}},
            )
        return families


class _Families:
    """Collector over already-collected families, for rendering one at a time."""

    def __init__(self, *families: Metric) -> None:
        self._families = families

    def collect(self) -> Iterable[Metric]:
        return self._families


class MetricsExporter:
    content_type = CONTENT_TYPE_LATEST

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        namespace: str = "sidekick",
        include_default: bool = True,
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._include_default = include_default
        self._providers: list[_ContinueOnError] = []
        self._scrapes = Counter(
            "scrape_requests_total",
            "Total number of scrapes by HTTP status code",
            labelnames=("code",),
            namespace=namespace,
            registry=None,
        )
        self._in_flight = Gauge(
            "scrape_requests_in_flight",
            "Current number of scrapes being served",
            namespace=namespace,
            registry=None,
        )
        self.register(self._scrapes)
        self.register(self._in_flight)

    def register(self, provider: SnapshotProvider) -> None:
        """Register a describe/collect provider.

        Raises :class:`RegistrationError` when any of its metric names is
        already taken; callers should treat that as a startup failure.
        """
        guarded = _ContinueOnError(provider)
        try:
            self.registry.register(guarded)
        except ValueError as exc:
            raise RegistrationError(
                f"cannot register {type(provider).__name__}: {exc}"
            ) from exc
        self._providers.append(guarded)
        logger.info(
            "collector registered",
            extra={"event": {"provider": type(provider).__name__}},
        )

    def unregister(self, provider: SnapshotProvider) -> None:
        for guarded in self._providers:
            if guarded.provider is provider:
                self.registry.unregister(guarded)
                self._providers.remove(guarded)
                return
        raise KeyError(provider)

    def _render_default(self) -> bytes:
        try:
            return generate_latest(REGISTRY)
        except Exception:
            logger.exception("failed to render default metrics registry")
            return b""

    def _render_provider(self, guarded: _ContinueOnError) -> list[bytes]:
        parts = []
        for family in guarded.collect():
            try:
                parts.append(generate_latest(_Families(family)))
            except Exception:
                logger.exception(
                    "failed to render metric family",
                    extra={
                        "event": {
                            "family": family.name,
                            "provider": type(guarded.provider).__name__,
                        }
                    },
                )
        return parts

    def scrape(self) -> bytes:
        """Render one scrape body."""
        with self._in_flight.track_inprogress():
            parts = []
            if self._include_default:
                parts.append(self._render_default())
            for guarded in list(self._providers):
                parts.extend(self._render_provider(guarded))
        self._scrapes.labels(code="200").inc()
        return b"".join(parts)
