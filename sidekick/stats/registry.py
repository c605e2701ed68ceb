from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from sidekick.core.errors import RegistrationError
from sidekick.core.logging import endpoint_context
from sidekick.stats.conn_stats import ConnStats

if TYPE_CHECKING:
    from sidekick.metrics.latency import LatencyRecorder

logger = logging.getLogger("sidekick.stats")


class StatsRegistry:
    """Fixed, ordered set of per-endpoint records.

    Slots are filled once at construction and never replaced; only the
    records they hold are mutated afterwards. A slot may be ``None`` for a
    backend that has no statistics, and exporters skip it.
    """

    def __init__(self, stats: Iterable[ConnStats | None]) -> None:
        self._stats: tuple[ConnStats | None, ...] = tuple(stats)
        self._by_endpoint: dict[str, ConnStats] = {}
        for entry in self._stats:
            if entry is None:
                continue
            if entry.endpoint in self._by_endpoint:
                raise RegistrationError(f"endpoint {entry.endpoint!r} registered twice")
            self._by_endpoint[entry.endpoint] = entry

    @classmethod
    def from_endpoints(
        cls, endpoints: Iterable[str], recorder: LatencyRecorder | None = None
    ) -> "StatsRegistry":
        records = []
        for endpoint in endpoints:
            with endpoint_context(endpoint):
                records.append(ConnStats(endpoint, recorder=recorder))
                logger.debug("connection stats created")
        registry = cls(records)
        logger.info(
            "stats registry initialised",
            extra={"event": {"endpoints": registry.endpoints}},
        )
        return registry

    def __iter__(self) -> Iterator[ConnStats | None]:
        return iter(self._stats)

    def __len__(self) -> int:
        return len(self._stats)

    def __getitem__(self, index: int) -> ConnStats | None:
        return self._stats[index]

    def get(self, endpoint: str) -> ConnStats | None:
        return self._by_endpoint.get(endpoint)

    def live(self) -> Iterator[ConnStats]:
        return (entry for entry in self._stats if entry is not None)

    @property
    def endpoints(self) -> list[str]:
        return [entry.endpoint for entry in self.live()]
