import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "test")
os.environ.setdefault("ENDPOINTS", "http://minio1:9000,http://minio2:9000")

from sidekick.core.config import Settings
from sidekick.main import create_app
from sidekick.metrics.collector import StatsCollector
from sidekick.metrics.exporter import MetricsExporter
from sidekick.metrics.latency import LatencyRecorder
from sidekick.stats.registry import StatsRegistry


@pytest.fixture(scope="function")
def metrics_registry():
    return CollectorRegistry()


@pytest.fixture(scope="function")
def recorder():
    return LatencyRecorder()


@pytest.fixture(scope="function")
def stats(recorder):
    return StatsRegistry.from_endpoints(
        ["http://minio1:9000", "http://minio2:9000"], recorder=recorder
    )


@pytest.fixture(scope="function")
def exporter(metrics_registry, stats, recorder):
    exp = MetricsExporter(metrics_registry, include_default=False)
    exp.register(StatsCollector(stats))
    exp.register(recorder)
    return exp


@pytest.fixture(scope="function")
def client():
    settings = Settings(
        env="test",
        endpoints="http://minio1:9000,http://minio2:9000",
        include_default_metrics=False,
    )
    app = create_app(settings, metrics_registry=CollectorRegistry())
    return TestClient(app)
