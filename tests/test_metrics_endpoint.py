from prometheus_client.parser import text_string_to_metric_families


def test_metrics_endpoint_serves_text_format(client):
    stats = client.app.state.stats
    node = stats.get("http://minio1:9000")
    node.set_total_calls(5)
    node.set_failed_calls(503, 2)
    node.set_avg_latency(3_000_000, "GET", "/photos/2024/cat.png")

    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")

    samples = {
        (s.name, tuple(sorted(s.labels.items()))): s.value
        for family in text_string_to_metric_families(resp.text)
        for s in family.samples
    }
    assert samples[("sidekick_requests_total", (("endpoint", "http://minio1:9000"),))] == 5
    assert samples[
        (
            "sidekick_errors_total",
            (("endpoint", "http://minio1:9000"), ("status_code", "503")),
        )
    ] == 2
    assert samples[
        (
            "sidekick_requests_latency_seconds_count",
            (("bucket", "photos"), ("endpoint", "http://minio1:9000"), ("method", "GET")),
        )
    ] == 1


def test_metrics_endpoint_keeps_idle_endpoints(client):
    resp = client.get("/metrics")
    assert 'sidekick_requests_total{endpoint="http://minio2:9000"} 0.0' in resp.text
    assert "sidekick_errors_total" not in resp.text


def test_ready_reports_configured_endpoints(client):
    resp = client.get("/health/ready")
    assert resp.json() == {"status": "ready", "endpoints": 2}
