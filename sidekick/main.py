import logging
import time
import uuid

from fastapi import FastAPI, Request
from prometheus_client import CollectorRegistry
from starlette.responses import JSONResponse, Response

from sidekick.core.config import Settings, get_settings
from sidekick.core.logging import client_ip_ctx, configure_logging, request_id_ctx
from sidekick.metrics.collector import StatsCollector
from sidekick.metrics.exporter import MetricsExporter
from sidekick.metrics.latency import LatencyRecorder
from sidekick.stats.registry import StatsRegistry


def create_app(
    settings: Settings | None = None,
    metrics_registry: CollectorRegistry | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    recorder = LatencyRecorder(
        namespace=settings.metrics_namespace,
        max_age_seconds=settings.latency_max_age_seconds,
        age_buckets=settings.latency_age_buckets,
    )
    stats = StatsRegistry.from_endpoints(settings.endpoint_list, recorder=recorder)
    exporter = MetricsExporter(
        metrics_registry,
        namespace=settings.metrics_namespace,
        include_default=settings.include_default_metrics,
    )
    exporter.register(StatsCollector(stats, namespace=settings.metrics_namespace))
    exporter.register(recorder)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.stats = stats
    app.state.recorder = recorder
    app.state.exporter = exporter

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        request_id_ctx.set(request_id)
        if request.client:
            client_ip_ctx.set(request.client.host)
        start = time.monotonic()
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        duration_ms = int((time.monotonic() - start) * 1000)
        logging.getLogger("access").info(
            "request",
            extra={
                "event": {
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                }
            },
        )
        return response

    @app.get("/health/live")
    def live():
        return {"status": "ok"}

    @app.get("/health/ready")
    def ready():
        return {"status": "ready", "endpoints": len(stats)}

    @app.get("/metrics")
    def metrics_endpoint():
        return Response(exporter.scrape(), media_type=exporter.content_type)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logging.getLogger("app").exception(
            "Unhandled exception",
            extra={
                "event": {
                    "method": request.method,
                    "path": request.url.path,
                    "request_id": getattr(request.state, "request_id", None),
                }
            },
        )
        message = "Internal server error"
        if settings.env.lower() != "production":
            message = f"{exc.__class__.__name__}: {exc}"
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "internal_server_error",
                    "message": message,
                    "request_id": getattr(request.state, "request_id", None),
                }
            },
        )

    return app


app = create_app()
