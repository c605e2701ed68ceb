import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
client_ip_ctx: ContextVar[str | None] = ContextVar("client_ip", default=None)
endpoint_ctx: ContextVar[str | None] = ContextVar("endpoint", default=None)


@contextmanager
def endpoint_context(endpoint: str) -> Iterator[None]:
    """Tag every record logged inside the block with a backend endpoint."""
    token = endpoint_ctx.set(endpoint)
    try:
        yield
    finally:
        endpoint_ctx.reset(token)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            "request_id": request_id_ctx.get(),
            "client_ip": client_ip_ctx.get(),
            # an explicit extra={"endpoint": ...} wins over the context
            "endpoint": getattr(record, "endpoint", None) or endpoint_ctx.get(),
        }
        payload.update({key: value for key, value in context.items() if value})
        event = getattr(record, "event", None)
        if event is not None:
            payload["event"] = event
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
