"""JSON logging for the trailhub services.

Every record is one JSON line carrying the service name and, inside a
request, the correlation id that `trace_middleware` binds.
"""

import logging, sys, json, time
from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(rid: str | None) -> None:
    """Bind (or with None, clear) the correlation id of the current request."""
    _request_id.set(rid)


def get_request_id() -> str | None:
    """Return the correlation id bound to the current context, if any."""
    return _request_id.get()


class JSONFormatter(logging.Formatter):
    """Render records as compact JSON lines."""

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": round(record.created, 3),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if self.service:
            line["service"] = self.service
        rid = get_request_id()
        if rid:
            line["request_id"] = rid
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: int | str = "INFO", service: str | None = None) -> logging.Logger:
    """Send root logging to stdout as JSON lines and return the "trailhub" logger.

    Args:
        level: Logging level as int or name.
        service: Service name stamped on every line.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(service))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return logging.getLogger("trailhub")


def now() -> float:
    """Epoch seconds rounded to milliseconds, as used in log and event payloads."""
    return round(time.time(), 3)
