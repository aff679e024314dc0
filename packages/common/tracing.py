"""Tracing helpers for FastAPI.

Adds a request-level trace middleware that injects/propagates `X-Request-ID`
and a minimal xAPI-like event helper for learning telemetry.
"""

from .config import get_settings
from .logging import configure_logging, get_request_id, now, set_request_id
from fastapi import Request, Response
from typing import Any, Callable, Awaitable, Dict
import json, uuid

logger = configure_logging(get_settings().LOG_LEVEL, get_settings().SERVICE_NAME)


async def trace_middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """ASGI middleware to attach a correlation id and echo it in the response.

    - Reads `X-Request-ID` from the incoming request or generates a UUIDv4.
    - Stores it in a ContextVar so logs include the same id.
    - Sets the same header on the outgoing response.

    Args:
        request: Incoming FastAPI request.
        call_next: The next ASGI callable that returns a `Response`.

    Returns:
        The downstream response with `X-Request-ID` header set.
    """
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    set_request_id(rid)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers["X-Request-ID"] = rid
    return response


def xapi_event(actor_id: str, verb: str, obj: str, **extras: Any) -> Dict[str, Any]:
    """Emit a simplified xAPI-like event and return its payload.

    Args:
        actor_id: Unique id of the actor (e.g., learner id).
        verb: Action performed (e.g., "completed", "attempted").
        obj: Object of the action (e.g., content or quiz id).
        **extras: Additional arbitrary key/value telemetry fields.

    Returns:
        A dictionary containing the event payload; it carries the request
        id when emitted while serving a request.
    """
    event: Dict[str, Any] = {
        "actor": actor_id,
        "verb": verb,
        "object": obj,
        "ts": now(),
        "extras": extras
    }
    rid = get_request_id()
    if rid:
        event["request_id"] = rid
    logger.info(f"EVENT {json.dumps(event, ensure_ascii=False, default=str)}")
    return event
