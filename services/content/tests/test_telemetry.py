"""Tests for request correlation in logs and learning events."""

import json
import logging

from packages.common.logging import JSONFormatter, get_request_id, set_request_id
from packages.common.tracing import xapi_event


def _record(msg: str) -> logging.LogRecord:
    return logging.LogRecord("trailhub.test", logging.INFO, __file__, 1, msg, None, None)


def test_events_carry_the_request_id() -> None:
    set_request_id("req-42")
    try:
        event = xapi_event("ana", "completed", "c1", source="manual")
    finally:
        set_request_id(None)
    assert event["request_id"] == "req-42"
    assert event["extras"] == {"source": "manual"}
    assert get_request_id() is None


def test_events_outside_a_request_have_no_request_id() -> None:
    assert "request_id" not in xapi_event("ana", "attempted", "quiz-1")


def test_log_lines_are_json_with_service_and_request_id() -> None:
    fmt = JSONFormatter(service="trailhub")
    set_request_id("req-7")
    try:
        line = json.loads(fmt.format(_record("graded")))
    finally:
        set_request_id(None)
    assert line["msg"] == "graded"
    assert line["service"] == "trailhub"
    assert line["request_id"] == "req-7"
    assert "request_id" not in json.loads(fmt.format(_record("idle")))
