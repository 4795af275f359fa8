from __future__ import annotations

import io
import json

from infra.runtime import StructuredLogger, UuidIdGenerator


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_emits_one_json_line_per_event() -> None:
    stream = io.StringIO()
    logger = StructuredLogger(stream=stream)

    logger.info("apply_started", application_id="a1")
    logger.error("apply_run_failed", error="boom")

    lines = _lines(stream)
    assert [(l["level"], l["message"]) for l in lines] == [
        ("info", "apply_started"),
        ("error", "apply_run_failed"),
    ]
    assert lines[0]["fields"] == {"application_id": "a1"}
    assert "ts" in lines[0]


def test_bind_carries_context_into_child_logger_only() -> None:
    stream = io.StringIO()
    root = StructuredLogger(stream=stream)
    child = root.bind(component="session_registry")

    child.warning("session_replaced", application_id="a1")
    root.info("api_started")

    lines = _lines(stream)
    assert lines[0]["fields"] == {"component": "session_registry", "application_id": "a1"}
    assert lines[1]["fields"] == {}


def test_non_json_values_are_stringified() -> None:
    stream = io.StringIO()
    StructuredLogger(stream=stream).info("questions_detected", labels=("a", "b"), at=object())
    assert _lines(stream)[0]["fields"]["labels"] == ["a", "b"]


def test_application_ids_are_uuids() -> None:
    ids = UuidIdGenerator()
    first, second = ids.new_application_id(), ids.new_application_id()
    assert first != second
    assert len(first) == 36 and first.count("-") == 4
