from __future__ import annotations

import json
import logging

import pytest

from DocsToVec.Embedder.cli_errors import CLIValidationError, format_cli_error
from DocsToVec.Embedder.logging import (
    ConsoleFormatter,
    JSONFormatter,
    configure_logging,
    get_logger,
    log_event,
)


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def captured() -> _ListHandler:
    handler = _ListHandler()
    root = logging.getLogger("DocsToVec")
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    yield handler
    root.removeHandler(handler)


def test_get_logger_nests_under_package_root() -> None:
    assert get_logger("pipeline").logger.name == "DocsToVec.pipeline"
    assert get_logger("DocsToVec.batch").logger.name == "DocsToVec.batch"


def test_log_event_fills_stage_from_base_fields(captured: _ListHandler) -> None:
    logger = get_logger("test", base_fields={"stage": "embed", "run": "r1"})

    log_event(logger, "info", "Embedded", processed=3)

    fields = captured.records[-1].extra_fields
    assert fields == {"stage": "embed", "run": "r1", "processed": 3}


def test_log_event_normalises_failures(captured: _ListHandler) -> None:
    logger = get_logger("test")

    log_event(logger, "warning", "Embedding failed", error_code="provider_error", item_id="7")
    log_event(logger, "error", "Run failed")

    first, second = (record.extra_fields for record in captured.records[-2:])
    assert first["error_code"] == "PROVIDER_ERROR"
    assert first["item_id"] == "7"
    assert first["stage"] == "unknown"
    assert second["error_code"] == "UNKNOWN"
    assert second["item_id"] is None


def test_log_event_rejects_unknown_level() -> None:
    with pytest.raises(AttributeError):
        log_event(get_logger("test"), "loud", "nope")


def test_child_and_bind_merge_fields(captured: _ListHandler) -> None:
    parent = get_logger("test", base_fields={"stage": "batch"})
    child = parent.child(file="a.json", ignored=None)
    parent.bind(run="r2")

    child.info("Processing")

    assert captured.records[-1].extra_fields == {"stage": "batch", "file": "a.json"}
    assert parent.base_fields == {"stage": "batch", "run": "r2"}


def test_json_formatter_renders_structured_fields() -> None:
    record = logging.LogRecord("DocsToVec.test", logging.WARNING, __file__, 1, "Skipped %s", ("x",), None)
    record.extra_fields = {"item_id": "x", "error_code": "FIELD_TYPE"}

    payload = json.loads(JSONFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "DocsToVec.test"
    assert payload["message"] == "Skipped x"
    assert payload["item_id"] == "x"
    assert payload["timestamp"].endswith("Z")


def test_console_formatter_appends_key_values() -> None:
    record = logging.LogRecord("DocsToVec.test", logging.INFO, __file__, 1, "Saved", (), None)
    record.extra_fields = {"processed": 5, "total": 10, "skipped": None}

    line = ConsoleFormatter().format(record)

    assert line.endswith("Saved | processed=5 total=10")


def test_configure_logging_replaces_handler() -> None:
    root = configure_logging("debug", "json")
    configure_logging("warning", "console")

    owned = [h for h in root.handlers if getattr(h, "_docstovec_handler", False)]
    assert len(owned) == 1
    assert isinstance(owned[0].formatter, ConsoleFormatter)
    assert root.level == logging.WARNING
    assert root.propagate is False


def test_format_cli_error() -> None:
    error = CLIValidationError(option="--output", message="missing", hint="pass -o")
    assert format_cli_error(error) == "[embed] --output: missing. Hint: pass -o"
    assert format_cli_error(CLIValidationError(option="-i", message="bad", stage="batch")) == "[batch] -i: bad."
