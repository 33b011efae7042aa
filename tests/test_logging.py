"""Tests for logging utilities."""

from __future__ import annotations

import json
import logging
import sys

from swipe_triage.core.config import LoggingSettings
from swipe_triage.core.logging import StructuredFormatter, configure_logging


def _record(message: str, *args: object, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="swipe_triage.triage.dispatcher",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_configure_logging_sets_root_level() -> None:
    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_structured_mode_installs_json_formatter() -> None:
    configure_logging(LoggingSettings(level="warning", structured=True))

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert any(isinstance(handler.formatter, StructuredFormatter) for handler in root.handlers)


def test_structured_formatter_lifts_triage_context() -> None:
    record = _record(
        "Item %s moved to %s", 7, "archived", item_id=7, action="archived", status="archived"
    )

    document = json.loads(StructuredFormatter().format(record))

    assert document["msg"] == "Item 7 moved to archived"
    assert document["level"] == "INFO"
    assert document["logger"] == "swipe_triage.triage.dispatcher"
    assert document["item_id"] == 7
    assert document["action"] == "archived"
    assert document["status"] == "archived"
    assert "source" not in document


def test_structured_formatter_includes_exception_text() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("Sync failed")
        record.exc_info = sys.exc_info()

    document = json.loads(StructuredFormatter().format(record))

    assert "RuntimeError: boom" in document["exc"]
