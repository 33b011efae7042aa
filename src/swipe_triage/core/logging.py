"""Logging configuration helpers.

Plain mode writes one human readable line per record. Structured mode writes
one JSON object per line, lifting the triage context that callers attach via
``extra=`` (item, action, target status, mail source) into top-level keys.
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any

from .config import LoggingSettings

CONTEXT_FIELDS: tuple[str, ...] = ("item_id", "action", "status", "source")

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class StructuredFormatter(logging.Formatter):
    """Render records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        document: dict[str, Any] = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                document[field] = value
        if record.exc_info:
            document["exc"] = self.formatException(record.exc_info)
        return json.dumps(document, default=str)


def configure_logging(settings: LoggingSettings) -> None:
    """Install a console handler on the root logger per ``settings``."""
    level = settings.level.upper()
    if settings.structured:
        formatter: dict[str, Any] = {"()": StructuredFormatter}
    else:
        formatter = {"format": PLAIN_FORMAT}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                },
            },
            "root": {"handlers": ["console"], "level": level},
        }
    )


__all__ = ["CONTEXT_FIELDS", "StructuredFormatter", "configure_logging"]
