"""Logging setup for the weather CLI and the proxy endpoint."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any, TextIO

from .redaction import sanitize_for_logging, sanitize_text

ROOT_LOGGER_NAME = "city_weather"

# Attributes every LogRecord carries; anything else arrived via ``extra=``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonConsoleFormatter(logging.Formatter):
    """One JSON object per line; message, traceback and extras are redacted."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        extras = {
            key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS
        }
        if extras:
            event["context"] = sanitize_for_logging(extras)
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str, ensure_ascii=False)


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: int = logging.INFO,
    *,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure ``name`` for JSON console output.

    A child such as ``city_weather.proxy`` reuses the package logger's handler
    when that one is already configured, so records are never printed twice.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name != ROOT_LOGGER_NAME and name.startswith(f"{ROOT_LOGGER_NAME}."):
        if logging.getLogger(ROOT_LOGGER_NAME).handlers:
            logger.propagate = True
            return logger

    logger.propagate = False
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonConsoleFormatter())
    logger.addHandler(handler)
    return logger
