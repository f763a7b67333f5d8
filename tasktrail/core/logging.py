"""Logging configuration and logger factory.

Every module obtains its logger through `get_logger(__name__)`; the process
configures handlers exactly once through `configure_logging()`, normally from
the application factory. Messages use dotted event names followed by
`key=value` context, e.g. ``task.repository.created task_id=3``.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any

from tasktrail.core.config import settings

_ROOT_LOGGER_NAME = "tasktrail"
_TEXT_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Attributes present on every LogRecord; anything else was passed through `extra=`.
_RESERVED_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"},
)


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, _DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_formatter(log_format: str, *, use_utc: bool) -> logging.Formatter:
    formatter: logging.Formatter
    if log_format == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)
    if use_utc:
        formatter.converter = time.gmtime
    return formatter


def configure_logging(
    *,
    level: str | None = None,
    log_format: str | None = None,
    use_utc: bool | None = None,
) -> None:
    """Install a single stderr handler on the `tasktrail` logger tree."""
    resolved_level = (level or settings.log_level).upper()
    formatter = _build_formatter(
        log_format or settings.log_format,
        use_utc=settings.log_use_utc if use_utc is None else use_utc,
    )

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(resolved_level)
    # Remove any pre-existing handlers to avoid duplicates on re-configuration.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.propagate = False

    logging.captureWarnings(True)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger nested under the `tasktrail` logger tree."""
    if name == _ROOT_LOGGER_NAME or name.startswith(f"{_ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
