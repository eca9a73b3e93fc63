"""Structured logging setup for apichain."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

_ROOT = "apichain"


class _EndpointFilter(logging.Filter):
    """Guarantee every record has an ``endpoint`` attribute.

    Runner log calls pass ``extra={"endpoint": name}``; everything else gets
    ``"-"`` so the human-readable format string never fails.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "endpoint"):
            record.endpoint = "-"
        return True


class _JsonFormatter(logging.Formatter):
    """One-line JSON log formatter.

    Keys: timestamp, level, logger, endpoint, message (and exception when
    the record carries one).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "endpoint": getattr(record, "endpoint", "-"),
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(
    level: int = logging.WARNING,
    *,
    json_format: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure and return the root ``apichain`` logger.

    Calling this again replaces the handler installed by the previous call,
    so repeated CLI invocations in one process do not stack handlers and
    always write to the current ``sys.stderr``.

    Args:
        level: Logging level. Defaults to WARNING so that normal runs only
            show the console report.
        json_format: Emit JSON lines instead of human-readable lines.
        stream: Destination stream. Defaults to ``sys.stderr``.

    Returns:
        The configured ``apichain`` logger.
    """
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)

    for previous in list(logger.handlers):
        logger.removeHandler(previous)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(_EndpointFilter())

    if json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s [%(endpoint)s]: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("engine.runner")`` -> ``apichain.engine.runner``."""
    return logging.getLogger(f"{_ROOT}.{name}")
