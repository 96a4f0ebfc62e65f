"""
Logging configuration for taskboard.

Services log with ``extra={"entity": ..., "entity_id": ...}`` (RBAC code adds
``user_id``, ``role_id``, ``scope`` and ``resource_id``). Both formatters carry
those context fields:

    JSON      {"message": "User created id=7", "entity": "User", "entity_id": 7, ...}
    readable  12:00:01 INFO     taskboard.services.user_service: User created id=7 [entity=User entity_id=7]

The format follows the environment (JSON unless DEBUG or TESTING) and can be
forced with ``LOG_FORMAT=json|readable``; the level comes from ``LOG_LEVEL``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Record attributes set through ``extra=`` by the services.
CONTEXT_FIELDS = ("entity", "entity_id", "user_id", "role_id", "scope", "resource_id")

FORMATS = ("json", "readable")


def record_context(record: logging.LogRecord) -> dict:
    """The context fields present on ``record``, in CONTEXT_FIELDS order."""
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, context fields at top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Single-line format for a terminal, context appended as ``[key=value ...]``."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def _level(self, levelname: str) -> str:
        padded = f"{levelname:<8}"
        if not self.color or levelname not in self.COLORS:
            return padded
        return f"{self.COLORS[levelname]}{padded}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{ts} {self._level(record.levelname)} {record.name}: {record.getMessage()}"
        context = record_context(record)
        if context:
            line += " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _format_name(app) -> str:
    forced = os.getenv("LOG_FORMAT", "").strip().lower()
    if forced in FORMATS:
        return forced
    if app.config.get("DEBUG", False) or app.config.get("TESTING", False):
        return "readable"
    return "json"


def configure_logging(app):
    """
    Install a single stderr handler on the root logger.

    LOG_LEVEL defaults to INFO for JSON output and DEBUG for readable output.
    An unknown LOG_LEVEL falls back to INFO.
    """
    fmt = _format_name(app)
    if fmt == "json":
        formatter = JSONFormatter()
    else:
        formatter = ReadableFormatter(color=sys.stderr.isatty())

    level_name = os.getenv("LOG_LEVEL", "INFO" if fmt == "json" else "DEBUG").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level_name, level = "INFO", logging.INFO

    # Tests build several apps; replace rather than stack handlers.
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)
    if not app.config.get("TESTING", False):
        app.logger.info("Logging configured: level=%s format=%s", level_name, fmt)
