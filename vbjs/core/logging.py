"""
Logging setup for the transpiler.

Every module logs through ``get_logger(__name__)``; only the command line
entry point installs handlers. Records may carry structured context (the
source name, a line number, diagnostic counters) in ``extra_data``, which
both formatters render.
"""

import sys
import logging
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import json
from pathlib import Path

from .config import TranspilerSettings, get_settings

# Loggers of this package share one namespace
ROOT_LOGGER = "vbjs"


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return dict(getattr(record, "extra_data", None) or {})


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, context fields merged in"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Short human-readable lines; context is appended as key=value pairs"""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _context(record)
        if context:
            text += " [" + ", ".join(f"{key}={value}" for key, value in context.items()) + "]"
        return text


def setup_logging(settings: Optional[TranspilerSettings] = None) -> None:
    """
    Install handlers on the package logger.

    Generated code may be written to stdout, so the console handler writes
    to stderr. Calling this again replaces the previous handlers.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    formatter: logging.Formatter = StructuredFormatter() if settings.LOG_FORMAT == "json" else TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    package_logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger carrying fixed context, merged with per-call ``extra_data``"""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra_data = kwargs.pop("extra_data", {})
        kwargs.setdefault("extra", {})["extra_data"] = {**self.extra, **extra_data}
        return msg, kwargs


def get_context_logger(name: str, **context) -> LoggerAdapter:
    """Get a logger that tags every record with context (e.g. source=...)"""
    return LoggerAdapter(get_logger(name), context)
