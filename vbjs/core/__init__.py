"""Core utilities package"""

from .config import TranspilerSettings, get_settings
from .logging import setup_logging, get_logger, get_context_logger
from .errors import (
    TranspileError,
    ParseError,
    ExtractionError,
    ValidationFailed,
    UnknownConstructError,
)
from .diagnostics import Diagnostics, DiagnosticKind, DiagnosticMessage

__all__ = [
    "TranspilerSettings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "TranspileError",
    "ParseError",
    "ExtractionError",
    "ValidationFailed",
    "UnknownConstructError",
    "Diagnostics",
    "DiagnosticKind",
    "DiagnosticMessage",
]
