"""vbjs - legacy VBScript to JavaScript transpiler.

Main namespace package:
- vbjs.core: settings, logging, errors and diagnostics
- vbjs.parser: line tokenizer and program parser
- vbjs.translator: knowledge base, transpilation, reconstruction, repair
"""

__version__ = "0.1.0"

from .core import Diagnostics, ExtractionError, ParseError, TranspileError, TranspilerSettings
from .parser import SourceProgram, parse_program
from .translator import (
    Transpiler,
    TranspileResult,
    convert_file,
    extract_vbscript,
    transpile_source,
    validate_javascript,
)

__all__ = [
    "Diagnostics",
    "ExtractionError",
    "ParseError",
    "TranspileError",
    "TranspilerSettings",
    "SourceProgram",
    "parse_program",
    "Transpiler",
    "TranspileResult",
    "convert_file",
    "extract_vbscript",
    "transpile_source",
    "validate_javascript",
]
