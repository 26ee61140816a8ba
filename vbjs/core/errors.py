"""
Transpiler exceptions.

Only fatal conditions are exceptions. Recoverable issues (unknown constructs,
ambiguities, post-processing fixups) are counted in Diagnostics instead.
"""

from typing import Any, Dict, Optional


class TranspileError(Exception):
    """Base exception for transpiler errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ParseError(TranspileError):
    """Raised when a source construct is malformed beyond recovery"""

    def __init__(self, message: str, line: int, construct: str, source_line: str = ""):
        self.line = line
        self.construct = construct
        self.source_line = source_line
        super().__init__(
            message=f"{message} at line {line} ({construct}): {source_line.strip()!r}",
            details={"line": line, "construct": construct, "source": source_line.strip()}
        )


class ExtractionError(TranspileError):
    """Raised when no legacy script block can be located in a host document"""

    def __init__(self, source_name: str):
        super().__init__(
            message=f"No VBScript block found in {source_name}",
            details={"source": source_name}
        )


class ValidationFailed(TranspileError):
    """Raised when generated code fails the acceptance gate"""

    def __init__(self, problems: list[str]):
        super().__init__(
            message=f"Generated code failed validation ({len(problems)} problem(s))",
            details={"problems": problems}
        )


class UnknownConstructError(TranspileError):
    """
    Raised inside expression emission for a construct with no mapping.

    Never escapes the statement transpiler: it is caught there, counted as an
    unknown construct, and the source text is passed through as an inert
    comment.
    """

    def __init__(self, construct: str):
        self.construct = construct
        super().__init__(
            message=f"No mapping for '{construct}'",
            details={"construct": construct}
        )
