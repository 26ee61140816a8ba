"""
Diagnostics record shared by every transpiler phase.

Recoverable issues never raise; each phase counts them here and appends a
message so the caller can decide whether to trust the output.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DiagnosticKind(str, Enum):
    """Categories of recoverable issues"""

    UNKNOWN_CONSTRUCT = "unknown_construct"
    AMBIGUITY_UNRESOLVED = "ambiguity_unresolved"
    UNMATCHED_BLOCK = "unmatched_block"
    MISPLACED_CLAUSE = "misplaced_clause"
    BRACE_REPAIR = "brace_repair"
    CHAR_CODE_CONVERSION = "char_code_conversion"
    CONTAINER_FIX = "container_fix"
    FALLBACK_REWRITE = "fallback_rewrite"
    SELF_REFERENCE = "self_reference"


# Counter field incremented for each kind
_COUNTERS = {
    DiagnosticKind.UNKNOWN_CONSTRUCT: "unknown_constructs",
    DiagnosticKind.AMBIGUITY_UNRESOLVED: "ambiguities",
    DiagnosticKind.UNMATCHED_BLOCK: "unmatched_blocks",
    DiagnosticKind.MISPLACED_CLAUSE: "unresolved_case_placements",
    DiagnosticKind.BRACE_REPAIR: "brace_repairs",
    DiagnosticKind.CHAR_CODE_CONVERSION: "char_code_conversions",
    DiagnosticKind.CONTAINER_FIX: "container_fixes",
    DiagnosticKind.FALLBACK_REWRITE: "fallback_rewrites",
    DiagnosticKind.SELF_REFERENCE: "self_references",
}


class DiagnosticMessage(BaseModel):
    """A single recorded issue"""

    model_config = ConfigDict(use_enum_values=True)

    kind: DiagnosticKind
    message: str
    line: Optional[int] = Field(default=None, description="Source line, when known")


class Diagnostics(BaseModel):
    """
    Counters and messages for one transpile invocation.

    Counters:
        unknown_constructs: constructs passed through as inert comments
        unresolved_case_placements: clause labels found outside a dispatch block
        brace_repairs: closing braces appended by the post-processor
        char_code_conversions: character-code calls turned into escapes
        ambiguities: names declared both as container and callable
        unmatched_blocks: block openers/closers without a partner
        container_fixes: container accesses corrected after generation
        fallback_rewrites: expressions rewritten by the token-level fallback
        self_references: a function's own name read as a value inside it
    """

    unknown_constructs: int = 0
    unresolved_case_placements: int = 0
    brace_repairs: int = 0
    char_code_conversions: int = 0
    ambiguities: int = 0
    unmatched_blocks: int = 0
    container_fixes: int = 0
    fallback_rewrites: int = 0
    self_references: int = 0
    messages: list[DiagnosticMessage] = Field(default_factory=list)

    def record(
        self,
        kind: DiagnosticKind,
        message: str,
        line: Optional[int] = None,
        count: int = 1,
    ) -> None:
        """Count an issue and keep its message."""
        counter = _COUNTERS[kind]
        setattr(self, counter, getattr(self, counter) + count)
        self.messages.append(DiagnosticMessage(kind=kind, message=message, line=line))

    def messages_of(self, kind: DiagnosticKind) -> list[DiagnosticMessage]:
        return [m for m in self.messages if m.kind == kind.value]

    @property
    def total(self) -> int:
        return sum(getattr(self, name) for name in _COUNTERS.values())

    @property
    def is_clean(self) -> bool:
        """True when nothing was recorded."""
        return self.total == 0 and not self.messages

    def summary(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in _COUNTERS.values()}
