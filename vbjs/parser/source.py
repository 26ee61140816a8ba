"""
Source program container.

A SourceProgram is the raw legacy script text handed over by the Extractor,
plus its physical line count. It is immutable for the duration of one
transpile call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from .lexical import strip_inline_comment

# A trailing " _" continues the statement on the next physical line
_CONTINUATION = re.compile(r"\s_\s*$")


@dataclass(frozen=True)
class SourceProgram:
    """
    Raw legacy source text.

    Attributes:
        text: The script body exactly as extracted
        line_count: Number of physical lines (computed when not supplied)
        name: Where the text came from, for messages only
    """

    text: str
    line_count: int = field(default=-1)
    name: str = "<source>"

    def __post_init__(self) -> None:
        if self.line_count < 0:
            object.__setattr__(self, "line_count", len(self.text.split("\n")))

    def lines(self) -> Iterator[tuple[int, str]]:
        """Yield (line_number, text) pairs, 1-based, without line endings."""
        for number, line in enumerate(self.text.split("\n"), start=1):
            yield number, line.rstrip("\r")

    def logical_lines(self) -> Iterator[tuple[int, str]]:
        """
        Yield logical lines with continuations joined.

        The joined line keeps the number of its first physical line, so error
        messages point at where the statement starts.
        """
        pending: list[str] = []
        start = 0

        for number, line in self.lines():
            code, _comment = strip_inline_comment(line)
            if _CONTINUATION.search(code):
                if not pending:
                    start = number
                pending.append(_CONTINUATION.sub(" ", code).rstrip())
                continue

            if pending:
                pending.append(line.strip())
                yield start, " ".join(part.strip() for part in pending)
                pending = []
            else:
                yield number, line

        if pending:
            yield start, " ".join(part.strip() for part in pending)
