"""
Program parser: groups line tokens into function-scoped units.

Function boundaries push and pop a current-unit context. Declarations inside
an open unit are local, everything else is global. An assignment to the
enclosing function's own name is marked as a return assignment.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field

from ..core.errors import ParseError
from ..core.logging import get_logger
from .lexical import find_assignment
from .source import SourceProgram
from .tokenizer import LineTokenizer
from .tokens import (
    DeclarationToken,
    FunctionEndToken,
    FunctionStartToken,
    FunctionUnit,
    StatementToken,
    Token,
    VariableDeclaration,
)

logger = get_logger(__name__)


@dataclass
class ParsedProgram:
    """Result of parsing a SourceProgram."""

    source: SourceProgram
    """The program that was parsed"""

    units: list[FunctionUnit] = field(default_factory=list)
    """Functions and subs in source order"""

    global_declarations: list[VariableDeclaration] = field(default_factory=list)
    """Declarations outside any unit"""

    global_tokens: list[Token] = field(default_factory=list)
    """Tokens outside any unit, in source order"""

    @property
    def unit_names(self) -> list[str]:
        return [unit.name for unit in self.units]


class ProgramParser:
    """
    Builds FunctionUnits and global declarations from a SourceProgram.

    The parser aborts with ParseError rather than guessing when a function
    boundary is unterminated, nested, or closed by the wrong end marker.
    """

    def __init__(self, tokenizer: LineTokenizer | None = None):
        self.tokenizer = tokenizer or LineTokenizer()

    def parse(self, source: SourceProgram) -> ParsedProgram:
        """
        Parse a whole program.

        Args:
            source: Raw legacy source

        Returns:
            ParsedProgram with units, global declarations and global tokens

        Raises:
            ParseError: On malformed declarations or function boundaries
        """
        tokens = self.tokenizer.tokenize(source.logical_lines())
        logger.debug(f"Tokenized {len(tokens)} tokens from {source.line_count} lines")

        program = ParsedProgram(source=source)
        current: FunctionUnit | None = None
        start_text = ""

        for token in tokens:
            if isinstance(token, FunctionStartToken):
                if current is not None:
                    raise ParseError(
                        f"{current.kind.value} '{current.name}' opened at line "
                        f"{current.start_line} is not terminated before the next boundary",
                        current.start_line,
                        "function boundary",
                        start_text,
                    )
                current = FunctionUnit(
                    name=token.name,
                    kind=token.unit_kind,
                    parameters=list(token.parameters),
                    start_line=token.line,
                )
                start_text = token.text
                continue

            if isinstance(token, FunctionEndToken):
                if current is None:
                    raise ParseError("End marker without an open unit", token.line, "function boundary", token.text)
                if token.unit_kind is not current.kind:
                    raise ParseError(
                        f"'end {token.unit_kind.value}' closes {current.kind.value} '{current.name}'",
                        token.line,
                        "function boundary",
                        token.text,
                    )
                current.end_line = token.line
                program.units.append(current)
                logger.debug(f"Parsed {current.kind.value} {current.name} ({current.start_line}-{current.end_line})")
                current = None
                continue

            if current is None:
                program.global_tokens.append(token)
                if isinstance(token, DeclarationToken):
                    self._add_declarations(program.global_declarations, token, ())
                continue

            if isinstance(token, DeclarationToken):
                self._add_declarations(current.local_declarations, token, program.global_declarations)
            elif isinstance(token, StatementToken):
                if is_return_assignment(token, current):
                    token = dataclasses.replace(token, is_return_assignment=True)
                    current.return_assignments.append(token)

            current.body_tokens.append(token)

        if current is not None:
            raise ParseError(
                f"{current.kind.value} '{current.name}' is not terminated before end of input",
                current.start_line,
                "function boundary",
                start_text,
            )

        logger.info(
            f"Parsed {len(program.units)} units and "
            f"{len(program.global_declarations)} global declarations"
        )
        return program

    @staticmethod
    def _add_declarations(target: list[VariableDeclaration], token: DeclarationToken, outer) -> None:
        """ReDim of an already declared name resizes it rather than declaring it."""
        for declaration in token.declarations:
            if token.keyword == "redim":
                folded = declaration.name.casefold()
                known = [d for d in list(target) + list(outer) if d.name.casefold() == folded]
                if known:
                    continue
            target.append(declaration)


def is_return_assignment(token: StatementToken, unit: FunctionUnit | None) -> bool:
    """True for ``name = expr`` inside the value-returning unit called name."""
    if unit is None or not unit.is_value_returning or token.exit_target:
        return False
    statement = re.sub(r"^set\s+", "", token.statement, flags=re.IGNORECASE)
    index = find_assignment(statement)
    if index < 0:
        return False
    return statement[:index].strip().casefold() == unit.name.casefold()


def parse_program(source: SourceProgram | str) -> ParsedProgram:
    """Parse source text or a SourceProgram."""
    if isinstance(source, str):
        source = SourceProgram(source)
    return ProgramParser().parse(source)
