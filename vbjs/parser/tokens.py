"""
Line token definitions.

Each logical source line is classified into exactly one of a closed set of
token kinds. Every kind is its own frozen dataclass carrying the fields that
kind needs, so consumers dispatch on ``token.kind`` and read typed fields
instead of re-parsing text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class TokenKind(Enum):
    """The closed set of line token kinds."""

    COMMENT = auto()
    DECLARATION = auto()
    FUNCTION_START = auto()
    FUNCTION_END = auto()
    CONDITIONAL = auto()
    LOOP = auto()
    SELECT_DISPATCH = auto()
    PLAIN_STATEMENT = auto()


class UnitKind(Enum):
    """Callable unit flavours."""

    VALUE_RETURNING = "function"
    ACTION_ONLY = "sub"


class ConditionalPhase(Enum):
    BLOCK_START = auto()
    SINGLE_LINE = auto()
    ELSE_IF = auto()
    ELSE = auto()
    END = auto()


class LoopPhase(Enum):
    COUNTED_START = auto()  # for i = a to b [step s]
    EACH_START = auto()  # for each x in c
    CONDITIONAL_START = auto()  # do [while|until c], while c
    END = auto()  # next, loop [while|until c], wend


class LoopTest(Enum):
    NONE = auto()
    WHILE = auto()
    UNTIL = auto()


class SelectPhase(Enum):
    START = auto()
    CLAUSE = auto()
    DEFAULT_CLAUSE = auto()
    END = auto()


@dataclass(frozen=True)
class VariableDeclaration:
    """
    A declared variable.

    ``container_size`` is the first declared upper bound; VBScript bounds are
    inclusive, so a container of size N holds N + 1 elements.
    """

    name: str
    is_indexed_container: bool = False
    container_size: int | None = None
    dimensions: tuple[str, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class Token:
    """Base for all line tokens."""

    line: int
    text: str

    kind = None  # overridden per subclass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(line={self.line}, {self.text.strip()!r})"


@dataclass(frozen=True, repr=False)
class CommentToken(Token):
    comment: str = ""

    kind = TokenKind.COMMENT


@dataclass(frozen=True, repr=False)
class DeclarationToken(Token):
    keyword: str = "dim"  # dim | redim | const
    declarations: tuple[VariableDeclaration, ...] = ()
    preserve: bool = False
    values: tuple[str, ...] = ()  # const initialisers, parallel to declarations

    kind = TokenKind.DECLARATION


@dataclass(frozen=True, repr=False)
class FunctionStartToken(Token):
    name: str = ""
    unit_kind: UnitKind = UnitKind.ACTION_ONLY
    parameters: tuple[str, ...] = ()

    kind = TokenKind.FUNCTION_START


@dataclass(frozen=True, repr=False)
class FunctionEndToken(Token):
    unit_kind: UnitKind = UnitKind.ACTION_ONLY

    kind = TokenKind.FUNCTION_END


@dataclass(frozen=True, repr=False)
class ConditionalToken(Token):
    phase: ConditionalPhase = ConditionalPhase.BLOCK_START
    condition: str = ""
    action: str = ""
    else_action: str = ""

    kind = TokenKind.CONDITIONAL


@dataclass(frozen=True, repr=False)
class LoopToken(Token):
    phase: LoopPhase = LoopPhase.CONDITIONAL_START
    test: LoopTest = LoopTest.NONE
    condition: str = ""
    variable: str = ""
    start: str = ""
    end: str = ""
    step: str = ""
    collection: str = ""
    keyword: str = ""  # for | do | while | next | loop | wend

    kind = TokenKind.LOOP


@dataclass(frozen=True, repr=False)
class SelectToken(Token):
    phase: SelectPhase = SelectPhase.START
    subject: str = ""
    values: tuple[str, ...] = ()

    kind = TokenKind.SELECT_DISPATCH


@dataclass(frozen=True, repr=False)
class StatementToken(Token):
    statement: str = ""
    exit_target: str | None = None  # function | sub | for | do
    is_return_assignment: bool = False

    kind = TokenKind.PLAIN_STATEMENT


@dataclass
class FunctionUnit:
    """
    A callable unit with everything found between its boundaries.

    Created once by the parser and treated as read-only afterwards.
    """

    name: str
    kind: UnitKind
    parameters: list[str] = field(default_factory=list)
    local_declarations: list[VariableDeclaration] = field(default_factory=list)
    body_tokens: list[Token] = field(default_factory=list)
    return_assignments: list[StatementToken] = field(default_factory=list)
    start_line: int = 0
    end_line: int = 0

    @property
    def is_value_returning(self) -> bool:
        return self.kind is UnitKind.VALUE_RETURNING

    def declares(self, name: str) -> bool:
        """True if name is a parameter or local of this unit (case-insensitive)."""
        folded = name.casefold()
        return any(p.casefold() == folded for p in self.parameters) or any(
            d.name.casefold() == folded for d in self.local_declarations
        )
