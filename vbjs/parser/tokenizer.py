"""
Line tokenizer for VBScript.

Classifies each logical source line by its leading keyword into one of the
token kinds in :mod:`vbjs.parser.tokens`. The only look-past-the-keyword
decision is telling a single-line conditional (``if c then stmt``) from a
block-opening one (``if c then`` at end of line).
"""

from __future__ import annotations

import re
from typing import Callable

from ..core.errors import ParseError
from ..core.logging import get_logger
from .lexical import find_keyword, find_matching_paren, split_statements, split_top_level, strip_inline_comment
from .tokens import (
    CommentToken,
    ConditionalPhase,
    ConditionalToken,
    DeclarationToken,
    FunctionEndToken,
    FunctionStartToken,
    LoopPhase,
    LoopTest,
    LoopToken,
    SelectPhase,
    SelectToken,
    StatementToken,
    Token,
    UnitKind,
    VariableDeclaration,
)

logger = get_logger(__name__)

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
_IDENTIFIER_RE = re.compile(rf"^{IDENTIFIER}$")
_DECLARED_NAME_RE = re.compile(rf"^({IDENTIFIER})\s*(?:\((.*)\))?$", re.DOTALL)


def _unwrap(condition: str) -> str:
    """Drop one pair of parentheses enclosing the whole condition."""
    condition = condition.strip()
    if condition.startswith("(") and find_matching_paren(condition, 0) == len(condition) - 1:
        return condition[1:-1].strip()
    return condition


class LineTokenizer:
    """
    Tokenizes VBScript one logical line at a time.

    Patterns are tried in order; the first whose regex matches the stripped
    line (case-insensitively) decides the token kind. Anything unmatched is a
    plain statement.
    """

    # Regex patterns for line classification (order matters)
    PATTERNS = {
        "COMMENT": r"^(?:'|rem(?:\s|$))(?P<comment>.*)$",
        "OPTION": r"^option\s+explicit\b",
        "FUNCTION_START": (
            r"^(?:(?:public|private)\s+)?(?:default\s+)?(?P<kind>function|sub)\s+"
            rf"(?P<name>{IDENTIFIER})\s*(?:\((?P<params>.*)\))?\s*$"
        ),
        "FUNCTION_END": r"^end\s+(?P<kind>function|sub)\s*$",
        "CONST": r"^(?:(?:public|private)\s+)?const\s+(?P<body>.+)$",
        "REDIM": r"^redim\s+(?P<preserve>preserve\s+)?(?P<body>.+)$",
        "DIM": r"^(?:dim|public|private)\s+(?P<body>.+)$",
        "BARE_DIM": r"^(?:dim|redim)\s*$",
        "IF": r"^if(?=[\s(])\s*(?P<condition>.+?)\s*\bthen\b(?P<action>.*)$",
        "ELSE_IF": r"^else\s*if(?=[\s(])\s*(?P<condition>.+?)\s*\bthen\s*$",
        "ELSE": r"^else(?:\s+(?P<action>.+))?$",
        "END_IF": r"^end\s+if\s*$",
        "FOR_EACH": rf"^for\s+each\s+(?P<variable>{IDENTIFIER})\s+in\s+(?P<collection>.+)$",
        "FOR": (
            rf"^for\s+(?P<variable>{IDENTIFIER})\s*=\s*(?P<start>.+?)\s+to\s+(?P<end>.+?)"
            r"(?:\s+step\s+(?P<step>.+))?$"
        ),
        "NEXT": rf"^next(?:\s+{IDENTIFIER})?\s*$",
        "DO": r"^do(?:\s+(?P<test>while|until)(?=[\s(])\s*(?P<condition>.+))?\s*$",
        "LOOP": r"^loop(?:\s+(?P<test>while|until)(?=[\s(])\s*(?P<condition>.+))?\s*$",
        "WHILE": r"^while(?=[\s(])\s*(?P<condition>.+)$",
        "WEND": r"^wend\s*$",
        "SELECT": r"^select\s+case\s+(?P<subject>.+)$",
        "CASE_ELSE": r"^case\s+else\s*$",
        "CASE": r"^case\s+(?P<values>.+)$",
        "END_SELECT": r"^end\s+select\s*$",
        "EXIT": r"^exit\s+(?P<target>function|sub|for|do)\s*$",
    }

    def __init__(self) -> None:
        self._compile_patterns()
        self._handlers: dict[str, Callable[[int, str, re.Match], list[Token]]] = {
            "COMMENT": self._comment,
            "OPTION": self._option,
            "FUNCTION_START": self._function_start,
            "FUNCTION_END": self._function_end,
            "CONST": self._const,
            "REDIM": self._redim,
            "DIM": self._dim,
            "BARE_DIM": self._bare_dim,
            "IF": self._if,
            "ELSE_IF": self._else_if,
            "ELSE": self._else,
            "END_IF": self._end_if,
            "FOR_EACH": self._for_each,
            "FOR": self._for,
            "NEXT": self._loop_end,
            "DO": self._do,
            "LOOP": self._loop_end,
            "WHILE": self._while,
            "WEND": self._loop_end,
            "SELECT": self._select,
            "CASE_ELSE": self._case_else,
            "CASE": self._case,
            "END_SELECT": self._end_select,
            "EXIT": self._exit,
        }

    def _compile_patterns(self) -> None:
        """Compile regex patterns for faster matching."""
        self.compiled_patterns = [
            (name, re.compile(pattern, re.IGNORECASE | re.DOTALL))
            for name, pattern in self.PATTERNS.items()
        ]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tokenize_line(self, line_number: int, text: str) -> list[Token]:
        """
        Tokenize one logical line.

        Args:
            line_number: 1-based number of the (first) physical line
            text: The logical line

        Returns:
            Tokens in source order; empty lines yield a single blank comment

        Raises:
            ParseError: For malformed declarations or function boundaries
        """
        stripped = text.strip()
        if not stripped:
            return [CommentToken(line_number, text, comment="")]

        if re.match(self.PATTERNS["COMMENT"], stripped, re.IGNORECASE):
            return self._classify(line_number, stripped)

        code, comment = strip_inline_comment(stripped)
        tokens: list[Token] = []

        if re.match(r"^if[\s(]", code, re.IGNORECASE) and self._single_line_action(code):
            tokens.extend(self._classify(line_number, code))
        else:
            for part in split_statements(code):
                tokens.extend(self._classify(line_number, part))

        if comment is not None:
            tokens.append(CommentToken(line_number, "'" + comment, comment=comment))

        return tokens

    def tokenize(self, lines) -> list[Token]:
        """Tokenize an iterable of (line_number, text) pairs."""
        tokens: list[Token] = []
        for line_number, text in lines:
            tokens.extend(self.tokenize_line(line_number, text))
        return tokens

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _classify(self, line_number: int, statement: str) -> list[Token]:
        for name, pattern in self.compiled_patterns:
            match = pattern.match(statement)
            if match:
                return self._handlers[name](line_number, statement, match)
        return [StatementToken(line_number, statement, statement=statement)]

    @staticmethod
    def _single_line_action(code: str) -> str:
        """Text after THEN on an IF line, empty for block-opening conditionals."""
        index = find_keyword(code, "then")
        if index < 0:
            return ""
        return code[index + len("then"):].strip()

    def _comment(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [CommentToken(line, text, comment=match.group("comment"))]

    def _option(self, line: int, text: str, match: re.Match) -> list[Token]:
        logger.debug(f"Dropping '{text}' at line {line}")
        return []

    def _function_start(self, line: int, text: str, match: re.Match) -> list[Token]:
        params_text = match.group("params") or ""
        parameters: list[str] = []
        for raw in split_top_level(params_text) if params_text.strip() else []:
            param = re.sub(r"^(?:byval|byref)\s+", "", raw, flags=re.IGNORECASE).strip()
            param = re.sub(r"\(\s*\)$", "", param)
            if not _IDENTIFIER_RE.match(param):
                raise ParseError("Malformed parameter list", line, "function boundary", text)
            parameters.append(param)

        unit_kind = UnitKind(match.group("kind").lower())
        return [
            FunctionStartToken(
                line,
                text,
                name=match.group("name"),
                unit_kind=unit_kind,
                parameters=tuple(parameters),
            )
        ]

    def _function_end(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [FunctionEndToken(line, text, unit_kind=UnitKind(match.group("kind").lower()))]

    def _const(self, line: int, text: str, match: re.Match) -> list[Token]:
        declarations: list[VariableDeclaration] = []
        values: list[str] = []
        for part in split_top_level(match.group("body")):
            name, sep, value = part.partition("=")
            name = name.strip()
            if not sep or not _IDENTIFIER_RE.match(name) or not value.strip():
                raise ParseError("Malformed constant declaration", line, "declaration", text)
            declarations.append(VariableDeclaration(name=name, line=line))
            values.append(value.strip())
        return [
            DeclarationToken(
                line, text, keyword="const", declarations=tuple(declarations), values=tuple(values)
            )
        ]

    def _dim(self, line: int, text: str, match: re.Match) -> list[Token]:
        declarations = self._parse_declared_names(line, text, match.group("body"), literal_bounds=True)
        return [DeclarationToken(line, text, keyword="dim", declarations=declarations)]

    def _redim(self, line: int, text: str, match: re.Match) -> list[Token]:
        declarations = self._parse_declared_names(line, text, match.group("body"), literal_bounds=False)
        if any(not d.dimensions for d in declarations):
            raise ParseError("ReDim without bounds", line, "declaration", text)
        return [
            DeclarationToken(
                line,
                text,
                keyword="redim",
                declarations=declarations,
                preserve=bool(match.group("preserve")),
            )
        ]

    def _bare_dim(self, line: int, text: str, match: re.Match) -> list[Token]:
        raise ParseError("Declaration without a name", line, "declaration", text)

    def _parse_declared_names(
        self, line: int, text: str, body: str, literal_bounds: bool
    ) -> tuple[VariableDeclaration, ...]:
        """
        Parse ``a, b(5), c(2, 3), d()`` into declarations.

        Args:
            literal_bounds: Require integer literal bounds (Dim); ReDim allows
                expressions

        Raises:
            ParseError: On a bad identifier or bound
        """
        declarations: list[VariableDeclaration] = []
        for part in split_top_level(body):
            found = _DECLARED_NAME_RE.match(part)
            if not found or part.count("(") != part.count(")"):
                raise ParseError("Malformed declaration", line, "declaration", text)

            name, bounds_text = found.group(1), found.group(2)
            if bounds_text is None:
                declarations.append(VariableDeclaration(name=name, line=line))
                continue

            bounds = tuple(b for b in split_top_level(bounds_text) if b)
            for bound in bounds:
                if literal_bounds and not (bound.isdigit() or _IDENTIFIER_RE.match(bound)):
                    raise ParseError("Malformed container bound", line, "declaration", text)

            size = int(bounds[0]) if bounds and bounds[0].isdigit() else None
            declarations.append(
                VariableDeclaration(
                    name=name,
                    is_indexed_container=True,
                    container_size=size,
                    dimensions=bounds,
                    line=line,
                )
            )
        return tuple(declarations)

    def _if(self, line: int, text: str, match: re.Match) -> list[Token]:
        then_index = find_keyword(text, "then")
        condition = _unwrap(text[2:then_index] if then_index > 0 else match.group("condition"))
        action = self._single_line_action(text)
        if not action:
            return [ConditionalToken(line, text, phase=ConditionalPhase.BLOCK_START, condition=condition)]

        else_index = find_keyword(action, "else")
        else_action = ""
        if else_index >= 0:
            else_action = action[else_index + len("else"):].strip()
            action = action[:else_index].strip()
        return [
            ConditionalToken(
                line,
                text,
                phase=ConditionalPhase.SINGLE_LINE,
                condition=condition,
                action=action,
                else_action=else_action,
            )
        ]

    def _else_if(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [ConditionalToken(line, text, phase=ConditionalPhase.ELSE_IF, condition=_unwrap(match.group("condition")))]

    def _else(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [ConditionalToken(line, text, phase=ConditionalPhase.ELSE, action=(match.group("action") or "").strip())]

    def _end_if(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [ConditionalToken(line, text, phase=ConditionalPhase.END)]

    def _for_each(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [
            LoopToken(
                line,
                text,
                phase=LoopPhase.EACH_START,
                keyword="for",
                variable=match.group("variable"),
                collection=match.group("collection").strip(),
            )
        ]

    def _for(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [
            LoopToken(
                line,
                text,
                phase=LoopPhase.COUNTED_START,
                keyword="for",
                variable=match.group("variable"),
                start=match.group("start").strip(),
                end=match.group("end").strip(),
                step=(match.group("step") or "").strip(),
            )
        ]

    def _do(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [
            LoopToken(
                line,
                text,
                phase=LoopPhase.CONDITIONAL_START,
                keyword="do",
                test=self._loop_test(match.group("test")),
                condition=_unwrap(match.group("condition") or ""),
            )
        ]

    def _while(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [
            LoopToken(
                line,
                text,
                phase=LoopPhase.CONDITIONAL_START,
                keyword="while",
                test=LoopTest.WHILE,
                condition=_unwrap(match.group("condition")),
            )
        ]

    def _loop_end(self, line: int, text: str, match: re.Match) -> list[Token]:
        keyword = text.split()[0].lower()
        groups = match.groupdict()
        return [
            LoopToken(
                line,
                text,
                phase=LoopPhase.END,
                keyword=keyword,
                test=self._loop_test(groups.get("test")),
                condition=_unwrap(groups.get("condition") or ""),
            )
        ]

    @staticmethod
    def _loop_test(word: str | None) -> LoopTest:
        if not word:
            return LoopTest.NONE
        return LoopTest.WHILE if word.lower() == "while" else LoopTest.UNTIL

    def _select(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [SelectToken(line, text, phase=SelectPhase.START, subject=match.group("subject").strip())]

    def _case_else(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [SelectToken(line, text, phase=SelectPhase.DEFAULT_CLAUSE)]

    def _case(self, line: int, text: str, match: re.Match) -> list[Token]:
        values = tuple(v for v in split_top_level(match.group("values")) if v)
        return [SelectToken(line, text, phase=SelectPhase.CLAUSE, values=values)]

    def _end_select(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [SelectToken(line, text, phase=SelectPhase.END)]

    def _exit(self, line: int, text: str, match: re.Match) -> list[Token]:
        return [StatementToken(line, text, statement=text, exit_target=match.group("target").lower())]
