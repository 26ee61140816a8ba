"""
Control-flow reconstruction.

Turns the keyword-delimited blocks of a token stream into brace-structured
JavaScript. A stack of open constructs decides where each closer belongs
and what an ``exit`` leaves; every token kind has exactly one handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from ..core.config import TranspilerSettings
from ..core.diagnostics import DiagnosticKind, Diagnostics
from ..core.logging import get_logger
from ..parser.lexical import split_statements
from ..parser.parser import is_return_assignment
from ..parser.tokenizer import LineTokenizer
from ..parser.tokens import (
    CommentToken,
    ConditionalPhase,
    ConditionalToken,
    DeclarationToken,
    FunctionUnit,
    LoopPhase,
    LoopTest,
    LoopToken,
    SelectPhase,
    SelectToken,
    StatementToken,
    Token,
    TokenKind,
)
from .statements import StatementTranspiler, inert

logger = get_logger(__name__)

_LOOP_KINDS = ("for", "do", "while")
# closing keyword -> construct it closes
_CLOSES = {"next": "for", "loop": "do", "wend": "while"}


@dataclass
class Frame:
    """An open construct on the reconstruction stack."""

    kind: str  # if | for | do | while | select | case
    line: int
    header_index: int = -1
    bottom_tested: bool = False
    label: Optional[str] = None
    fallthrough: bool = False  # case: last line was a fallthrough marker


class ControlFlowReconstructor:
    """
    Depth-stack state machine from line tokens to JavaScript lines.

    Usage:
        reconstructor = ControlFlowReconstructor(statements, settings, diagnostics)
        lines = reconstructor.reconstruct(unit.body_tokens, unit, depth=1)
    """

    def __init__(
        self,
        statements: StatementTranspiler,
        settings: TranspilerSettings,
        diagnostics: Diagnostics,
    ):
        self.statements = statements
        self.settings = settings
        self.diagnostics = diagnostics
        self._tokenizer = LineTokenizer()
        self._label_counter = 0
        self._reset(None, 0)

    def _reset(self, unit: Optional[FunctionUnit], depth: int) -> None:
        self._unit = unit
        self._base_depth = depth
        self._stack: List[Frame] = []
        self._lines: List[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reconstruct(self, tokens: List[Token], unit: Optional[FunctionUnit] = None, depth: int = 0) -> List[str]:
        """
        Reconstruct braces for one unit body (or the global statements).

        Args:
            tokens: Tokens in source order
            unit: Enclosing unit, None for global code
            depth: Indentation depth of the first level

        Returns:
            JavaScript lines, indented. Constructs still open at the end are
            closed and reported as unmatched blocks.
        """
        self._reset(unit, depth)
        for token in tokens:
            self._DISPATCH[token.kind](self, token)

        if self._stack:
            # closers follow the last emitted statement, not trailing blank lines
            while self._lines and not self._lines[-1]:
                self._lines.pop()
        while self._stack:
            frame = self._stack[-1]
            scope = unit.name if unit is not None else "global code"
            self._report(
                DiagnosticKind.UNMATCHED_BLOCK,
                f"'{frame.kind}' opened at line {frame.line} is not closed before the end of {scope}",
                frame.line,
            )
            self._close(frame)

        lines, self._lines = self._lines, []
        return lines

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    @property
    def _depth(self) -> int:
        return self._base_depth + len(self._stack)

    def _emit(self, text: str, depth: Optional[int] = None) -> int:
        depth = self._depth if depth is None else depth
        self._lines.append(f"{self.settings.INDENT * depth}{text}" if text else "")
        if text and self._stack and self._stack[-1].kind == "case":
            self._stack[-1].fallthrough = False
        return len(self._lines) - 1

    def _push(self, kind: str, line: int, header: str, bottom_tested: bool = False) -> None:
        index = self._emit(header)
        self._stack.append(Frame(kind=kind, line=line, header_index=index, bottom_tested=bottom_tested))

    def _report(self, kind: DiagnosticKind, message: str, line: Optional[int]) -> None:
        self.diagnostics.record(kind, message, line)
        logger.warning(f"Line {line}: {message}")

    def _unmatched(self, token: Token, message: str) -> None:
        self._report(DiagnosticKind.UNMATCHED_BLOCK, f"{message} at line {token.line}", token.line)
        self._emit(inert(token.text))

    def _close(self, frame: Frame) -> None:
        """Pop the top frame and emit its closer."""
        self._stack.pop()
        if frame.kind == "case":
            if not frame.fallthrough:
                self._emit("break;", self._depth + 1)
            return
        if frame.kind == "do" and frame.bottom_tested:
            self._emit("} while (true);")
        else:
            self._emit("}")

    def _close_until(self, kind: str, token: Token) -> Optional[Frame]:
        """
        Close frames down to the nearest ``kind`` frame and return it open.

        Frames closed on the way are reported; None when no such frame exists.
        """
        if not any(frame.kind == kind for frame in self._stack):
            return None
        while self._stack[-1].kind != kind:
            inner = self._stack[-1]
            self._report(
                DiagnosticKind.UNMATCHED_BLOCK,
                f"'{inner.kind}' opened at line {inner.line} closed implicitly by line {token.line}",
                inner.line,
            )
            self._close(inner)
        return self._stack[-1]

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _comment(self, token: CommentToken) -> None:
        if not token.comment.strip() and not token.text.strip():
            self._lines.append("")
            return
        self._emit(f"//{token.comment}" if token.comment.startswith(" ") else f"// {token.comment}")
        if self._stack and self._stack[-1].kind == "case" and token.comment.strip().lower() == "fallthrough":
            self._stack[-1].fallthrough = True

    def _declaration(self, token: DeclarationToken) -> None:
        for line in self.statements.transpile_declaration(token, self._unit):
            self._emit(line)

    def _boundary(self, token: Token) -> None:
        self._unmatched(token, "Function boundary inside a unit body")

    def _conditional(self, token: ConditionalToken) -> None:
        phase = token.phase
        if phase is ConditionalPhase.SINGLE_LINE:
            self._emit(self._single_line_if(token))
            return

        if phase is ConditionalPhase.BLOCK_START:
            condition = self.statements.condition(token.condition, self._unit, token.line)
            self._push("if", token.line, f"if ({condition}) {{")
            return

        frame = self._close_until("if", token)
        if frame is None:
            self._unmatched(token, f"'{token.text.strip()}' without an open conditional")
            return

        if phase is ConditionalPhase.ELSE_IF:
            condition = self.statements.condition(token.condition, self._unit, token.line)
            self._emit(f"}} else if ({condition}) {{", self._depth - 1)
        elif phase is ConditionalPhase.ELSE:
            self._emit("} else {", self._depth - 1)
            if token.action:
                for statement in self._inline(token.action, token.line):
                    self._emit(statement)
        else:
            self._close(frame)

    def _loop(self, token: LoopToken) -> None:
        phase = token.phase
        if phase is LoopPhase.COUNTED_START:
            self._push("for", token.line, self._counted_header(token))
        elif phase is LoopPhase.EACH_START:
            collection = self.statements.transpile_expression(token.collection, self._unit, line=token.line)
            self._push("for", token.line, f"for (const {token.variable} of {collection}) {{")
        elif phase is LoopPhase.CONDITIONAL_START:
            if token.test is LoopTest.NONE:
                self._push("do", token.line, "do {", bottom_tested=True)
            else:
                kind = "while" if token.keyword == "while" else "do"
                self._push(kind, token.line, f"while ({self._loop_condition(token)}) {{")
        else:
            self._loop_end(token)

    def _loop_end(self, token: LoopToken) -> None:
        kind = _CLOSES.get(token.keyword, "for")
        frame = self._close_until(kind, token)
        if frame is None:
            self._unmatched(token, f"'{token.keyword}' without an open '{kind}' loop")
            return
        if kind == "do" and frame.bottom_tested:
            self._stack.pop()
            if token.test is LoopTest.NONE:
                self._emit("} while (true);")
            else:
                self._emit(f"}} while ({self._loop_condition(token)});")
            return
        self._close(frame)

    def _loop_condition(self, token: LoopToken) -> str:
        condition = self.statements.condition(token.condition, self._unit, token.line)
        return f"!({condition})" if token.test is LoopTest.UNTIL else condition

    def _counted_header(self, token: LoopToken) -> str:
        compile_ = self.statements.transpile_expression
        variable = token.variable
        start = compile_(token.start, self._unit, line=token.line)
        end = compile_(token.end, self._unit, line=token.line)
        step = token.step.replace(" ", "")

        if step in ("", "1", "+1"):
            return f"for (let {variable} = {start}; {variable} <= {end}; {variable}++) {{"
        if step == "-1":
            return f"for (let {variable} = {start}; {variable} >= {end}; {variable}--) {{"
        if step.startswith("-") and step[1:].replace(".", "", 1).isdigit():
            return f"for (let {variable} = {start}; {variable} >= {end}; {variable} -= {step[1:]}) {{"
        amount = compile_(token.step, self._unit, line=token.line)
        return f"for (let {variable} = {start}; {variable} <= {end}; {variable} += {amount}) {{"

    def _select(self, token: SelectToken) -> None:
        phase = token.phase
        if phase is SelectPhase.START:
            subject = self.statements.transpile_expression(token.subject, self._unit, line=token.line)
            self._push("select", token.line, f"switch ({subject}) {{")
            return

        if self._stack and self._stack[-1].kind == "case":
            self._close(self._stack[-1])
        frame = self._close_until("select", token)
        if frame is None:
            self._report(
                DiagnosticKind.MISPLACED_CLAUSE,
                f"'{token.text.strip()}' outside a select block at line {token.line}",
                token.line,
            )
            self._emit(f"/* misplaced clause: {token.text.strip()} */")
            return

        if phase is SelectPhase.END:
            self._close(frame)
            return

        if phase is SelectPhase.DEFAULT_CLAUSE:
            self._push("case", token.line, "default:")
            return

        labels = [self._case_label(value, token) for value in token.values]
        for label in labels[:-1]:
            self._emit(label)
        self._push("case", token.line, labels[-1] if labels else "default:")

    def _case_label(self, value: str, token: SelectToken) -> str:
        lowered = value.lower()
        if lowered.startswith("is ") or " to " in lowered:
            self._report(
                DiagnosticKind.UNKNOWN_CONSTRUCT,
                f"Range clause '{value}' has no switch equivalent",
                token.line,
            )
            return f"case {inert(value)} undefined:"
        return f"case {self.statements.transpile_expression(value, self._unit, line=token.line)}:"

    def _statement(self, token: StatementToken) -> None:
        if token.exit_target:
            self._emit(self._exit(token.exit_target, token))
        else:
            self._emit(self.statements.transpile_statement(token, self._unit))

    # ------------------------------------------------------------------
    # Exits and single-line conditionals
    # ------------------------------------------------------------------

    def _exit(self, target: str, token: Token) -> str:
        """
        Resolve an exit against the nearest enclosing construct.

        A break that would otherwise only leave a switch or an inner loop
        targets a label on the intended loop instead.
        """
        if target in ("function", "sub"):
            if self._unit is None or self._unit.kind.value != target:
                self._report(
                    DiagnosticKind.UNMATCHED_BLOCK,
                    f"'exit {target}' outside a {target} at line {token.line}",
                    token.line,
                )
                return inert(token.text)
            return "return;"

        wanted = ("for",) if target == "for" else ("do", "while")
        crossed = False
        for frame in reversed(self._stack):
            if frame.kind in wanted:
                if not crossed:
                    return "break;"
                if frame.label is None:
                    self._label_counter += 1
                    frame.label = f"loop_{self._label_counter}"
                    header = self._lines[frame.header_index]
                    stripped = header.lstrip()
                    self._lines[frame.header_index] = f"{header[: len(header) - len(stripped)]}{frame.label}: {stripped}"
                return f"break {frame.label};"
            if frame.kind in _LOOP_KINDS or frame.kind == "select":
                crossed = True

        self._report(
            DiagnosticKind.UNMATCHED_BLOCK,
            f"'exit {target}' outside a {target} loop at line {token.line}",
            token.line,
        )
        return inert(token.text)

    def _single_line_if(self, token: ConditionalToken) -> str:
        condition = self.statements.condition(token.condition, self._unit, token.line)
        text = f"if ({condition}) {{ {' '.join(self._inline(token.action, token.line))} }}"
        if token.else_action:
            text += f" else {{ {' '.join(self._inline(token.else_action, token.line))} }}"
        return text

    def _inline(self, action: str, line: int) -> List[str]:
        """Transpile the statements of a single-line branch."""
        result: List[str] = []
        for part in split_statements(action):
            for token in self._tokenizer.tokenize_line(line, part):
                if isinstance(token, StatementToken):
                    if token.exit_target:
                        result.append(self._exit(token.exit_target, token))
                        continue
                    if is_return_assignment(token, self._unit):
                        token = StatementToken(token.line, token.text, statement=token.statement, is_return_assignment=True)
                    result.append(self.statements.transpile_statement(token, self._unit))
                elif isinstance(token, ConditionalToken) and token.phase is ConditionalPhase.SINGLE_LINE:
                    result.append(self._single_line_if(token))
                elif isinstance(token, CommentToken):
                    continue
                else:
                    self._report(
                        DiagnosticKind.UNKNOWN_CONSTRUCT,
                        f"Block construct '{part}' inside a single-line conditional",
                        line,
                    )
                    result.append(inert(part))
        return result

    _DISPATCH: dict[TokenKind, Callable] = {
        TokenKind.COMMENT: _comment,
        TokenKind.DECLARATION: _declaration,
        TokenKind.FUNCTION_START: _boundary,
        TokenKind.FUNCTION_END: _boundary,
        TokenKind.CONDITIONAL: _conditional,
        TokenKind.LOOP: _loop,
        TokenKind.SELECT_DISPATCH: _select,
        TokenKind.PLAIN_STATEMENT: _statement,
    }


_missing = set(TokenKind) - set(ControlFlowReconstructor._DISPATCH)
if _missing:
    raise TypeError(f"No control-flow handler for {sorted(kind.name for kind in _missing)}")
