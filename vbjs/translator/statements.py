"""
Statement and expression transpilation.

Expressions go through the Lark grammar, the IR transformer and the
emitter; when the grammar rejects one, the Pygments rewriter takes over and
the fallback is counted. Statements are split at their first top-level
``=`` so the assignment stays an assignment while every ``=`` inside an
expression becomes strict equality.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import Iterable, Optional

from lark import Lark
from lark.exceptions import LarkError

from ..core.config import TranspilerSettings
from ..core.diagnostics import DiagnosticKind, Diagnostics
from ..core.errors import UnknownConstructError
from ..core.logging import get_logger
from ..parser.lexical import find_assignment
from ..parser.tokens import DeclarationToken, FunctionUnit, StatementToken, VariableDeclaration
from .expr_grammar import get_expression_grammar
from .expr_transformer import create_expression_transformer
from .expr_emitter import ExpressionEmitter
from .knowledge import KnowledgeBase
from .vbs_rewriter import VBScriptPygmentsRewriter

logger = get_logger(__name__)

_CALL_STATEMENT = re.compile(r"^call\s+(?P<target>.+)$", re.IGNORECASE | re.DOTALL)
_SET_PREFIX = re.compile(r"^set\s+", re.IGNORECASE)
_PATH = r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*"
_BARE_PATH = re.compile(rf"^{_PATH}$")
_PARENLESS_CALL = re.compile(rf"^(?P<callee>{_PATH})\s+(?P<args>[^=].*)$", re.DOTALL)
_SIMPLE_OPERAND = re.compile(r"^[\w.]+$")

# Statements with no browser counterpart
_UNKNOWN_STATEMENT = re.compile(
    r"^(?:on\s+error\b|with\b|end\s+with\b|class\b|end\s+class\b|"
    r"(?:(?:public|private)\s+)?property\b|end\s+property\b|erase\b|randomize\b|"
    r"execute(?:global)?\b|stop\b)",
    re.IGNORECASE,
)


class ExpressionContext(Enum):
    """Whether a top-level '=' assigns or compares."""

    ASSIGNMENT = "assignment"
    COMPARISON = "comparison"


@lru_cache()
def get_expression_parser() -> Lark:
    """Build the LALR expression parser once per process."""
    return Lark(get_expression_grammar(), start="start", parser="lalr", maybe_placeholders=True)


def inert(text: str) -> str:
    """Wrap source text in a comment that cannot terminate early."""
    return "/* unknown: " + text.strip().replace("*/", "* /") + " */"


class StatementTranspiler:
    """
    Rewrites VBScript statements and expressions into JavaScript.

    One instance serves a whole transpile run: it holds the knowledge base,
    the settings and the run's Diagnostics, none of which change while it is
    in use.
    """

    def __init__(
        self,
        kb: KnowledgeBase,
        settings: TranspilerSettings,
        diagnostics: Diagnostics,
        global_declarations: Iterable[VariableDeclaration] = (),
    ):
        self.kb = kb
        self.settings = settings
        self.diagnostics = diagnostics
        self.global_declarations = list(global_declarations)
        self._parser = get_expression_parser()
        self._emitter = ExpressionEmitter(kb, settings, diagnostics)
        self._rewriter = VBScriptPygmentsRewriter(kb, settings)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def transpile_expression(
        self,
        text: str,
        unit: Optional[FunctionUnit] = None,
        context: ExpressionContext = ExpressionContext.COMPARISON,
        line: Optional[int] = None,
    ) -> str:
        """
        Transpile an expression, or an assignment in assignment context.

        Args:
            text: VBScript source text
            unit: Enclosing unit, None at global scope
            context: ASSIGNMENT keeps the first top-level '=' as assignment
            line: Source line for diagnostics

        Returns:
            JavaScript text without a trailing semicolon. Unknown constructs
            come back as an inert comment (followed by ``undefined`` in
            comparison context so the surrounding code stays valid).
        """
        try:
            if context is ExpressionContext.ASSIGNMENT:
                index = find_assignment(text)
                if index >= 0:
                    return self._assignment(text, index, unit, line)
            return self._compile(text, unit, line)
        except UnknownConstructError as exc:
            self._unknown(text, exc, line)
            if context is ExpressionContext.ASSIGNMENT:
                return inert(text)
            return inert(text) + " undefined"

    def condition(self, text: str, unit: Optional[FunctionUnit], line: Optional[int] = None) -> str:
        """Transpile a condition (comparison context)."""
        return self.transpile_expression(text, unit, ExpressionContext.COMPARISON, line)

    def _compile(self, text: str, unit: Optional[FunctionUnit], line: Optional[int], target: bool = False) -> str:
        stripped = text.strip()
        try:
            tree = self._parser.parse(stripped)
        except LarkError:
            rewritten = self._rewriter.rewrite(stripped, unit)
            self.diagnostics.record(
                DiagnosticKind.FALLBACK_REWRITE,
                f"Expression rewritten token by token: {stripped!r}",
                line,
            )
            logger.warning(f"Line {line}: grammar rejected {stripped!r}, used token rewrite")
            return rewritten
        ir = create_expression_transformer(stripped).transform(tree)
        return self._emitter.emit(ir, unit, target=target)

    def _assignment(self, text: str, index: int, unit: Optional[FunctionUnit], line: Optional[int]) -> str:
        lhs_raw, rhs_raw = text[:index], text[index + 1:]
        lhs = self._compile(lhs_raw, unit, line, target=True)
        rhs = self._compile(rhs_raw, unit, line)
        # keep the source's spacing around '='
        before = lhs_raw[len(lhs_raw.rstrip()):]
        after = rhs_raw[: len(rhs_raw) - len(rhs_raw.lstrip())]
        return f"{lhs}{before}={after}{rhs}"

    def _unknown(self, text: str, exc: UnknownConstructError, line: Optional[int]) -> None:
        self.diagnostics.record(
            DiagnosticKind.UNKNOWN_CONSTRUCT,
            f"Passed through '{text.strip()}' ({exc.construct})",
            line,
        )
        logger.warning(f"Line {line}: unknown construct {exc.construct!r} in {text.strip()!r}")

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def transpile_statement(self, token: StatementToken, unit: Optional[FunctionUnit]) -> str:
        """
        Transpile a plain statement to one line of JavaScript.

        Exits are resolved by the control-flow reconstructor, which knows the
        enclosing constructs; everything else is handled here.

        Args:
            token: The statement token
            unit: Enclosing unit, None at global scope

        Returns:
            One JavaScript statement, or an inert comment
        """
        statement = token.statement.strip()
        line = token.line

        if _UNKNOWN_STATEMENT.match(statement):
            self._unknown(statement, UnknownConstructError(statement.split()[0]), line)
            return inert(statement)

        statement = _SET_PREFIX.sub("", statement)

        if token.is_return_assignment:
            index = find_assignment(statement)
            value = self.transpile_expression(statement[index + 1:], unit, ExpressionContext.COMPARISON, line)
            return f"return {value};"

        try:
            index = find_assignment(statement)
            if index >= 0:
                return self._assignment(statement, index, unit, line) + ";"
            return self._call_statement(statement, unit, line) + ";"
        except UnknownConstructError as exc:
            self._unknown(statement, exc, line)
            return inert(token.statement)

    def _call_statement(self, statement: str, unit: Optional[FunctionUnit], line: int) -> str:
        """call f(a), f a, b, f, and f(a) as statements."""
        call = _CALL_STATEMENT.match(statement)
        if call:
            statement = call.group("target").strip()

        if _BARE_PATH.match(statement):
            return self._compile(f"{statement}()", unit, line)

        parenless = _PARENLESS_CALL.match(statement)
        if parenless and not call:
            return self._compile(f"{parenless.group('callee')}({parenless.group('args')})", unit, line)

        return self._compile(statement, unit, line)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def transpile_declaration(self, token: DeclarationToken, unit: Optional[FunctionUnit]) -> list[str]:
        """
        Transpile dim, redim and const to JavaScript declarations.

        VBScript bounds are inclusive, so ``dim a(5)`` allocates six elements.

        Returns:
            One line per declared name
        """
        if token.keyword == "const":
            return [
                f"const {decl.name} = {self.transpile_expression(value, unit, line=token.line)};"
                for decl, value in zip(token.declarations, token.values)
            ]

        lines = []
        for decl in token.declarations:
            name = self.kb.canonical(decl.name) if decl.is_indexed_container else decl.name
            if token.keyword == "redim":
                lines.append(self._redim(token, decl, name, unit))
            elif not decl.is_indexed_container:
                lines.append(f"let {name};")
            elif not decl.dimensions:
                lines.append(f"{self.settings.CONTAINER_KEYWORD} {name} = [];")
            else:
                allocation = self._allocation(decl.dimensions, unit, token.line)
                lines.append(f"{self.settings.CONTAINER_KEYWORD} {name} = {allocation};")
        return lines

    def _redim(self, token: DeclarationToken, decl: VariableDeclaration, name: str, unit: Optional[FunctionUnit]) -> str:
        if token.preserve and len(decl.dimensions) == 1:
            return f"{name}.length = {self._length(decl.dimensions[0], unit, token.line)};"
        allocation = self._allocation(decl.dimensions, unit, token.line)
        if self._introduced_by(token, decl, unit):
            return f"{self.settings.CONTAINER_KEYWORD} {name} = {allocation};"
        return f"{name} = {allocation};"

    def _introduced_by(self, token: DeclarationToken, decl: VariableDeclaration, unit: Optional[FunctionUnit]) -> bool:
        """True when this redim is the first declaration of the name."""
        scope = unit.local_declarations if unit is not None else self.global_declarations
        folded = decl.name.casefold()
        return any(d.name.casefold() == folded and d.line == token.line for d in scope)

    def _allocation(self, dimensions: tuple[str, ...], unit: Optional[FunctionUnit], line: int) -> str:
        lengths = [self._length(bound, unit, line) for bound in dimensions]
        allocation = f"new Array({lengths[-1]})"
        for length in reversed(lengths[:-1]):
            allocation = f"Array.from({{ length: {length} }}, () => {allocation})"
        return allocation

    def _length(self, bound: str, unit: Optional[FunctionUnit], line: int) -> str:
        if bound.isdigit():
            return str(int(bound) + 1)
        compiled = self.transpile_expression(bound, unit, line=line)
        if not _SIMPLE_OPERAND.match(compiled):
            compiled = f"({compiled})"
        return f"{compiled} + 1"
