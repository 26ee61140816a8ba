"""
IR (Intermediate Representation) emission to JavaScript code.

This module converts the IR tuples produced by the expression transformer
into JavaScript expression strings. Every ``apply`` node is resolved here
against the knowledge base: indexed containers become bracket access, known
callables and built-ins stay calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.config import TranspilerSettings
from ..core.diagnostics import DiagnosticKind, Diagnostics
from ..core.errors import UnknownConstructError
from ..parser.tokens import FunctionUnit
from .knowledge import KnowledgeBase

# JavaScript binding strength, weakest to strongest
OR, AND, BIT_XOR, EQUALITY, RELATIONAL, ADDITIVE, MULTIPLICATIVE, POWER, UNARY, POSTFIX, ATOM = range(11)

# VBScript operator -> (JavaScript operator, precedence)
BINARY_OPERATORS = {
    "=": ("===", EQUALITY),
    "<>": ("!==", EQUALITY),
    "is": ("===", EQUALITY),
    "<": ("<", RELATIONAL),
    ">": (">", RELATIONAL),
    "<=": ("<=", RELATIONAL),
    ">=": (">=", RELATIONAL),
    "=<": ("<=", RELATIONAL),
    "=>": (">=", RELATIONAL),
    "and": ("&&", AND),
    "or": ("||", OR),
    "xor": ("^", BIT_XOR),
    "&": ("+", ADDITIVE),
    "+": ("+", ADDITIVE),
    "-": ("-", ADDITIVE),
    "*": ("*", MULTIPLICATIVE),
    "/": ("/", MULTIPLICATIVE),
    "mod": ("%", MULTIPLICATIVE),
    "^": ("**", POWER),
}

# Keyword literals and intrinsic constants
LITERAL_NAMES = {
    "true": "true",
    "false": "false",
    "nothing": "null",
    "null": "null",
    "empty": "undefined",
    "vbcrlf": '"\\r\\n"',
    "vbnewline": '"\\n"',
    "vbcr": '"\\r"',
    "vblf": '"\\n"',
    "vbtab": '"\\t"',
    "vbnullstring": '""',
}

# Calls with no browser counterpart; the whole statement becomes inert
UNKNOWN_FUNCTIONS = frozenset(
    {"createobject", "getobject", "execute", "executeglobal", "eval", "getref", "loadpicture"}
)

Arg = tuple[str, int]


def wrap(arg: Arg, precedence: int) -> str:
    """Parenthesize an emitted operand that binds looser than ``precedence``."""
    text, own = arg
    return f"({text})" if own < precedence else text


def _string_of(arg: Arg) -> str:
    return f"String({arg[0]})"


def _math(function: str) -> Callable[[list[Arg], TranspilerSettings], Arg]:
    return lambda a, s: (f"Math.{function}({a[0][0]})", POSTFIX)


def _string_method(method: str) -> Callable[[list[Arg], TranspilerSettings], Arg]:
    return lambda a, s: (f"{_string_of(a[0])}.{method}()", POSTFIX)


def _mid(a: list[Arg], s: TranspilerSettings) -> Arg:
    start = f"{wrap(a[1], ADDITIVE + 1)} - 1"
    if len(a) == 3:
        return f"{_string_of(a[0])}.substr({start}, {a[2][0]})", POSTFIX
    return f"{_string_of(a[0])}.substr({start})", POSTFIX


def _instr(a: list[Arg], s: TranspilerSettings) -> Arg:
    if len(a) == 2:
        return f"({_string_of(a[0])}.indexOf({a[1][0]}) + 1)", ATOM
    start = f"{wrap(a[0], ADDITIVE + 1)} - 1"
    return f"({_string_of(a[1])}.indexOf({a[2][0]}, {start}) + 1)", ATOM


def _round(a: list[Arg], s: TranspilerSettings) -> Arg:
    if len(a) == 2:
        return f"Number(Number({a[0][0]}).toFixed({a[1][0]}))", POSTFIX
    return f"Math.round({a[0][0]})", POSTFIX


def _split(a: list[Arg], s: TranspilerSettings) -> Arg:
    delimiter = a[1][0] if len(a) > 1 else '" "'
    return f"{_string_of(a[0])}.split({delimiter})", POSTFIX


def _join(a: list[Arg], s: TranspilerSettings) -> Arg:
    delimiter = a[1][0] if len(a) > 1 else '" "'
    return f"{wrap(a[0], POSTFIX)}.join({delimiter})", POSTFIX


def _inputbox(a: list[Arg], s: TranspilerSettings) -> Arg:
    if len(a) >= 3:
        return f"{s.PROMPT_FUNCTION}({a[0][0]}, {a[2][0]})", POSTFIX
    return f"{s.PROMPT_FUNCTION}({a[0][0]})", POSTFIX


# name -> (min args, max args, emitter). max None means unbounded.
BUILTINS: dict[str, tuple[int, Optional[int], Callable[[list[Arg], TranspilerSettings], Arg]]] = {
    "chr": (1, 1, lambda a, s: (f"String.fromCharCode({a[0][0]})", POSTFIX)),
    "asc": (1, 1, lambda a, s: (f"{_string_of(a[0])}.charCodeAt(0)", POSTFIX)),
    "ucase": (1, 1, _string_method("toUpperCase")),
    "lcase": (1, 1, _string_method("toLowerCase")),
    "trim": (1, 1, _string_method("trim")),
    "ltrim": (1, 1, _string_method("trimStart")),
    "rtrim": (1, 1, _string_method("trimEnd")),
    "len": (1, 1, lambda a, s: (f"{_string_of(a[0])}.length", POSTFIX)),
    "strreverse": (1, 1, lambda a, s: (f'{_string_of(a[0])}.split("").reverse().join("")', POSTFIX)),
    "space": (1, 1, lambda a, s: (f'" ".repeat({a[0][0]})', POSTFIX)),
    "hex": (1, 1, lambda a, s: (f"Number({a[0][0]}).toString(16).toUpperCase()", POSTFIX)),
    "mid": (2, 3, _mid),
    "left": (2, 2, lambda a, s: (f"{_string_of(a[0])}.substring(0, {a[1][0]})", POSTFIX)),
    "right": (2, 2, lambda a, s: (f"{_string_of(a[0])}.slice(-{wrap(a[1], UNARY)})", POSTFIX)),
    "instr": (2, 3, _instr),
    "replace": (3, 3, lambda a, s: (f"{_string_of(a[0])}.split({a[1][0]}).join({a[2][0]})", POSTFIX)),
    "split": (1, 2, _split),
    "join": (1, 2, _join),
    "ubound": (1, 2, lambda a, s: (f"({wrap(a[0], POSTFIX)}.length - 1)", ATOM)),
    "lbound": (1, 2, lambda a, s: ("0", ATOM)),
    "array": (0, None, lambda a, s: (f"[{', '.join(t for t, _ in a)}]", ATOM)),
    "cint": (1, 1, lambda a, s: (f"parseInt({a[0][0]}, 10)", POSTFIX)),
    "clng": (1, 1, lambda a, s: (f"parseInt({a[0][0]}, 10)", POSTFIX)),
    "cbyte": (1, 1, lambda a, s: (f"parseInt({a[0][0]}, 10)", POSTFIX)),
    "cdbl": (1, 1, lambda a, s: (f"parseFloat({a[0][0]})", POSTFIX)),
    "csng": (1, 1, lambda a, s: (f"parseFloat({a[0][0]})", POSTFIX)),
    "ccur": (1, 1, lambda a, s: (f"parseFloat({a[0][0]})", POSTFIX)),
    "cstr": (1, 1, lambda a, s: (f"String({a[0][0]})", POSTFIX)),
    "cbool": (1, 1, lambda a, s: (f"Boolean({a[0][0]})", POSTFIX)),
    "int": (1, 1, _math("floor")),
    "fix": (1, 1, _math("trunc")),
    "round": (1, 2, _round),
    "abs": (1, 1, _math("abs")),
    "sqr": (1, 1, _math("sqrt")),
    "sgn": (1, 1, _math("sign")),
    "exp": (1, 1, _math("exp")),
    "log": (1, 1, _math("log")),
    "sin": (1, 1, _math("sin")),
    "cos": (1, 1, _math("cos")),
    "tan": (1, 1, _math("tan")),
    "atn": (1, 1, _math("atan")),
    "rnd": (0, 1, lambda a, s: ("Math.random()", POSTFIX)),
    "isempty": (1, 1, lambda a, s: (f'({wrap(a[0], RELATIONAL)} === undefined || {wrap(a[0], RELATIONAL)} === "")', ATOM)),
    "isnull": (1, 1, lambda a, s: (f"({wrap(a[0], RELATIONAL)} === null)", ATOM)),
    "isnumeric": (1, 1, lambda a, s: (f"!isNaN(parseFloat({a[0][0]}))", UNARY)),
    "isarray": (1, 1, lambda a, s: (f"Array.isArray({a[0][0]})", POSTFIX)),
    "isobject": (1, 1, lambda a, s: (f'(typeof {wrap(a[0], UNARY)} === "object")', ATOM)),
    "msgbox": (1, 3, lambda a, s: (f"{s.ALERT_FUNCTION}({a[0][0]})", POSTFIX)),
    "inputbox": (1, 3, _inputbox),
    "now": (0, 0, lambda a, s: ("new Date()", POSTFIX)),
    "date": (0, 0, lambda a, s: ("new Date().toLocaleDateString()", POSTFIX)),
    "time": (0, 0, lambda a, s: ("new Date().toLocaleTimeString()", POSTFIX)),
}


@dataclass(frozen=True)
class EmitScope:
    """Per-statement emission context."""

    unit: Optional[FunctionUnit] = None
    target: bool = False  # emitting an assignment target


class ExpressionEmitter:
    """
    Emits JavaScript expressions from expression IR.

    The knowledge base decides call-versus-index for ``name(args)``; the
    enclosing unit decides which bare names are locals. Operators are
    parenthesized wherever JavaScript precedence differs from VBScript's.
    """

    def __init__(self, kb: KnowledgeBase, settings: TranspilerSettings, diagnostics: Optional[Diagnostics] = None):
        self.kb = kb
        self.settings = settings
        self.diagnostics = diagnostics
        self._form_names = {name.casefold() for name in settings.FORM_NAMES}

    def emit(self, ir: Any, unit: Optional[FunctionUnit] = None, target: bool = False) -> str:
        """
        Convert an expression IR into JavaScript.

        Args:
            ir: IR tuple from the expression transformer
            unit: Enclosing unit, None at global scope
            target: True when emitting the left side of an assignment

        Returns:
            JavaScript expression string

        Raises:
            UnknownConstructError: For calls with no browser counterpart
        """
        return self._emit(ir, EmitScope(unit=unit, target=target))[0]

    def _emit(self, ir: Any, scope: EmitScope) -> Arg:
        head = ir[0]

        if head == "name":
            return self._emit_name(ir[1], scope)

        if head == "number":
            return ir[1], ATOM

        if head == "hex":
            return f"0x{ir[1].upper()}", ATOM

        if head == "string":
            return self._emit_string(ir[1]), ATOM

        if head == "paren":
            inner, _ = self._emit(ir[1], self._value(scope))
            return f"({inner})", ATOM

        if head == "bin":
            return self._emit_binary(ir, self._value(scope))

        if head == "unary":
            return self._emit_unary(ir, self._value(scope))

        if head == "member":
            return self._emit_member(ir, scope)

        if head == "apply":
            return self._emit_apply(ir, scope, indexed=False)

        raise UnknownConstructError(str(ir))

    @staticmethod
    def _value(scope: EmitScope) -> EmitScope:
        """Operands are always read, even inside an assignment target."""
        return EmitScope(unit=scope.unit, target=False) if scope.target else scope

    # ------------------------------------------------------------------
    # Atoms
    # ------------------------------------------------------------------

    def _emit_name(self, name: str, scope: EmitScope) -> Arg:
        folded = name.casefold()
        unit = scope.unit

        if folded in LITERAL_NAMES:
            return LITERAL_NAMES[folded], ATOM

        if unit is not None and unit.declares(name):
            return name, ATOM

        if self.kb.is_container(name):
            return self.kb.canonical(name), ATOM

        if self.kb.is_callable(name):
            canonical = self.kb.canonical(name)
            own_name = unit is not None and folded == unit.name.casefold()
            if own_name and not scope.target and self.diagnostics is not None:
                # reads the function itself, not the value being built
                self.diagnostics.record(
                    DiagnosticKind.SELF_REFERENCE,
                    f"'{canonical}' read inside its own body refers to the function",
                )
            if scope.target or own_name:
                return canonical, ATOM
            # A bare callable in a value position is a call, never a reference
            return f"{canonical}()", POSTFIX

        if self.kb.is_variable(name):
            return name, ATOM

        if not scope.target and folded in BUILTINS and BUILTINS[folded][0] == 0:
            return BUILTINS[folded][2]([], self.settings)

        if folded in UNKNOWN_FUNCTIONS:
            raise UnknownConstructError(name)

        return name, ATOM

    @staticmethod
    def _emit_string(raw: str) -> str:
        inner = raw[1:-1].replace("\\", "\\\\").replace('""', '\\"')
        return f'"{inner}"'

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _emit_binary(self, ir: tuple, scope: EmitScope) -> Arg:
        _, left, op, right, (space_before, space_after) = ir
        left_arg = self._emit(left, scope)
        right_arg = self._emit(right, scope)

        if op == "\\":
            text = f"Math.floor({wrap(left_arg, MULTIPLICATIVE)} / {wrap(right_arg, MULTIPLICATIVE + 1)})"
            return text, POSTFIX
        if op == "eqv":
            return f"(!{wrap(left_arg, UNARY)} === !{wrap(right_arg, UNARY)})", ATOM
        if op == "imp":
            return f"(!{wrap(left_arg, UNARY)} || {wrap(right_arg, OR + 1)})", ATOM

        js_op, precedence = BINARY_OPERATORS[op]
        if js_op == "**":
            # a unary operand on the left of ** is a syntax error
            left_text = wrap(left_arg, UNARY + 1)
            right_text = wrap(right_arg, POWER)
        else:
            left_text = wrap(left_arg, precedence)
            right_text = wrap(right_arg, precedence + 1)

        before = " " if space_before else ""
        after = " " if space_after else ""
        if not after and js_op[-1] in "+-" and right_text[:1] == js_op[-1]:
            after = " "
        return f"{left_text}{before}{js_op}{after}{right_text}", precedence

    def _emit_unary(self, ir: tuple, scope: EmitScope) -> Arg:
        _, op, operand = ir
        operand_text = wrap(self._emit(operand, scope), UNARY)
        symbol = "!" if op == "not" else op
        if symbol in "+-" and operand_text[:1] == symbol:
            operand_text = f" {operand_text}"
        return f"{symbol}{operand_text}", UNARY

    # ------------------------------------------------------------------
    # Paths, calls and container access
    # ------------------------------------------------------------------

    def _emit_member(self, ir: tuple, scope: EmitScope) -> Arg:
        _, base, name = ir
        if base[0] == "apply":
            # seg(i).member: an indexed element inside a member chain
            base_text, _ = self._emit_apply(base, self._value(scope), indexed=True)
        else:
            base_text = wrap(self._emit(base, self._value(scope)), POSTFIX)
        return f"{base_text}.{name}", POSTFIX

    def _emit_apply(self, ir: tuple, scope: EmitScope, indexed: bool) -> Arg:
        _, base, args = ir
        value_scope = self._value(scope)

        if base[0] == "name":
            name = base[1]
            folded = name.casefold()
            if self.kb.is_container(name):
                return self._index(self.kb.canonical(name), args, value_scope), POSTFIX
            if scope.unit is not None and scope.unit.declares(name):
                return self._call(name, args, value_scope), POSTFIX
            if self.kb.is_callable(name):
                return self._call(self.kb.canonical(name), args, value_scope), POSTFIX
            if folded in BUILTINS:
                return self._builtin(name, args, value_scope)
            if folded in UNKNOWN_FUNCTIONS:
                raise UnknownConstructError(name)
            return self._call(name, args, value_scope), POSTFIX

        if base[0] == "member" and base[1][0] == "name" and base[1][1].casefold() in self._form_names:
            # form.field(i) -> form.elements.field[i]
            root = base[1][1]
            path = f"{root}.{self.settings.ELEMENT_COLLECTION}.{base[2]}"
            return self._index(path, args, value_scope), POSTFIX

        base_text, _ = self._emit(base, value_scope)
        if indexed or self._is_indexed(base):
            return self._index(base_text, args, value_scope), POSTFIX
        return self._call(base_text, args, value_scope), POSTFIX

    def _is_indexed(self, ir: Any) -> bool:
        """True when ir is itself a container access, as in a(1)(2)."""
        return ir[0] == "apply" and ir[1][0] == "name" and self.kb.is_container(ir[1][1])

    def _index(self, base_text: str, args: list, scope: EmitScope) -> str:
        subscripts = "".join(f"[{self._emit(arg, scope)[0]}]" for arg in args)
        return f"{base_text}{subscripts}"

    def _call(self, callee: str, args: list, scope: EmitScope) -> str:
        return f"{callee}({', '.join(self._emit(arg, scope)[0] for arg in args)})"

    def _builtin(self, name: str, args: list, scope: EmitScope) -> Arg:
        minimum, maximum, emit = BUILTINS[name.casefold()]
        if len(args) < minimum or (maximum is not None and len(args) > maximum):
            raise UnknownConstructError(f"{name} with {len(args)} argument(s)")
        return emit([self._emit(arg, scope) for arg in args], self.settings)
