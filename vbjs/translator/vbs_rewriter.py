"""
Pygments-based fallback rewriter for VBScript expressions.

This module provides token-level translation when the Lark expression
grammar rejects an expression. It tokenizes with the Pygments VBScript
lexer, so string literals arrive as whole tokens and are never rewritten,
and applies the same rules as the emitter as token substitutions.
"""

from __future__ import annotations

from typing import List, Optional

from pygments.lexers import get_lexer_by_name
from pygments.token import Token

from ..core.config import TranspilerSettings
from ..core.errors import UnknownConstructError
from ..core.logging import get_logger
from ..parser.lexical import is_balanced
from ..parser.tokens import FunctionUnit
from .expr_emitter import LITERAL_NAMES, UNKNOWN_FUNCTIONS
from .knowledge import KnowledgeBase

logger = get_logger(__name__)

# Built-ins whose JavaScript form is a plain rename of the callee
RENAMED_BUILTINS = {
    "chr": "String.fromCharCode",
    "abs": "Math.abs",
    "sqr": "Math.sqrt",
    "int": "Math.floor",
    "fix": "Math.trunc",
    "round": "Math.round",
    "sgn": "Math.sign",
    "cint": "parseInt",
    "clng": "parseInt",
    "cdbl": "parseFloat",
    "csng": "parseFloat",
    "cstr": "String",
    "cbool": "Boolean",
    "isarray": "Array.isArray",
    "isnumeric": "!isNaN",
}

WORD_OPERATORS = {
    "and": "&&",
    "or": "||",
    "not": "!",
    "mod": "%",
    "xor": "^",
    "is": "===",
    "eqv": "===",
}

SYMBOL_OPERATORS = {
    "<>": "!==",
    "&": "+",
    "^": "**",
    "=": "===",
}


class VBScriptPygmentsRewriter:
    """
    Fallback rewriter using Pygments for conservative token replacement.

    Handles:
    - Comparison and logical operators
    - Concatenation (& -> +)
    - Container access: x(i, j) -> x[i][j]
    - Renamed built-ins and keyword literals
    - Bare callable names -> explicit invocation
    """

    def __init__(self, kb: KnowledgeBase, settings: TranspilerSettings):
        self.kb = kb
        self.settings = settings
        self._lexer = get_lexer_by_name("vbscript")
        self._renames = dict(RENAMED_BUILTINS)
        self._renames["msgbox"] = settings.ALERT_FUNCTION
        self._renames["inputbox"] = settings.PROMPT_FUNCTION

    def rewrite(self, code: str, unit: Optional[FunctionUnit] = None) -> str:
        """
        Rewrite a VBScript expression into JavaScript token by token.

        Args:
            code: Expression text the grammar could not parse
            unit: Enclosing unit, None at global scope

        Returns:
            JavaScript expression text

        Raises:
            UnknownConstructError: For unbalanced text and for constructs
                with no token-level mapping
        """
        if not is_balanced(code):
            raise UnknownConstructError(code.strip())

        tokens = self._merge_strings(list(self._lexer.get_tokens(code)))
        result: List[str] = []
        paren_is_index: List[bool] = []
        i = 0

        while i < len(tokens):
            ttype, text = tokens[i]
            lowered = text.lower()
            following = self._next_significant(tokens, i)

            if ttype in Token.Literal.String and text.startswith('"'):
                inner = text[1:-1].replace("\\", "\\\\").replace('""', '\\"')
                result.append(f'"{inner}"')

            elif ttype in Token.Literal.String and text.startswith("#"):
                result.append(f'new Date("{text[1:-1]}")')

            elif ttype in Token.Literal.Number.Hex:
                result.append("0x" + text[2:].upper())

            elif ttype in Token.Operator.Word:
                if lowered not in WORD_OPERATORS:
                    raise UnknownConstructError(text)
                result.append(WORD_OPERATORS[lowered])

            elif ttype in Token.Operator:
                if text == "\\":
                    raise UnknownConstructError(code.strip())
                # => and =< arrive as two tokens
                if text == "=" and i + 1 < len(tokens) and tokens[i + 1][1] in (">", "<"):
                    result.append(tokens[i + 1][1] + "=")
                    i += 2
                    continue
                result.append(SYMBOL_OPERATORS.get(text, text))

            elif ttype in Token.Punctuation:
                if text == "(":
                    previous = next((r for r in reversed(result) if r.strip()), "")
                    opens_index = previous.endswith("[")
                    paren_is_index.append(opens_index)
                    if not opens_index:
                        result.append("(")
                elif text == ")":
                    result.append("]" if paren_is_index and paren_is_index.pop() else ")")
                elif text == "," and paren_is_index and paren_is_index[-1]:
                    result.append("][")
                else:
                    result.append(text)

            elif ttype in Token.Name or ttype in Token.Keyword:
                result.append(self._rewrite_name(ttype, text, following, unit))

            elif ttype in Token.Error:
                raise UnknownConstructError(text.strip())

            else:
                result.append(text)
            i += 1

        last = next((t for t in reversed(tokens) if t[1].strip()), None)
        if last is not None and last[0] in Token.Operator:
            raise UnknownConstructError(code.strip())

        rewritten = "".join(result).strip()
        logger.debug(f"Fallback rewrite: {code.strip()!r} -> {rewritten!r}")
        return rewritten

    def _rewrite_name(self, ttype, text: str, following: str, unit: Optional[FunctionUnit]) -> str:
        lowered = text.casefold()
        if lowered in LITERAL_NAMES:
            return LITERAL_NAMES[lowered]
        # statement words such as New or Then have no expression form
        if ttype in Token.Keyword:
            raise UnknownConstructError(text)
        if unit is not None and unit.declares(text):
            return text
        if self.kb.is_container(text):
            # the opening parenthesis becomes the bracket
            return self.kb.canonical(text) + ("[" if following == "(" else "")
        if self.kb.is_callable(text):
            canonical = self.kb.canonical(text)
            own_name = unit is not None and lowered == unit.name.casefold()
            return canonical if following == "(" or own_name else f"{canonical}()"
        if lowered in UNKNOWN_FUNCTIONS:
            raise UnknownConstructError(text)
        if following == "(" and lowered in self._renames:
            return self._renames[lowered]
        return text

    @staticmethod
    def _merge_strings(tokens: list) -> list:
        """Join the lexer's string fragments into one token per literal."""
        merged: list = []
        for ttype, text in tokens:
            if merged and ttype in Token.Literal.String.Double and merged[-1][0] in Token.Literal.String.Double:
                merged[-1] = (merged[-1][0], merged[-1][1] + text)
            else:
                merged.append((ttype, text))
        return merged

    @staticmethod
    def _next_significant(tokens: list, index: int) -> str:
        for ttype, text in tokens[index + 1:]:
            if ttype not in Token.Text.Whitespace and text.strip():
                return text
        return ""
