"""
Structural checks on generated JavaScript.

Not a JavaScript parser: it confirms that brackets balance and that no
VBScript keyword survived into code positions. Strings and comments are
skipped, so inert pass-through comments never count as residue.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field
from pygments.lexers import JavascriptLexer
from pygments.token import Token

from ..core.logging import get_logger

logger = get_logger(__name__)

PAIRS = {")": "(", "]": "[", "}": "{"}

# VBScript words that have no business in JavaScript code
RESIDUAL_KEYWORDS = frozenset({
    "then", "wend", "dim", "redim", "elseif", "endif", "sub", "next",
    "loop", "until", "and", "or", "not", "mod", "xor", "eqv", "imp",
})


class ValidationReport(BaseModel):
    """Outcome of validate_javascript"""

    valid: bool = Field(..., description="True when no problem was found")
    problems: List[str] = Field(default_factory=list, description="Bracket problems")
    residual_keywords: List[str] = Field(
        default_factory=list, description="VBScript keywords found in code, with line numbers"
    )


def validate_javascript(code: str) -> ValidationReport:
    """
    Check generated code for bracket balance and VBScript residue.

    Args:
        code: JavaScript text

    Returns:
        ValidationReport
    """
    problems: List[str] = []
    residue: List[str] = []
    stack: List[tuple[str, int]] = []
    previous = ""

    for pos, ttype, value in JavascriptLexer().get_tokens_unprocessed(code):
        if ttype in Token.Comment or ttype in Token.Literal.String:
            continue
        line = code.count("\n", 0, pos) + 1
        if ttype in Token.Punctuation or ttype in Token.Operator:
            for char in value:
                if char in "([{":
                    stack.append((char, line))
                elif char in PAIRS:
                    if not stack:
                        problems.append(f"line {line}: unmatched '{char}'")
                    elif stack[-1][0] != PAIRS[char]:
                        opener, opened = stack.pop()
                        problems.append(f"line {line}: '{char}' closes '{opener}' from line {opened}")
                    else:
                        stack.pop()
        elif ttype in Token.Name or ttype in Token.Keyword:
            if value.lower() in RESIDUAL_KEYWORDS:
                residue.append(f"line {line}: {value}")
        if value.strip():
            if previous == "<" and value.startswith(">"):
                residue.append(f"line {line}: <>")
            previous = value

    for opener, opened in stack:
        problems.append(f"line {opened}: unclosed '{opener}'")

    report = ValidationReport(valid=not problems and not residue, problems=problems, residual_keywords=residue)
    if not report.valid:
        logger.warning(f"Validation found {len(problems)} bracket problem(s) and {len(residue)} residual keyword(s)")
    return report
