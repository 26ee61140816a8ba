"""
Post-processing of generated JavaScript.

A second, independent pass over already generated text. Each step re-lexes
the text with the Pygments JavaScript lexer so string literals and comments
are never rewritten, and every step is a fixed point on its own output.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterator, List, Optional

from pygments.lexers import JavascriptLexer
from pygments.token import Token

from ..core.diagnostics import DiagnosticKind, Diagnostics
from ..core.logging import get_logger
from .knowledge import KnowledgeBase

if TYPE_CHECKING:
    from .transpiler import GeneratedUnit

logger = get_logger(__name__)

# Character codes with a readable escape
CHAR_ESCAPES = {
    0: "\\0",
    9: "\\t",
    10: "\\n",
    13: "\\r",
    34: '\\"',
    39: "\\'",
    92: "\\\\",
}

_FROM_CHAR_CODE = re.compile(r"\bString\.fromCharCode\(\s*(\d+)\s*\)")
_STRAY_CHR = re.compile(r"(?<![\w.])chr\(\s*(\d+)\s*\)", re.IGNORECASE)
MISPLACED_MARKER = "/* misplaced clause */ // "


class PostProcessor:
    """
    Repairs and tidies generated JavaScript.

    Steps, in order:
    - literal humanization (String.fromCharCode(10) -> "\\n")
    - container correction (x(i) -> x[i] for every known container)
    - misplaced-clause detection (case/default outside its switch)
    - brace-balance repair (append-only)
    - formatting cleanup
    """

    def __init__(self, kb: KnowledgeBase):
        self.kb = kb
        self._lexer = JavascriptLexer()

    def process(self, text: str, diagnostics: Diagnostics, name: Optional[str] = None) -> str:
        """
        Run every step over text.

        Args:
            text: Generated JavaScript
            diagnostics: Where fixups are counted
            name: Unit name for messages

        Returns:
            Processed text; processing it again returns it unchanged
        """
        text = self.humanize_literals(text, diagnostics)
        text = self.correct_containers(text, diagnostics)
        text = self.comment_misplaced_clauses(text, diagnostics)
        text = self.repair_braces(text, diagnostics, name)
        return self.cleanup(text)

    def process_unit(self, unit: "GeneratedUnit", diagnostics: Diagnostics) -> None:
        """Process a generated unit in place."""
        text = self.process("\n".join(unit.lines), diagnostics, unit.name)
        unit.lines = text.rstrip("\n").split("\n")

    # ------------------------------------------------------------------
    # Lexing helpers
    # ------------------------------------------------------------------

    def _tokens(self, text: str) -> List[tuple[int, object, str]]:
        return list(self._lexer.get_tokens_unprocessed(text))

    @staticmethod
    def _is_inert(ttype) -> bool:
        return ttype in Token.Comment or ttype in Token.Literal.String

    def _segments(self, text: str) -> Iterator[tuple[bool, str]]:
        """Yield (is_code, chunk) runs; strings and comments are not code."""
        run: List[str] = []
        run_is_code = True
        for _pos, ttype, value in self._tokens(text):
            is_code = not self._is_inert(ttype)
            if is_code != run_is_code and run:
                yield run_is_code, "".join(run)
                run = []
            run_is_code = is_code
            run.append(value)
        if run:
            yield run_is_code, "".join(run)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def humanize_literals(self, text: str, diagnostics: Diagnostics) -> str:
        """Replace small known character codes with escaped literals."""
        converted = 0

        def known(match: re.Match) -> str:
            nonlocal converted
            code = int(match.group(1))
            if code not in CHAR_ESCAPES:
                return match.group(0)
            converted += 1
            return f'"{CHAR_ESCAPES[code]}"'

        def stray(match: re.Match) -> str:
            return f"String.fromCharCode({match.group(1)})"

        parts = []
        for is_code, chunk in self._segments(text):
            if is_code:
                chunk = _FROM_CHAR_CODE.sub(known, _STRAY_CHR.sub(stray, chunk))
            parts.append(chunk)

        if converted:
            diagnostics.record(
                DiagnosticKind.CHAR_CODE_CONVERSION,
                f"Replaced {converted} character-code call(s) with escapes",
                count=converted,
            )
        return "".join(parts)

    def correct_containers(self, text: str, diagnostics: Diagnostics) -> str:
        """Turn any remaining call-style access to a container into brackets."""
        tokens = self._tokens(text)
        values = [value for _pos, _ttype, value in tokens]
        # one entry per open parenthesis: True when it became a bracket
        stack: List[bool] = []
        fixed = 0

        for index, (_pos, ttype, value) in enumerate(tokens):
            if self._is_inert(ttype):
                continue
            if value == "(":
                opens_index = self._is_container_call(tokens, index)
                stack.append(opens_index)
                if opens_index:
                    values[index] = "["
                    fixed += 1
            elif value == ")" and stack:
                if stack.pop():
                    values[index] = "]"
            elif value == "," and stack and stack[-1]:
                values[index] = "]["
                if index + 1 < len(tokens) and not tokens[index + 1][2].strip():
                    values[index + 1] = ""

        if fixed:
            diagnostics.record(
                DiagnosticKind.CONTAINER_FIX,
                f"Rewrote {fixed} call-style container access(es) to brackets",
                count=fixed,
            )
        return "".join(values)

    def _is_container_call(self, tokens, index: int) -> bool:
        """True when the '(' at index follows a container name used as a callee."""
        j = index - 1
        while j >= 0 and not tokens[j][2].strip():
            j -= 1
        if j < 0:
            return False
        _pos, ttype, name = tokens[j]
        if ttype not in Token.Name or not self.kb.is_container(name):
            return False
        k = j - 1
        while k >= 0 and not tokens[k][2].strip():
            k -= 1
        before = tokens[k][2] if k >= 0 else ""
        # a.x(1) is a member, function x(1) a declaration
        return before not in (".", "function")

    def comment_misplaced_clauses(self, text: str, diagnostics: Diagnostics) -> str:
        """Comment out case/default labels that are not directly inside a switch."""
        depth = 0
        switch_depths: List[int] = []
        pending_switch = False
        misplaced_lines: set[int] = set()

        for pos, ttype, value in self._tokens(text):
            if self._is_inert(ttype):
                continue
            if ttype in Token.Keyword and value == "switch":
                pending_switch = True
            elif value == "{":
                depth += 1
                if pending_switch:
                    switch_depths.append(depth)
                    pending_switch = False
            elif value == "}":
                if switch_depths and switch_depths[-1] == depth:
                    switch_depths.pop()
                depth -= 1
            elif ttype in Token.Keyword and value in ("case", "default"):
                if not switch_depths or switch_depths[-1] != depth:
                    misplaced_lines.add(text.count("\n", 0, pos))

        if not misplaced_lines:
            return text

        lines = text.split("\n")
        for number in sorted(misplaced_lines):
            line = lines[number]
            stripped = line.lstrip()
            lines[number] = f"{line[: len(line) - len(stripped)]}{MISPLACED_MARKER}{stripped}"
            diagnostics.record(
                DiagnosticKind.MISPLACED_CLAUSE,
                f"Clause label outside its switch commented out: {stripped!r}",
            )
            logger.warning(f"Misplaced clause commented out: {stripped!r}")
        return "\n".join(lines)

    def repair_braces(self, text: str, diagnostics: Diagnostics, name: Optional[str] = None) -> str:
        """Append missing closing braces; never remove any."""
        opens = closes = 0
        for _pos, ttype, value in self._tokens(text):
            if self._is_inert(ttype):
                continue
            if value == "{":
                opens += 1
            elif value == "}":
                closes += 1

        where = f" in {name}" if name else ""
        if closes > opens:
            logger.warning(f"{closes - opens} surplus closing brace(s){where} left in place")
        if opens <= closes:
            return text

        missing = opens - closes
        diagnostics.record(
            DiagnosticKind.BRACE_REPAIR,
            f"Appended {missing} closing brace(s){where}",
            count=missing,
        )
        logger.warning(f"Appended {missing} closing brace(s){where}")
        return text.rstrip("\n") + "\n" + "\n".join("}" for _ in range(missing)) + "\n"

    @staticmethod
    def cleanup(text: str) -> str:
        """Trim trailing whitespace, collapse blank-line runs, end with one newline."""
        lines = [line.rstrip() for line in text.split("\n")]
        text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
        return text.strip("\n") + "\n"
