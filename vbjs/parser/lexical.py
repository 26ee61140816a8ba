"""
String-aware scanning helpers for single VBScript lines.

VBScript string literals are double-quoted with "" as the only escape, so a
small character scanner is enough to keep separators inside literals from
being treated as syntax.
"""

from __future__ import annotations

from typing import Iterator


def _code_positions(text: str) -> Iterator[tuple[int, str, int]]:
    """
    Yield (index, char, paren_depth) for characters outside string literals.

    Characters inside a literal (quotes included) are skipped.
    """
    in_string = False
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            if ch == '"':
                if i + 1 < len(text) and text[i + 1] == '"':
                    i += 2
                    continue
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            i += 1
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        yield i, ch, depth
        i += 1


def strip_inline_comment(text: str) -> tuple[str, str | None]:
    """
    Split a line into code and trailing comment.

    Returns:
        (code, comment) where comment excludes the leading apostrophe, or None
    """
    for i, ch, _depth in _code_positions(text):
        if ch == "'":
            return text[:i].rstrip(), text[i + 1:]
    return text, None


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on a separator that is outside literals and parentheses."""
    parts: list[str] = []
    last = 0
    for i, ch, depth in _code_positions(text):
        if ch == separator and depth == 0:
            parts.append(text[last:i])
            last = i + 1
    parts.append(text[last:])
    return [p.strip() for p in parts]


def split_statements(text: str) -> list[str]:
    """Split a logical line on ':' statement separators."""
    return [part for part in split_top_level(text, ":") if part]


def find_assignment(text: str) -> int:
    """
    Index of the first top-level lone '=' or -1.

    '=' that belongs to '<=', '>=', '<>', '=>' or '=<' is not an assignment.
    """
    for i, ch, depth in _code_positions(text):
        if ch != "=" or depth != 0:
            continue
        prev = text[i - 1] if i > 0 else ""
        nxt = text[i + 1] if i + 1 < len(text) else ""
        if prev in "<>=" or nxt in "<>=":
            continue
        return i
    return -1


def find_matching_paren(text: str, open_index: int) -> int:
    """Index of the ')' that closes the '(' at open_index, or -1."""
    base = None
    for i, ch, depth in _code_positions(text):
        if i < open_index:
            continue
        if i == open_index:
            base = depth - 1
            continue
        if ch == ")" and depth == base:
            return i
    return -1


def is_balanced(text: str) -> bool:
    """True when parentheses balance and no literal is left open."""
    depth = 0
    for _i, _ch, depth in _code_positions(text):
        if depth < 0:
            return False
    if depth != 0:
        return False
    # "" escapes keep the count even, so an odd count is an open literal
    return text.count('"') % 2 == 0


def find_keyword(text: str, keyword: str) -> int:
    """
    Index of a whole-word, case-insensitive keyword outside literals, or -1.

    Only matches at parenthesis depth zero.
    """
    lowered = text.lower()
    word = keyword.lower()
    for i, _ch, depth in _code_positions(text):
        if depth != 0 or not lowered.startswith(word, i):
            continue
        before = text[i - 1] if i > 0 else " "
        end = i + len(word)
        after = text[end] if end < len(text) else " "
        if not (before.isalnum() or before in "_.") and not (after.isalnum() or after == "_"):
            return i
    return -1
