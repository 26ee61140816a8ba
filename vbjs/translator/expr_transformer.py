"""
AST Transformer for VBScript expression parse trees.

This module provides the Lark Transformer that converts parsed VBScript
expressions into an intermediate representation (IR) of tuples that the
emitter turns into JavaScript.
"""

from __future__ import annotations

from lark import Token, Transformer, v_args


def create_expression_transformer(source: str) -> Transformer:
    """
    Create a Lark transformer that lowers a parse tree of ``source`` to IR.

    The source text is captured so binary operators can record whether they
    were surrounded by whitespace; the emitter reproduces that spacing.

    IR formats:
        - ("name", text) - Identifier or keyword literal
        - ("number", text) - Decimal literal
        - ("hex", digits) - &H literal
        - ("string", raw) - Double-quoted literal, quotes included
        - ("paren", expr) - Parenthesized expression
        - ("bin", left, op, right, (space_before, space_after)) - Binary operation
        - ("unary", op, operand) - not, unary minus/plus
        - ("member", base, name) - a.b
        - ("apply", base, args) - a(...), call or index decided later

    Operators are lowercased; spacing flags are booleans.

    Args:
        source: The exact text that was parsed

    Returns:
        Transformer: Lark transformer instance for converting trees to IR
    """

    def spacing(tok: Token) -> tuple[bool, bool]:
        start = tok.start_pos or 0
        end = tok.end_pos if tok.end_pos is not None else start + len(tok)
        before = start > 0 and source[start - 1].isspace()
        after = end < len(source) and source[end].isspace()
        return before, after

    @v_args(inline=True)
    class ToIR(Transformer):
        """Lower the parse tree into intermediate representation (IR)."""

        def binary_expr(self, left, *rest):
            """Fold a left-associative operator chain."""
            expr = left
            for op, right in zip(rest[::2], rest[1::2]):
                expr = ("bin", expr, str(op).lower(), right, spacing(op))
            return expr

        def comp_op(self, token):
            """Keep the token so its position survives into binary_expr."""
            return token

        def unary_expr(self, op, operand):
            return ("unary", str(op).lower(), operand)

        def member(self, base, name):
            return ("member", base, str(name))

        def apply(self, base, args=None):
            """Lower name(args); empty parentheses give an empty list."""
            return ("apply", base, args or [])

        def args(self, *items):
            return list(items)

        # Atoms
        def name(self, tok):
            return ("name", str(tok))

        def number(self, tok):
            return ("number", str(tok))

        def hex_number(self, tok):
            digits = str(tok)[2:].rstrip("&")
            return ("hex", digits)

        def string(self, tok):
            return ("string", str(tok))

        def paren(self, expr):
            return ("paren", expr)

    return ToIR()
