"""
Lark grammar definition for parsing VBScript expressions.

Only expression bodies go through this grammar; statement shapes are
classified line by line by the tokenizer. The grammar encodes VBScript's
operator precedence so the emitter never has to re-derive it from text.
"""

from __future__ import annotations


def get_expression_grammar() -> str:
    """
    Return the Lark grammar for VBScript expressions.

    Precedence, lowest to highest:
    - imp, eqv, xor, or, and
    - not
    - comparison: = <> < > <= >= =< => is
    - & (concatenation)
    - + -
    - mod
    - \\ (integer division)
    - * /
    - unary - +
    - ^

    ``name(args)`` is parsed as a neutral ``apply`` node. Whether it is a
    call or an indexed container access is decided later against the
    knowledge base.

    The grammar is LALR-compatible. Anything it rejects is handed to the
    Pygments fallback rewriter.

    Returns:
        str: The complete Lark grammar definition
    """
    return r"""
        ?start: expr

        ?expr: imp_expr

        ?imp_expr: eqv_expr (IMP eqv_expr)*             -> binary_expr
        ?eqv_expr: xor_expr (EQV xor_expr)*             -> binary_expr
        ?xor_expr: or_expr (XOR or_expr)*               -> binary_expr
        ?or_expr: and_expr (OR and_expr)*               -> binary_expr
        ?and_expr: not_expr (AND not_expr)*             -> binary_expr

        ?not_expr: comp_expr
                 | NOT not_expr                         -> unary_expr

        ?comp_expr: concat_expr (comp_op concat_expr)*  -> binary_expr
        comp_op: COMP_OP | IS

        ?concat_expr: add_expr (AMP add_expr)*          -> binary_expr
        ?add_expr: mod_expr (ADD_OP mod_expr)*          -> binary_expr
        ?mod_expr: intdiv_expr (MOD intdiv_expr)*       -> binary_expr
        ?intdiv_expr: mul_expr (BACKSLASH mul_expr)*    -> binary_expr
        ?mul_expr: neg_expr (MUL_OP neg_expr)*          -> binary_expr

        ?neg_expr: pow_expr
                 | ADD_OP neg_expr                      -> unary_expr

        ?pow_expr: postfix_expr (CARET pow_operand)*    -> binary_expr
        ?pow_operand: postfix_expr
                    | ADD_OP pow_operand                -> unary_expr

        // Member access and call-or-index, left to right: a.b(1).c
        ?postfix_expr: primary
                     | postfix_expr "." NAME            -> member
                     | postfix_expr "(" [args] ")"      -> apply

        args: expr ("," expr)*

        ?primary: NAME                                  -> name
                | NUMBER                                -> number
                | HEX                                   -> hex_number
                | STRING                                -> string
                | "(" expr ")"                          -> paren

        // Keyword operators (terminals, so the transformer sees the token)
        IMP: "imp"i
        EQV: "eqv"i
        XOR: "xor"i
        OR: "or"i
        AND: "and"i
        NOT: "not"i
        IS: "is"i
        MOD: "mod"i

        COMP_OP: "<>" | "<=" | ">=" | "=<" | "=>" | "=" | "<" | ">"
        AMP: "&"
        ADD_OP: "+" | "-"
        MUL_OP: "*" | "/"
        BACKSLASH: "\\"
        CARET: "^"

        NAME: /[A-Za-z_][A-Za-z0-9_]*/i
        HEX.2: /&H[0-9A-Fa-f]+&?(?![A-Za-z0-9_])/i
        STRING: /"(?:[^"]|"")*"/
        NUMBER: /(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?/

        %import common.WS
        %ignore WS
        """
