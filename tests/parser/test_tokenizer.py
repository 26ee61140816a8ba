"""Tests for the line tokenizer."""

import pytest

from vbjs.core.errors import ParseError
from vbjs.parser.tokenizer import LineTokenizer
from vbjs.parser.tokens import (
    CommentToken,
    ConditionalPhase,
    DeclarationToken,
    FunctionStartToken,
    LoopPhase,
    LoopTest,
    SelectPhase,
    StatementToken,
    TokenKind,
    UnitKind,
)


@pytest.fixture
def tokenizer():
    return LineTokenizer()


class TestComments:
    """Comment lines and trailing comments."""

    def test_apostrophe_comment(self, tokenizer):
        """A whole-line comment keeps its text."""
        [token] = tokenizer.tokenize_line(1, "' check the answer")
        assert isinstance(token, CommentToken)
        assert token.comment == " check the answer"

    def test_rem_comment(self, tokenizer):
        """REM is a comment keyword in any case."""
        [token] = tokenizer.tokenize_line(1, "REM hello")
        assert token.kind is TokenKind.COMMENT
        assert token.comment == "hello"

    def test_trailing_comment_split_off(self, tokenizer):
        """A trailing comment becomes its own token after the statement."""
        tokens = tokenizer.tokenize_line(3, "dim a(5) ' answers")
        assert [t.kind for t in tokens] == [TokenKind.DECLARATION, TokenKind.COMMENT]
        assert tokens[1].comment == " answers"
        assert all(t.line == 3 for t in tokens)

    def test_apostrophe_inside_string_is_not_comment(self, tokenizer):
        """An apostrophe inside a literal does not start a comment."""
        [token] = tokenizer.tokenize_line(1, 'msg = "it\'s fine"')
        assert isinstance(token, StatementToken)

    def test_blank_line(self, tokenizer):
        """Blank lines yield one empty comment token."""
        [token] = tokenizer.tokenize_line(4, "   ")
        assert isinstance(token, CommentToken)
        assert token.comment == ""

    def test_option_explicit_dropped(self, tokenizer):
        """Option Explicit has no output."""
        assert tokenizer.tokenize_line(1, "Option Explicit") == []


class TestStatementSeparators:
    """Colon-separated statements."""

    def test_colon_splits_statements(self, tokenizer):
        """Each part becomes a token with the same line number."""
        tokens = tokenizer.tokenize_line(7, "x = 1 : y = 2")
        assert [t.statement for t in tokens] == ["x = 1", "y = 2"]
        assert {t.line for t in tokens} == {7}

    def test_colon_inside_string_kept(self, tokenizer):
        """A colon inside a literal is not a separator."""
        tokens = tokenizer.tokenize_line(1, 'msg = "a:b"')
        assert len(tokens) == 1

    def test_single_line_if_keeps_separators(self, tokenizer):
        """The action of a single-line conditional keeps its own colons."""
        [token] = tokenizer.tokenize_line(1, "if a then x = 1 : y = 2")
        assert token.phase is ConditionalPhase.SINGLE_LINE
        assert token.action == "x = 1 : y = 2"


class TestConditionals:
    """Block and single-line conditionals."""

    def test_block_start(self, tokenizer):
        """Nothing after THEN opens a block."""
        [token] = tokenizer.tokenize_line(1, "If x > 1 Then")
        assert token.phase is ConditionalPhase.BLOCK_START
        assert token.condition == "x > 1"

    def test_single_line_with_else(self, tokenizer):
        """Action and else-action are separated."""
        [token] = tokenizer.tokenize_line(1, "if a then b = 1 else b = 2")
        assert token.phase is ConditionalPhase.SINGLE_LINE
        assert token.condition == "a"
        assert token.action == "b = 1"
        assert token.else_action == "b = 2"

    def test_else_if_and_end(self, tokenizer):
        """ElseIf, Else and End If phases."""
        assert tokenizer.tokenize_line(1, "elseif y then")[0].phase is ConditionalPhase.ELSE_IF
        assert tokenizer.tokenize_line(2, "else")[0].phase is ConditionalPhase.ELSE
        assert tokenizer.tokenize_line(3, "end if")[0].phase is ConditionalPhase.END

    @pytest.mark.parametrize(
        "line, phase, condition",
        [
            ("If(x = 1) Then", ConditionalPhase.BLOCK_START, "x = 1"),
            ("ElseIf(y > 2) Then", ConditionalPhase.ELSE_IF, "y > 2"),
            ("if (a) and (b) then", ConditionalPhase.BLOCK_START, "(a) and (b)"),
        ],
    )
    def test_parenthesised_condition(self, tokenizer, line, phase, condition):
        """A condition may follow the keyword directly inside parentheses."""
        [token] = tokenizer.tokenize_line(1, line)
        assert token.phase is phase
        assert token.condition == condition


class TestLoops:
    """Loop headers and closers."""

    def test_counted_loop(self, tokenizer):
        """For with a step."""
        [token] = tokenizer.tokenize_line(1, "for i = 10 to 1 step -2")
        assert token.phase is LoopPhase.COUNTED_START
        assert (token.variable, token.start, token.end, token.step) == ("i", "10", "1", "-2")

    def test_for_each(self, tokenizer):
        """For Each names a variable and a collection."""
        [token] = tokenizer.tokenize_line(1, "For Each item In items")
        assert token.phase is LoopPhase.EACH_START
        assert (token.variable, token.collection) == ("item", "items")

    def test_bottom_tested_loop_end(self, tokenizer):
        """Loop Until carries its test and condition."""
        [token] = tokenizer.tokenize_line(1, "loop until x > 3")
        assert token.phase is LoopPhase.END
        assert token.keyword == "loop"
        assert token.test is LoopTest.UNTIL
        assert token.condition == "x > 3"

    def test_while_wend(self, tokenizer):
        """While and Wend."""
        [start] = tokenizer.tokenize_line(1, "while n < 5")
        [end] = tokenizer.tokenize_line(2, "wend")
        assert start.keyword == "while" and start.test is LoopTest.WHILE
        assert end.keyword == "wend"

    def test_parenthesised_loop_conditions(self, tokenizer):
        """While( and Loop Until( open and close loops like their spaced forms."""
        [start] = tokenizer.tokenize_line(1, "While(n < 5)")
        [end] = tokenizer.tokenize_line(2, "Loop Until(n > 3)")
        assert start.phase is LoopPhase.CONDITIONAL_START and start.condition == "n < 5"
        assert end.test is LoopTest.UNTIL and end.condition == "n > 3"

    def test_exit_for(self, tokenizer):
        """Exit is a plain statement with a target."""
        [token] = tokenizer.tokenize_line(1, "Exit For")
        assert isinstance(token, StatementToken)
        assert token.exit_target == "for"


class TestSelect:
    """Select Case dispatch."""

    def test_phases(self, tokenizer):
        """Start, clause, default and end."""
        assert tokenizer.tokenize_line(1, "select case n")[0].subject == "n"
        assert tokenizer.tokenize_line(2, "case 1, 2")[0].values == ("1", "2")
        assert tokenizer.tokenize_line(3, "case else")[0].phase is SelectPhase.DEFAULT_CLAUSE
        assert tokenizer.tokenize_line(4, "end select")[0].phase is SelectPhase.END


class TestDeclarations:
    """Dim, ReDim and Const."""

    def test_dim_mixed(self, tokenizer):
        """Scalars, sized, multi-dimensional and dynamic containers."""
        [token] = tokenizer.tokenize_line(1, "dim a, b(5), c(2, 3), d()")
        assert isinstance(token, DeclarationToken)
        a, b, c, d = token.declarations
        assert not a.is_indexed_container
        assert b.is_indexed_container and b.container_size == 5
        assert c.dimensions == ("2", "3")
        assert d.is_indexed_container and d.dimensions == ()

    def test_redim_preserve(self, tokenizer):
        """ReDim accepts expressions as bounds."""
        [token] = tokenizer.tokenize_line(1, "ReDim Preserve items(n + 1)")
        assert token.keyword == "redim"
        assert token.preserve
        assert token.declarations[0].dimensions == ("n + 1",)

    def test_const(self, tokenizer):
        """Const keeps the initialiser text."""
        [token] = tokenizer.tokenize_line(1, 'Const GREETING = "hi"')
        assert token.keyword == "const"
        assert token.declarations[0].name == "GREETING"
        assert token.values == ('"hi"',)

    @pytest.mark.parametrize("line", ["dim 1x", "dim a(n", "dim a(x + 1)", "redim a", "const X", "dim"])
    def test_malformed_declaration(self, tokenizer, line):
        """Malformed declarations are fatal."""
        with pytest.raises(ParseError) as exc_info:
            tokenizer.tokenize_line(9, line)
        assert exc_info.value.line == 9
        assert exc_info.value.construct == "declaration"


class TestFunctionBoundaries:
    """Function and Sub headers."""

    def test_sub_with_byval_byref(self, tokenizer):
        """Parameter passing modifiers are stripped."""
        [token] = tokenizer.tokenize_line(1, "Private Sub Update(ByVal a, ByRef b)")
        assert isinstance(token, FunctionStartToken)
        assert token.name == "Update"
        assert token.unit_kind is UnitKind.ACTION_ONLY
        assert token.parameters == ("a", "b")

    def test_function_without_parentheses(self, tokenizer):
        """Parentheses are optional."""
        [token] = tokenizer.tokenize_line(1, "function Total")
        assert token.unit_kind is UnitKind.VALUE_RETURNING
        assert token.parameters == ()

    def test_end_function(self, tokenizer):
        [token] = tokenizer.tokenize_line(5, "End Function")
        assert token.kind is TokenKind.FUNCTION_END
        assert token.unit_kind is UnitKind.VALUE_RETURNING
