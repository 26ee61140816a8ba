"""Tests for the post-processor."""

import pytest

from vbjs.core.diagnostics import Diagnostics
from vbjs.translator.post_processor import MISPLACED_MARKER, PostProcessor


@pytest.fixture
def processor(make_kb):
    return PostProcessor(make_kb(containers=["a"]))


class TestHumanizeLiterals:
    """Character-code calls with readable escapes."""

    def test_known_code(self, processor, diagnostics):
        assert processor.process("x = String.fromCharCode(10);", diagnostics) == 'x = "\\n";\n'
        assert diagnostics.char_code_conversions == 1

    def test_stray_chr(self, processor, diagnostics):
        """A chr() call that escaped translation is still converted."""
        assert processor.process("x = chr(13);", diagnostics) == 'x = "\\r";\n'

    def test_other_codes_untouched(self, processor, diagnostics):
        assert processor.process("x = String.fromCharCode(65);", diagnostics) == "x = String.fromCharCode(65);\n"
        assert diagnostics.char_code_conversions == 0

    def test_string_contents_untouched(self, processor, diagnostics):
        text = 'x = "String.fromCharCode(10)";\n'
        assert processor.process(text, diagnostics) == text


class TestCorrectContainers:
    """Call-style container access left over from generation."""

    def test_call_style_rewritten(self, processor, diagnostics):
        assert processor.process("y = a(1, 2);", diagnostics) == "y = a[1][2];\n"
        assert diagnostics.container_fixes == 1

    def test_member_not_rewritten(self, processor, diagnostics):
        """obj.a(1) is a method call on another object."""
        assert processor.process("y = obj.a(1);", diagnostics) == "y = obj.a(1);\n"

    def test_nested_call_inside_index(self, processor, diagnostics):
        assert processor.process("y = a(f(1));", diagnostics) == "y = a[f(1)];\n"


class TestMisplacedClauses:
    """Clause labels outside a switch."""

    def test_commented_out(self, processor, diagnostics):
        result = processor.process("case 1:\n  x = 1;", diagnostics)
        assert result == f"{MISPLACED_MARKER}case 1:\n  x = 1;\n"
        assert diagnostics.unresolved_case_placements == 1

    def test_clause_in_switch_kept(self, processor, diagnostics):
        text = "switch (n) {\n  case 1:\n    break;\n}\n"
        assert processor.process(text, diagnostics) == text
        assert diagnostics.is_clean

    def test_clause_in_nested_block_flagged(self, processor, diagnostics):
        """A case inside an if inside the switch is not a label of the switch."""
        text = "switch (n) {\n  if (a) {\n    case 1:\n  }\n}\n"
        result = processor.process(text, diagnostics)
        assert f"    {MISPLACED_MARKER}case 1:" in result


class TestBraceRepair:
    """Append-only brace balancing."""

    def test_missing_brace_appended(self, processor, diagnostics):
        assert processor.process("if (a) {\n  b();\n", diagnostics) == "if (a) {\n  b();\n}\n"
        assert diagnostics.brace_repairs == 1

    def test_braces_in_strings_ignored(self, processor, diagnostics):
        assert processor.process('x = "{";', diagnostics) == 'x = "{";\n'
        assert diagnostics.brace_repairs == 0

    def test_surplus_close_left_alone(self, processor, diagnostics):
        """Nothing is ever removed."""
        assert processor.process("x = 1;\n}", diagnostics) == "x = 1;\n}\n"
        assert diagnostics.brace_repairs == 0


class TestIdempotence:
    """Processing twice changes nothing the second time."""

    @pytest.mark.parametrize(
        "text",
        [
            "x = String.fromCharCode(10) + chr(9);",
            "y = a(1);\nif (b) {\n",
            "case 2:\nz = 1;",
            "switch (n) {\n  case 1:\n    break;\n}",
        ],
    )
    def test_fixed_point(self, processor, text):
        once = processor.process(text, Diagnostics())
        second = Diagnostics()
        assert processor.process(once, second) == once
        assert second.is_clean


class TestCleanup:
    def test_blank_runs_and_trailing_space(self):
        assert PostProcessor.cleanup("a;  \n\n\n\nb;\n\n") == "a;\n\nb;\n"
