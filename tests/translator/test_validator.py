"""Tests for the generated-code validator."""

import pytest

from vbjs.translator.validator import validate_javascript


class TestBalance:
    """Bracket balance."""

    def test_valid(self):
        report = validate_javascript("if (a) {\n  b[1] = c(2);\n}\n")
        assert report.valid
        assert report.problems == []

    def test_unclosed_brace(self):
        report = validate_javascript("if (a) {\n  b();\n")
        assert not report.valid
        assert report.problems == ["line 1: unclosed '{'"]

    def test_mismatched_closer(self):
        report = validate_javascript("x = a[1);")
        assert not report.valid
        assert "closes '['" in report.problems[0]

    def test_brackets_in_strings_and_comments_ignored(self):
        assert validate_javascript('x = "{[(";\n// }\n/* ) */\n').valid


class TestResidualKeywords:
    """VBScript left in code positions."""

    @pytest.mark.parametrize("code", ["x = a and b;", "if (a) then {}", "dim x;", "x = a <> b;", "wend"])
    def test_residue_found(self, code):
        report = validate_javascript(code)
        assert not report.valid
        assert report.residual_keywords

    def test_inert_comments_are_not_residue(self):
        assert validate_javascript("/* unknown: on error resume next */\nx = 1;\n").valid

    def test_strings_are_not_residue(self):
        assert validate_javascript('msg = "then and or";').valid

    def test_transpiled_program_is_valid(self, transpile):
        code = transpile(
            "dim g(2, 2)\n"
            "for i = 0 to 2\n"
            "  select case i\n"
            "    case 0\n"
            "      g(i, i) = 1\n"
            "    case else\n"
            "      g(i, 0) = i mod 2\n"
            "  end select\n"
            "next\n"
        ).code
        report = validate_javascript(code)
        assert report.valid, report
