"""End-to-end tests for the transpiler pipeline."""

import pytest

from vbjs import __version__, transpile_source
from vbjs.core.config import TranspilerSettings
from vbjs.core.errors import ParseError
from vbjs.translator.transpiler import PREAMBLE_NAME, Transpiler, convert_file
from vbjs.translator.validator import validate_javascript


PROGRAM = (
    "Option Explicit\n"
    "dim scores(4)\n"
    "\n"
    "function total(a, b)\n"
    "  dim tmp\n"
    "  total = a + b\n"
    "end function\n"
    "\n"
    "sub Show\n"
    "  MsgBox \"Sum: \" & total\n"
    "end sub\n"
)


class TestScenarios:
    """Whole programs."""

    def test_condition_and_assignment(self, transpile):
        assert transpile("if x=1 then y=2\n").code == "if (x===1) { y=2; }\n"

    def test_container_declaration_and_access(self, transpile):
        result = transpile("dim a(5)\na(3) = a(3) + 1\n")
        assert result.code == "let a = new Array(6);\na[3] = a[3] + 1;\n"
        assert result.diagnostics.is_clean

    def test_return_assignment(self, transpile):
        code = transpile("function total()\n  total = x + y\nend function\n").code
        assert code == "function total() {\n  return x + y;\n}\n"

    def test_bare_callable_invoked(self, transpile):
        """A bare reference to a function calls it."""
        code = transpile(PROGRAM).code
        assert 'alert("Sum: " + total());' in code

    def test_container_declared_after_use(self, transpile):
        """The knowledge base covers the whole program before emission."""
        code = transpile("sub s\n  x = late(2)\nend sub\ndim late(3)\n").code
        assert "x = late[2];" in code

    def test_local_container(self, transpile):
        code = transpile("sub s\n  dim buf(2)\n  buf(0) = 1\nend sub\n").code
        assert code == "function s() {\n  let buf = new Array(3);\n  buf[0] = 1;\n}\n"

    def test_global_code_before_units(self, transpile):
        """Global statements form the preamble, followed by each unit."""
        result = transpile(PROGRAM)
        assert result.code.startswith("let scores = new Array(5);\n\nfunction total(a, b) {")
        assert [unit.name for unit in result.units] == [PREAMBLE_NAME, "total", "Show"]
        assert result.units[0].is_preamble

    def test_comments_kept(self, transpile):
        code = transpile("' compute\nx = 1 ' one\n").code
        assert code == "// compute\nx = 1;\n// one\n"

    def test_char_code_humanized(self, transpile):
        result = transpile("nl = Chr(10)\n")
        assert result.code == 'nl = "\\n";\n'
        assert result.diagnostics.char_code_conversions == 1

    def test_unknown_construct_counted(self, transpile):
        result = transpile('Set fso = CreateObject("Scripting.FileSystemObject")\nx = 1\n')
        assert result.code.startswith("/* unknown: Set fso")
        assert "x = 1;" in result.code
        assert result.diagnostics.unknown_constructs == 1

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("Set re = New RegExp\n", "/* unknown: Set re = New RegExp */\n"),
            ("x = a(1\n", "/* unknown: x = a(1 */\n"),
        ],
    )
    def test_untranslatable_statement_stays_inert(self, transpile, source, expected):
        """Statements the token rewrite cannot finish never reach live code."""
        result = transpile(source)
        assert result.code == expected
        assert result.diagnostics.unknown_constructs == 1
        assert validate_javascript(result.code).valid

    def test_global_scalar_shadows_builtin(self, transpile):
        """A declared global named like a zero-argument built-in stays a variable."""
        code = transpile("dim now\nnow = 5\nx = now + 1\n").code
        assert code == "let now;\nnow = 5;\nx = now + 1;\n"

    def test_own_name_read_is_reported(self, transpile):
        result = transpile("function total(n)\n  total = total + n\nend function\n")
        assert "return total + n;" in result.code
        assert result.diagnostics.self_references == 1

    def test_parse_error_is_fatal(self, transpile):
        """No partial output on a malformed boundary."""
        with pytest.raises(ParseError):
            transpile("function f\n")


class TestCatalogs:
    """Function and container catalogs."""

    def test_function_catalog(self, transpile):
        total, show = transpile(PROGRAM).functions
        assert total.name == "total"
        assert total.kind == "function"
        assert total.parameters == ["a", "b"]
        assert total.local_variable_count == 1
        assert (total.start_line, total.end_line, total.line_count) == (4, 7, 4)
        assert total.return_statement_count == 1
        assert show.kind == "sub"
        assert show.return_statement_count == 0

    def test_container_catalog(self, transpile):
        result = transpile("dim a(5), b()\nsub s\n  dim c(2)\nend sub\n")
        assert [(c.name, c.size, c.scope) for c in result.containers] == [
            ("a", 5, "global"),
            ("b", None, "global"),
            ("c", 2, "s"),
        ]

    def test_report(self, transpile):
        report = transpile(PROGRAM).report()
        assert set(report) == {"functions", "containers", "diagnostics", "messages"}
        assert report["diagnostics"]["unknown_constructs"] == 0


class TestSettings:
    """Settings that shape the output."""

    def test_header_banner(self):
        result = Transpiler(TranspilerSettings(EMIT_HEADER=True)).transpile("x = 1\n")
        assert result.code.startswith(f"// Generated by vbjs {__version__} from <source>\n\nx = 1;")

    def test_indent(self, transpile):
        code = transpile("if a then\n  b = 1\nend if\n", INDENT="    ").code
        assert "\n    b = 1;\n" in code

    def test_transpile_source_names_source(self):
        result = transpile_source("x = 1\n", TranspilerSettings(), name="page.vbs")
        assert "from page.vbs" in result.code.splitlines()[0]

    def test_calls_are_independent(self, transpile):
        """Nothing from one call leaks into the next."""
        first = transpile("dim a(1)\n")
        second = transpile("y = a(1)\n")
        assert first.diagnostics is not second.diagnostics
        assert second.code == "y = a(1);\n"


class TestConvertFile:
    """Reading and writing files."""

    def test_default_output_path(self, tmp_path, settings):
        source = tmp_path / "quiz.vbs"
        source.write_text("dim a(1)\na(0) = 1\n", encoding="utf-8")

        written, result = convert_file(source, settings=settings)

        assert written == tmp_path / "quiz.js"
        assert written.read_text(encoding="utf-8") == result.code
        assert "a[0] = 1;" in result.code

    def test_html_page(self, tmp_path, settings):
        page = tmp_path / "quiz.html"
        page.write_text(
            '<html><body><script language="vbscript">\n'
            "dim a(1)\na(0) = 1\n"
            "</script></body></html>\n",
            encoding="utf-8",
        )

        written, result = convert_file(page, html=True, settings=settings)

        assert written.name == "quiz.js"
        assert "a[0] = 1;" in result.code

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            convert_file(tmp_path / "absent.vbs")

    def test_existing_output_kept(self, tmp_path, settings):
        source = tmp_path / "quiz.vbs"
        source.write_text("x = 1\n", encoding="utf-8")
        target = tmp_path / "quiz.js"
        target.write_text("keep", encoding="utf-8")

        with pytest.raises(FileExistsError):
            convert_file(source, settings=settings)
        assert target.read_text(encoding="utf-8") == "keep"

        convert_file(source, overwrite=True, settings=settings)
        assert target.read_text(encoding="utf-8") == "x = 1;\n"
