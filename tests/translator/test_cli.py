"""Tests for the command line interface."""

import json

from vbjs.translator.cli import main


class TestConvert:
    """File conversion."""

    def test_writes_js_next_to_source(self, tmp_path, capsys):
        source = tmp_path / "page.vbs"
        source.write_text("dim a(2)\na(1) = 3\n", encoding="utf-8")

        assert main([str(source)]) == 0

        output = tmp_path / "page.js"
        assert output.exists()
        assert "a[1] = 3;" in output.read_text(encoding="utf-8")
        assert f"Wrote {output}" in capsys.readouterr().out

    def test_explicit_output(self, tmp_path):
        source = tmp_path / "page.vbs"
        source.write_text("x = 1\n", encoding="utf-8")
        target = tmp_path / "out" / "result.js"

        assert main([str(source), str(target), "-q"]) == 0
        assert target.exists()

    def test_refuses_to_overwrite(self, tmp_path, capsys):
        source = tmp_path / "page.vbs"
        source.write_text("x = 1\n", encoding="utf-8")
        (tmp_path / "page.js").write_text("keep", encoding="utf-8")

        assert main([str(source), "-q"]) == 1
        assert (tmp_path / "page.js").read_text(encoding="utf-8") == "keep"
        assert "Refusing to overwrite" in capsys.readouterr().err

    def test_overwrite_flag(self, tmp_path):
        source = tmp_path / "page.vbs"
        source.write_text("x = 1\n", encoding="utf-8")
        (tmp_path / "page.js").write_text("old", encoding="utf-8")

        assert main([str(source), "--overwrite", "-q"]) == 0
        assert "x = 1;" in (tmp_path / "page.js").read_text(encoding="utf-8")

    def test_missing_source(self, tmp_path, capsys):
        assert main([str(tmp_path / "absent.vbs")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_parse_error(self, tmp_path, capsys):
        source = tmp_path / "broken.vbs"
        source.write_text("sub s\nend function\n", encoding="utf-8")

        assert main([str(source), "-q"]) == 1
        assert "line 2" in capsys.readouterr().err


class TestHtml:
    """HTML input."""

    def test_html_page(self, tmp_path):
        source = tmp_path / "page.html"
        source.write_text('<html><script language="vbscript">x = 1</script></html>', encoding="utf-8")

        assert main([str(source), "--html", "-q"]) == 0
        assert "x = 1;" in (tmp_path / "page.js").read_text(encoding="utf-8")

    def test_page_without_script(self, tmp_path, capsys):
        source = tmp_path / "page.html"
        source.write_text("<html><body></body></html>", encoding="utf-8")

        assert main([str(source), "--html", "-q"]) == 1
        assert "No VBScript block" in capsys.readouterr().err


class TestReportAndStrict:
    """Reporting and the validation gate."""

    def test_report_is_json(self, tmp_path, capsys):
        source = tmp_path / "page.vbs"
        source.write_text("function f(a)\n  f = a\nend function\n", encoding="utf-8")

        assert main([str(source), "--report", "-q"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["functions"][0]["name"] == "f"
        assert report["validation"]["valid"] is True

    def test_strict_fails_on_invalid_output(self, tmp_path):
        source = tmp_path / "page.vbs"
        source.write_text("x = (1\n", encoding="utf-8")

        assert main([str(source), "-q"]) == 0
        assert main([str(source), "--overwrite", "--strict", "-q"]) == 1
