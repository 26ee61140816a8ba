"""Tests for extracting VBScript from HTML documents."""

import pytest

from vbjs.core.errors import ExtractionError
from vbjs.translator.block_extractor import extract_vbscript, find_script_blocks


PAGE = """<html>
<head>
<script language="VBScript">
<!--
dim answers(3)
-->
</script>
<script type="text/javascript">var ignored = 1;</script>
</head>
<body>
<form name="k"></form>
<script type="text/vbscript">
answers(1) = 2
</script>
</body>
</html>
"""


class TestFindScriptBlocks:
    """Locating legacy script blocks."""

    def test_only_vbscript_blocks(self):
        blocks = find_script_blocks(PAGE)
        assert len(blocks) == 2
        assert [b.language.lower() for b in blocks] == ["vbscript", "text/vbscript"]

    def test_comment_wrapper_removed(self):
        first = find_script_blocks(PAGE)[0]
        assert first.text == "dim answers(3)"

    def test_source_lines_increase(self):
        first, second = find_script_blocks(PAGE)
        assert first.start_line < second.start_line

    def test_empty_document(self):
        assert find_script_blocks("   ") == []


class TestExtractVBScript:
    """SourceProgram hand-off."""

    def test_blocks_joined_in_order(self):
        source = extract_vbscript(PAGE, source_name="page.html")
        assert source.text == "dim answers(3)\nanswers(1) = 2"
        assert source.name == "page.html"

    def test_no_block_raises(self):
        with pytest.raises(ExtractionError) as exc_info:
            extract_vbscript("<html><body><p>nothing</p></body></html>", source_name="empty.html")
        assert "empty.html" in exc_info.value.message

    def test_extracted_program_transpiles(self, transpile):
        code = transpile(extract_vbscript(PAGE)).code
        assert code == "let answers = new Array(4);\nanswers[1] = 2;\n"
