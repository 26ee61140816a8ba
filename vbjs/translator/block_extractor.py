"""
Script block extraction from host HTML documents.

Legacy assessment pages embed their logic in
``<script language="vbscript">`` blocks. This module finds those blocks with
lxml and hands their text over as a SourceProgram.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from lxml import etree
from lxml import html as lxml_html

from ..core.errors import ExtractionError
from ..core.logging import get_logger
from ..parser.source import SourceProgram

logger = get_logger(__name__)

_VBSCRIPT = re.compile(r"vbscript", re.IGNORECASE)
# Old pages hide script bodies from non-scripting browsers
_COMMENT_WRAPPER = re.compile(r"^\s*<!--[^\n]*\n|\n[^\n]*-->\s*$")


@dataclass
class ScriptBlock:
    """One legacy script block found in a document."""

    text: str
    """Script body, comment wrapper removed"""

    start_line: int
    """Document line of the opening tag (0 when unknown)"""

    language: str
    """Declared language attribute value"""


def find_script_blocks(document: str) -> List[ScriptBlock]:
    """
    Find every VBScript block in an HTML document.

    A block qualifies when its ``language`` or ``type`` attribute mentions
    vbscript, in any case.

    Args:
        document: HTML text

    Returns:
        Blocks in document order (possibly empty)
    """
    if not document.strip():
        return []
    try:
        root = lxml_html.document_fromstring(document)
    except (etree.ParserError, ValueError) as exc:
        logger.warning(f"Could not parse document as HTML: {exc}")
        return []

    blocks: List[ScriptBlock] = []
    for script in root.iter("script"):
        language = script.get("language") or script.get("type") or ""
        if not _VBSCRIPT.search(language):
            continue
        text = _COMMENT_WRAPPER.sub("\n", script.text or "").strip("\n")
        blocks.append(ScriptBlock(text=text, start_line=script.sourceline or 0, language=language))
    logger.debug(f"Found {len(blocks)} VBScript block(s)")
    return blocks


def extract_vbscript(document: str, source_name: str = "<document>") -> SourceProgram:
    """
    Extract the legacy script of a document as one SourceProgram.

    Multiple blocks are concatenated in document order.

    Args:
        document: HTML text
        source_name: Name used in messages and the output banner

    Returns:
        SourceProgram

    Raises:
        ExtractionError: When the document holds no VBScript block
    """
    blocks = find_script_blocks(document)
    if not blocks:
        raise ExtractionError(source_name)
    text = "\n".join(block.text for block in blocks)
    program = SourceProgram(text, name=source_name)
    logger.info(f"Extracted {program.line_count} lines from {len(blocks)} block(s) in {source_name}")
    return program
