"""
vbjs.translator - VBScript to JavaScript translation

Turns parsed VBScript units into JavaScript: knowledge base, expression and
statement transpilation, control-flow reconstruction and post-processing,
plus the HTML extractor and the output validator around them.
"""

from .block_extractor import ScriptBlock, extract_vbscript, find_script_blocks
from .knowledge import KnowledgeBase, build_knowledge_base
from .statements import ExpressionContext, StatementTranspiler
from .control_flow import ControlFlowReconstructor
from .post_processor import PostProcessor
from .transpiler import (
    ContainerCatalogEntry,
    FunctionCatalogEntry,
    GeneratedUnit,
    TranspileResult,
    Transpiler,
    convert_file,
    transpile_source,
)
from .validator import ValidationReport, validate_javascript

__all__ = [
    "ScriptBlock",
    "extract_vbscript",
    "find_script_blocks",
    "KnowledgeBase",
    "build_knowledge_base",
    "ExpressionContext",
    "StatementTranspiler",
    "ControlFlowReconstructor",
    "PostProcessor",
    "ContainerCatalogEntry",
    "FunctionCatalogEntry",
    "GeneratedUnit",
    "TranspileResult",
    "Transpiler",
    "convert_file",
    "transpile_source",
    "ValidationReport",
    "validate_javascript",
]
