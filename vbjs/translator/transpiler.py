"""
Transpiler pipeline.

SourceProgram -> ProgramParser -> KnowledgeBase -> StatementTranspiler +
ControlFlowReconstructor -> GeneratedUnits -> PostProcessor -> code.

The knowledge base is built from the whole parsed program before any
expression is transpiled, so a container declared late in the document is
still recognized where it is used earlier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..core.config import TranspilerSettings, get_settings
from ..core.diagnostics import Diagnostics
from ..core.logging import get_context_logger
from ..parser.parser import ParsedProgram, ProgramParser
from ..parser.source import SourceProgram
from ..parser.tokens import FunctionUnit, UnitKind
from .block_extractor import extract_vbscript
from .control_flow import ControlFlowReconstructor
from .knowledge import KnowledgeBase, build_knowledge_base
from .post_processor import PostProcessor
from .statements import StatementTranspiler

PREAMBLE_NAME = "<global>"


@dataclass
class GeneratedUnit:
    """Output lines for one unit, or for the global preamble."""

    name: str
    lines: List[str] = field(default_factory=list)
    kind: Optional[UnitKind] = None  # None for the preamble

    @property
    def is_preamble(self) -> bool:
        return self.kind is None


class FunctionCatalogEntry(BaseModel):
    """One function or sub of the source program"""

    name: str
    kind: str = Field(..., description="'function' or 'sub'")
    parameters: List[str] = Field(default_factory=list)
    local_variable_count: int = 0
    start_line: int
    end_line: int
    line_count: int
    return_statement_count: int = 0


class ContainerCatalogEntry(BaseModel):
    """One declared indexed container"""

    name: str
    size: Optional[int] = Field(None, description="Declared upper bound, when literal")
    scope: str = Field(..., description="'global' or the declaring unit's name")


class TranspileResult(BaseModel):
    """Everything one transpile call produces"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    code: str
    functions: List[FunctionCatalogEntry] = Field(default_factory=list)
    containers: List[ContainerCatalogEntry] = Field(default_factory=list)
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    units: List[GeneratedUnit] = Field(default_factory=list)

    def report(self) -> dict:
        """Catalogs and diagnostics as plain data, without the code."""
        return {
            "functions": [entry.model_dump() for entry in self.functions],
            "containers": [entry.model_dump() for entry in self.containers],
            "diagnostics": self.diagnostics.summary(),
            "messages": [message.model_dump() for message in self.diagnostics.messages],
        }


class Transpiler:
    """
    VBScript to JavaScript transpiler.

    Usage:
        transpiler = Transpiler(settings)
        result = transpiler.transpile(source)
        print(result.code)

    Each call is independent: it builds its own Diagnostics, knowledge base
    and per-run helpers, and shares nothing mutable with other calls.
    """

    def __init__(self, settings: Optional[TranspilerSettings] = None):
        self.settings = settings or get_settings()
        self.parser = ProgramParser()

    def transpile(self, source: Union[SourceProgram, str]) -> TranspileResult:
        """
        Transpile one whole program.

        Args:
            source: SourceProgram or raw script text

        Returns:
            TranspileResult with code, catalogs and diagnostics

        Raises:
            ParseError: On malformed declarations or function boundaries;
                no partial output is produced
        """
        if isinstance(source, str):
            source = SourceProgram(source)
        log = get_context_logger(__name__, source=source.name)
        log.info(f"Transpiling {source.line_count} lines")

        diagnostics = Diagnostics()
        program = self.parser.parse(source)
        kb = build_knowledge_base(program.global_declarations, program.units, diagnostics)

        statements = StatementTranspiler(kb, self.settings, diagnostics, program.global_declarations)
        reconstructor = ControlFlowReconstructor(statements, self.settings, diagnostics)

        units = [GeneratedUnit(name=PREAMBLE_NAME, lines=reconstructor.reconstruct(program.global_tokens))]
        for unit in program.units:
            units.append(self._generate_unit(unit, reconstructor))

        post_processor = PostProcessor(kb)
        for generated in units:
            post_processor.process_unit(generated, diagnostics)

        code = post_processor.cleanup(self._assemble(source, units))

        result = TranspileResult(
            code=code,
            functions=self._function_catalog(program),
            containers=self._container_catalog(program, kb),
            diagnostics=diagnostics,
            units=units,
        )
        log.info(
            f"Generated {len(code.splitlines())} lines for {len(program.units)} units",
            extra_data=diagnostics.summary(),
        )
        return result

    def _generate_unit(self, unit: FunctionUnit, reconstructor: ControlFlowReconstructor) -> GeneratedUnit:
        header = f"function {unit.name}({', '.join(unit.parameters)}) {{"
        body = reconstructor.reconstruct(unit.body_tokens, unit, depth=1)
        return GeneratedUnit(name=unit.name, lines=[header, *body, "}"], kind=unit.kind)

    def _assemble(self, source: SourceProgram, units: List[GeneratedUnit]) -> str:
        sections: List[str] = []
        if self.settings.EMIT_HEADER:
            sections.append(
                f"// Generated by {self.settings.APP_NAME} {self.settings.APP_VERSION} from {source.name}"
            )
        for unit in units:
            text = "\n".join(unit.lines).strip("\n")
            if text:
                sections.append(text)
        return "\n\n".join(sections)

    @staticmethod
    def _function_catalog(program: ParsedProgram) -> List[FunctionCatalogEntry]:
        return [
            FunctionCatalogEntry(
                name=unit.name,
                kind=unit.kind.value,
                parameters=list(unit.parameters),
                local_variable_count=len(unit.local_declarations),
                start_line=unit.start_line,
                end_line=unit.end_line,
                line_count=unit.end_line - unit.start_line + 1,
                return_statement_count=len(unit.return_assignments),
            )
            for unit in program.units
        ]

    @staticmethod
    def _container_catalog(program: ParsedProgram, kb: KnowledgeBase) -> List[ContainerCatalogEntry]:
        entries = [
            ContainerCatalogEntry(name=kb.canonical(d.name), size=d.container_size, scope="global")
            for d in program.global_declarations
            if d.is_indexed_container
        ]
        for unit in program.units:
            entries.extend(
                ContainerCatalogEntry(name=d.name, size=d.container_size, scope=unit.name)
                for d in unit.local_declarations
                if d.is_indexed_container
            )
        return entries


def transpile_source(
    text: str,
    settings: Optional[TranspilerSettings] = None,
    name: str = "<source>",
) -> TranspileResult:
    """Transpile raw script text with the given (or default) settings."""
    return Transpiler(settings).transpile(SourceProgram(text, name=name))


def convert_file(
    source_path: str | Path,
    *,
    output_path: str | Path | None = None,
    html: bool = False,
    overwrite: bool = False,
    encoding: str = "utf-8",
    settings: Optional[TranspilerSettings] = None,
) -> tuple[Path, TranspileResult]:
    """Transpile a .vbs file, or the VBScript blocks of an HTML page, to a .js file."""

    path = Path(source_path)
    if not path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")

    text = path.read_text(encoding=encoding)
    if html:
        source = extract_vbscript(text, source_name=path.name)
    else:
        source = SourceProgram(text, name=path.name)
    result = Transpiler(settings).transpile(source)

    output = Path(output_path) if output_path else path.with_suffix(".js")
    if output.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file: {output}")

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.code, encoding=encoding)
    return output, result
