"""
Whole-program knowledge base.

``name(args)`` is either an indexed container access or a call, and the
source cannot tell which locally. One pass over every declaration and unit
name decides it for the whole program before any expression is transpiled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..core.diagnostics import DiagnosticKind, Diagnostics
from ..core.logging import get_logger
from ..parser.tokens import FunctionUnit, VariableDeclaration

logger = get_logger(__name__)


@dataclass(frozen=True)
class KnowledgeBase:
    """
    Immutable container, callable and global scalar name sets.

    Lookups are case-insensitive; ``canonical`` returns the spelling used at
    the first declaration so generated code spells each name one way.
    """

    container_names: frozenset[str] = frozenset()
    callable_names: frozenset[str] = frozenset()
    variable_names: frozenset[str] = frozenset()
    container_sizes: dict[str, int | None] = field(default_factory=dict, compare=False)
    spellings: dict[str, str] = field(default_factory=dict, compare=False)

    def is_container(self, name: str) -> bool:
        return name.casefold() in self.container_names

    def is_callable(self, name: str) -> bool:
        """True for unit names that are not shadowed by a container."""
        folded = name.casefold()
        return folded in self.callable_names and folded not in self.container_names

    def is_variable(self, name: str) -> bool:
        """True for scalars declared at global scope."""
        return name.casefold() in self.variable_names

    def canonical(self, name: str) -> str:
        return self.spellings.get(name.casefold(), name)

    def size_of(self, name: str) -> int | None:
        return self.container_sizes.get(name.casefold())

    @property
    def containers(self) -> list[str]:
        """Canonical container spellings, sorted."""
        return sorted(self.canonical(n) for n in self.container_names)

    @property
    def callables(self) -> list[str]:
        return sorted(self.canonical(n) for n in self.callable_names)


def build_knowledge_base(
    global_declarations: Iterable[VariableDeclaration],
    units: Iterable[FunctionUnit],
    diagnostics: Diagnostics | None = None,
) -> KnowledgeBase:
    """
    Build the knowledge base from global declarations and all units.

    Unit names become callables; every indexed declaration (global or local)
    becomes a container. A name that is both is kept as a container and
    recorded as an unresolved ambiguity.

    Args:
        global_declarations: Declarations outside any unit
        units: Every parsed FunctionUnit
        diagnostics: Where to record ambiguities (optional)

    Returns:
        KnowledgeBase
    """
    containers: set[str] = set()
    callables: set[str] = set()
    sizes: dict[str, int | None] = {}
    spellings: dict[str, str] = {}
    callable_lines: dict[str, int] = {}

    units = list(units)
    declarations = list(global_declarations)
    variables = {d.name.casefold() for d in declarations if not d.is_indexed_container}
    for unit in units:
        declarations.extend(unit.local_declarations)
        folded = unit.name.casefold()
        callables.add(folded)
        spellings.setdefault(folded, unit.name)
        callable_lines.setdefault(folded, unit.start_line)

    for declaration in declarations:
        if not declaration.is_indexed_container:
            continue
        folded = declaration.name.casefold()
        containers.add(folded)
        sizes.setdefault(folded, declaration.container_size)
        spellings.setdefault(folded, declaration.name)

    for folded in sorted(containers & callables):
        message = (
            f"'{spellings[folded]}' is declared both as a container and as a callable unit "
            f"(line {callable_lines[folded]}); container interpretation wins"
        )
        logger.warning(message)
        if diagnostics is not None:
            diagnostics.record(DiagnosticKind.AMBIGUITY_UNRESOLVED, message, callable_lines[folded])

    kb = KnowledgeBase(
        container_names=frozenset(containers),
        callable_names=frozenset(callables),
        variable_names=frozenset(variables - containers - callables),
        container_sizes=sizes,
        spellings=spellings,
    )
    logger.info(f"Knowledge base: {len(containers)} containers, {len(callables)} callables")
    return kb
