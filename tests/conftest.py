"""
Shared pytest fixtures for the vbjs test suite.

This module provides:
- Settings without the generated-code banner, so outputs compare exactly
- A transpile helper returning the full TranspileResult
- A knowledge-base factory and a statement transpiler bound to it
"""

import logging

import pytest

from vbjs.core.config import TranspilerSettings
from vbjs.core.diagnostics import Diagnostics
from vbjs.parser.tokens import FunctionUnit, UnitKind, VariableDeclaration
from vbjs.translator.knowledge import build_knowledge_base
from vbjs.translator.statements import StatementTranspiler
from vbjs.translator.transpiler import Transpiler


@pytest.fixture
def settings():
    """Settings with no banner comment."""
    return TranspilerSettings(EMIT_HEADER=False)


@pytest.fixture
def transpile(settings):
    """Transpile VBScript text and return the TranspileResult."""
    def _transpile(text: str, **overrides):
        chosen = settings.model_copy(update=overrides) if overrides else settings
        return Transpiler(chosen).transpile(text)
    return _transpile


@pytest.fixture
def make_kb():
    """Build a knowledge base from container and callable names."""
    def _make(containers=(), callables=(), diagnostics=None):
        declarations = [
            VariableDeclaration(name=name, is_indexed_container=True, dimensions=("5",), container_size=5)
            for name in containers
        ]
        units = [FunctionUnit(name=name, kind=UnitKind.VALUE_RETURNING) for name in callables]
        return build_knowledge_base(declarations, units, diagnostics)
    return _make


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def make_statements(make_kb, settings, diagnostics):
    """StatementTranspiler over a fresh knowledge base; shares the diagnostics fixture."""
    def _make(containers=(), callables=(), **overrides):
        chosen = settings.model_copy(update=overrides) if overrides else settings
        return StatementTranspiler(make_kb(containers, callables), chosen, diagnostics)
    return _make


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging so they never outlive capture."""
    yield
    package_logger = logging.getLogger("vbjs")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
