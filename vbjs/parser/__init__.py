"""
VBScript Parser Package

This package classifies legacy source lines into typed tokens and groups
them into function-scoped units with their declarations.
"""

from .source import SourceProgram
from .tokens import (
    Token,
    TokenKind,
    UnitKind,
    VariableDeclaration,
    FunctionUnit,
)
from .tokenizer import LineTokenizer
from .parser import ParsedProgram, ProgramParser, is_return_assignment, parse_program

__all__ = [
    "SourceProgram",
    "Token",
    "TokenKind",
    "UnitKind",
    "VariableDeclaration",
    "FunctionUnit",
    "LineTokenizer",
    "ParsedProgram",
    "ProgramParser",
    "parse_program",
    "is_return_assignment",
]
