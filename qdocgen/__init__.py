"""QDoc comment parsing and cross-referenced documentation models."""

from .diagnostics import ContractError, Diagnostic, DiagnosticKind
from .models import (
    ContentSegment,
    CrossReference,
    DocEntry,
    DocumentModel,
    ResolutionState,
    Section,
    SectionKind,
    SegmentKind,
)
from .pipeline import DocumentBuilder, build_project
from .symbols import SourceLocation, Symbol, SymbolKind, SymbolTable, load_symbol_table

__all__ = [
    "ContentSegment",
    "ContractError",
    "CrossReference",
    "Diagnostic",
    "DiagnosticKind",
    "DocEntry",
    "DocumentBuilder",
    "DocumentModel",
    "ResolutionState",
    "Section",
    "SectionKind",
    "SegmentKind",
    "SourceLocation",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "build_project",
    "load_symbol_table",
]
