"""SimpleVB Language Server Package.

This package provides symbol outline, navigation and diagnostics for the
SimpleVB language, and a pygls-based LSP server exposing them.
"""

__version__ = "0.1.0"

from simplevb_lsp.diagnostic import Diagnostic, DiagnosticSeverity
from simplevb_lsp.parser import ParsedSymbol, SimpleVBParser, build_symbol_tree
from simplevb_lsp.validator import StructuralValidator, validate

__all__ = [
    "Diagnostic",
    "DiagnosticSeverity",
    "ParsedSymbol",
    "SimpleVBParser",
    "StructuralValidator",
    "build_symbol_tree",
    "validate",
]
