"""Diagnostic data model for the SimpleVB validator.

Diagnostics are plain dataclasses so the validator does not depend on the
LSP types; :meth:`Diagnostic.to_lsp` converts them at the server boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from simplevb_lsp.parser import Position, Range

if TYPE_CHECKING:
    from lsprotocol import types

DIAGNOSTIC_SOURCE = "SimpleVB"


class DiagnosticSeverity(IntEnum):
    """Severity values, numbered as in the LSP specification."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


@dataclass
class Diagnostic:
    """A problem found in a document.

    Attributes:
        severity: How serious the problem is
        range: Where the problem is; always within a single line
        message: Human readable description
        source: Producer tag, always ``SimpleVB``
        data: Optional payload for quick fixes, e.g. ``{"unusedVariable": "x"}``
    """

    severity: DiagnosticSeverity
    range: Range
    message: str
    source: str = DIAGNOSTIC_SOURCE
    data: dict[str, Any] | None = None

    @classmethod
    def for_line(
        cls,
        line_num: int,
        line: str,
        message: str,
        severity: DiagnosticSeverity,
        data: dict[str, Any] | None = None,
    ) -> Diagnostic:
        """Create a diagnostic covering a whole line."""
        return cls(
            severity=severity,
            range=Range(
                start=Position(line=line_num, character=0),
                end=Position(line=line_num, character=len(line)),
            ),
            message=message,
            data=data,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire shape."""
        result: dict[str, Any] = {
            "severity": int(self.severity),
            "range": {
                "start": {"line": self.range.start.line, "character": self.range.start.character},
                "end": {"line": self.range.end.line, "character": self.range.end.character},
            },
            "message": self.message,
            "source": self.source,
        }
        if self.data is not None:
            result["data"] = dict(self.data)
        return result

    def to_lsp(self) -> types.Diagnostic:
        """Convert to an LSP Diagnostic."""
        from lsprotocol import types

        return types.Diagnostic(
            range=types.Range(
                start=types.Position(line=self.range.start.line, character=self.range.start.character),
                end=types.Position(line=self.range.end.line, character=self.range.end.character),
            ),
            message=self.message,
            severity=types.DiagnosticSeverity(int(self.severity)),
            source=self.source,
            data=self.data,
        )
