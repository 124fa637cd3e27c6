"""Document store for the SimpleVB Language Server.

This module keeps the open documents of a workspace together with their
symbol trees, and a flat list of the symbols of every document for workspace
symbol search. Trees are rebuilt whenever a document changes.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

from simplevb_lsp.parser import METHOD_LIKE_KINDS, ParsedSymbol, SimpleVBParser, is_implements
from simplevb_lsp.resolver import SiblingDocument

if TYPE_CHECKING:
    from lsprotocol import types

logger = logging.getLogger(__name__)


@dataclass
class IndexedSymbol:
    """Represents an indexed symbol for fast lookup.

    Attributes:
        name: The symbol name
        kind: LSP SymbolKind value (5=Class, 6=Method, 12=Function, etc.)
        uri: Document URI where the symbol is defined
        start_line: Starting line of the name (0-indexed)
        start_character: Starting character of the name
        end_line: Ending line of the name (0-indexed)
        end_character: Ending character of the name
        container_name: Name of the containing symbol (e.g., class name)
    """

    name: str
    kind: int
    uri: str
    start_line: int
    start_character: int
    end_line: int
    end_character: int
    container_name: str | None = None

    def to_location(self) -> types.Location:
        """Convert to an LSP Location pointing at the symbol name."""
        from lsprotocol import types

        return types.Location(
            uri=self.uri,
            range=types.Range(
                start=types.Position(line=self.start_line, character=self.start_character),
                end=types.Position(line=self.end_line, character=self.end_character),
            ),
        )

    def to_symbol_information(self) -> types.SymbolInformation:
        """Convert to an LSP SymbolInformation for workspace symbol results."""
        from lsprotocol import types

        return types.SymbolInformation(
            name=self.name,
            kind=types.SymbolKind(self.kind),
            location=self.to_location(),
            container_name=self.container_name,
        )


class DocumentSnapshot(NamedTuple):
    """Consistent view of one stored document and the documents beside it."""

    content: str
    symbols: list[ParsedSymbol]
    siblings: list[SiblingDocument]


class DocumentStore:
    """Open documents of a workspace and their symbol trees.

    This class maintains two maps, both keyed by URI: the document text with
    its symbol tree, and the flattened symbols of the document. Handlers and
    diagnostics timers share one store, so every access holds a lock.
    Stored trees are replaced on update and never changed in place.
    """

    def __init__(self, parser: SimpleVBParser | None = None) -> None:
        """Initialize an empty store.

        Args:
            parser: Parser used to build symbol trees
        """
        self._parser = parser or SimpleVBParser()
        self._lock = threading.Lock()
        self._contents: dict[str, str] = {}
        self._trees: dict[str, list[ParsedSymbol]] = {}
        self._symbols_by_uri: dict[str, list[IndexedSymbol]] = {}

    def update(self, uri: str, content: str, symbols: list[ParsedSymbol] | None = None) -> list[ParsedSymbol]:
        """Store a document, replacing any previous version.

        Args:
            uri: Document URI
            content: Document content (source code)
            symbols: Symbol tree of ``content``; parsed here when omitted

        Returns:
            The stored symbol tree
        """
        if symbols is None:
            symbols = self._parser.parse(content)
        indexed_symbols = self._flatten_symbols(uri, symbols)

        with self._lock:
            # Re-inserted so an updated document moves to the end of the order
            self._remove(uri)
            self._contents[uri] = content
            self._trees[uri] = symbols
            self._symbols_by_uri[uri] = indexed_symbols

        logger.debug(f"Indexed {len(indexed_symbols)} symbols from {uri}")
        return symbols

    def remove(self, uri: str) -> None:
        """Remove a document from the store.

        Args:
            uri: Document URI to remove
        """
        with self._lock:
            self._remove(uri)

    def get_symbols(self, uri: str) -> list[ParsedSymbol]:
        """Get the symbol tree of a stored document (empty list if not open)."""
        with self._lock:
            return self._trees.get(uri, [])

    def snapshot(self, uri: str) -> DocumentSnapshot | None:
        """Take the content, tree and siblings of a document in one step.

        Args:
            uri: Document URI

        Returns:
            The snapshot, or None if the document is not open
        """
        with self._lock:
            content = self._contents.get(uri)
            if content is None:
                return None
            return DocumentSnapshot(content, self._trees[uri], self._siblings(uri))

    def search(self, query: str) -> list[IndexedSymbol]:
        """Search symbols whose name contains ``query`` (case-insensitive).

        An empty query matches every symbol. Arguments and local variables
        are not part of the results.
        """
        query_lower = query.lower()
        results: list[IndexedSymbol] = []
        with self._lock:
            for symbols in self._symbols_by_uri.values():
                results.extend(s for s in symbols if query_lower in s.name.lower())
        return results

    def _remove(self, uri: str) -> None:
        self._contents.pop(uri, None)
        self._trees.pop(uri, None)
        self._symbols_by_uri.pop(uri, None)

    def _siblings(self, uri: str) -> list[SiblingDocument]:
        """List the other stored documents in insertion order. Caller holds the lock."""
        return [SiblingDocument(other, tree) for other, tree in self._trees.items() if other != uri]

    def _flatten_symbols(
        self,
        uri: str,
        symbols: list[ParsedSymbol],
        container: ParsedSymbol | None = None,
    ) -> list[IndexedSymbol]:
        """Flatten a symbol tree into a list of IndexedSymbol objects.

        Members of method-like symbols (arguments and locals) and
        ``Implements`` lines are left out.
        """
        result: list[IndexedSymbol] = []

        for symbol in symbols:
            if is_implements(symbol):
                continue
            result.append(
                IndexedSymbol(
                    name=symbol.name,
                    kind=symbol.kind,
                    uri=uri,
                    start_line=symbol.selection_range.start.line,
                    start_character=symbol.selection_range.start.character,
                    end_line=symbol.selection_range.end.line,
                    end_character=symbol.selection_range.end.character,
                    container_name=container.name if container is not None else None,
                )
            )
            if symbol.children and symbol.kind not in METHOD_LIKE_KINDS:
                result.extend(self._flatten_symbols(uri, symbol.children, symbol))

        return result
