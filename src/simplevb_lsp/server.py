"""SimpleVB Language Server built on pygls.

This module wires the symbol builder, resolver and validator to the
Language Server Protocol:

- textDocument/didOpen, didChange, didClose
- textDocument/documentSymbol
- textDocument/definition
- textDocument/implementation
- workspace/symbol
- textDocument/publishDiagnostics (debounced on edits)
"""

from __future__ import annotations

import functools
import logging
import sys
from collections.abc import Callable
from typing import Any, TypeVar

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from simplevb_lsp import __version__
from simplevb_lsp.config import ServerSettings
from simplevb_lsp.index import DocumentStore
from simplevb_lsp.parser import ParsedSymbol, Position, SimpleVBParser, is_implements
from simplevb_lsp.resolver import SiblingDocument, find_implementations, lookup_in_documents, lookup_in_scope
from simplevb_lsp.scheduler import DiagnosticsScheduler
from simplevb_lsp.text_utils import get_word_at_position
from simplevb_lsp.validator import StructuralValidator

logger = logging.getLogger(__name__)

SERVER_NAME = "simplevb-lsp"

T = TypeVar("T")

__all__ = ["SimpleVBLanguageServer", "get_word_at_position", "main"]


def safe_handler(default: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Make a request handler log unexpected errors and return ``default``.

    Args:
        default: Result returned to the client when the handler raises
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception(f"Error in handler {func.__name__}")
                return default

        return wrapper

    return decorator


def _symbol_location(uri: str, symbol: ParsedSymbol) -> types.Location:
    selection = symbol.selection_range
    return types.Location(
        uri=uri,
        range=types.Range(
            start=types.Position(line=selection.start.line, character=selection.start.character),
            end=types.Position(line=selection.end.line, character=selection.end.character),
        ),
    )


class SimpleVBLanguageServer:
    """SimpleVB Language Server.

    Owns the pygls server, the document store and the debounce table for
    diagnostics. Handler methods can also be called directly, which is how
    the tests drive the server.
    """

    def __init__(self, settings: ServerSettings | None = None) -> None:
        """Initialize the server.

        Args:
            settings: Server options; replaced by initializationOptions on initialize
        """
        self.lsp = LanguageServer(
            SERVER_NAME,
            __version__,
            text_document_sync_kind=types.TextDocumentSyncKind.Full,
        )
        self.settings = settings or ServerSettings()
        self._index = DocumentStore(SimpleVBParser(logger=logger))
        self._validator = StructuralValidator(settings=self.settings.validation, logger=logger)
        self._scheduler = DiagnosticsScheduler(self.publish_diagnostics, delay=self.settings.debounce_seconds, logger=logger)
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register LSP feature handlers with the pygls server."""
        self.lsp.feature(types.INITIALIZE)(self.initialize)
        self.lsp.feature(types.TEXT_DOCUMENT_DID_OPEN)(self.did_open)
        self.lsp.feature(types.TEXT_DOCUMENT_DID_CHANGE)(self.did_change)
        self.lsp.feature(types.TEXT_DOCUMENT_DID_CLOSE)(self.did_close)
        self.lsp.feature(types.TEXT_DOCUMENT_DOCUMENT_SYMBOL)(self.document_symbol)
        self.lsp.feature(types.TEXT_DOCUMENT_DEFINITION)(self.goto_definition)
        self.lsp.feature(types.TEXT_DOCUMENT_IMPLEMENTATION)(self.goto_implementation)
        self.lsp.feature(types.WORKSPACE_SYMBOL)(self.workspace_symbol)

    # Lifecycle

    def initialize(self, params: types.InitializeParams) -> None:
        """Read server options from the client's initializationOptions."""
        options = params.initialization_options
        self.apply_settings(ServerSettings.from_dict(options if isinstance(options, dict) else None))
        logger.info(f"{SERVER_NAME} {__version__} initialized")

    def apply_settings(self, settings: ServerSettings) -> None:
        """Apply new server options."""
        self.settings = settings
        self._validator.settings = settings.validation
        self._scheduler.delay = settings.debounce_seconds
        logging.getLogger("simplevb_lsp").setLevel(settings.log_level)

    def shutdown(self) -> None:
        """Cancel pending validations."""
        self._scheduler.cancel_all()

    # Document synchronization

    def did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Handle textDocument/didOpen: store the document and validate it at once."""
        uri = params.text_document.uri
        self._open_document(uri, params.text_document.text)
        self.publish_diagnostics(uri)

    def did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Handle textDocument/didChange: store the new text and schedule validation."""
        if not params.content_changes:
            return
        uri = params.text_document.uri
        self._change_document(uri, params.content_changes[-1].text)
        self._scheduler.schedule(uri)

    def did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Handle textDocument/didClose: forget the document and clear its diagnostics."""
        uri = params.text_document.uri
        self._close_document(uri)
        self.lsp.text_document_publish_diagnostics(types.PublishDiagnosticsParams(uri=uri, diagnostics=[]))

    def _open_document(self, uri: str, content: str) -> None:
        logger.debug(f"Opened {uri}")
        self._index.update(uri, content)

    def _change_document(self, uri: str, content: str) -> None:
        logger.debug(f"Changed {uri}")
        self._index.update(uri, content)

    def _close_document(self, uri: str) -> None:
        logger.debug(f"Closed {uri}")
        self._scheduler.cancel(uri)
        self._index.remove(uri)

    # Diagnostics

    def validate_document(self, uri: str) -> list[types.Diagnostic]:
        """Validate a stored document against the other open documents.

        Returns:
            LSP diagnostics, or an empty list if the document is not open
        """
        snapshot = self._index.snapshot(uri)
        if snapshot is None:
            return []
        diagnostics = self._validator.validate(
            snapshot.content,
            snapshot.siblings,
            uri=uri,
            symbols=snapshot.symbols,
        )
        return [diagnostic.to_lsp() for diagnostic in diagnostics]

    def publish_diagnostics(self, uri: str) -> None:
        """Validate a document and send the result to the client."""
        try:
            diagnostics = self.validate_document(uri)
        except Exception:
            logger.exception(f"Validation of {uri} failed")
            return
        logger.debug(f"Publishing {len(diagnostics)} diagnostics for {uri}")
        self.lsp.text_document_publish_diagnostics(types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics))

    # Features

    @safe_handler(default=[])
    def document_symbol(self, params: types.DocumentSymbolParams) -> list[types.DocumentSymbol]:
        """Handle textDocument/documentSymbol."""
        symbols = self._index.get_symbols(params.text_document.uri)
        return [symbol.to_document_symbol() for symbol in symbols]

    @safe_handler(default=None)
    def goto_definition(self, params: types.DefinitionParams) -> types.Location | None:
        """Handle textDocument/definition.

        The name under the cursor is resolved through the scope chain of the
        current document first, then against the other open documents.
        """
        uri = params.text_document.uri
        snapshot = self._index.snapshot(uri)
        if snapshot is None:
            return None

        word = get_word_at_position(snapshot.content, params.position)
        if word is None:
            return None

        position = Position(line=params.position.line, character=params.position.character)
        symbol = lookup_in_scope(snapshot.symbols, word, position, predicate=lambda s: not is_implements(s))
        if symbol is not None:
            return _symbol_location(uri, symbol)

        found = lookup_in_documents(snapshot.siblings, word)
        if found is not None:
            return _symbol_location(*found)

        logger.debug(f"No definition found for '{word}'")
        return None

    @safe_handler(default=None)
    def goto_implementation(self, params: types.ImplementationParams) -> list[types.Location] | None:
        """Handle textDocument/implementation.

        Returns every Class or Structure in the open documents that declares
        ``Implements`` for the interface under the cursor.
        """
        uri = params.text_document.uri
        snapshot = self._index.snapshot(uri)
        if snapshot is None:
            return None

        word = get_word_at_position(snapshot.content, params.position)
        if word is None:
            return None

        documents = [SiblingDocument(uri, snapshot.symbols), *snapshot.siblings]
        implementations = find_implementations(documents, word)
        if not implementations:
            return None
        return [_symbol_location(impl_uri, symbol) for impl_uri, symbol in implementations]

    @safe_handler(default=[])
    def workspace_symbol(self, params: types.WorkspaceSymbolParams) -> list[types.SymbolInformation]:
        """Handle workspace/symbol."""
        return [symbol.to_symbol_information() for symbol in self._index.search(params.query)]

    def start(self) -> None:
        """Start the server on stdio."""
        logger.info(f"Starting {SERVER_NAME} {__version__}")
        try:
            self.lsp.start_io()
        finally:
            self.shutdown()


def main() -> None:
    """Entry point for the SimpleVB Language Server."""
    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    SimpleVBLanguageServer().start()


if __name__ == "__main__":
    main()
