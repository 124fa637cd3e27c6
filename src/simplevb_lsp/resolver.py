"""Scope-aware symbol lookups over SimpleVB symbol trees.

All functions here are pure queries over trees produced by
:func:`simplevb_lsp.parser.build_symbol_tree`. Name comparisons are
case-insensitive. Nothing is cached; every call walks the tree again.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import NamedTuple

from simplevb_lsp.parser import (
    SYMBOL_KIND_CLASS,
    SYMBOL_KIND_ENUM,
    SYMBOL_KIND_FUNCTION,
    SYMBOL_KIND_INTERFACE,
    SYMBOL_KIND_METHOD,
    SYMBOL_KIND_MODULE,
    SYMBOL_KIND_STRUCT,
    ParsedSymbol,
    Position,
    is_implements,
)

# Kinds that can be referenced by name from another document
DEFINITION_KINDS = frozenset(
    {
        SYMBOL_KIND_CLASS,
        SYMBOL_KIND_MODULE,
        SYMBOL_KIND_INTERFACE,
        SYMBOL_KIND_ENUM,
        SYMBOL_KIND_STRUCT,
        SYMBOL_KIND_METHOD,
        SYMBOL_KIND_FUNCTION,
    }
)

SymbolPredicate = Callable[[ParsedSymbol], bool]


class SiblingDocument(NamedTuple):
    """Another open document supplied to a cross-file operation."""

    uri: str
    symbols: list[ParsedSymbol]


def definition_at(symbols: list[ParsedSymbol], position: Position) -> ParsedSymbol | None:
    """Find the symbol whose name is under a position.

    Args:
        symbols: Root symbols of a document
        position: Cursor position

    Returns:
        The first symbol, in depth-first order, whose selection range contains
        the position, or None
    """
    for symbol in symbols:
        if symbol.selection_range.contains(position):
            return symbol
        found = definition_at(symbol.children, position)
        if found is not None:
            return found
    return None


def enclosing_chain(symbols: list[ParsedSymbol], position: Position) -> list[ParsedSymbol]:
    """Return the symbols whose range contains a position, outermost first."""
    chain: list[ParsedSymbol] = []
    level = symbols
    while True:
        container = next((s for s in level if s.children and s.range.contains(position)), None)
        if container is None:
            return chain
        chain.append(container)
        level = container.children


def lookup_in_scope(
    symbols: list[ParsedSymbol],
    name: str,
    position: Position,
    predicate: SymbolPredicate | None = None,
) -> ParsedSymbol | None:
    """Resolve a bare name as seen from a position.

    The scope chain is walked from the innermost enclosing symbol outwards
    (e.g. Method, then Class, then Module); at each level the children are
    searched for the name. Root symbols are searched last.

    Args:
        symbols: Root symbols of a document
        name: Name to resolve
        position: Position the name is used at
        predicate: Optional filter a candidate must also satisfy

    Returns:
        The matching symbol, or None
    """
    name_lower = name.lower()

    def first_match(candidates: list[ParsedSymbol]) -> ParsedSymbol | None:
        for candidate in candidates:
            if candidate.name.lower() == name_lower and (predicate is None or predicate(candidate)):
                return candidate
        return None

    for container in reversed(enclosing_chain(symbols, position)):
        found = first_match(container.children)
        if found is not None:
            return found
    return first_match(symbols)


def lookup_global(symbols: list[ParsedSymbol], name: str) -> ParsedSymbol | None:
    """Find a top-level definition by name.

    Only definition kinds count (Class, Module, Interface, Enum, Structure,
    Sub, Function); ``Implements`` lines are never returned.
    """
    name_lower = name.lower()
    for symbol in symbols:
        if symbol.kind in DEFINITION_KINDS and not is_implements(symbol) and symbol.name.lower() == name_lower:
            return symbol
    return None


def lookup_in_documents(documents: Iterable[SiblingDocument], name: str) -> tuple[str, ParsedSymbol] | None:
    """Search sibling documents one at a time for a top-level definition.

    Documents are searched in the order given; the first match wins.

    Returns:
        ``(uri, symbol)`` of the first match, or None
    """
    for document in documents:
        found = lookup_global(document.symbols, name)
        if found is not None:
            return document.uri, found
    return None


def parent_of(symbols: list[ParsedSymbol], target: ParsedSymbol) -> ParsedSymbol | None:
    """Find the symbol whose children contain ``target`` (by identity).

    Returns:
        The parent symbol, or None if ``target`` is a root or not in the tree
    """
    for symbol in symbols:
        if any(child is target for child in symbol.children):
            return symbol
        found = parent_of(symbol.children, target)
        if found is not None:
            return found
    return None


def build_parent_map(symbols: list[ParsedSymbol]) -> dict[int, ParsedSymbol]:
    """Index every non-root symbol's parent by the child's ``id()``.

    Use this instead of repeated :func:`parent_of` calls when many parents
    of the same tree are needed. The map is only valid while the tree is alive.
    """
    parents: dict[int, ParsedSymbol] = {}

    def visit(symbol: ParsedSymbol) -> None:
        for child in symbol.children:
            parents[id(child)] = symbol
            visit(child)

    for root in symbols:
        visit(root)
    return parents


def find_implementations(documents: Iterable[SiblingDocument], interface_name: str) -> list[tuple[str, ParsedSymbol]]:
    """Find every symbol that declares ``Implements <interface_name>``.

    Returns:
        ``(uri, implementing symbol)`` pairs in document order. A top-level
        ``Implements`` line is returned as its own implementing symbol.
    """
    name_lower = interface_name.lower()
    results: list[tuple[str, ParsedSymbol]] = []

    def matches(symbol: ParsedSymbol) -> bool:
        return is_implements(symbol) and symbol.name.split(".")[-1].lower() == name_lower

    def visit(uri: str, symbol: ParsedSymbol) -> None:
        if any(matches(child) for child in symbol.children):
            results.append((uri, symbol))
        for child in symbol.children:
            visit(uri, child)

    for document in documents:
        for root in document.symbols:
            if matches(root):
                results.append((document.uri, root))
            visit(document.uri, root)
    return results
