"""SimpleVB parser for building a hierarchical symbol tree.

This module turns SimpleVB source text into a forest of :class:`ParsedSymbol`
objects in a single forward pass over the lines. Blocks (Sub, Function, Class,
Module, Property, Structure, Interface, Enum and ``#Region``) become
containers; declarations, arguments, ``Imports`` and ``Implements`` lines
become leaves of the innermost open container.

The parser never reports errors. Unbalanced input yields a best-effort tree
and the imbalance is left to :mod:`simplevb_lsp.validator`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from simplevb_lsp import patterns
from simplevb_lsp.text_utils import (
    BLOCK_TYPE_NAMES,
    INTERFACE_MEMBER_KEYWORDS,
    closing_block_type,
    code_part,
    control_block_type,
    find_closing_paren,
    header_opens_block,
    next_code_line,
    split_lines,
    split_top_level,
)

if TYPE_CHECKING:
    from lsprotocol import types

logger = logging.getLogger(__name__)


@dataclass
class Range:
    """Represents a range in a text document."""

    start: Position
    end: Position

    def contains(self, position: Position) -> bool:
        """Check whether a position lies inside this range (both ends inclusive)."""
        return (self.start.line, self.start.character) <= (position.line, position.character) <= (
            self.end.line,
            self.end.character,
        )


@dataclass
class Position:
    """Represents a position in a text document (0-indexed)."""

    line: int
    character: int


@dataclass(eq=False)
class ParsedSymbol:
    """Represents a parsed symbol from SimpleVB code.

    Symbols compare by identity, so a symbol can be located inside a tree
    even when another node carries the same name and range.

    Attributes:
        name: The symbol name
        kind: LSP SymbolKind (6 = Method, 12 = Function, 5 = Class, etc.)
        detail: Short signature summary, e.g. ``Sub(x As Integer)``
        range: The full range of the symbol in the document
        selection_range: The range of the symbol name for selection
        children: Nested symbols in source order
    """

    name: str
    kind: int  # SymbolKind value
    range: Range
    selection_range: Range
    detail: str = ""
    children: list[ParsedSymbol] = field(default_factory=list)

    def to_document_symbol(self) -> types.DocumentSymbol:
        """Convert to LSP DocumentSymbol format."""
        from lsprotocol import types

        children = [child.to_document_symbol() for child in self.children]

        return types.DocumentSymbol(
            name=self.name,
            detail=self.detail or None,
            kind=types.SymbolKind(self.kind),
            range=types.Range(
                start=types.Position(line=self.range.start.line, character=self.range.start.character),
                end=types.Position(line=self.range.end.line, character=self.range.end.character),
            ),
            selection_range=types.Range(
                start=types.Position(line=self.selection_range.start.line, character=self.selection_range.start.character),
                end=types.Position(line=self.selection_range.end.line, character=self.selection_range.end.character),
            ),
            children=children if children else None,
        )


# SymbolKind constants (from LSP spec)
SYMBOL_KIND_MODULE = 2
SYMBOL_KIND_NAMESPACE = 3
SYMBOL_KIND_PACKAGE = 4
SYMBOL_KIND_CLASS = 5
SYMBOL_KIND_METHOD = 6
SYMBOL_KIND_PROPERTY = 7
SYMBOL_KIND_FIELD = 8
SYMBOL_KIND_CONSTRUCTOR = 9
SYMBOL_KIND_ENUM = 10
SYMBOL_KIND_INTERFACE = 11
SYMBOL_KIND_FUNCTION = 12
SYMBOL_KIND_VARIABLE = 13
SYMBOL_KIND_CONSTANT = 14
SYMBOL_KIND_ENUM_MEMBER = 22
SYMBOL_KIND_STRUCT = 23

BLOCK_SYMBOL_KINDS = {
    "sub": SYMBOL_KIND_METHOD,
    "function": SYMBOL_KIND_FUNCTION,
    "class": SYMBOL_KIND_CLASS,
    "module": SYMBOL_KIND_MODULE,
    "property": SYMBOL_KIND_PROPERTY,
    "structure": SYMBOL_KIND_STRUCT,
    "interface": SYMBOL_KIND_INTERFACE,
    "enum": SYMBOL_KIND_ENUM,
}

# Kinds whose locals are subject to the unused variable check
METHOD_LIKE_KINDS = frozenset({SYMBOL_KIND_METHOD, SYMBOL_KIND_FUNCTION, SYMBOL_KIND_PROPERTY, SYMBOL_KIND_CONSTRUCTOR})

IMPLEMENTS_DETAIL_PREFIX = "Implements "
ARGUMENT_DETAIL_PREFIX = "Argument "
GENERIC_PARAMS_PATTERN = re.compile(r"^\s*Of\b", re.IGNORECASE)


def is_implements(symbol: ParsedSymbol) -> bool:
    """Check whether a symbol stands for an ``Implements X`` line."""
    return symbol.kind == SYMBOL_KIND_INTERFACE and symbol.detail.startswith(IMPLEMENTS_DETAIL_PREFIX)


@dataclass
class BlockFrame:
    """An open block while parsing.

    Attributes:
        block_type: Canonical block type expected by the closing line (e.g. ``Sub``, ``For``)
        start_line: Line where the block starts
        symbol: The symbol the block defines, or None for control flow blocks
    """

    block_type: str
    start_line: int
    symbol: ParsedSymbol | None = None


class _TreeBuilder:
    """Per-call state of a single parse."""

    def __init__(self, lines: list[str], log: logging.Logger) -> None:
        self.lines = lines
        self.log = log
        self.roots: list[ParsedSymbol] = []
        self.stack: list[BlockFrame] = []

    def build(self) -> list[ParsedSymbol]:
        for line_num, raw_line in enumerate(self.lines):
            trimmed, indent = code_part(raw_line)
            if trimmed:
                self._process_line(line_num, raw_line, trimmed, indent)
        self._close_remaining()
        return self.roots

    def _process_line(self, line_num: int, raw_line: str, trimmed: str, indent: int) -> None:
        closing = closing_block_type(trimmed)
        if closing is not None:
            self._close_block(closing, line_num, raw_line)
            return

        block_match = patterns.BLOCK_START_PATTERN.match(trimmed)
        if block_match:
            self._add_block(block_match, line_num, raw_line, trimmed, indent)
            return

        region_match = patterns.REGION_START_PATTERN.match(trimmed)
        if region_match:
            self._add_region(region_match, line_num, raw_line, indent)
            return

        control = control_block_type(trimmed)
        if control is not None:
            self.stack.append(BlockFrame(block_type=control, start_line=line_num))
            return

        imports_match = patterns.IMPORTS_PATTERN.match(trimmed)
        if imports_match:
            name = imports_match.group("name")
            col = indent + imports_match.start("name")
            self._attach(self._leaf(name, SYMBOL_KIND_PACKAGE, f"Imports {name}", line_num, indent, col, indent + len(trimmed)))
            return

        implements_match = patterns.IMPLEMENTS_PATTERN.match(trimmed)
        if implements_match:
            names_start = indent + implements_match.start("names")
            for offset, name in split_top_level(implements_match.group("names")):
                col = names_start + offset
                self._attach(
                    self._leaf(name, SYMBOL_KIND_INTERFACE, f"{IMPLEMENTS_DETAIL_PREFIX}{name}", line_num, col, col, col + len(name))
                )
            return

        if self.stack and self.stack[-1].block_type == "Enum":
            member_match = patterns.ENUM_MEMBER_PATTERN.match(trimmed)
            if member_match:
                name = member_match.group("name")
                self._attach(self._leaf(name, SYMBOL_KIND_ENUM_MEMBER, trimmed, line_num, indent, indent, indent + len(trimmed)))
            return

        dim_match = patterns.DIM_PATTERN.match(trimmed)
        if dim_match:
            self._add_dim(dim_match, line_num, indent)
            return

        const_match = patterns.CONST_PATTERN.match(trimmed)
        if const_match:
            name = const_match.group("name")
            type_name = const_match.group("type") or "Object"
            col = indent + const_match.start("name")
            self._attach(
                self._leaf(name, SYMBOL_KIND_CONSTANT, f"Const {name} As {type_name}", line_num, indent, col, indent + len(trimmed))
            )
            return

        field_match = patterns.FIELD_PATTERN.match(trimmed)
        if field_match and field_match.group("name").lower() not in patterns.FIELD_KEYWORD_EXCLUSIONS:
            name = field_match.group("name")
            modifier = field_match.group("modifier")
            type_name = field_match.group("type") or "Object"
            col = indent + field_match.start("name")
            self._attach(
                self._leaf(name, SYMBOL_KIND_FIELD, f"{modifier} {name} As {type_name}", line_num, indent, col, indent + len(trimmed))
            )

    def _close_block(self, closing: str, line_num: int, raw_line: str) -> None:
        if not self.stack or self.stack[-1].block_type.lower() != closing.lower():
            self.log.debug(f"Ignoring unmatched closing '{closing}' at line {line_num}")
            return
        frame = self.stack.pop()
        if frame.symbol is not None:
            frame.symbol.range.end = Position(line=line_num, character=len(raw_line))

    def _add_block(self, match: re.Match[str], line_num: int, raw_line: str, trimmed: str, indent: int) -> None:
        keyword = match.group("keyword").lower()
        name = match.group("name")
        name_col = indent + match.start("name")

        args_text, args_start = self._argument_list(trimmed, match.end())
        detail = BLOCK_TYPE_NAMES[keyword]
        if match.group("accessor"):
            detail += " " + match.group("accessor").capitalize()
        if args_text is not None:
            detail += f"({args_text})"

        symbol = ParsedSymbol(
            name=name,
            kind=BLOCK_SYMBOL_KINDS[keyword],
            range=Range(
                start=Position(line=line_num, character=indent),
                end=Position(line=line_num, character=len(raw_line)),
            ),
            selection_range=Range(
                start=Position(line=line_num, character=name_col),
                end=Position(line=line_num, character=name_col + len(name)),
            ),
            detail=detail,
        )
        if args_text is not None and args_start is not None:
            symbol.children.extend(self._arguments(args_text, indent + args_start, line_num))

        self._attach(symbol)

        # Interface members are signatures without a body
        in_interface = bool(self.stack) and self.stack[-1].block_type == "Interface"
        if in_interface and keyword in INTERFACE_MEMBER_KEYWORDS:
            return
        if not header_opens_block(match, trimmed, next_code_line(self.lines, line_num)):
            return
        self.stack.append(BlockFrame(block_type=BLOCK_TYPE_NAMES[keyword], start_line=line_num, symbol=symbol))

    def _argument_list(self, trimmed: str, after_name: int) -> tuple[str | None, int | None]:
        """Locate the argument list after a block name.

        A leading ``(Of T)`` generic parameter list is skipped when a second
        parenthesized list follows it.

        Returns:
            The text inside the parentheses and its start index in ``trimmed``,
            or ``(None, None)`` when there is no argument list
        """
        open_index = self._next_open_paren(trimmed, after_name)
        if open_index is None:
            return None, None

        close_index = find_closing_paren(trimmed, open_index)
        if close_index == -1:
            return trimmed[open_index + 1 :], open_index + 1

        if GENERIC_PARAMS_PATTERN.match(trimmed[open_index + 1 : close_index]):
            second_open = self._next_open_paren(trimmed, close_index + 1)
            if second_open is not None:
                second_close = find_closing_paren(trimmed, second_open)
                end = second_close if second_close != -1 else len(trimmed)
                return trimmed[second_open + 1 : end], second_open + 1

        return trimmed[open_index + 1 : close_index], open_index + 1

    def _next_open_paren(self, trimmed: str, index: int) -> int | None:
        while index < len(trimmed) and trimmed[index].isspace():
            index += 1
        if index < len(trimmed) and trimmed[index] == "(":
            return index
        return None

    def _arguments(self, args_text: str, args_col: int, line_num: int) -> list[ParsedSymbol]:
        """Build one Variable child per argument of a block header."""
        if GENERIC_PARAMS_PATTERN.match(args_text):
            return []

        arguments: list[ParsedSymbol] = []
        for offset, part in split_top_level(args_text):
            match = patterns.ARGUMENT_PATTERN.match(part)
            if not match:
                continue
            name = match.group("name")
            col = args_col + offset
            arg_text = part[match.end("modifiers") :]
            arguments.append(
                self._leaf(
                    name,
                    SYMBOL_KIND_VARIABLE,
                    f"{ARGUMENT_DETAIL_PREFIX}{arg_text}",
                    line_num,
                    col,
                    col + match.start("name"),
                    col + len(part),
                )
            )
        return arguments

    def _add_region(self, match: re.Match[str], line_num: int, raw_line: str, indent: int) -> None:
        raw_name = match.group("name").strip()
        name_col = indent + match.start("name")
        name = raw_name
        if len(raw_name) >= 2 and raw_name.startswith('"') and raw_name.endswith('"'):
            name = raw_name[1:-1]
            name_col += 1
        if not name:
            name = "#Region"
            name_col = indent

        symbol = ParsedSymbol(
            name=name,
            kind=SYMBOL_KIND_NAMESPACE,
            range=Range(
                start=Position(line=line_num, character=indent),
                end=Position(line=line_num, character=len(raw_line)),
            ),
            selection_range=Range(
                start=Position(line=line_num, character=name_col),
                end=Position(line=line_num, character=name_col + len(name)),
            ),
            detail="Region",
        )
        self._attach(symbol)
        self.stack.append(BlockFrame(block_type="Region", start_line=line_num, symbol=symbol))

    def _add_dim(self, match: re.Match[str], line_num: int, indent: int) -> None:
        rest_col = indent + match.start("rest")
        for offset, part in split_top_level(match.group("rest")):
            declarator = patterns.DECLARATOR_PATTERN.match(part)
            if declarator:
                name = declarator.group("name")
                type_name = declarator.group("type") or "Object"
            else:
                name_match = re.match(r"\w+", part)
                if not name_match:
                    continue
                name = name_match.group(0)
                type_name = "Object"
            col = rest_col + offset
            self._attach(self._leaf(name, SYMBOL_KIND_VARIABLE, f"Dim {name} As {type_name}", line_num, col, col, col + len(part)))

    def _leaf(
        self,
        name: str,
        kind: int,
        detail: str,
        line_num: int,
        start_col: int,
        name_col: int,
        end_col: int,
    ) -> ParsedSymbol:
        return ParsedSymbol(
            name=name,
            kind=kind,
            range=Range(
                start=Position(line=line_num, character=start_col),
                end=Position(line=line_num, character=max(end_col, name_col + len(name))),
            ),
            selection_range=Range(
                start=Position(line=line_num, character=name_col),
                end=Position(line=line_num, character=name_col + len(name)),
            ),
            detail=detail,
        )

    def _attach(self, symbol: ParsedSymbol) -> None:
        """Attach a symbol to the innermost open container, or to the roots."""
        for frame in reversed(self.stack):
            if frame.symbol is not None:
                frame.symbol.children.append(symbol)
                return
        self.roots.append(symbol)

    def _close_remaining(self) -> None:
        """Extend every block left open at end of file to the last line."""
        if not self.stack:
            return
        last_line = len(self.lines) - 1
        end = Position(line=last_line, character=len(self.lines[last_line]))
        for frame in self.stack:
            self.log.debug(f"Block '{frame.block_type}' opened at line {frame.start_line} is never closed")
            if frame.symbol is not None:
                frame.symbol.range.end = Position(line=end.line, character=end.character)
        self.stack.clear()


class SimpleVBParser:
    """Parser for extracting a symbol tree from SimpleVB source code."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Initialize the parser.

        Args:
            logger: Logger to report progress to; defaults to this module's logger
        """
        self._logger = logger or logging.getLogger(__name__)

    def parse(self, content: str) -> list[ParsedSymbol]:
        """Parse source code and build its symbol tree.

        Args:
            content: SimpleVB source code

        Returns:
            Root symbols in source order, with nested symbols as children
        """
        lines = split_lines(content)
        roots = _TreeBuilder(lines, self._logger).build()
        self._logger.debug(f"Parsed {len(lines)} lines into {len(roots)} root symbols")
        return roots


def build_symbol_tree(content: str) -> list[ParsedSymbol]:
    """Build the symbol tree of a document.

    Args:
        content: SimpleVB source code

    Returns:
        Root symbols of the document
    """
    return SimpleVBParser().parse(content)


def iter_symbols(symbols: list[ParsedSymbol]):
    """Yield every symbol of a tree in depth-first pre-order."""
    for symbol in symbols:
        yield symbol
        yield from iter_symbols(symbol.children)
