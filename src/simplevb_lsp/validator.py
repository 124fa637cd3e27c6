"""Structural and semantic validation of SimpleVB documents.

The validator makes one forward pass over the lines with its own block stack,
then runs checks over the symbol tree built by :mod:`simplevb_lsp.parser`:

- block balance (unexpected, mismatched and missing closing statements)
- lexical checks (missing ``Then``, untyped ``Dim``, ``Const`` without value,
  long lines, TODO/FIXME markers, magic numbers, missing return types)
- unreachable code after ``Return``, ``Throw`` and ``Exit``
- empty ``If``/``For``/``While``/``Do``/``Select``/``Try`` blocks
- ``Return``/``Exit`` placement, assignment to constants, unknown types
- unused local variables and local naming convention
- interface completeness for ``Implements`` lines
- duplicate declarations in the same scope and across open documents

Validation never raises; malformed input only produces diagnostics.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from simplevb_lsp import patterns
from simplevb_lsp.config import ValidationSettings
from simplevb_lsp.diagnostic import Diagnostic, DiagnosticSeverity
from simplevb_lsp.parser import (
    ARGUMENT_DETAIL_PREFIX,
    METHOD_LIKE_KINDS,
    SYMBOL_KIND_CLASS,
    SYMBOL_KIND_CONSTANT,
    SYMBOL_KIND_ENUM,
    SYMBOL_KIND_FUNCTION,
    SYMBOL_KIND_INTERFACE,
    SYMBOL_KIND_METHOD,
    SYMBOL_KIND_MODULE,
    SYMBOL_KIND_NAMESPACE,
    SYMBOL_KIND_PACKAGE,
    SYMBOL_KIND_PROPERTY,
    SYMBOL_KIND_STRUCT,
    SYMBOL_KIND_VARIABLE,
    ParsedSymbol,
    Position,
    Range,
    SimpleVBParser,
    is_implements,
    iter_symbols,
)
from simplevb_lsp.resolver import SiblingDocument, lookup_in_documents, lookup_in_scope
from simplevb_lsp.text_utils import (
    BLOCK_TYPE_NAMES,
    INTERFACE_MEMBER_KEYWORDS,
    LineClass,
    classify,
    closing_block_type,
    code_part,
    comment_text,
    control_block_type,
    find_closing_paren,
    header_opens_block,
    mask_strings,
    next_code_line,
    split_lines,
)

logger = logging.getLogger(__name__)

# Built-in and common framework types that never need a declaration
BUILTIN_TYPES = frozenset(
    {
        "boolean",
        "byte",
        "char",
        "date",
        "decimal",
        "double",
        "integer",
        "long",
        "object",
        "sbyte",
        "short",
        "single",
        "string",
        "uinteger",
        "ulong",
        "ushort",
        "variant",
        "void",
        "int",
        "bool",
        "action",
        "array",
        "collection",
        "datetime",
        "dictionary",
        "eventargs",
        "exception",
        "func",
        "guid",
        "hashset",
        "icollection",
        "icomparable",
        "idictionary",
        "idisposable",
        "ienumerable",
        "ilist",
        "keyvaluepair",
        "list",
        "nullable",
        "queue",
        "stack",
        "stringbuilder",
        "task",
        "timespan",
        "tuple",
        "type",
    }
)

QUALIFIED_BUILTIN_PREFIXES = ("system.", "microsoft.")

# Kinds a type name in an ``As`` clause may resolve to
TYPE_KINDS = frozenset(
    {SYMBOL_KIND_CLASS, SYMBOL_KIND_INTERFACE, SYMBOL_KIND_ENUM, SYMBOL_KIND_STRUCT, SYMBOL_KIND_NAMESPACE, SYMBOL_KIND_MODULE}
)

# Top-level kinds checked for duplicates across documents
CROSS_FILE_KINDS = frozenset({SYMBOL_KIND_CLASS, SYMBOL_KIND_MODULE, SYMBOL_KIND_INTERFACE, SYMBOL_KIND_ENUM, SYMBOL_KIND_STRUCT})

# Kinds whose same-scope duplicates are legal or meaningless
DUPLICATE_EXEMPT_KINDS = frozenset({SYMBOL_KIND_PROPERTY, SYMBOL_KIND_PACKAGE, SYMBOL_KIND_NAMESPACE})

# Overloads share a name and kind but differ in signature
OVERLOADABLE_KINDS = frozenset({SYMBOL_KIND_METHOD, SYMBOL_KIND_FUNCTION})

INTERFACE_MEMBER_KINDS = frozenset({SYMBOL_KIND_METHOD, SYMBOL_KIND_FUNCTION, SYMBOL_KIND_PROPERTY})

# Blocks reported when they contain no statement
EMPTY_CHECKED_TYPES = frozenset({"If", "For", "While", "Do", "Select", "Try"})

EXPECTED_CLOSING = {
    "If": "End If",
    "For": "Next",
    "While": "Wend",
    "Do": "Loop",
    "Region": "#End Region",
}

RETURNING_BLOCK_TYPES = ("Sub", "Function", "Property")

LOCAL_NAMING_MESSAGE = "Local variables should be camelCase (start with lowercase)."


@dataclass
class ValidationFrame:
    """An open block on the validator's stack.

    Attributes:
        block_type: Canonical block type (``If``, ``Sub``, ``Try``, ...)
        line: Line where the block starts
        has_content: Whether a statement occurred in the current part
        part: Current part of a multi-part block (``Catch``, ``Finally``, ``Get``, ``Set``)
        part_line: Line where the current part starts
        accessor: ``Get``/``Let``/``Set`` for ``Property Get X`` style headers
    """

    block_type: str
    line: int
    has_content: bool = False
    part: str | None = None
    part_line: int = -1
    accessor: str | None = None

    def __post_init__(self) -> None:
        if self.part_line < 0:
            self.part_line = self.line


def _is_type_symbol(symbol: ParsedSymbol) -> bool:
    return symbol.kind in TYPE_KINDS and not is_implements(symbol)


def _expected_closing(block_type: str) -> str:
    return EXPECTED_CLOSING.get(block_type, f"End {block_type}")


def _declared_members(symbol: ParsedSymbol) -> Iterable[ParsedSymbol]:
    """Yield the members of a type, looking through its regions."""
    for child in symbol.children:
        if child.kind == SYMBOL_KIND_NAMESPACE:
            yield from _declared_members(child)
        else:
            yield child


class StructuralValidator:
    """Validator for a single SimpleVB document.

    The validator holds only its settings; every :meth:`validate` call keeps
    its state in a separate pass object, so one instance may be shared
    between threads.
    """

    def __init__(self, settings: ValidationSettings | None = None, logger: logging.Logger | None = None) -> None:
        """Initialize the validator.

        Args:
            settings: Validation options; defaults are used when omitted
            logger: Logger to report progress to; defaults to this module's logger
        """
        self.settings = settings or ValidationSettings()
        self._logger = logger or logging.getLogger(__name__)
        self._parser = SimpleVBParser(logger=self._logger)

    def validate(
        self,
        content: str,
        siblings: Iterable[SiblingDocument] | None = None,
        uri: str = "",
        symbols: list[ParsedSymbol] | None = None,
    ) -> list[Diagnostic]:
        """Validate a document.

        Args:
            content: SimpleVB source code
            siblings: Other open documents used for cross-file checks
            uri: URI of the validated document; a sibling with the same URI is ignored
            symbols: Already built symbol tree of ``content``, built here when omitted

        Returns:
            Diagnostics: line checks first, then unclosed blocks, then symbol tree checks
        """
        lines = split_lines(content)
        if symbols is None:
            symbols = self._parser.parse(content)
        other_documents = [doc for doc in (siblings or []) if not uri or doc.uri != uri]

        self._logger.debug(f"Validating {uri or '<document>'}: {len(lines)} lines, {len(other_documents)} siblings")
        diagnostics = _ValidationPass(lines, symbols, other_documents, self.settings, self._logger).run()
        self._logger.debug(f"Validation of {uri or '<document>'} produced {len(diagnostics)} diagnostics")
        return diagnostics


class _ValidationPass:
    """Per-call state of a single validation."""

    def __init__(
        self,
        lines: list[str],
        symbols: list[ParsedSymbol],
        siblings: list[SiblingDocument],
        settings: ValidationSettings,
        log: logging.Logger,
    ) -> None:
        self._lines = lines
        self._symbols = symbols
        self._siblings = siblings
        self.settings = settings
        self._logger = log
        self._stack: list[ValidationFrame] = []
        self._unreachable: set[int] = set()
        self._type_parameters: set[str] = set()
        self._diagnostics: list[Diagnostic] = []

    def run(self) -> list[Diagnostic]:
        for line_num, raw_line in enumerate(self._lines):
            self._validate_line(line_num, raw_line)
        self._check_unclosed_blocks()

        self._check_locals(self._symbols)
        self._check_interfaces()
        self._check_cross_file_duplicates()
        self._check_scope_duplicates(self._symbols)
        return self._diagnostics

    # Line pass

    def _validate_line(self, line_num: int, raw_line: str) -> None:
        self._check_todo(line_num, raw_line)
        if len(raw_line) > self.settings.max_line_length:
            self._add(
                line_num,
                f"Line is too long ({len(raw_line)} > {self.settings.max_line_length} characters).",
                DiagnosticSeverity.WARNING,
            )

        trimmed, indent = code_part(raw_line)
        if not trimmed:
            return

        depth_before = len(self._stack)
        structural = self._validate_structure(line_num, raw_line, trimmed)
        if structural:
            floor = min(depth_before, len(self._stack))
            self._unreachable = {depth for depth in self._unreachable if depth < floor}
        else:
            if self._stack:
                self._stack[-1].has_content = True
            if len(self._stack) in self._unreachable:
                self._add(line_num, "Unreachable code detected.", DiagnosticSeverity.WARNING)

        self._validate_syntax(line_num, trimmed)

        if patterns.RETURN_PATTERN.match(trimmed) or patterns.THROW_PATTERN.match(trimmed) or patterns.EXIT_PATTERN.match(trimmed):
            self._unreachable.add(len(self._stack))

        if self.settings.check_magic_numbers:
            self._check_magic_numbers(line_num, trimmed, indent)
        self._check_const_assignment(line_num, trimmed, indent)
        if self.settings.check_unknown_types:
            self._check_unknown_types(line_num, trimmed, indent)

    def _validate_structure(self, line_num: int, raw_line: str, trimmed: str) -> bool:
        """Update the block stack for a line.

        Returns:
            True if the line opens, closes or splits a block
        """
        line_class = classify(raw_line)

        if line_class == LineClass.BLOCK_END:
            closing = closing_block_type(trimmed)
            if closing is not None:
                self._close_block(closing, line_num, trimmed)
            return True

        if line_class == LineClass.BRANCH:
            if patterns.CATCH_PATTERN.match(trimmed):
                self._start_part("Catch", line_num)
            elif patterns.FINALLY_PATTERN.match(trimmed):
                self._start_part("Finally", line_num)
            return True

        block_match = patterns.BLOCK_START_PATTERN.match(trimmed)
        if block_match:
            return self._open_declaration_block(block_match, line_num, trimmed)

        region_match = patterns.REGION_START_PATTERN.match(trimmed)
        if region_match:
            self._push(ValidationFrame(block_type="Region", line=line_num))
            return True

        control = control_block_type(trimmed)
        if control is not None:
            self._push(ValidationFrame(block_type=control, line=line_num))
            return True

        accessor_match = patterns.ACCESSOR_BLOCK_PATTERN.match(trimmed)
        if accessor_match and self._stack and self._stack[-1].block_type == "Property":
            frame = self._stack[-1]
            frame.part = accessor_match.group("accessor").capitalize()
            frame.part_line = line_num
            return True

        if patterns.ACCESSOR_END_PATTERN.match(trimmed) and self._stack and self._stack[-1].block_type == "Property":
            self._stack[-1].part = None
            return True

        return False

    def _open_declaration_block(self, match: re.Match[str], line_num: int, trimmed: str) -> bool:
        keyword = match.group("keyword").lower()
        generic_match = patterns.GENERIC_HEADER_PATTERN.match(trimmed[match.end() :])
        if generic_match:
            self._type_parameters.update(name.strip().lower() for name in generic_match.group("names").split(",") if name.strip())

        in_interface = bool(self._stack) and self._stack[-1].block_type == "Interface"
        if in_interface and keyword in INTERFACE_MEMBER_KEYWORDS:
            return False
        if not header_opens_block(match, trimmed, next_code_line(self._lines, line_num)):
            return False

        accessor = match.group("accessor")
        self._push(
            ValidationFrame(
                block_type=BLOCK_TYPE_NAMES[keyword],
                line=line_num,
                accessor=accessor.capitalize() if accessor else None,
            )
        )
        return True

    def _push(self, frame: ValidationFrame) -> None:
        self._logger.debug(f"Validator: pushing '{frame.block_type}' at line {frame.line}")
        # A nested block counts as content of its parent
        if self._stack:
            self._stack[-1].has_content = True
        self._stack.append(frame)

    def _start_part(self, part: str, line_num: int) -> None:
        """Close the current part of a ``Try`` block and start a ``Catch`` or ``Finally`` part."""
        if not self._stack or self._stack[-1].block_type != "Try":
            return
        frame = self._stack[-1]
        if not frame.has_content:
            self._add(frame.part_line, f"Empty '{frame.part or frame.block_type}' block detected.", DiagnosticSeverity.INFORMATION)
        frame.has_content = False
        frame.part = part
        frame.part_line = line_num

    def _close_block(self, closing: str, line_num: int, trimmed: str) -> None:
        if not self._stack:
            self._add(line_num, f"Unexpected closing statement '{trimmed}'.", DiagnosticSeverity.ERROR)
            return

        frame = self._stack[-1]
        if frame.block_type.lower() != closing.lower():
            # The open frame stays on the stack
            self._add(
                line_num,
                f"Mismatched block: Expected '{_expected_closing(frame.block_type)}' "
                f"(to close '{frame.block_type}' at line {frame.line + 1}), but found '{trimmed}'.",
                DiagnosticSeverity.ERROR,
            )
            return

        self._stack.pop()
        if frame.block_type in EMPTY_CHECKED_TYPES and not frame.has_content:
            part_name = frame.part or frame.block_type
            severity = DiagnosticSeverity.WARNING
            if frame.block_type == "Try" or part_name in ("Catch", "Finally"):
                severity = DiagnosticSeverity.INFORMATION
            self._add(frame.part_line, f"Empty '{part_name}' block detected.", severity)

    def _find_open_block(self, block_types: Iterable[str]) -> ValidationFrame | None:
        wanted = {block_type.lower() for block_type in block_types}
        for frame in reversed(self._stack):
            if frame.block_type.lower() in wanted:
                return frame
        return None

    def _validate_syntax(self, line_num: int, trimmed: str) -> None:
        if patterns.IF_LINE_PATTERN.match(trimmed) and not patterns.THEN_PATTERN.search(trimmed) and not trimmed.endswith("_"):
            self._add(line_num, "Missing 'Then' in If statement.", DiagnosticSeverity.ERROR)

        dim_match = patterns.DIM_PATTERN.match(trimmed)
        if dim_match:
            rest = dim_match.group("rest")
            if not patterns.HAS_AS_PATTERN.search(rest) and "=" not in rest:
                self._add(line_num, "Variable declaration without type (As ...).", DiagnosticSeverity.WARNING)

        if patterns.CONST_WITHOUT_VALUE_PATTERN.match(trimmed):
            self._add(line_num, "Const declaration requires a value (e.g. Const x = 1).", DiagnosticSeverity.ERROR)

        if patterns.RETURN_PATTERN.match(trimmed):
            self._check_return(line_num, trimmed)

        exit_match = patterns.EXIT_PATTERN.match(trimmed)
        if exit_match:
            exit_type = BLOCK_TYPE_NAMES[exit_match.group("kind").lower()]
            if self._find_open_block([exit_type]) is None:
                self._add(line_num, f"'Exit {exit_type}' must be inside a '{exit_type}' block.", DiagnosticSeverity.ERROR)

        block_match = patterns.BLOCK_START_PATTERN.match(trimmed)
        if block_match and block_match.group("keyword").lower() in ("function", "property"):
            self._check_return_type(line_num, trimmed, block_match)

    def _check_return(self, line_num: int, trimmed: str) -> None:
        frame = self._find_open_block(RETURNING_BLOCK_TYPES)
        if frame is None:
            self._add(line_num, "'Return' statement must be inside a Function, Sub, or Property.", DiagnosticSeverity.ERROR)
            return

        has_value = bool(trimmed[len("Return") :].strip())
        if frame.block_type == "Sub":
            if has_value:
                self._add(line_num, "'Return' in a Sub cannot return a value.", DiagnosticSeverity.ERROR)
        elif not has_value and frame.part != "Set" and frame.accessor not in ("Let", "Set"):
            self._add(line_num, "'Return' in a Function/Property must return a value.", DiagnosticSeverity.ERROR)

    def _check_return_type(self, line_num: int, trimmed: str, match: re.Match[str]) -> None:
        """Warn about a Function or Property header without ``As <Type>`` after its argument list."""
        if patterns.NON_HEADER_PATTERN.match(trimmed) or trimmed.endswith("_"):
            return
        if match.group("accessor") and match.group("accessor").lower() in ("let", "set"):
            return

        tail = trimmed[match.end() :]
        # Skip the generic parameter list and the argument list
        for _ in range(2):
            stripped = tail.lstrip()
            if not stripped.startswith("("):
                break
            close_index = find_closing_paren(stripped, 0)
            tail = "" if close_index == -1 else stripped[close_index + 1 :]

        kind = BLOCK_TYPE_NAMES[match.group("keyword").lower()]
        if patterns.AS_CLAUSE_PATTERN.search(tail):
            return
        if patterns.TRAILING_AS_PATTERN.search(tail):
            self._add(line_num, f"{kind} declaration is missing type after 'As'.", DiagnosticSeverity.WARNING)
            return
        self._add(
            line_num,
            f"{kind} '{match.group('name')}' is missing a return type (e.g. 'As Object').",
            DiagnosticSeverity.WARNING,
        )

    def _check_todo(self, line_num: int, raw_line: str) -> None:
        comment = comment_text(raw_line)
        if comment is None:
            return
        todo_match = patterns.TODO_PATTERN.search(comment)
        if todo_match:
            marker = todo_match.group("marker").upper()
            self._add(line_num, f"{marker}: {todo_match.group('text').strip()}", DiagnosticSeverity.INFORMATION)

    def _check_magic_numbers(self, line_num: int, trimmed: str, indent: int) -> None:
        if patterns.CONST_LINE_PATTERN.match(trimmed):
            return
        if self._stack and self._stack[-1].block_type == "Enum":
            return

        for number_match in patterns.NUMBER_PATTERN.finditer(mask_strings(trimmed)):
            literal = number_match.group(0)
            if float(literal) in self.settings.allowed_numbers:
                continue
            start = indent + number_match.start()
            self._diagnostics.append(
                Diagnostic(
                    severity=DiagnosticSeverity.INFORMATION,
                    range=Range(
                        start=Position(line=line_num, character=start),
                        end=Position(line=line_num, character=start + len(literal)),
                    ),
                    message=f"Avoid magic numbers ({literal}). Use a Constant instead.",
                    data={"magicNumber": literal},
                )
            )

    def _check_const_assignment(self, line_num: int, trimmed: str, indent: int) -> None:
        assignment = patterns.ASSIGNMENT_PATTERN.match(trimmed)
        if not assignment:
            return
        name = assignment.group("name")
        position = Position(line=line_num, character=indent + assignment.start("name"))
        symbol = lookup_in_scope(self._symbols, name, position)
        if symbol is not None and symbol.kind == SYMBOL_KIND_CONSTANT:
            self._add(line_num, f"Cannot assign to constant '{name}'.", DiagnosticSeverity.ERROR)

    def _check_unknown_types(self, line_num: int, trimmed: str, indent: int) -> None:
        for as_match in patterns.AS_CLAUSE_PATTERN.finditer(mask_strings(trimmed)):
            type_name = as_match.group("type")
            if type_name.endswith("."):
                continue
            lowered = type_name.lower()
            if lowered in BUILTIN_TYPES or lowered in self._type_parameters:
                continue
            if lowered.startswith(QUALIFIED_BUILTIN_PREFIXES):
                continue

            position = Position(line=line_num, character=indent + as_match.start("type"))
            if self._resolve_type(type_name, position):
                continue
            self._add(line_num, f"Type '{type_name}' is not defined.", DiagnosticSeverity.WARNING)

    def _resolve_type(self, type_name: str, position: Position) -> bool:
        """Resolve a possibly qualified type name, locally first and then in sibling documents."""
        first, *rest = type_name.split(".")
        symbol = lookup_in_scope(self._symbols, first, position, predicate=_is_type_symbol)
        if symbol is None:
            found = lookup_in_documents(self._siblings, first)
            symbol = found[1] if found else None
        if symbol is None:
            return False

        for part in rest:
            part_lower = part.lower()
            symbol = next((child for child in symbol.children if child.name.lower() == part_lower), None)
            if symbol is None:
                return False
        return symbol.kind in TYPE_KINDS

    def _check_unclosed_blocks(self) -> None:
        for frame in self._stack:
            self._add(
                frame.line,
                f"Missing closing statement for '{frame.block_type}' block started at line {frame.line + 1}.",
                DiagnosticSeverity.ERROR,
            )

    # Symbol tree passes

    def _check_locals(self, symbols: list[ParsedSymbol]) -> None:
        """Report unused locals and locals not written in camelCase."""
        for symbol in iter_symbols(symbols):
            if symbol.kind not in METHOD_LIKE_KINDS:
                continue
            for child in symbol.children:
                if child.kind != SYMBOL_KIND_VARIABLE or child.detail.startswith(ARGUMENT_DETAIL_PREFIX):
                    continue
                if not self._is_used(child, symbol):
                    self._diagnostics.append(
                        Diagnostic(
                            severity=DiagnosticSeverity.INFORMATION,
                            range=child.selection_range,
                            message=f"Variable '{child.name}' is declared but never used.",
                            data={"unusedVariable": child.name},
                        )
                    )
                if self.settings.check_naming and child.name[:1].isupper():
                    self._diagnostics.append(
                        Diagnostic(
                            severity=DiagnosticSeverity.INFORMATION,
                            range=child.selection_range,
                            message=LOCAL_NAMING_MESSAGE,
                        )
                    )

    def _is_used(self, variable: ParsedSymbol, scope: ParsedSymbol) -> bool:
        """Search the scope's lines for the variable name, skipping its declaration line."""
        word = re.compile(r"\b" + re.escape(variable.name) + r"\b", re.IGNORECASE)
        declaration_line = variable.selection_range.start.line
        last_line = min(scope.range.end.line, len(self._lines) - 1)
        for line_num in range(scope.range.start.line, last_line + 1):
            if line_num == declaration_line:
                continue
            code, _ = code_part(self._lines[line_num])
            if word.search(mask_strings(code)):
                return True
        return False

    def _check_interfaces(self) -> None:
        for symbol in iter_symbols(self._symbols):
            for child in symbol.children:
                if is_implements(child):
                    self._check_implementation(symbol, child)

    def _check_implementation(self, implementer: ParsedSymbol, implements: ParsedSymbol) -> None:
        interface_name = implements.name.split(".")[-1]
        interface = self._resolve_interface(interface_name, implements.selection_range.start)
        if interface is None:
            self._logger.debug(f"Interface '{implements.name}' not resolved, skipping completeness check")
            return

        declared = {(child.name.lower(), child.kind) for child in _declared_members(implementer)}
        for member in interface.children:
            if member.kind not in INTERFACE_MEMBER_KINDS:
                continue
            if (member.name.lower(), member.kind) in declared:
                continue
            self._diagnostics.append(
                Diagnostic(
                    severity=DiagnosticSeverity.ERROR,
                    range=implements.range,
                    message=f"Class '{implementer.name}' must implement member '{member.name}' of interface '{implements.name}'.",
                    data={
                        "missingMember": member.name,
                        "interfaceName": implements.name,
                        "memberKind": member.kind,
                        "memberDetail": member.detail,
                    },
                )
            )

    def _resolve_interface(self, name: str, position: Position) -> ParsedSymbol | None:
        def is_interface(symbol: ParsedSymbol) -> bool:
            return symbol.kind == SYMBOL_KIND_INTERFACE and not is_implements(symbol)

        symbol = lookup_in_scope(self._symbols, name, position, predicate=is_interface)
        if symbol is None:
            found = lookup_in_documents(self._siblings, name)
            symbol = found[1] if found else None
        if symbol is None or not is_interface(symbol):
            return None
        return symbol

    def _check_cross_file_duplicates(self) -> None:
        for symbol in self._symbols:
            if symbol.kind not in CROSS_FILE_KINDS or is_implements(symbol):
                continue
            name_lower = symbol.name.lower()
            for document in self._siblings:
                duplicate = any(
                    other.kind == symbol.kind and other.name.lower() == name_lower and not is_implements(other)
                    for other in document.symbols
                )
                if duplicate:
                    self._diagnostics.append(
                        Diagnostic(
                            severity=DiagnosticSeverity.ERROR,
                            range=symbol.selection_range,
                            message=f"Symbol '{symbol.name}' is already declared in '{document.uri}'.",
                            data={"otherUri": document.uri},
                        )
                    )
                    break

    def _check_scope_duplicates(self, symbols: list[ParsedSymbol]) -> None:
        seen: set[tuple[str, int, str]] = set()
        for symbol in symbols:
            if symbol.kind not in DUPLICATE_EXEMPT_KINDS:
                detail = symbol.detail if symbol.kind in OVERLOADABLE_KINDS else ""
                key = (symbol.name.lower(), symbol.kind, detail.lower())
                if key in seen:
                    self._diagnostics.append(
                        Diagnostic(
                            severity=DiagnosticSeverity.ERROR,
                            range=symbol.selection_range,
                            message=f"Symbol '{symbol.name}' is already declared in this scope.",
                        )
                    )
                seen.add(key)
        for symbol in symbols:
            if symbol.children:
                self._check_scope_duplicates(symbol.children)

    def _add(self, line_num: int, message: str, severity: DiagnosticSeverity) -> None:
        self._logger.debug(f"Validator: line {line_num}: {message}")
        self._diagnostics.append(Diagnostic.for_line(line_num, self._lines[line_num], message, severity))


def validate(
    content: str,
    siblings: Iterable[SiblingDocument] | None = None,
    *,
    uri: str = "",
    settings: ValidationSettings | None = None,
    logger: logging.Logger | None = None,
) -> list[Diagnostic]:
    """Validate a SimpleVB document.

    Args:
        content: SimpleVB source code
        siblings: Other open documents, as ``(uri, symbols)`` pairs
        uri: URI of the validated document
        settings: Validation options
        logger: Logger to report progress to

    Returns:
        List of diagnostics
    """
    return StructuralValidator(settings=settings, logger=logger).validate(content, siblings, uri=uri)
