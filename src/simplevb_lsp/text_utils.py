"""Line classification helpers for SimpleVB source text.

Everything here works on a single physical line. Comment stripping only
truncates a line, so any column computed on the stripped text is also valid
against the original line.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING

from simplevb_lsp import patterns

if TYPE_CHECKING:
    from lsprotocol import types


LINE_SPLIT_PATTERN = re.compile(r"\r\n|\r|\n")

WORD_CHAR_PATTERN = re.compile(r"\w")

# Canonical spelling of every block type, keyed by its lowercase form
BLOCK_TYPE_NAMES = {
    "sub": "Sub",
    "function": "Function",
    "class": "Class",
    "module": "Module",
    "property": "Property",
    "structure": "Structure",
    "interface": "Interface",
    "enum": "Enum",
    "if": "If",
    "for": "For",
    "select": "Select",
    "do": "Do",
    "while": "While",
    "try": "Try",
    "with": "With",
    "using": "Using",
    "region": "Region",
}

# Types whose members are signatures without a body
INTERFACE_MEMBER_KEYWORDS = frozenset({"sub", "function", "property"})


class LineClass(Enum):
    """Coarse classification of a source line."""

    BLANK = "blank"
    BLOCK_START = "block_start"
    BLOCK_END = "block_end"
    BRANCH = "branch"
    DECLARATION = "declaration"
    PLAIN = "plain"


def strip_comment(line: str) -> str:
    """Return the part of a line before its comment.

    A comment starts at the first apostrophe that is not inside a string
    literal. String state is tracked by toggling on every double quote, so an
    escaped quote (``""``) inside a literal is only handled by parity.

    Args:
        line: A single source line

    Returns:
        The line truncated at the comment start, or the line unchanged
    """
    in_string = False
    for i, char in enumerate(line):
        if char == '"':
            in_string = not in_string
        elif char == "'" and not in_string:
            return line[:i]
    return line


def comment_text(line: str) -> str | None:
    """Return the text after the comment apostrophe, or None if there is no comment."""
    code = strip_comment(line)
    if len(code) == len(line):
        return None
    return line[len(code) + 1 :]


def split_lines(text: str) -> list[str]:
    """Split document text into lines, accepting ``\\r\\n``, ``\\r`` and ``\\n``."""
    return LINE_SPLIT_PATTERN.split(text)


def code_part(line: str) -> tuple[str, int]:
    """Strip the comment and surrounding whitespace from a line.

    Returns:
        The trimmed code and the column where it starts in the original line
    """
    code = strip_comment(line)
    trimmed = code.strip()
    return trimmed, len(code) - len(code.lstrip())


def mask_strings(text: str) -> str:
    """Replace the contents of string literals with spaces, keeping the length."""
    result: list[str] = []
    in_string = False
    for char in text:
        if char == '"':
            in_string = not in_string
            result.append(char)
        elif in_string:
            result.append(" ")
        else:
            result.append(char)
    return "".join(result)


def find_closing_paren(text: str, open_index: int) -> int:
    """Find the parenthesis matching the one at ``open_index``.

    Returns:
        Index of the matching ``)``, or -1 if the list is never closed
    """
    depth = 0
    in_string = False
    for i in range(open_index, len(text)):
        char = text[i]
        if char == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str) -> list[tuple[int, str]]:
    """Split a comma separated list, ignoring commas nested in parentheses or strings.

    ``"x As List(Of Integer), y"`` splits into two parts, while the comma in
    ``"a(,) As Integer"`` does not split at all.

    Args:
        text: The list text, for example the inside of an argument list

    Returns:
        ``(offset, part)`` pairs where ``part`` is stripped and ``offset`` is
        the index of its first character in ``text``. Empty parts are dropped.
    """
    parts: list[tuple[int, str]] = []
    depth = 0
    in_string = False
    start = 0

    def add(end: int) -> None:
        raw = text[start:end]
        stripped = raw.strip()
        if stripped:
            parts.append((start + len(raw) - len(raw.lstrip()), stripped))

    for i, char in enumerate(text):
        if char == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            add(i)
            start = i + 1
    add(len(text))
    return parts


def is_block_if(trimmed: str) -> bool:
    """Tell a block ``If`` apart from a single-line ``If ... Then statement``.

    An ``If`` without ``Then`` is treated as an unfinished block ``If``.
    """
    then_match = patterns.THEN_PATTERN.search(trimmed)
    if then_match is None:
        return True
    after_then = trimmed[then_match.end() :].strip()
    return after_then == "" or after_then.startswith("'")


def control_block_type(trimmed: str) -> str | None:
    """Return the control flow block opened by a line, if any."""
    if patterns.IF_START_PATTERN.match(trimmed):
        return "If" if is_block_if(trimmed) else None
    if patterns.FOR_START_PATTERN.match(trimmed):
        return "For"
    if patterns.SELECT_CASE_START_PATTERN.match(trimmed):
        return "Select"
    if patterns.DO_START_PATTERN.match(trimmed):
        return "Do"
    if patterns.WHILE_START_PATTERN.match(trimmed):
        return "While"
    if patterns.TRY_START_PATTERN.match(trimmed):
        return "Try"
    if patterns.WITH_START_PATTERN.match(trimmed):
        return "With"
    if patterns.USING_START_PATTERN.match(trimmed):
        return "Using"
    return None


def closing_block_type(trimmed: str) -> str | None:
    """Return the block type a closing line expects to close, if it is one.

    ``Next``, ``Loop`` and ``Wend`` close ``For``, ``Do`` and ``While``.
    """
    match = patterns.BLOCK_END_PATTERN.match(trimmed)
    if match:
        return BLOCK_TYPE_NAMES[match.group("kind").lower()]
    if patterns.NEXT_PATTERN.match(trimmed):
        return "For"
    if patterns.LOOP_PATTERN.match(trimmed):
        return "Do"
    if patterns.WEND_PATTERN.match(trimmed):
        return "While"
    if patterns.REGION_END_PATTERN.match(trimmed):
        return "Region"
    return None


def header_opens_block(match: re.Match[str], trimmed: str, next_code: str = "") -> bool:
    """Decide whether a matched Sub/Function/Property/... header has a body.

    ``MustOverride`` members and auto-implemented properties
    (``Property Name As String``) are one-line declarations. A property
    header shaped like an auto-property still opens a block when the next
    code line is a ``Get`` or ``Set`` accessor.

    Args:
        match: Match of ``BLOCK_START_PATTERN`` against ``trimmed``
        trimmed: The header line without comment and surrounding whitespace
        next_code: The next non-empty code line, if known
    """
    modifiers = match.group("modifiers").lower().split()
    if "mustoverride" in modifiers:
        return False
    if match.group("keyword").lower() == "property" and match.group("accessor") is None:
        rest = trimmed[match.end() :].lstrip()
        if not rest.startswith("(") and patterns.HAS_AS_PATTERN.search(rest):
            return bool(patterns.ACCESSOR_BLOCK_PATTERN.match(next_code))
    return True


def next_code_line(lines: list[str], line_num: int) -> str:
    """Return the first non-empty code line after ``line_num``, trimmed, or ``""``."""
    for line in lines[line_num + 1 :]:
        trimmed, _ = code_part(line)
        if trimmed:
            return trimmed
    return ""


def classify(line: str) -> LineClass:
    """Classify a raw source line.

    This is the narrow entry point for callers that only need to know what
    kind of line they are looking at.

    Args:
        line: A raw source line, comments included

    Returns:
        The line class
    """
    trimmed, _ = code_part(line)
    if not trimmed:
        return LineClass.BLANK
    if closing_block_type(trimmed) is not None:
        return LineClass.BLOCK_END
    if patterns.BRANCH_PATTERN.match(trimmed):
        return LineClass.BRANCH
    block_match = patterns.BLOCK_START_PATTERN.match(trimmed)
    if block_match and header_opens_block(block_match, trimmed):
        return LineClass.BLOCK_START
    if (
        control_block_type(trimmed) is not None
        or patterns.REGION_START_PATTERN.match(trimmed)
    ):
        return LineClass.BLOCK_START
    if (
        block_match
        or patterns.DIM_PATTERN.match(trimmed)
        or patterns.CONST_PATTERN.match(trimmed)
        or patterns.IMPORTS_PATTERN.match(trimmed)
        or patterns.IMPLEMENTS_PATTERN.match(trimmed)
    ):
        return LineClass.DECLARATION
    field_match = patterns.FIELD_PATTERN.match(trimmed)
    if field_match and field_match.group("name").lower() not in patterns.FIELD_KEYWORD_EXCLUSIONS:
        return LineClass.DECLARATION
    return LineClass.PLAIN


def get_word_at_position(content: str, position: types.Position) -> str | None:
    """Get the identifier under a cursor position.

    A cursor placed just after the last character of a word still selects it.

    Args:
        content: Document text
        position: Cursor position (0-indexed)

    Returns:
        The word, or None when the cursor is not on an identifier
    """
    lines = split_lines(content)
    if position.line < 0 or position.line >= len(lines):
        return None

    line = lines[position.line]
    col = min(max(position.character, 0), len(line))

    start = col
    while start > 0 and WORD_CHAR_PATTERN.match(line[start - 1]):
        start -= 1

    end = col
    while end < len(line) and WORD_CHAR_PATTERN.match(line[end]):
        end += 1

    if start == end:
        return None
    return line[start:end]
