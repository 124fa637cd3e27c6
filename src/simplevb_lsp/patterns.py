"""Regular expressions shared by the SimpleVB symbol builder and validator.

All patterns are case-insensitive and are applied to a single line that has
already been passed through :func:`simplevb_lsp.text_utils.strip_comment` and
trimmed, so they anchor on ``^`` without allowing leading whitespace.
"""

from __future__ import annotations

import re

# Access and declaration modifiers that may precede a block keyword
MODIFIER_WORDS = (
    "Public",
    "Private",
    "Friend",
    "Protected",
    "Shared",
    "Static",
    "Overrides",
    "Overridable",
    "MustOverride",
    "NotOverridable",
    "Overloads",
    "Shadows",
    "ReadOnly",
    "WriteOnly",
    "Default",
    "Partial",
    "MustInherit",
    "NotInheritable",
)

ACCESS_MODIFIER_PATTERN = r"(?:Public|Private|Friend|Protected)"
MODIFIERS_PATTERN = r"(?:(?:" + "|".join(MODIFIER_WORDS) + r")\s+)*"

BLOCK_KEYWORDS = ("Sub", "Function", "Class", "Module", "Property", "Structure", "Interface", "Enum")

# Groups: modifiers, keyword, accessor (Property Get/Let/Set), name
BLOCK_START_PATTERN = re.compile(
    r"^(?P<modifiers>" + MODIFIERS_PATTERN + r")"
    r"(?P<keyword>Sub|Function|Class|Module|Property|Structure|Interface|Enum)\s+"
    r"(?:(?P<accessor>Get|Let|Set)\s+(?=\w))?"
    r"(?P<name>\w+)",
    re.IGNORECASE,
)

BLOCK_END_PATTERN = re.compile(
    r"^End\s+(?P<kind>Sub|Function|Class|Module|Property|If|Select|Structure|Interface|Enum|Try|With|Using|While)\b",
    re.IGNORECASE,
)

NEXT_PATTERN = re.compile(r"^Next\b", re.IGNORECASE)
LOOP_PATTERN = re.compile(r"^Loop\b", re.IGNORECASE)
WEND_PATTERN = re.compile(r"^Wend\b", re.IGNORECASE)

REGION_START_PATTERN = re.compile(r"^#Region\b\s*(?P<name>.*)$", re.IGNORECASE)
REGION_END_PATTERN = re.compile(r"^#End\s+Region\b", re.IGNORECASE)

# Control flow blocks that open a frame but never produce a symbol
IF_START_PATTERN = re.compile(r"^If\b", re.IGNORECASE)
FOR_START_PATTERN = re.compile(r"^For\b", re.IGNORECASE)
SELECT_CASE_START_PATTERN = re.compile(r"^Select\s+Case\b", re.IGNORECASE)
DO_START_PATTERN = re.compile(r"^Do\b", re.IGNORECASE)
WHILE_START_PATTERN = re.compile(r"^While\b", re.IGNORECASE)
TRY_START_PATTERN = re.compile(r"^Try\s*$", re.IGNORECASE)
WITH_START_PATTERN = re.compile(r"^With\b", re.IGNORECASE)
USING_START_PATTERN = re.compile(r"^Using\b", re.IGNORECASE)

THEN_PATTERN = re.compile(r"\bThen\b", re.IGNORECASE)

# Lines that start a new branch inside an already open block
BRANCH_PATTERN = re.compile(r"^(?:Else|ElseIf|Case|Catch|Finally)\b", re.IGNORECASE)
CATCH_PATTERN = re.compile(r"^Catch\b", re.IGNORECASE)
FINALLY_PATTERN = re.compile(r"^Finally\b", re.IGNORECASE)

# Get/Set accessor blocks inside a full Property
ACCESSOR_BLOCK_PATTERN = re.compile(r"^(?P<accessor>Get|Set)\s*(?:\(|$)", re.IGNORECASE)
ACCESSOR_END_PATTERN = re.compile(r"^End\s+(?:Get|Set)\b", re.IGNORECASE)

# Declarations
DIM_PATTERN = re.compile(r"^(?:(?:Static|Shared)\s+)?Dim\s+(?P<rest>.+)$", re.IGNORECASE)
CONST_PATTERN = re.compile(
    r"^(?:(?P<modifier>" + ACCESS_MODIFIER_PATTERN + r")\s+)?Const\s+(?P<name>\w+)(?:\s+As\s+(?P<type>[\w.]+))?",
    re.IGNORECASE,
)
FIELD_PATTERN = re.compile(
    r"^(?P<modifier>" + ACCESS_MODIFIER_PATTERN + r"|Shared)\s+"
    r"(?:(?:Shared|ReadOnly|WithEvents|Dim)\s+)*"
    r"(?P<name>\w+)(?:\s*\([^)]*\))?(?:\s+As\s+(?:New\s+)?(?P<type>[\w.]+))?",
    re.IGNORECASE,
)
DECLARATOR_PATTERN = re.compile(
    r"^(?P<name>\w+)(?:\s*\([^)]*\))?"
    r"(?:\s+As\s+(?:New\s+)?(?P<type>[\w.]+(?:\s*\(\s*Of\b[^)]*\))?))?"
    r"\s*(?P<init>=.*)?$",
    re.IGNORECASE,
)
ARGUMENT_PATTERN = re.compile(
    r"^(?P<modifiers>(?:(?:ByVal|ByRef|Optional|ParamArray)\s+)*)(?P<name>\w+)",
    re.IGNORECASE,
)
ENUM_MEMBER_PATTERN = re.compile(r"^(?P<name>\w+)\s*(?:=.*)?$")

IMPORTS_PATTERN = re.compile(r"^Imports\s+(?P<name>[\w.]+)", re.IGNORECASE)
IMPLEMENTS_PATTERN = re.compile(r"^Implements\s+(?P<names>[\w.]+(?:\s*,\s*[\w.]+)*)", re.IGNORECASE)

# Keywords that can never be the name of a field declaration
FIELD_KEYWORD_EXCLUSIONS = frozenset(
    {
        "sub",
        "function",
        "class",
        "module",
        "property",
        "structure",
        "interface",
        "enum",
        "const",
        "event",
        "declare",
        "delegate",
        "operator",
        "overrides",
        "overridable",
        "overloads",
        "mustoverride",
        "shadows",
        "readonly",
        "writeonly",
        "default",
        "partial",
        "mustinherit",
        "notinheritable",
    }
)

# Validator only
CONST_WITHOUT_VALUE_PATTERN = re.compile(
    r"^(?:" + ACCESS_MODIFIER_PATTERN + r"\s+)?Const\s+\w+(?:\s+As\s+[\w.]+)?\s*$",
    re.IGNORECASE,
)
CONST_LINE_PATTERN = re.compile(r"^(?:" + ACCESS_MODIFIER_PATTERN + r"\s+)?Const\b", re.IGNORECASE)
RETURN_PATTERN = re.compile(r"^Return\b", re.IGNORECASE)
THROW_PATTERN = re.compile(r"^Throw\b", re.IGNORECASE)
EXIT_PATTERN = re.compile(r"^Exit\s+(?P<kind>Sub|Function|Property|Do|For|Select|While|Try)\b", re.IGNORECASE)
NON_HEADER_PATTERN = re.compile(r"^(?:End|Exit|Declare)\s+", re.IGNORECASE)
AS_CLAUSE_PATTERN = re.compile(r"\bAs\s+(?:New\s+)?(?P<type>[\w.]+)", re.IGNORECASE)
TRAILING_AS_PATTERN = re.compile(r"\bAs\s*$", re.IGNORECASE)
HAS_AS_PATTERN = re.compile(r"\bAs\b", re.IGNORECASE)
ASSIGNMENT_PATTERN = re.compile(r"^(?:(?:Set|Let)\s+)?(?P<name>\w+)\s*=(?!=)", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"(?<![\w.])\d+(?:\.\d+)?(?![\w.])")
TODO_PATTERN = re.compile(r"\b(?P<marker>TODO|FIXME)\b:?\s*(?P<text>.*)$", re.IGNORECASE)
IF_LINE_PATTERN = re.compile(r"^(?:ElseIf|If)\b", re.IGNORECASE)
GENERIC_HEADER_PATTERN = re.compile(r"^\s*\(\s*Of\s+(?P<names>[^)]*)\)", re.IGNORECASE)
