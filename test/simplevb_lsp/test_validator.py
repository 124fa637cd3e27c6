"""
Unit tests for the SimpleVB structural validator.

Tests block balance, lexical checks, unreachable code, empty blocks,
unused variables, interface completeness and duplicate declarations.
"""

import logging
import threading

import pytest
from lsprotocol import types

from simplevb_lsp.config import ValidationSettings
from simplevb_lsp.diagnostic import Diagnostic, DiagnosticSeverity
from simplevb_lsp.parser import build_symbol_tree
from simplevb_lsp.resolver import SiblingDocument
from simplevb_lsp.validator import StructuralValidator, validate

STRUCTURAL_PREFIXES = ("Mismatched block", "Unexpected closing statement", "Missing closing statement")


def messages(diagnostics: list[Diagnostic]) -> list[str]:
    """Helper to list diagnostic messages."""
    return [d.message for d in diagnostics]


def matching(diagnostics: list[Diagnostic], text: str) -> list[Diagnostic]:
    """Helper to select diagnostics whose message contains a text."""
    return [d for d in diagnostics if text in d.message]


def sibling(uri: str, code: str) -> SiblingDocument:
    """Helper to build a sibling document from source code."""
    return SiblingDocument(uri, build_symbol_tree(code))


@pytest.mark.simplevb
class TestBlockBalance:
    """Test block start and end matching."""

    def test_well_nested_input_has_no_structural_diagnostics(self) -> None:
        """Test that balanced blocks of every kind produce no balance errors."""
        code = """Imports System.IO

#Region "Model"
Public Interface IShape
    Function Area() As Double
    Sub Draw()
End Interface

Public Class Circle
    Implements IShape
    Private radius As Double

    Public Property Name As String

    Public Property Size As Integer
        Get
            Return 1
        End Get
        Set(value As Integer)
        End Set
    End Property

    Public Function Area() As Double
        Return radius * radius
    End Function

    Public Sub Draw()
        Dim i As Integer
        For i = 0 To 1
            If i = 0 Then
                Print(i)
            ElseIf i = 1 Then
                Print(i)
            Else
                Print(i)
            End If
        Next
        Do While i > 0
            i = i - 1
        Loop
        While i < 1
            i = i + 1
        End While
        Select Case i
            Case 0
                Print(i)
            Case Else
                Print(i)
        End Select
        Try
            Print(i)
        Catch ex As Exception
            Print(i)
        Finally
            Print(i)
        End Try
        With Me
            Print(i)
        End With
        Using reader As New StreamReader("a.txt")
            Print(i)
        End Using
        If i = 1 Then Print(i)
    End Sub
End Class

Public Structure Point
    Public X As Integer
End Structure

Public Enum Color
    Red
    Green
End Enum
#End Region
"""
        diagnostics = validate(code)

        structural = [m for m in messages(diagnostics) if m.startswith(STRUCTURAL_PREFIXES)]
        assert structural == []

    def test_missing_closing_statement(self) -> None:
        """Test that an unclosed block is reported once with its 1-based start line."""
        diagnostics = validate("Sub S()\n    x = 1")

        missing = matching(diagnostics, "Missing closing statement")
        assert messages(missing) == ["Missing closing statement for 'Sub' block started at line 1."]
        assert missing[0].severity == DiagnosticSeverity.ERROR
        assert missing[0].range.start.line == 0

    def test_each_unmatched_start_is_reported(self) -> None:
        """Test that every unmatched block start gets its own diagnostic."""
        diagnostics = validate("Class C\n    Sub S()\n        x = 1")

        assert messages(matching(diagnostics, "Missing closing statement")) == [
            "Missing closing statement for 'Class' block started at line 1.",
            "Missing closing statement for 'Sub' block started at line 2.",
        ]

    def test_unexpected_closing_statement(self) -> None:
        """Test that each closing line with an empty stack is reported once."""
        diagnostics = validate("End Sub\nNext")

        assert messages(matching(diagnostics, "Unexpected closing")) == [
            "Unexpected closing statement 'End Sub'.",
            "Unexpected closing statement 'Next'.",
        ]

    def test_mismatched_block_keeps_frame_open(self) -> None:
        """Test that a mismatched closing does not pop the open block."""
        code = "Sub S()\n    For i = 0 To 1\nEnd Sub"

        diagnostics = validate(code)

        assert messages(matching(diagnostics, "Mismatched block")) == [
            "Mismatched block: Expected 'Next' (to close 'For' at line 2), but found 'End Sub'."
        ]
        assert messages(matching(diagnostics, "Missing closing statement")) == [
            "Missing closing statement for 'Sub' block started at line 1.",
            "Missing closing statement for 'For' block started at line 2.",
        ]

    def test_mismatched_while_expects_wend(self) -> None:
        """Test that an open While names Wend as its closing."""
        diagnostics = validate("Sub S()\n    While x\nEnd Sub")

        assert messages(matching(diagnostics, "Mismatched block")) == [
            "Mismatched block: Expected 'Wend' (to close 'While' at line 2), but found 'End Sub'."
        ]

    def test_interface_members_do_not_open_blocks(self) -> None:
        """Test that member signatures inside an Interface need no End line."""
        diagnostics = validate("Interface IShape\n    Sub Draw()\n    Function Area() As Double\nEnd Interface")

        assert [m for m in messages(diagnostics) if m.startswith(STRUCTURAL_PREFIXES)] == []

    def test_single_line_if_does_not_open_block(self) -> None:
        """Test that If ... Then statement needs no End If."""
        diagnostics = validate("Sub S()\n    If ready Then Start()\nEnd Sub")

        assert [m for m in messages(diagnostics) if m.startswith(STRUCTURAL_PREFIXES)] == []


@pytest.mark.simplevb
class TestLexicalChecks:
    """Test single-line checks."""

    def test_missing_then(self) -> None:
        """Test that an If without Then is an error."""
        diagnostics = validate("Sub S()\n    If ready\n        Start()\n    End If\nEnd Sub")

        missing = matching(diagnostics, "Missing 'Then'")
        assert len(missing) == 1
        assert missing[0].severity == DiagnosticSeverity.ERROR
        assert missing[0].range.start.line == 1

    def test_missing_then_skipped_for_continuation(self) -> None:
        """Test that a continued If line is not reported."""
        diagnostics = validate("Sub S()\n    If ready And _\n        steady Then\n    End If\nEnd Sub")

        assert matching(diagnostics, "Missing 'Then'") == []

    def test_dim_without_type(self) -> None:
        """Test that Dim without As or initializer is a warning."""
        diagnostics = validate("Sub S()\n    Dim x\n    Dim y = 5\n    x = y\nEnd Sub")

        untyped = matching(diagnostics, "Variable declaration without type")
        assert len(untyped) == 1
        assert untyped[0].range.start.line == 1
        assert untyped[0].severity == DiagnosticSeverity.WARNING

    def test_const_without_value(self) -> None:
        """Test that a Const without a value is an error."""
        diagnostics = validate("Const LIMIT As Integer\nConst OTHER = 3")

        missing = matching(diagnostics, "Const declaration requires a value")
        assert len(missing) == 1
        assert missing[0].range.start.line == 0
        assert missing[0].severity == DiagnosticSeverity.ERROR

    def test_line_too_long(self) -> None:
        """Test that lines longer than the limit are reported."""
        code = "x = 1 ' " + "a" * 130

        diagnostics = validate(code)

        assert messages(matching(diagnostics, "Line is too long")) == [f"Line is too long ({len(code)} > 120 characters)."]

    def test_line_length_limit_is_configurable(self) -> None:
        """Test the max_line_length setting."""
        diagnostics = validate("Dim value As Integer", settings=ValidationSettings(max_line_length=10))

        assert messages(matching(diagnostics, "Line is too long")) == ["Line is too long (20 > 10 characters)."]

    def test_todo_comment(self) -> None:
        """Test that TODO and FIXME comments are reported as information."""
        diagnostics = validate("' TODO: split this up\nx = y ' fixme: wrong sign")

        todos = [d for d in diagnostics if d.message.startswith(("TODO", "FIXME"))]
        assert messages(todos) == ["TODO: split this up", "FIXME: wrong sign"]
        assert all(d.severity == DiagnosticSeverity.INFORMATION for d in todos)

    def test_missing_return_type(self) -> None:
        """Test that a Function header without As after its arguments is a warning."""
        code = "Function F(x As Integer)\n    Return x\nEnd Function\nFunction G() As Integer\n    Return 0\nEnd Function"

        diagnostics = validate(code)

        assert messages(matching(diagnostics, "return type")) == ["Function 'F' is missing a return type (e.g. 'As Object')."]

    def test_missing_type_after_as(self) -> None:
        """Test that a header ending in a bare As is a warning."""
        diagnostics = validate("Function F() As\n    Return 0\nEnd Function")

        assert messages(matching(diagnostics, "missing type after 'As'")) == ["Function declaration is missing type after 'As'."]


@pytest.mark.simplevb
class TestMagicNumbers:
    """Test the magic number check."""

    def test_magic_number_payload_and_range(self) -> None:
        """Test that a literal other than 0/1 is reported with its text and span."""
        diagnostics = validate("Sub S()\n    Dim x As Integer\n    x = 42\nEnd Sub")

        magic = matching(diagnostics, "magic number")
        assert len(magic) == 1
        assert magic[0].message == "Avoid magic numbers (42). Use a Constant instead."
        assert magic[0].data == {"magicNumber": "42"}
        assert magic[0].severity == DiagnosticSeverity.INFORMATION
        assert (magic[0].range.start.character, magic[0].range.end.character) == (8, 10)

    def test_allowed_numbers_const_and_strings_are_skipped(self) -> None:
        """Test that 0, 1, Const values and string contents are not reported."""
        code = 'Const LIMIT = 42\nSub S()\n    Dim s As String\n    s = "404"\n    s = s & 0 & 1\nEnd Sub'

        diagnostics = validate(code)

        assert matching(diagnostics, "magic number") == []

    def test_check_can_be_disabled(self) -> None:
        """Test the check_magic_numbers setting."""
        settings = ValidationSettings(check_magic_numbers=False)

        diagnostics = validate("Sub S()\n    Dim x As Integer\n    x = 42\nEnd Sub", settings=settings)

        assert matching(diagnostics, "magic number") == []


@pytest.mark.simplevb
class TestUnreachableCode:
    """Test unreachable code detection."""

    def test_statement_after_return(self) -> None:
        """Test that a statement after Return in the same block is reported."""
        diagnostics = validate("Sub S()\n    Return\n    Print(1)\nEnd Sub")

        unreachable = matching(diagnostics, "Unreachable code")
        assert len(unreachable) == 1
        assert unreachable[0].range.start.line == 2
        assert unreachable[0].severity == DiagnosticSeverity.WARNING

    def test_returns_in_branches(self) -> None:
        """Test that a Return in one branch does not make the next branch unreachable."""
        code = """Function F(flag As Boolean) As Integer
    If flag Then
        Return 1
    Else
        Return 0
    End If
End Function
"""
        assert matching(validate(code), "Unreachable code") == []

    def test_code_after_block_with_return_is_reachable(self) -> None:
        """Test that leaving a block clears the flag."""
        code = """Sub S(flag As Boolean)
    If flag Then
        Throw New Exception("stop")
    End If
    Print(flag)
End Sub
"""
        assert matching(validate(code), "Unreachable code") == []

    def test_return_in_getter_does_not_affect_setter(self) -> None:
        """Test that End Get ends the accessor so the setter is reachable."""
        code = """Class C
    Property Size As Integer
        Get
            Return 0
        End Get
        Set(value As Integer)
            Print(value)
        End Set
    End Property
End Class
"""
        assert matching(validate(code), "Unreachable code") == []

    def test_statement_after_exit(self) -> None:
        """Test that Exit makes the following statement unreachable."""
        code = "Sub S()\n    For i = 0 To 1\n        Exit For\n        Print(i)\n    Next\nEnd Sub"

        unreachable = matching(validate(code), "Unreachable code")
        assert [d.range.start.line for d in unreachable] == [3]


@pytest.mark.simplevb
class TestEmptyBlocks:
    """Test empty block detection."""

    def test_empty_if(self) -> None:
        """Test that an If without statements is a warning at its start line."""
        diagnostics = validate("Sub S(a As Boolean)\n    If a Then\n    End If\nEnd Sub")

        empty = matching(diagnostics, "Empty")
        assert messages(empty) == ["Empty 'If' block detected."]
        assert empty[0].severity == DiagnosticSeverity.WARNING
        assert empty[0].range.start.line == 1

    def test_else_line_is_not_content(self) -> None:
        """Test that an Else line alone does not make an If non-empty."""
        diagnostics = validate("Sub S(a As Boolean)\n    If a Then\n    Else\n    End If\nEnd Sub")

        assert messages(matching(diagnostics, "Empty")) == ["Empty 'If' block detected."]

    def test_statement_in_else_branch_counts(self) -> None:
        """Test that a statement in any branch makes the block non-empty."""
        diagnostics = validate("Sub S(a As Boolean)\n    If a Then\n    Else\n        Print(a)\n    End If\nEnd Sub")

        assert matching(diagnostics, "Empty") == []

    def test_empty_catch(self) -> None:
        """Test that an empty Catch part is reported as information at the Catch line."""
        code = """Sub S()
    Try
        Print(1)
    Catch ex As Exception
    End Try
End Sub
"""
        empty = matching(validate(code), "Empty")

        assert messages(empty) == ["Empty 'Catch' block detected."]
        assert empty[0].severity == DiagnosticSeverity.INFORMATION
        assert empty[0].range.start.line == 3

    def test_empty_try_part(self) -> None:
        """Test that an empty Try part is reported when Catch starts."""
        code = """Sub S()
    Try
    Catch ex As Exception
        Print(ex)
    End Try
End Sub
"""
        empty = matching(validate(code), "Empty")

        assert messages(empty) == ["Empty 'Try' block detected."]
        assert empty[0].range.start.line == 1

    def test_empty_sub_is_not_reported(self) -> None:
        """Test that declaration blocks are never reported as empty."""
        assert matching(validate("Sub S()\nEnd Sub"), "Empty") == []


@pytest.mark.simplevb
class TestStatementPlacement:
    """Test Return and Exit placement checks."""

    def test_return_outside_method(self) -> None:
        """Test that Return at top level is an error."""
        diagnostics = validate("Return")

        assert "'Return' statement must be inside a Function, Sub, or Property." in messages(diagnostics)

    def test_return_value_in_sub(self) -> None:
        """Test that a Sub cannot return a value."""
        diagnostics = validate("Sub S()\n    Return 5\nEnd Sub")

        assert "'Return' in a Sub cannot return a value." in messages(diagnostics)

    def test_bare_return_in_function(self) -> None:
        """Test that a Function must return a value."""
        diagnostics = validate("Function F() As Integer\n    Return\nEnd Function")

        assert "'Return' in a Function/Property must return a value." in messages(diagnostics)

    def test_bare_return_in_property_setter(self) -> None:
        """Test that a bare Return inside a Set accessor is allowed."""
        code = """Class C
    Property Size As Integer
        Get
            Return 0
        End Get
        Set(value As Integer)
            Return
        End Set
    End Property
End Class
"""
        assert matching(validate(code), "'Return'") == []

    def test_exit_outside_matching_block(self) -> None:
        """Test that Exit For outside a For loop is an error."""
        diagnostics = validate("Sub S()\n    Exit For\nEnd Sub")

        assert "'Exit For' must be inside a 'For' block." in messages(diagnostics)

    def test_exit_inside_matching_block(self) -> None:
        """Test that Exit Sub inside a nested block is accepted."""
        diagnostics = validate("Sub S(a As Boolean)\n    If a Then\n        Exit Sub\n    End If\nEnd Sub")

        assert matching(diagnostics, "must be inside") == []


@pytest.mark.simplevb
class TestSemanticChecks:
    """Test checks that resolve names through the symbol tree."""

    def test_assignment_to_constant(self) -> None:
        """Test that assigning to a Const is an error."""
        code = """Module M
    Const LIMIT As Integer = 10
    Sub S()
        LIMIT = 5
    End Sub
End Module
"""
        errors = matching(validate(code), "Cannot assign")

        assert messages(errors) == ["Cannot assign to constant 'LIMIT'."]
        assert errors[0].range.start.line == 3

    def test_assignment_to_shadowing_local_is_allowed(self) -> None:
        """Test that a local with the constant's name may be assigned."""
        code = """Module M
    Const limit As Integer = 10
    Sub S()
        Dim limit As Integer
        limit = 5
    End Sub
End Module
"""
        assert matching(validate(code), "Cannot assign") == []

    def test_unknown_type(self) -> None:
        """Test that an undeclared type is a warning."""
        diagnostics = validate("Sub S()\n    Dim w As Widget\n    w = Nothing\nEnd Sub")

        unknown = matching(diagnostics, "is not defined")
        assert messages(unknown) == ["Type 'Widget' is not defined."]
        assert unknown[0].severity == DiagnosticSeverity.WARNING

    def test_known_types(self) -> None:
        """Test that built-in, framework, local and sibling types are accepted."""
        code = """Class Widget
End Class
Sub S()
    Dim a As Widget
    Dim b As Gadget
    Dim c As System.Text.StringBuilder
    Dim d As New List(Of String)
    Dim e As Integer
    Print(a, b, c, d, e)
End Sub
"""
        diagnostics = validate(code, [sibling("file:///gadget.vb", "Class Gadget\nEnd Class")])

        assert matching(diagnostics, "is not defined") == []

    def test_generic_type_parameter_is_known(self) -> None:
        """Test that a class's type parameter may be used as a type."""
        code = "Class Box(Of T)\n    Private item As T\nEnd Class"

        assert matching(validate(code), "is not defined") == []

    def test_unknown_type_check_can_be_disabled(self) -> None:
        """Test the check_unknown_types setting."""
        settings = ValidationSettings(check_unknown_types=False)

        diagnostics = validate("Sub S()\n    Dim w As Widget\n    w = Nothing\nEnd Sub", settings=settings)

        assert matching(diagnostics, "is not defined") == []


@pytest.mark.simplevb
class TestUnusedVariables:
    """Test unused local variable detection."""

    def test_unused_variable(self) -> None:
        """Test that a local never used in its method is reported once."""
        diagnostics = validate("Sub S()\n Dim x As Integer\nEnd Sub")

        unused = matching(diagnostics, "declared but never used")
        assert messages(unused) == ["Variable 'x' is declared but never used."]
        assert unused[0].data == {"unusedVariable": "x"}
        assert unused[0].severity == DiagnosticSeverity.INFORMATION
        assert unused[0].range.start.line == 1
        assert unused[0].range.start.character == 5

    def test_usage_removes_diagnostic(self) -> None:
        """Test that any whole-word usage in the method counts."""
        diagnostics = validate("Sub S()\n Dim x As Integer\n Print(X)\nEnd Sub")

        assert matching(diagnostics, "declared but never used") == []

    def test_partial_word_is_not_a_usage(self) -> None:
        """Test that a longer identifier containing the name is not a usage."""
        diagnostics = validate("Sub S()\n Dim x As Integer\n Print(xy)\nEnd Sub")

        assert len(matching(diagnostics, "declared but never used")) == 1

    def test_usage_outside_method_does_not_count(self) -> None:
        """Test that only the method's own range is searched."""
        code = "Sub S()\n Dim x As Integer\nEnd Sub\nSub T()\n Print(x)\nEnd Sub"

        assert len(matching(validate(code), "declared but never used")) == 1

    def test_multi_declarator_line(self) -> None:
        """Test that each declarator of a Dim line is checked on its own."""
        code = "Sub S()\n Dim a As Integer, b As Integer\n Print(a)\nEnd Sub"

        assert messages(matching(validate(code), "declared but never used")) == ["Variable 'b' is declared but never used."]

    def test_arguments_are_not_checked(self) -> None:
        """Test that unused arguments are not reported."""
        assert matching(validate("Sub S(x As Integer)\nEnd Sub"), "declared but never used") == []

    def test_pascal_case_local(self) -> None:
        """Test the local naming convention check."""
        diagnostics = validate("Sub S()\n Dim Total As Integer\n Print(Total)\nEnd Sub")

        naming = matching(diagnostics, "camelCase")
        assert len(naming) == 1
        assert naming[0].severity == DiagnosticSeverity.INFORMATION

    def test_naming_check_can_be_disabled(self) -> None:
        """Test the check_naming setting."""
        settings = ValidationSettings(check_naming=False)

        diagnostics = validate("Sub S()\n Dim Total As Integer\n Print(Total)\nEnd Sub", settings=settings)

        assert matching(diagnostics, "camelCase") == []


@pytest.mark.simplevb
class TestInterfaceCompleteness:
    """Test Implements checks."""

    INTERFACE = """Interface IFoo
    Sub M1()
    Sub M2()
End Interface
"""

    CLASS = """Class Foo
    Implements IFoo
    Sub M1()
    End Sub
End Class
"""

    def test_missing_member(self) -> None:
        """Test that exactly the missing member is reported."""
        diagnostics = validate(self.INTERFACE + "\n" + self.CLASS)

        missing = matching(diagnostics, "must implement")
        assert len(missing) == 1
        assert missing[0].message == "Class 'Foo' must implement member 'M2' of interface 'IFoo'."
        assert missing[0].severity == DiagnosticSeverity.ERROR
        assert missing[0].data is not None
        assert missing[0].data["missingMember"] == "M2"
        assert missing[0].data["interfaceName"] == "IFoo"
        assert missing[0].data["memberDetail"] == "Sub()"

    def test_interface_from_sibling_document(self) -> None:
        """Test that the interface is resolved in another open document."""
        diagnostics = validate(self.CLASS, [sibling("file:///ifoo.vb", self.INTERFACE)], uri="file:///foo.vb")

        assert [d.data["missingMember"] for d in matching(diagnostics, "must implement")] == ["M2"]

    def test_member_kind_must_match(self) -> None:
        """Test that a Function does not implement an interface Sub."""
        code = self.INTERFACE + "\nClass Foo\n    Implements IFoo\n    Sub M1()\n    End Sub\n    Function M2() As Integer\n        Return 0\n    End Function\nEnd Class\n"

        missing = matching(validate(code), "must implement")

        assert [d.data["missingMember"] for d in missing] == ["M2"]

    def test_members_inside_region(self) -> None:
        """Test that members declared inside a #Region count as implemented."""
        code = (
            "Interface IFoo\n    Sub M1()\nEnd Interface\n"
            "Class C\n    Implements IFoo\n    #Region \"Impl\"\n"
            "    Public Sub M1() Implements IFoo.M1\n    End Sub\n    #End Region\nEnd Class\n"
        )

        assert matching(validate(code), "must implement") == []

    def test_missing_member_with_regions(self) -> None:
        """Test that a member missing from every region is still reported."""
        code = self.INTERFACE + (
            "\nClass Foo\n    Implements IFoo\n    #Region \"First\"\n    #Region \"Nested\"\n"
            "    Sub M1()\n    End Sub\n    #End Region\n    #End Region\nEnd Class\n"
        )

        missing = matching(validate(code), "must implement")

        assert [d.data["missingMember"] for d in missing] == ["M2"]

    def test_unresolved_interface_is_skipped(self) -> None:
        """Test that an interface that cannot be found produces no diagnostic."""
        assert matching(validate(self.CLASS), "must implement") == []


@pytest.mark.simplevb
class TestDuplicates:
    """Test duplicate declaration checks."""

    def test_cross_file_duplicate(self) -> None:
        """Test that a class declared in a sibling document is reported once."""
        code = "Class MyClass\nEnd Class"

        diagnostics = validate(code, [sibling("file:///b.vb", code)], uri="file:///a.vb")

        duplicates = matching(diagnostics, "already declared in '")
        assert messages(duplicates) == ["Symbol 'MyClass' is already declared in 'file:///b.vb'."]
        assert duplicates[0].data == {"otherUri": "file:///b.vb"}
        assert duplicates[0].range.start.character == 6

    def test_cross_file_duplicate_reported_once(self) -> None:
        """Test that only the first sibling with a duplicate is named."""
        code = "Class MyClass\nEnd Class"
        siblings = [sibling("file:///b.vb", code), sibling("file:///c.vb", code)]

        diagnostics = validate(code, siblings, uri="file:///a.vb")

        assert messages(matching(diagnostics, "already declared in '")) == [
            "Symbol 'MyClass' is already declared in 'file:///b.vb'."
        ]

    def test_same_uri_sibling_is_ignored(self) -> None:
        """Test that the validated document itself is skipped among siblings."""
        code = "Class MyClass\nEnd Class"

        diagnostics = validate(code, [sibling("file:///a.vb", code)], uri="file:///a.vb")

        assert matching(diagnostics, "already declared") == []

    def test_different_kind_is_not_a_duplicate(self) -> None:
        """Test that a Module and a Class with the same name do not clash."""
        diagnostics = validate("Class Shape\nEnd Class", [sibling("file:///b.vb", "Module Shape\nEnd Module")])

        assert matching(diagnostics, "already declared") == []

    def test_same_scope_duplicate(self) -> None:
        """Test that a name declared twice in one method is reported at the second declaration."""
        diagnostics = validate("Sub S()\n    Dim x As Integer\n    Dim x As String\n    Print(x)\nEnd Sub")

        duplicates = matching(diagnostics, "already declared in this scope")
        assert messages(duplicates) == ["Symbol 'x' is already declared in this scope."]
        assert duplicates[0].range.start.line == 2

    def test_overloads_are_not_duplicates(self) -> None:
        """Test that methods with different signatures may share a name."""
        code = "Sub P(a As Integer)\nEnd Sub\nSub P(a As String)\nEnd Sub"

        assert matching(validate(code), "already declared") == []


@pytest.mark.simplevb
class TestValidatorContract:
    """Test general properties of validation."""

    def test_validation_is_deterministic(self) -> None:
        """Test that validating the same text twice gives identical results."""
        code = "Sub S()\n    Dim x\n    x = 42\n    If x Then\nEnd Sub\nEnd If"

        first = [d.to_dict() for d in validate(code)]
        second = [d.to_dict() for d in validate(code)]

        assert first == second

    def test_validator_instance_is_reusable(self) -> None:
        """Test that one validator gives the same result on repeated calls."""
        validator = StructuralValidator()
        code = "Sub S()\n Dim x As Integer\nEnd Sub"

        assert messages(validator.validate(code)) == messages(validator.validate(code))

    def test_shared_validator_across_threads(self) -> None:
        """Test that one validator used from two threads gives the sequential results."""
        validator = StructuralValidator()
        documents = {
            "file:///a.vb": "Sub A()\n    Dim x\n    x = 42\n    For i = 0 To 1\nEnd Sub\nEnd If",
            "file:///b.vb": "Class B\n    Function F() As Widget\n        Return Nothing\n        Dim y As Integer\n    End Function\n",
        }
        expected = {uri: [d.to_dict() for d in validator.validate(code, uri=uri)] for uri, code in documents.items()}
        results: dict[str, list[list[dict]]] = {uri: [] for uri in documents}
        barrier = threading.Barrier(len(documents))

        def run(uri: str) -> None:
            barrier.wait()
            for _ in range(30):
                results[uri].append([d.to_dict() for d in validator.validate(documents[uri], uri=uri)])

        threads = [threading.Thread(target=run, args=(uri,)) for uri in documents]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for uri in documents:
            assert len(results[uri]) == 30
            assert all(result == expected[uri] for result in results[uri])

    def test_ordering_of_passes(self) -> None:
        """Test that unclosed blocks come before symbol tree checks."""
        found = messages(validate("Sub S()\n    Dim x As Integer"))

        missing_index = found.index("Missing closing statement for 'Sub' block started at line 1.")
        unused_index = found.index("Variable 'x' is declared but never used.")
        assert missing_index < unused_index

    @pytest.mark.parametrize(
        "code",
        [
            "",
            "End If\nEnd If\nLoop\nWend",
            "Function F(\nSub\nDim\nConst\nImplements",
            ")))(((\n\"unterminated\nIf If If Then Then\nCatch\nFinally",
            "Class C\n    Implements C\nEnd Class",
        ],
    )
    def test_validate_never_raises(self, code: str) -> None:
        """Test that arbitrary text yields a list of diagnostics."""
        assert isinstance(validate(code), list)

    def test_logger_is_used(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that a supplied logger receives progress messages."""
        custom = logging.getLogger("simplevb.test")

        with caplog.at_level(logging.DEBUG, logger="simplevb.test"):
            validate("End Sub", logger=custom)

        assert any(record.name == "simplevb.test" for record in caplog.records)


@pytest.mark.simplevb
class TestDiagnosticConversion:
    """Test diagnostic serialization."""

    def test_to_dict_wire_shape(self) -> None:
        """Test the JSON wire shape of a diagnostic."""
        diagnostic = validate("Sub S()\n Dim x As Integer\nEnd Sub")[0]

        wire = diagnostic.to_dict()

        assert wire == {
            "severity": 3,
            "range": {"start": {"line": 1, "character": 5}, "end": {"line": 1, "character": 6}},
            "message": "Variable 'x' is declared but never used.",
            "source": "SimpleVB",
            "data": {"unusedVariable": "x"},
        }

    def test_to_lsp(self) -> None:
        """Test conversion to an LSP Diagnostic."""
        diagnostic = validate("End Sub")[0]

        lsp_diagnostic = diagnostic.to_lsp()

        assert lsp_diagnostic.severity == types.DiagnosticSeverity.Error
        assert lsp_diagnostic.source == "SimpleVB"
        assert lsp_diagnostic.range.end.character == 7
