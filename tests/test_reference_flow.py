from movecheck.model import FieldId, Location, Severity
from movecheck.parser import (
    Assert,
    Assignment,
    BorrowGlobal,
    Call,
    CallExpression,
    ExternalCall,
    FieldAccess,
    Function,
    Loop,
    Return,
    Value,
    Variable,
)
from movecheck.reference_flow import ReferenceFlowAnalyzer


def test_field_becomes_reference_and_later_use_leaks():
    function = Function(
        "f",
        body=[
            Assignment("a", FieldAccess(Variable("obj"), "balance")),
            Return(Variable("balance")),
        ],
    )
    analyzer = ReferenceFlowAnalyzer()
    leaks = analyzer.analyze_function(function)
    assert [l.context for l in leaks] == ["Reference balance may leak"]
    assert leaks[0].leaked_field == FieldId()
    assert leaks[0].severity is Severity.HIGH
    assert leaks[0].location == Location()
    assert analyzer.is_reference("balance") is True
    assert analyzer.is_reference("obj") is False


def test_base_is_checked_before_field_is_tracked():
    function = Function("f", body=[Return(FieldAccess(Variable("x"), "x"))])
    analyzer = ReferenceFlowAnalyzer()
    assert analyzer.analyze_function(function) == []
    assert analyzer.is_reference("x") is True


def test_call_statement_arguments_are_analyzed_in_order():
    function = Function(
        "f", body=[Call("m::g", (FieldAccess(Variable("o"), "cap"), Variable("cap")))]
    )
    leaks = ReferenceFlowAnalyzer().analyze_function(function)
    assert [l.context for l in leaks] == ["Reference cap may leak"]


def test_nested_call_expression_and_loop_and_assert():
    function = Function(
        "f",
        body=[
            Loop(CallExpression("g", (FieldAccess(Variable("s"), "total"),))),
            Assert(Variable("total")),
        ],
    )
    leaks = ReferenceFlowAnalyzer().analyze_function(function)
    assert [l.context for l in leaks] == ["Reference total may leak"]


def test_statements_without_expressions_are_ignored():
    function = Function(
        "f", body=[ExternalCall("coin::value"), BorrowGlobal("Pool"), Return(Value("1"))]
    )
    analyzer = ReferenceFlowAnalyzer()
    assert analyzer.analyze_function(function) == []
    assert analyzer.is_reference("Pool") is False


def test_tracked_references_persist_across_functions():
    analyzer = ReferenceFlowAnalyzer()
    analyzer.analyze_function(
        Function("first", body=[Assignment("a", FieldAccess(Variable("o"), "owner"))])
    )
    leaks = analyzer.analyze_function(Function("second", body=[Return(Variable("owner"))]))
    assert [l.context for l in leaks] == ["Reference owner may leak"]