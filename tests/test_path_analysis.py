import pytest

from movecheck.model import FieldId, Location, Severity
from movecheck.parser import (
    Assert,
    BorrowField,
    BorrowGlobal,
    Call,
    Function,
    Return,
    Value,
    Variable,
)
from movecheck.path_analysis import (
    PathAnalyzer,
    PathCondition,
    PathKey,
    PathState,
    ReferenceState,
    ReferenceStateKind,
)


def test_global_borrow_leaks_through_return():
    function = Function("f", body=[BorrowGlobal("Pool"), Return(Variable("x"))])
    leaks = PathAnalyzer().analyze_paths(function)
    assert [(l.leaked_field, l.context) for l in leaks] == [
        (FieldId(field_name="Pool"), "Reference leaked through return")
    ]
    assert leaks[0].severity is Severity.HIGH
    assert leaks[0].location == Location()


def test_return_without_borrows_is_clean():
    function = Function("f", body=[Assert(Value("")), Return(Variable("x"))])
    assert PathAnalyzer().analyze_paths(function) == []


def test_field_borrow_of_untracked_name_is_ignored():
    function = Function("f", body=[BorrowField("balance"), Return(Variable("x"))])
    assert PathAnalyzer().analyze_paths(function) == []


def test_internal_call_does_not_leak():
    function = Function("f", body=[BorrowGlobal("Pool"), Call("Self::helper", ())])
    assert PathAnalyzer().analyze_paths(function) == []


def test_external_call_leaks_borrowed_reference():
    function = Function("f", body=[BorrowGlobal("Pool"), Call("coin::split", ())])
    leaks = PathAnalyzer().analyze_paths(function)
    assert [l.context for l in leaks] == ["Reference may leak through call to coin::split"]


def test_analyze_statement_updates_state():
    analyzer = PathAnalyzer()
    state = PathState()
    assert analyzer.analyze_statement(BorrowGlobal("Vault"), state) == []
    assert state.reference_states["Vault"] == ReferenceState(ReferenceStateKind.BORROWED, True)


def test_field_borrow_overrides_tracked_state():
    analyzer = PathAnalyzer()
    state = PathState(reference_states={"balance": ReferenceState(ReferenceStateKind.VALID)})
    assert analyzer.analyze_statement(Return(Variable("balance")), state) == []
    analyzer.analyze_statement(BorrowField("balance"), state)
    leaks = analyzer.analyze_statement(Return(Variable("balance")), state)
    assert [l.leaked_field.field_name for l in leaks] == ["balance"]


def test_immutable_borrow_is_not_reported():
    state = PathState(
        reference_states={"x": ReferenceState(ReferenceStateKind.BORROWED, is_mutable=False)}
    )
    assert PathAnalyzer().analyze_statement(Call("m::f", ()), state) == []


def test_path_condition_rejects_unknown_kind():
    with pytest.raises(ValueError):
        PathCondition("owned", "x")


def test_path_key_equality_and_hashing():
    a = PathKey([0, 1], [PathCondition("valid", "x")])
    b = PathKey((0, 1), (PathCondition("valid", "x"),))
    assert a == b
    assert {a} == {b}