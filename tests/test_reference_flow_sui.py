import pytest

from movecheck.model import CapId, Location, Permission, Severity
from movecheck.object_state import ObjectId
from movecheck.parser import Assignment, FieldAccess, Function, Return, Variable
from movecheck.reference_flow_sui import (
    CapabilityDelegation,
    CapabilityReferenceState,
    ObjectReferenceState,
    ReferenceType,
    SuiReferenceFlowAnalyzer,
    TransferState,
)

OBJ = ObjectId("vault", "Vault", "7")
CAP = CapId("vault", "OwnerCap")


def analyzer_with_object(state):
    analyzer = SuiReferenceFlowAnalyzer()
    analyzer.object_states["a"] = state
    return analyzer


def test_mutable_reference_to_shared_object_assignment_is_flagged():
    state = ObjectReferenceState(OBJ, ReferenceType.MUTABLE, TransferState.shared())
    analyzer = analyzer_with_object(state)
    leaks = analyzer.analyze_function(Function("f", body=[Assignment("b", Variable("a"))]))
    assert len(leaks) == 1
    leak = leaks[0]
    assert leak.context == "Unsafe object reference pattern detected"
    assert leak.severity is Severity.HIGH
    assert leak.location.context == "Assignment to b"
    assert leak.leaked_field.module_name == "vault"
    assert leak.leaked_field.struct_name == "Vault"
    assert analyzer.object_states["b"] is state


def test_transferred_object_assignment_is_flagged_even_if_immutable():
    state = ObjectReferenceState(OBJ, ReferenceType.IMMUTABLE, TransferState.transferred("bob"))
    analyzer = analyzer_with_object(state)
    leaks = analyzer.analyze_function(Function("f", body=[Assignment("b", Variable("a"))]))
    assert [leak.context for leak in leaks] == ["Unsafe object reference pattern detected"]


def test_owned_object_assignment_is_safe_and_propagates():
    state = ObjectReferenceState(OBJ, ReferenceType.MUTABLE, TransferState.owned())
    analyzer = analyzer_with_object(state)
    leaks = analyzer.analyze_function(Function("f", body=[Assignment("b", Variable("a"))]))
    assert leaks == []
    assert analyzer.object_states["b"] is state


def test_returning_mutable_non_owned_object_is_critical():
    state = ObjectReferenceState(OBJ, ReferenceType.MUTABLE, TransferState.frozen())
    analyzer = analyzer_with_object(state)
    leaks = analyzer.analyze_function(Function("f", body=[Return(Variable("a"))]))
    assert [(l.context, l.severity, l.location.context) for l in leaks] == [
        ("Object reference escapes through return", Severity.CRITICAL, "Return statement")
    ]


@pytest.mark.parametrize(
    "reference_type, transfer_state",
    [
        (ReferenceType.MUTABLE, TransferState.owned()),
        (ReferenceType.IMMUTABLE, TransferState.shared()),
    ],
)
def test_safe_returns(reference_type, transfer_state):
    analyzer = analyzer_with_object(ObjectReferenceState(OBJ, reference_type, transfer_state))
    assert analyzer.analyze_function(Function("f", body=[Return(Variable("a"))])) == []


def test_unknown_variable_is_ignored():
    analyzer = SuiReferenceFlowAnalyzer()
    leaks = analyzer.analyze_function(Function("f", body=[Assignment("b", Variable("zz"))]))
    assert leaks == []
    assert "b" not in analyzer.object_states
    assert "b" not in analyzer.capability_states


def test_capability_without_permissions_is_critical():
    analyzer = SuiReferenceFlowAnalyzer()
    state = CapabilityReferenceState(CAP)
    analyzer.capability_states["cap"] = state
    leaks = analyzer.analyze_function(Function("f", body=[Assignment("c", Variable("cap"))]))
    assert len(leaks) == 1
    assert leaks[0].context == "Unsafe capability usage pattern detected"
    assert leaks[0].severity is Severity.CRITICAL
    assert leaks[0].leaked_field.struct_name == "OwnerCap"
    assert analyzer.capability_states["c"] is state


def test_capability_with_permissions_and_no_delegation_is_safe():
    analyzer = SuiReferenceFlowAnalyzer()
    analyzer.capability_states["cap"] = CapabilityReferenceState(CAP, {Permission.ADMIN})
    leaks = analyzer.analyze_function(Function("f", body=[Assignment("c", Variable("cap"))]))
    assert leaks == []
    assert "c" in analyzer.capability_states


def test_delegated_capability_is_flagged():
    analyzer = SuiReferenceFlowAnalyzer()
    analyzer.capability_states["cap"] = CapabilityReferenceState(
        CAP,
        {Permission.ADMIN},
        [CapabilityDelegation("alice", "bob", {Permission.ADMIN}, Location())],
    )
    leaks = analyzer.analyze_function(Function("f", body=[Assignment("c", Variable("cap"))]))
    assert [leak.context for leak in leaks] == ["Unsafe capability usage pattern detected"]


def test_base_flow_analysis_runs_after_object_checks():
    state = ObjectReferenceState(OBJ, ReferenceType.MUTABLE, TransferState.shared())
    analyzer = analyzer_with_object(state)
    body = [
        Assignment("b", Variable("a")),
        Assignment("x", FieldAccess(Variable("o"), "balance")),
        Return(Variable("balance")),
    ]
    contexts = [leak.context for leak in analyzer.analyze_function(Function("f", body=body))]
    assert contexts == [
        "Unsafe object reference pattern detected",
        "Reference balance may leak",
    ]


def test_transfer_state_rejects_unknown_kind():
    with pytest.raises(ValueError):
        TransferState("lost")
    assert TransferState.transferred("bob").recipient == "bob"