from movecheck.model import Location, Severity
from movecheck.object_state import (
    DeletedState,
    InitializedState,
    ObjectId,
    ObjectIssueType,
    ObjectStateTracker,
    TransferredState,
    UninitializedState,
)


def test_initialized_state_flags():
    state = InitializedState(owner=None, shared=True, frozen=False)
    assert state.is_shared() is True
    assert state.is_frozen() is False
    frozen = InitializedState(owner="alice", shared=False, frozen=True)
    assert frozen.is_frozen() is True
    assert frozen.is_shared() is False


def test_other_states_are_neither_shared_nor_frozen():
    for state in (UninitializedState(), TransferredState("bob", True), DeletedState()):
        assert state.is_shared() is False
        assert state.is_frozen() is False


def test_object_id_is_hashable_value():
    a = ObjectId("m", "Coin", "1")
    b = ObjectId("m", "Coin", "1")
    assert a == b
    assert {a: "x"}[b] == "x"


def test_uninitialized_object_reported():
    tracker = ObjectStateTracker()
    tracker.set_state("coin", UninitializedState())
    issues = tracker.verify_object_safety()
    assert [i.message for i in issues] == ["Object used before initialization"]
    issue = issues[0]
    assert issue.object_id == "coin"
    assert issue.issue_type is ObjectIssueType.IMPROPER_INITIALIZATION
    assert issue.severity is Severity.HIGH
    assert issue.location == Location()


def test_unguarded_transfer_reported():
    tracker = ObjectStateTracker()
    tracker.set_state("coin", TransferredState(to="bob", guard_checked=False))
    issues = tracker.verify_object_safety()
    assert [(i.issue_type, i.message) for i in issues] == [
        (ObjectIssueType.UNSAFE_TRANSFER, "Object transferred without guard check")
    ]


def test_safe_states_produce_no_issues():
    tracker = ObjectStateTracker()
    tracker.set_state("a", TransferredState(to="bob", guard_checked=True))
    tracker.set_state("b", InitializedState())
    tracker.set_state("c", DeletedState())
    assert tracker.verify_object_safety() == []


def test_issues_follow_insertion_order_and_replacement():
    tracker = ObjectStateTracker()
    tracker.set_state("first", UninitializedState())
    tracker.set_state("second", TransferredState("x", False))
    assert [i.object_id for i in tracker.verify_object_safety()] == ["first", "second"]
    tracker.set_state("first", InitializedState())
    assert [i.object_id for i in tracker.verify_object_safety()] == ["second"]