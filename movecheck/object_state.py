"""Object identities, object states and a tracker that checks them for safety issues."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from movecheck.model import Location, Severity


@dataclass(frozen=True)
class ObjectId:
    """Identifies an object by module, type and instance id."""

    module_name: str = ""
    type_name: str = ""
    id: str = ""


class ObjectIssueType(Enum):
    UNSAFE_TRANSFER = "unsafe_transfer"
    INVALID_SHARED_ACCESS = "invalid_shared_access"
    RESOURCE_LEAK = "resource_leak"
    INCOMPLETE_CLEANUP = "incomplete_cleanup"
    UNAUTHORIZED_MODIFICATION = "unauthorized_modification"
    IMPROPER_INITIALIZATION = "improper_initialization"
    UNSAFE_OBJECT_CONSTRUCTION = "unsafe_object_construction"
    CAPABILITY_EXPOSURE = "capability_exposure"
    INVALID_TRANSFER_GUARD = "invalid_transfer_guard"


@dataclass(frozen=True)
class ObjectSafetyIssue:
    """A safety problem found for one object."""

    location: Location
    object_id: Union[str, ObjectId]
    issue_type: ObjectIssueType
    message: str
    severity: Severity


class ObjectState:
    """Base of the states an object can be in."""

    def is_shared(self) -> bool:
        return False

    def is_frozen(self) -> bool:
        return False


@dataclass(frozen=True)
class UninitializedState(ObjectState):
    pass


@dataclass(frozen=True)
class InitializedState(ObjectState):
    owner: Optional[str] = None
    shared: bool = False
    frozen: bool = False

    def is_shared(self) -> bool:
        return self.shared

    def is_frozen(self) -> bool:
        return self.frozen


@dataclass(frozen=True)
class TransferredState(ObjectState):
    to: str = ""
    guard_checked: bool = False


@dataclass(frozen=True)
class DeletedState(ObjectState):
    pass


@dataclass
class ObjectStateTracker:
    """Keeps the current state of each object and reports unsafe ones."""

    states: dict[str, ObjectState] = field(default_factory=dict)

    def set_state(self, object_id: str, state: ObjectState) -> None:
        self.states[object_id] = state

    def verify_object_safety(self) -> list[ObjectSafetyIssue]:
        issues: list[ObjectSafetyIssue] = []
        for object_id, state in self.states.items():
            if isinstance(state, UninitializedState):
                issues.append(
                    ObjectSafetyIssue(
                        Location(),
                        object_id,
                        ObjectIssueType.IMPROPER_INITIALIZATION,
                        "Object used before initialization",
                        Severity.HIGH,
                    )
                )
            elif isinstance(state, TransferredState) and not state.guard_checked:
                issues.append(
                    ObjectSafetyIssue(
                        Location(),
                        object_id,
                        ObjectIssueType.UNSAFE_TRANSFER,
                        "Object transferred without guard check",
                        Severity.HIGH,
                    )
                )
        return issues