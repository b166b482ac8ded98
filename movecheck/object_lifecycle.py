"""Records what happens to objects over their lifetime and flags unsafe events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from movecheck.model import CapId, Location, Severity
from movecheck.object_state import (
    InitializedState,
    ObjectId,
    ObjectIssueType,
    ObjectSafetyIssue,
    ObjectState,
    TransferredState,
    UninitializedState,
)


class SharedAccessType(Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class CreatedEvent:
    location: Location
    has_id: bool
    has_owner: bool


@dataclass(frozen=True)
class TransferredEvent:
    location: Location
    sender: Optional[str]
    recipient: str
    guard_checked: bool


@dataclass(frozen=True)
class SharedAccessEvent:
    location: Location
    access_type: SharedAccessType
    synchronized: bool


@dataclass(frozen=True)
class CapabilityCheckEvent:
    location: Location
    capability: CapId
    result: bool


ObjectEvent = Union[CreatedEvent, TransferredEvent, SharedAccessEvent, CapabilityCheckEvent]


@dataclass
class ObjectLifecycle:
    """The state, event history, access points and capabilities of one object."""

    state: ObjectState = field(default_factory=UninitializedState)
    history: list[ObjectEvent] = field(default_factory=list)
    access_points: set[Location] = field(default_factory=set)
    capabilities: set[CapId] = field(default_factory=set)


class ObjectLifecycleTracker:
    """Tracks objects and collects issues as their events are recorded.

    Events for objects that were never tracked are ignored.
    """

    def __init__(self) -> None:
        self.objects: dict[ObjectId, ObjectLifecycle] = {}
        self.current_function: Optional[str] = None
        self._violations: list[ObjectSafetyIssue] = []

    def track_object(self, object_id: ObjectId, location: Location) -> None:
        self.objects[object_id] = ObjectLifecycle()

    def record_creation(
        self, object_id: ObjectId, has_id: bool, has_owner: bool, location: Location
    ) -> None:
        lifecycle = self.objects.get(object_id)
        if lifecycle is None:
            return
        lifecycle.history.append(CreatedEvent(location, has_id, has_owner))
        if not has_id or not has_owner:
            self._violations.append(
                ObjectSafetyIssue(
                    location,
                    object_id,
                    ObjectIssueType.UNSAFE_OBJECT_CONSTRUCTION,
                    "Object created without proper ID or owner",
                    Severity.HIGH,
                )
            )
        lifecycle.state = InitializedState(owner=None, shared=False, frozen=False)

    def record_transfer(
        self,
        object_id: ObjectId,
        sender: Optional[str],
        recipient: str,
        guard_checked: bool,
        location: Location,
    ) -> None:
        lifecycle = self.objects.get(object_id)
        if lifecycle is None:
            return
        if not guard_checked:
            self._violations.append(
                ObjectSafetyIssue(
                    location,
                    object_id,
                    ObjectIssueType.UNSAFE_TRANSFER,
                    "Object transferred without guard check",
                    Severity.CRITICAL,
                )
            )
        lifecycle.history.append(TransferredEvent(location, sender, recipient, guard_checked))
        lifecycle.state = TransferredState(to=recipient, guard_checked=guard_checked)

    def record_shared_access(
        self,
        object_id: ObjectId,
        access_type: SharedAccessType,
        synchronized: bool,
        location: Location,
    ) -> None:
        lifecycle = self.objects.get(object_id)
        if lifecycle is None:
            return
        if not synchronized and access_type is SharedAccessType.WRITE:
            self._violations.append(
                ObjectSafetyIssue(
                    location,
                    object_id,
                    ObjectIssueType.INVALID_SHARED_ACCESS,
                    "Unsynchronized write to shared object",
                    Severity.CRITICAL,
                )
            )
        lifecycle.history.append(SharedAccessEvent(location, access_type, synchronized))
        lifecycle.access_points.add(location)

    def verify_capability(self, object_id: ObjectId, cap: CapId, location: Location) -> bool:
        """Record a capability check and return whether the object holds ``cap``."""
        lifecycle = self.objects.get(object_id)
        if lifecycle is None:
            return False
        held = cap in lifecycle.capabilities
        lifecycle.history.append(CapabilityCheckEvent(location, cap, held))
        if not held:
            self._violations.append(
                ObjectSafetyIssue(
                    location,
                    object_id,
                    ObjectIssueType.CAPABILITY_EXPOSURE,
                    f"Missing required capability: {cap.cap_name}",
                    Severity.HIGH,
                )
            )
        return held

    def violations(self) -> list[ObjectSafetyIssue]:
        return list(self._violations)

    def analyze_lifecycle(self, object_id: ObjectId) -> list[ObjectSafetyIssue]:
        """Re-examine an object's whole history and return the issues found."""
        lifecycle = self.objects.get(object_id)
        if lifecycle is None:
            return []

        issues: list[ObjectSafetyIssue] = []
        history = lifecycle.history
        if history and isinstance(history[0], CreatedEvent):
            first = history[0]
            if not first.has_id or not first.has_owner:
                issues.append(
                    ObjectSafetyIssue(
                        first.location,
                        object_id,
                        ObjectIssueType.UNSAFE_OBJECT_CONSTRUCTION,
                        "Object not properly initialized",
                        Severity.HIGH,
                    )
                )

        seen_shared_access = False
        for event in history:
            if isinstance(event, TransferredEvent):
                if not event.guard_checked:
                    issues.append(
                        ObjectSafetyIssue(
                            event.location,
                            object_id,
                            ObjectIssueType.INVALID_TRANSFER_GUARD,
                            "Transfer without proper guard check",
                            Severity.HIGH,
                        )
                    )
                if seen_shared_access:
                    issues.append(
                        ObjectSafetyIssue(
                            event.location,
                            object_id,
                            ObjectIssueType.INVALID_SHARED_ACCESS,
                            "Transfer after shared access",
                            Severity.CRITICAL,
                        )
                    )
            elif isinstance(event, SharedAccessEvent):
                seen_shared_access = True
        return issues