"""Path analysis for objects, capabilities and shared objects along recorded paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import pairwise
from typing import Optional, Union

from movecheck.model import CapId, FieldId, Location, Permission, ReferenceLeak, Severity
from movecheck.object_state import ObjectId
from movecheck.parser import Function
from movecheck.path_analysis import PathAnalyzer


@dataclass(frozen=True)
class OwnedState:
    """The object is held by a single owner."""

    owner: Optional[str] = None
    mutable: bool = False


@dataclass(frozen=True)
class SharedState:
    """The object is shared between several readers."""

    synchronized: bool = False
    readers: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "readers", frozenset(self.readers))


@dataclass(frozen=True)
class TransferredState:
    """The object has moved from one owner to another."""

    sender: Optional[str] = None
    recipient: str = ""
    guard_checked: bool = False


ObjectPathState = Union[OwnedState, SharedState, TransferredState]

_OBJECT_CONDITION_KINDS = ("ownership_check", "transfer_guard", "shared_access")


@dataclass(frozen=True)
class ObjectCondition:
    """A check made on an object along a path."""

    kind: str
    subject: str

    def __post_init__(self) -> None:
        if self.kind not in _OBJECT_CONDITION_KINDS:
            raise ValueError(f"unknown object condition kind: {self.kind!r}")


@dataclass(frozen=True)
class TransferPoint:
    location: Location
    from_state: ObjectPathState
    to_state: ObjectPathState
    guard_verified: bool


@dataclass(frozen=True)
class DelegationPoint:
    location: Location
    sender: str
    recipient: str
    permissions: frozenset[Permission] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "permissions", frozenset(self.permissions))


@dataclass(frozen=True)
class PermissionCheck:
    location: Location
    permission: Permission
    result: bool


class AccessKind(Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class AccessPoint:
    location: Location
    kind: AccessKind
    synchronized: bool


_SYNC_MECHANISM_KINDS = ("lock", "consensus", "custom")


@dataclass(frozen=True)
class SyncMechanism:
    """How an access was synchronised: a lock, consensus, or a named custom scheme."""

    kind: str
    detail: str = ""

    def __post_init__(self) -> None:
        if self.kind not in _SYNC_MECHANISM_KINDS:
            raise ValueError(f"unknown synchronisation mechanism: {self.kind!r}")

    @classmethod
    def lock(cls) -> SyncMechanism:
        return cls("lock")

    @classmethod
    def consensus(cls) -> SyncMechanism:
        return cls("consensus")

    @classmethod
    def custom(cls, detail: str) -> SyncMechanism:
        return cls("custom", detail)


@dataclass(frozen=True)
class SyncPoint:
    location: Location
    mechanism: SyncMechanism
    success: bool


@dataclass
class ObjectPath:
    path_id: int
    states: list[ObjectPathState] = field(default_factory=list)
    conditions: list[ObjectCondition] = field(default_factory=list)
    transfers: list[TransferPoint] = field(default_factory=list)


@dataclass
class CapabilityPath:
    path_id: int
    permissions: set[Permission] = field(default_factory=set)
    delegations: list[DelegationPoint] = field(default_factory=list)
    checks: list[PermissionCheck] = field(default_factory=list)


@dataclass
class SharedAccessPath:
    path_id: int
    access_points: list[AccessPoint] = field(default_factory=list)
    synchronization: list[SyncPoint] = field(default_factory=list)


def _object_field(object_id: ObjectId) -> FieldId:
    return FieldId(object_id.module_name, object_id.type_name, "")


def _cap_field(cap_id: CapId) -> FieldId:
    return FieldId(cap_id.module_name, cap_id.cap_name, "")


def _is_unsafe_state_transition(before: ObjectPathState, after: ObjectPathState) -> bool:
    if not isinstance(after, TransferredState):
        return False
    if isinstance(before, OwnedState):
        return not after.guard_checked
    if isinstance(before, SharedState):
        return not before.synchronized
    return False


class SuiPathAnalyzer:
    """Runs the basic path analysis and then checks the recorded object,
    capability and shared-access paths."""

    def __init__(self) -> None:
        self.base_analyzer = PathAnalyzer()
        self.object_paths: dict[ObjectId, list[ObjectPath]] = {}
        self.capability_paths: dict[CapId, list[CapabilityPath]] = {}
        self.shared_access_paths: dict[ObjectId, list[SharedAccessPath]] = {}

    def add_object_path(self, object_id: ObjectId, path: ObjectPath) -> None:
        self.object_paths.setdefault(object_id, []).append(path)

    def add_capability_path(self, cap_id: CapId, path: CapabilityPath) -> None:
        self.capability_paths.setdefault(cap_id, []).append(path)

    def add_shared_access_path(self, object_id: ObjectId, path: SharedAccessPath) -> None:
        self.shared_access_paths.setdefault(object_id, []).append(path)

    def analyze_paths(self, function: Function) -> list[ReferenceLeak]:
        leaks = list(self.base_analyzer.analyze_paths(function))
        leaks.extend(self._object_path_leaks())
        leaks.extend(self._capability_path_leaks())
        leaks.extend(self._shared_access_leaks())
        return leaks

    def _object_path_leaks(self) -> list[ReferenceLeak]:
        leaks: list[ReferenceLeak] = []
        for object_id, paths in self.object_paths.items():
            for path in paths:
                for before, after in pairwise(path.states):
                    if _is_unsafe_state_transition(before, after):
                        leaks.append(
                            ReferenceLeak(
                                Location(context=f"Object path {path.path_id}"),
                                _object_field(object_id),
                                "Unsafe object state transition",
                                Severity.HIGH,
                            )
                        )
                leaks.extend(
                    ReferenceLeak(
                        transfer.location,
                        _object_field(object_id),
                        "Transfer without guard verification",
                        Severity.CRITICAL,
                    )
                    for transfer in path.transfers
                    if not transfer.guard_verified
                )
        return leaks

    def _capability_path_leaks(self) -> list[ReferenceLeak]:
        leaks: list[ReferenceLeak] = []
        for cap_id, paths in self.capability_paths.items():
            for path in paths:
                leaks.extend(
                    ReferenceLeak(
                        delegation.location,
                        _cap_field(cap_id),
                        "Unsafe capability delegation",
                        Severity.CRITICAL,
                    )
                    for delegation in path.delegations
                    if not delegation.permissions <= path.permissions
                )
                leaks.extend(
                    ReferenceLeak(
                        check.location,
                        _cap_field(cap_id),
                        "Permission check without proper capability",
                        Severity.HIGH,
                    )
                    for check in path.checks
                    if check.permission not in path.permissions
                )
        return leaks

    def _shared_access_leaks(self) -> list[ReferenceLeak]:
        leaks: list[ReferenceLeak] = []
        for object_id, paths in self.shared_access_paths.items():
            for path in paths:
                leaks.extend(
                    ReferenceLeak(
                        access.location,
                        _object_field(object_id),
                        "Unsynchronized write to shared object",
                        Severity.CRITICAL,
                    )
                    for access in path.access_points
                    if not access.synchronized and access.kind is AccessKind.WRITE
                )
                leaks.extend(
                    ReferenceLeak(
                        sync.location,
                        _object_field(object_id),
                        "Failed synchronization point",
                        Severity.HIGH,
                    )
                    for sync in path.synchronization
                    if not sync.success
                )
        return leaks