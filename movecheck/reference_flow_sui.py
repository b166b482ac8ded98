"""Reference flow analysis that also follows object and capability references."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from movecheck.model import CapId, FieldId, Location, Permission, ReferenceLeak, Severity
from movecheck.object_state import ObjectId
from movecheck.parser import Assignment, Expression, Function, Return, Variable
from movecheck.reference_flow import ReferenceFlowAnalyzer


class ReferenceType(Enum):
    IMMUTABLE = "immutable"
    MUTABLE = "mutable"


_TRANSFER_KINDS = ("owned", "transferred", "shared", "frozen")


@dataclass(frozen=True)
class TransferState:
    """Where an object stands: owned, transferred to an address, shared or frozen."""

    kind: str
    recipient: str = ""

    def __post_init__(self) -> None:
        if self.kind not in _TRANSFER_KINDS:
            raise ValueError(f"unknown transfer state: {self.kind!r}")

    @classmethod
    def owned(cls) -> TransferState:
        return cls("owned")

    @classmethod
    def transferred(cls, recipient: str) -> TransferState:
        return cls("transferred", recipient)

    @classmethod
    def shared(cls) -> TransferState:
        return cls("shared")

    @classmethod
    def frozen(cls) -> TransferState:
        return cls("frozen")


@dataclass
class ObjectReferenceState:
    object_id: ObjectId
    reference_type: ReferenceType
    transfer_state: TransferState
    access_points: set[Location] = field(default_factory=set)

    def is_unsafe(self) -> bool:
        """Transferred objects, and mutable references to shared ones, are unsafe."""
        kind = self.transfer_state.kind
        return kind == "transferred" or (
            kind == "shared" and self.reference_type is ReferenceType.MUTABLE
        )

    def leaks_on_return(self) -> bool:
        return self.reference_type is ReferenceType.MUTABLE and self.transfer_state.kind != "owned"


@dataclass(frozen=True)
class CapabilityDelegation:
    sender: str
    recipient: str
    permissions: frozenset[Permission] = frozenset()
    location: Location = field(default_factory=Location)

    def __post_init__(self) -> None:
        object.__setattr__(self, "permissions", frozenset(self.permissions))


@dataclass
class CapabilityReferenceState:
    cap_id: CapId
    permissions: set[Permission] = field(default_factory=set)
    delegations: list[CapabilityDelegation] = field(default_factory=list)

    def is_unsafe(self) -> bool:
        """A capability with no permissions, or one that was delegated, is unsafe."""
        return not self.permissions or bool(self.delegations)


class SuiReferenceFlowAnalyzer:
    """Follows object and capability references through assignments and returns,
    then runs the plain reference flow analysis.

    Known references live in ``object_states`` and ``capability_states``, keyed by
    variable name; assignments from a known variable propagate its state.
    """

    def __init__(self) -> None:
        self.base_analyzer = ReferenceFlowAnalyzer()
        self.object_states: dict[str, ObjectReferenceState] = {}
        self.capability_states: dict[str, CapabilityReferenceState] = {}

    def analyze_function(self, function: Function) -> list[ReferenceLeak]:
        leaks = self._track_object_references(function)
        leaks.extend(self._track_capability_references(function))
        leaks.extend(self.base_analyzer.analyze_function(function))
        return leaks

    def _object_state(self, expression: Expression) -> Optional[ObjectReferenceState]:
        if isinstance(expression, Variable):
            return self.object_states.get(expression.name)
        return None

    def _capability_state(self, expression: Expression) -> Optional[CapabilityReferenceState]:
        if isinstance(expression, Variable):
            return self.capability_states.get(expression.name)
        return None

    def _track_object_references(self, function: Function) -> list[ReferenceLeak]:
        leaks: list[ReferenceLeak] = []
        for statement in function.body:
            match statement:
                case Assignment(var, expression):
                    state = self._object_state(expression)
                    if state is None:
                        continue
                    if state.is_unsafe():
                        leaks.append(
                            ReferenceLeak(
                                Location(context=f"Assignment to {var}"),
                                FieldId(state.object_id.module_name, state.object_id.type_name, ""),
                                "Unsafe object reference pattern detected",
                                Severity.HIGH,
                            )
                        )
                    self.object_states[var] = state
                case Return(expression):
                    state = self._object_state(expression)
                    if state is not None and state.leaks_on_return():
                        leaks.append(
                            ReferenceLeak(
                                Location(context="Return statement"),
                                FieldId(state.object_id.module_name, state.object_id.type_name, ""),
                                "Object reference escapes through return",
                                Severity.CRITICAL,
                            )
                        )
        return leaks

    def _track_capability_references(self, function: Function) -> list[ReferenceLeak]:
        leaks: list[ReferenceLeak] = []
        for statement in function.body:
            if not isinstance(statement, Assignment):
                continue
            state = self._capability_state(statement.expression)
            if state is None:
                continue
            if state.is_unsafe():
                leaks.append(
                    ReferenceLeak(
                        Location(context=f"Assignment to {statement.var}"),
                        FieldId(state.cap_id.module_name, state.cap_id.cap_name, ""),
                        "Unsafe capability usage pattern detected",
                        Severity.CRITICAL,
                    )
                )
            self.capability_states[statement.var] = state
        return leaks