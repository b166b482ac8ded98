"""Checks modules against declared local, unreachability and strong properties."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from movecheck.model import (
    Location,
    SafetyViolation,
    Severity,
    ViolationContext,
    ViolationType,
)
from movecheck.parser import Assert, Call, Function, Module, Struct


@dataclass(frozen=True)
class LocalProperty:
    """An invariant that must hold within one scope under a condition."""

    invariant: str
    scope: str
    condition: str


@dataclass
class UnreachableProperty:
    """A resource that must not be reachable through the given access path."""

    resource: str
    access_path: list[str] = field(default_factory=list)


@dataclass
class StrongProperty:
    """A local property together with an unreachability property."""

    local: LocalProperty
    unreachable: UnreachableProperty


Property = Union[LocalProperty, UnreachableProperty, StrongProperty]


class BoundaryKind(Enum):
    TRUSTED_TO_UNTRUSTED = "trusted_to_untrusted"
    UNTRUSTED_TO_TRUSTED = "untrusted_to_trusted"
    CROSS_MODULE = "cross_module"


def _calls(function: Function) -> list[str]:
    return [statement.name for statement in function.body if isinstance(statement, Call)]


def _is_shared_object_access(call_name: str) -> bool:
    return "shared" in call_name or "consensus" in call_name or "sync" in call_name


def _has_ownership_verification(function: Function) -> bool:
    calls = _calls(function)
    has_sender_check = any("tx_context::sender" in name for name in calls)
    has_owner_access = any("owner" in name for name in calls)
    has_assertion = any(isinstance(statement, Assert) for statement in function.body)
    return has_sender_check and has_owner_access and has_assertion


def _is_resource_reachable(module: Module, resource: str) -> bool:
    return any(resource in name for function in module.functions for name in _calls(function))


def _verify_local_condition(condition: str) -> bool:
    return bool(condition)


class SafetyVerifier:
    """Holds named properties and reports the ones a module breaks,
    together with object-model checks on keys, transfers and shared access."""

    def __init__(self) -> None:
        self.local_properties: dict[str, LocalProperty] = {}
        self.unreachable_properties: dict[str, UnreachableProperty] = {}
        self.strong_properties: dict[str, StrongProperty] = {}
        self.verified_states: set[str] = set()

    def add_local_property(self, name: str, prop: LocalProperty) -> None:
        self.local_properties[name] = prop

    def add_unreachable_property(self, name: str, prop: UnreachableProperty) -> None:
        self.unreachable_properties[name] = prop

    def add_strong_property(self, name: str, prop: StrongProperty) -> None:
        self.strong_properties[name] = prop

    def verify_module(self, module: Module) -> list[SafetyViolation]:
        violations: list[SafetyViolation] = []
        for function in module.functions:
            violations.extend(self._local_violations(function))
        violations.extend(self._unreachability_violations(module))
        violations.extend(self._strong_violations(module))
        violations.extend(self._object_violations(module))
        return violations

    def _local_violations(self, function: Function) -> list[SafetyViolation]:
        violations: list[SafetyViolation] = []
        for name in _calls(function):
            prop = self.local_properties.get(name)
            if prop is None or _verify_local_condition(prop.condition):
                continue
            violations.append(
                SafetyViolation(
                    Location(),
                    ViolationType.INVARIANT_VIOLATION,
                    f"Local property violation in function {function.name}",
                    Severity.HIGH,
                    ViolationContext(
                        affected_functions=[function.name],
                        suggested_fixes=["Ensure local invariant holds"],
                        whitepaper_reference="Section 4.4: Local Properties",
                    ),
                )
            )
        return violations

    def _unreachability_violations(self, module: Module) -> list[SafetyViolation]:
        return [
            SafetyViolation(
                Location(),
                ViolationType.RESOURCE_SAFETY_VIOLATION,
                f"Resource {resource} is reachable through unauthorized path",
                Severity.HIGH,
                ViolationContext(
                    related_types=[resource],
                    suggested_fixes=["Remove unauthorized access path"],
                    whitepaper_reference="Section 4.4: Unreachability",
                ),
            )
            for resource in self.unreachable_properties
            if _is_resource_reachable(module, resource)
        ]

    def _strong_violations(self, module: Module) -> list[SafetyViolation]:
        return [
            SafetyViolation(
                Location(),
                ViolationType.RESOURCE_SAFETY_VIOLATION,
                "Strong property violation detected",
                Severity.CRITICAL,
                ViolationContext(
                    suggested_fixes=["Ensure both local and unreachability properties hold"],
                    whitepaper_reference="Section 4.4: Strong Properties",
                ),
            )
            for prop in self.strong_properties.values()
            if not _verify_local_condition(prop.local.condition)
            or _is_resource_reachable(module, prop.unreachable.resource)
        ]

    def _object_violations(self, module: Module) -> list[SafetyViolation]:
        violations: list[SafetyViolation] = []
        for struct in module.structs:
            if struct.has_key_ability():
                violations.extend(self._uid_violations(struct))
        for function in module.functions:
            violations.extend(self._transfer_violations(function))
        violations.extend(self._shared_access_violations(module))
        return violations

    def _uid_violations(self, struct: Struct) -> list[SafetyViolation]:
        has_uid = any(str(f.field_type) == "UID" for f in struct.fields)
        if has_uid or not struct.has_key_ability():
            return []
        return [
            SafetyViolation(
                Location(),
                ViolationType.RESOURCE_SAFETY_VIOLATION,
                f"Sui object {struct.name} missing UID field",
                Severity.CRITICAL,
                ViolationContext(
                    related_types=[struct.name],
                    suggested_fixes=["Add 'id: UID' as first field"],
                    whitepaper_reference="Sui Object Model",
                ),
            )
        ]

    def _transfer_violations(self, function: Function) -> list[SafetyViolation]:
        transfers = [name for name in _calls(function) if "transfer::transfer" in name]
        if not transfers or _has_ownership_verification(function):
            return []
        return [
            SafetyViolation(
                Location(),
                ViolationType.UNAUTHORIZED_ACCESS,
                "Transfer without ownership verification",
                Severity.HIGH,
                ViolationContext(
                    affected_functions=[function.name],
                    suggested_fixes=["Add ownership check before transfer"],
                    whitepaper_reference="Sui Transfer Safety",
                ),
            )
            for _ in transfers
        ]

    def _shared_access_violations(self, module: Module) -> list[SafetyViolation]:
        violations: list[SafetyViolation] = []
        for function in module.functions:
            calls = _calls(function)
            has_shared_access = any(_is_shared_object_access(name) for name in calls)
            has_consensus = any("consensus::verify" in name for name in calls)
            has_sync = any("sync" in name or "lock" in name for name in calls)
            if has_shared_access and not (has_consensus and has_sync):
                violations.append(
                    SafetyViolation(
                        Location(),
                        ViolationType.SHARED_OBJECT_VIOLATION,
                        "Shared object access without proper synchronization "
                        f"in function {function.name}",
                        Severity.HIGH,
                        ViolationContext(
                            affected_functions=[function.name],
                            suggested_fixes=[
                                "Add consensus::verify call",
                                "Add proper synchronization",
                            ],
                            whitepaper_reference="Sui Shared Objects",
                        ),
                    )
                )
        return violations