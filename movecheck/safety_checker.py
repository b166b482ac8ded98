"""Module-level safety checks: invariants, public interfaces and mutable references."""

from __future__ import annotations

from dataclasses import dataclass, field

from movecheck.model import (
    FieldId,
    Location,
    SafetyViolation,
    Severity,
    ViolationType,
)
from movecheck.mutable_ref_checker import MutableRefChecker
from movecheck.parser import Module


@dataclass
class InterfaceInfo:
    """What a public function exposes through its signature."""

    exposed_refs: set[str] = field(default_factory=set)
    unsafe_params: set[str] = field(default_factory=set)
    ref_returns: set[str] = field(default_factory=set)


class SafetyChecker(MutableRefChecker):
    """Mutable reference checks plus the module's declared invariants and the
    signatures of its public functions."""

    def __init__(self) -> None:
        super().__init__()
        self.public_interfaces: dict[str, InterfaceInfo] = {}

    @property
    def invariant_fields(self) -> set[FieldId]:
        return self.tracked_fields

    def check_module(self, module: Module) -> list[SafetyViolation]:
        self.tracked_fields.update(
            affected for invariant in module.invariants for affected in invariant.affected_fields
        )
        violations = self._check_public_interfaces(module)
        violations.extend(super().check_module(module))
        return violations

    def _check_public_interfaces(self, module: Module) -> list[SafetyViolation]:
        violations: list[SafetyViolation] = []
        for function in module.functions:
            if not function.name.startswith("public"):
                continue
            info = InterfaceInfo(
                unsafe_params={
                    param.name for param in function.parameters if param.is_mutable_reference()
                }
            )
            if function.return_type is not None and function.return_type.is_mutable_reference():
                violations.append(
                    SafetyViolation(
                        Location(),
                        ViolationType.UNSAFE_PUBLIC_INTERFACE,
                        f"Public function {function.name} returns mutable reference",
                        Severity.CRITICAL,
                    )
                )
            self.public_interfaces[function.name] = info
        return violations