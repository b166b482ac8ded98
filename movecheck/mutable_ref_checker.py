"""Tracks mutable reference parameters and reports where they escape or break invariants."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from movecheck.model import (
    FieldId,
    Location,
    SafetyViolation,
    Severity,
    ViolationType,
)
from movecheck.parser import (
    Assignment,
    Expression,
    FieldAccess,
    Function,
    Module,
    Return,
    Statement,
    Variable,
)


class RefStateKind(Enum):
    VALID = "valid"
    ESCAPED = "escaped"
    INVALID = "invalid"


class EscapePoint(Enum):
    RETURN = "return"
    PUBLIC_INTERFACE = "public_interface"
    FIELD_STORE = "field_store"
    GLOBAL_STORAGE = "global_storage"


class AccessKind(Enum):
    READ = "read"
    WRITE = "write"
    RETURN = "return"
    FIELD_ACCESS = "field_access"
    METHOD_CALL = "method_call"


@dataclass(frozen=True)
class AccessPoint:
    location: Location
    kind: AccessKind
    context: str


@dataclass
class MutableRefInfo:
    """What is known about one mutable reference parameter."""

    definition: Location
    state: RefStateKind = RefStateKind.VALID
    escape_point: Optional[EscapePoint] = None
    access_points: list[AccessPoint] = field(default_factory=list)
    escapes: bool = False


class MutableRefChecker:
    """Reports public functions taking mutable references, mutable references
    returned from functions, and assignments to protected fields.

    Tracked references persist across every function and module checked by
    the same instance.
    """

    def __init__(self) -> None:
        self.mutable_refs: dict[str, MutableRefInfo] = {}
        self.tracked_fields: set[FieldId] = set()
        self.current_module: Optional[str] = None

    def check_module(self, module: Module) -> list[SafetyViolation]:
        self.current_module = module.name
        try:
            violations: list[SafetyViolation] = []
            for function in module.functions:
                violations.extend(self._check_function(function))
            return violations
        finally:
            self.current_module = None

    @property
    def _module_file(self) -> str:
        return self.current_module or ""

    def _check_function(self, function: Function) -> list[SafetyViolation]:
        violations = self._track_mutable_parameters(function)
        for statement in function.body:
            violations.extend(self._check_statement(statement, function))
        violations.extend(self._reference_escapes(function))
        return violations

    def _track_mutable_parameters(self, function: Function) -> list[SafetyViolation]:
        violations: list[SafetyViolation] = []
        for param in function.parameters:
            if not param.is_mutable_reference():
                continue
            self.mutable_refs[param.name] = MutableRefInfo(
                Location(
                    file=self._module_file,
                    context=f"Parameter in function {function.name}",
                )
            )
            if function.name.startswith("public"):
                violations.append(
                    SafetyViolation(
                        Location(
                            file=self._module_file,
                            context=f"Public function {function.name}",
                        ),
                        ViolationType.UNSAFE_PUBLIC_INTERFACE,
                        f"Public function {function.name} accepts mutable reference "
                        f"parameter {param.name}",
                        Severity.HIGH,
                    )
                )
        return violations

    def _check_statement(self, statement: Statement, function: Function) -> list[SafetyViolation]:
        match statement:
            case Assignment(var, expression):
                return self._check_assignment(var, expression)
            case Return(expression):
                return self._check_return(expression, function)
        return []

    def _check_assignment(self, var: str, expression: Expression) -> list[SafetyViolation]:
        violations: list[SafetyViolation] = []
        field_id = self._assigned_field(expression)
        if field_id is not None and field_id in self.tracked_fields:
            violations.append(
                SafetyViolation(
                    Location(),
                    ViolationType.INVARIANT_VIOLATION,
                    f"Assignment to invariant-protected field {field_id.field_name} "
                    "through reference",
                    Severity.CRITICAL,
                )
            )
        info = self.mutable_refs.get(var)
        if info is not None:
            info.access_points.append(AccessPoint(Location(), AccessKind.WRITE, "Assignment"))
        return violations

    def _check_return(self, expression: Expression, function: Function) -> list[SafetyViolation]:
        if not isinstance(expression, Variable):
            return []
        info = self.mutable_refs.get(expression.name)
        if info is None:
            return []
        info.escapes = True
        info.state = RefStateKind.ESCAPED
        info.escape_point = EscapePoint.RETURN
        return [
            SafetyViolation(
                Location(),
                ViolationType.REFERENCE_ESCAPE,
                f"Mutable reference to {expression.name} escapes through return "
                f"in function {function.name}",
                Severity.CRITICAL,
            )
        ]

    def _reference_escapes(self, function: Function) -> list[SafetyViolation]:
        return [
            SafetyViolation(
                info.definition,
                ViolationType.REFERENCE_ESCAPE,
                f"Mutable reference {var} escapes its scope in function {function.name}",
                Severity.HIGH,
            )
            for var, info in self.mutable_refs.items()
            if info.escapes
        ]

    def _assigned_field(self, expression: Expression) -> Optional[FieldId]:
        if isinstance(expression, FieldAccess):
            return FieldId(self._module_file, "", expression.field)
        return None