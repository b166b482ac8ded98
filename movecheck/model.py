"""Core value types shared by the analysers: locations, types and findings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Location:
    """A position in a source file, with a short description of the context."""

    file: str = ""
    line: int = 0
    column: int = 0
    context: str = ""


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class FieldId:
    """Identifies a field of a struct in a module."""

    module_name: str = ""
    struct_name: str = ""
    field_name: str = ""


@dataclass(frozen=True)
class CapId:
    """Identifies a capability type in a module."""

    module_name: str = ""
    cap_name: str = ""


class Permission(Enum):
    READ = "read"
    WRITE = "write"
    TRANSFER = "transfer"
    DELEGATE = "delegate"
    ADMIN = "admin"


class TypeKind(Enum):
    NAMED = "named"
    REFERENCE = "reference"
    MUTABLE_REFERENCE = "mutable_reference"


@dataclass(frozen=True)
class Type:
    """A Move type: a named type or a (mutable) reference to another type."""

    kind: TypeKind
    name: str = ""
    inner: Optional[Type] = None

    @classmethod
    def named(cls, name: str) -> Type:
        return cls(TypeKind.NAMED, name=name)

    @classmethod
    def reference(cls, inner: Type) -> Type:
        return cls(TypeKind.REFERENCE, inner=inner)

    @classmethod
    def mutable_reference(cls, inner: Type) -> Type:
        return cls(TypeKind.MUTABLE_REFERENCE, inner=inner)

    def is_mutable_reference(self) -> bool:
        return self.kind is TypeKind.MUTABLE_REFERENCE

    def __str__(self) -> str:
        if self.kind is TypeKind.NAMED:
            return self.name
        inner = str(self.inner) if self.inner is not None else ""
        if self.kind is TypeKind.REFERENCE:
            return f"&{inner}"
        return f"&mut {inner}"


@dataclass(frozen=True)
class ReferenceLeak:
    """A reference that may escape the scope it was created in."""

    location: Location
    leaked_field: FieldId
    context: str
    severity: Severity


class ViolationType(Enum):
    UNSAFE_PUBLIC_INTERFACE = "unsafe_public_interface"
    INVARIANT_VIOLATION = "invariant_violation"
    REFERENCE_ESCAPE = "reference_escape"
    RESOURCE_SAFETY_VIOLATION = "resource_safety_violation"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    SHARED_OBJECT_VIOLATION = "shared_object_violation"


@dataclass
class ViolationContext:
    """Extra detail attached to a safety violation."""

    affected_functions: list[str] = field(default_factory=list)
    related_types: list[str] = field(default_factory=list)
    suggested_fixes: list[str] = field(default_factory=list)
    whitepaper_reference: Optional[str] = None


@dataclass
class SafetyViolation:
    """A safety finding reported against a module."""

    location: Location
    violation_type: ViolationType
    message: str
    severity: Severity
    context: Optional[ViolationContext] = None


@dataclass
class Invariant:
    """An invariant declared by a module and the fields it protects."""

    name: str = ""
    expression: str = ""
    affected_fields: list[FieldId] = field(default_factory=list)