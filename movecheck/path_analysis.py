"""Tracks borrowed references along a function body and reports leaks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from movecheck.model import FieldId, Location, ReferenceLeak, Severity
from movecheck.parser import BorrowField, BorrowGlobal, Call, Function, Return, Statement

_CONDITION_KINDS = ("valid", "mutable", "shared", "escaped")


@dataclass(frozen=True)
class PathCondition:
    """A fact about a named reference that holds on a path."""

    kind: str
    reference: str

    def __post_init__(self) -> None:
        if self.kind not in _CONDITION_KINDS:
            raise ValueError(f"unknown path condition kind: {self.kind!r}")


@dataclass
class Path:
    blocks: list[int] = field(default_factory=list)
    conditions: list[PathCondition] = field(default_factory=list)


@dataclass(frozen=True)
class PathKey:
    blocks: tuple[int, ...] = ()
    conditions: tuple[PathCondition, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "blocks", tuple(self.blocks))
        object.__setattr__(self, "conditions", tuple(self.conditions))


class ReferenceStateKind(Enum):
    VALID = "valid"
    INVALID = "invalid"
    ESCAPED = "escaped"
    BORROWED = "borrowed"


@dataclass(frozen=True)
class ReferenceState:
    kind: ReferenceStateKind
    is_mutable: bool = False

    @property
    def is_mutable_borrow(self) -> bool:
        return self.kind is ReferenceStateKind.BORROWED and self.is_mutable


_MUTABLE_BORROW = ReferenceState(ReferenceStateKind.BORROWED, is_mutable=True)


@dataclass
class PathState:
    reference_states: dict[str, ReferenceState] = field(default_factory=dict)
    conditions: list[PathCondition] = field(default_factory=list)


def _leak(name: str, context: str) -> ReferenceLeak:
    return ReferenceLeak(Location(), FieldId(field_name=name), context, Severity.HIGH)


class PathAnalyzer:
    """Walks statements in order, following which references are mutably borrowed."""

    def __init__(self) -> None:
        self.paths: list[Path] = []
        self.current_path: Optional[int] = None
        self.visited_paths: set[PathKey] = set()

    def analyze_paths(self, function: Function) -> list[ReferenceLeak]:
        state = PathState()
        leaks: list[ReferenceLeak] = []
        for statement in function.body:
            leaks.extend(self.analyze_statement(statement, state))
        return leaks

    def analyze_statement(self, statement: Statement, state: PathState) -> list[ReferenceLeak]:
        """Update ``state`` for one statement and return the leaks it causes."""
        match statement:
            case BorrowField(name):
                if name in state.reference_states:
                    state.reference_states[name] = _MUTABLE_BORROW
            case BorrowGlobal(name):
                state.reference_states[name] = _MUTABLE_BORROW
            case Return():
                return [
                    _leak(name, "Reference leaked through return")
                    for name, ref in state.reference_states.items()
                    if ref.is_mutable_borrow
                ]
            case Call(name, _) if not name.startswith("Self::"):
                return [
                    _leak(ref_name, f"Reference may leak through call to {name}")
                    for ref_name, ref in state.reference_states.items()
                    if ref.is_mutable_borrow
                ]
        return []