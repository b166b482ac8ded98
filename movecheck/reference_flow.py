"""Follows field accesses through a function body and flags uses of tracked references."""

from __future__ import annotations

from movecheck.model import FieldId, Location, ReferenceLeak, Severity
from movecheck.parser import (
    Assert,
    Assignment,
    Call,
    CallExpression,
    Expression,
    FieldAccess,
    Function,
    Loop,
    Return,
    Statement,
    Variable,
)
from movecheck.path_analysis import ReferenceState, ReferenceStateKind


class ReferenceFlowAnalyzer:
    """Fields accessed anywhere become tracked references; later uses of them are reported.

    The tracked set persists across functions analysed by the same instance.
    """

    def __init__(self) -> None:
        self.references: dict[str, ReferenceState] = {}
        self.active_borrows: set[str] = set()

    def analyze_function(self, function: Function) -> list[ReferenceLeak]:
        leaks: list[ReferenceLeak] = []
        for statement in function.body:
            self._analyze_statement(statement, leaks)
        return leaks

    def is_reference(self, name: str) -> bool:
        return name in self.references

    def _analyze_statement(self, statement: Statement, leaks: list[ReferenceLeak]) -> None:
        match statement:
            case Assignment(_, expression) | Return(expression) | Loop(expression) | Assert(
                expression
            ):
                self._analyze_expression(expression, leaks)
            case Call(_, args):
                for arg in args:
                    self._analyze_expression(arg, leaks)

    def _analyze_expression(self, expression: Expression, leaks: list[ReferenceLeak]) -> None:
        match expression:
            case Variable(name):
                if self.is_reference(name):
                    leaks.append(
                        ReferenceLeak(
                            Location(), FieldId(), f"Reference {name} may leak", Severity.HIGH
                        )
                    )
            case FieldAccess(base, field_name):
                self._analyze_expression(base, leaks)
                self.references.setdefault(field_name, ReferenceState(ReferenceStateKind.VALID))
            case CallExpression(_, args):
                for arg in args:
                    self._analyze_expression(arg, leaks)