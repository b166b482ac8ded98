# movecheck

A library of static checks for modules written in Move (as used on Sui). It
reads module source into a light model (modules, functions, statements,
expressions) and runs analyses over that model. The analyses look for mutable
references that escape, writes to invariant-protected fields, unguarded object
transfers, unsynchronised access to shared objects, missing capabilities and
similar problems.

It has no dependencies outside the standard library and needs Python 3.10 or
later.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Reading a module

```python
from movecheck.parser import Module, Parser

with open("sources/project.move") as f:
    source = f.read()

module = Module.parse(source)
for function in module.functions:
    print(function.name, function.is_public, sorted(function.external_calls))

known = Parser().parse_module(source)
```

`Module.parse` works line by line. It picks up the module name, `use`
imports (through `parse_import`), and for each function its name, whether the
line starts with `public`, and in its body `assert!` lines (`Assert`),
`while`/`for` lines (`Loop`), and `a::b` calls (`InternalCall` for `Self::`,
otherwise `ExternalCall`, also collected in `external_calls`).

`Parser().parse_module` looks only for a fixed set of entry points by name
(`check_out_project`, `update_end_timestamp`, `create_project`, `vote`,
`withdraw`) and models each found one as a public function holding a single
`Call`, with its line number recorded in `location`.

`parse_struct(line)` turns a header such as `struct Coin has key, store {`
into a `Struct` with its name and abilities.

## Building a model by hand

Neither reader fills in parameters, return types, struct fields or
invariants. Analyses that need them take models built directly:

```python
from movecheck.model import Type
from movecheck.parser import Function, Module, Parameter, Return, Variable
from movecheck.safety_checker import SafetyChecker

function = Function(
    "public_borrow",
    parameters=[Parameter("x", Type.mutable_reference(Type.named("u64")))],
    return_type=Type.mutable_reference(Type.named("u64")),
)
function.add_statement(Return(Variable("x")))

module = Module("test")
module.add_function(function)

for violation in SafetyChecker().check_module(module):
    print(violation.severity, violation.violation_type, violation.message)
```

## Analyses

Each one is built, handed a module or a function, and returns a list of
findings.

- `movecheck.safety_verifier.SafetyVerifier`: register `LocalProperty`,
  `UnreachableProperty` and `StrongProperty` values with
  `add_local_property`, `add_unreachable_property` and `add_strong_property`,
  then call `verify_module(module)`. Besides the properties it reports
  `key` structs without a `UID` field, `transfer::transfer` calls without a
  sender/owner/assert check, and shared-object calls without both
  `consensus::verify` and a sync/lock call.
- `movecheck.mutable_ref_checker.MutableRefChecker.check_module(module)`:
  public functions (names starting with `public`) taking mutable reference
  parameters, mutable references returned, and assignments to tracked fields.
- `movecheck.safety_checker.SafetyChecker.check_module(module)`: the same
  checks, plus the module's `invariants` as protected fields and public
  functions whose return type is a mutable reference.
- `movecheck.path_analysis.PathAnalyzer.analyze_paths(function)`: borrowed
  references that leak through a return or a call outside `Self::`.
- `movecheck.reference_flow.ReferenceFlowAnalyzer.analyze_function(function)`:
  uses of names that were earlier accessed as fields.
- `movecheck.reference_flow_sui.SuiReferenceFlowAnalyzer.analyze_function(function)`:
  object and capability references, seeded in its `object_states` and
  `capability_states`, that are assigned or returned unsafely; then runs the
  reference flow analysis.
- `movecheck.path_sensitive.SuiPathAnalyzer`: register object, capability and
  shared-access paths with `add_object_path`, `add_capability_path` and
  `add_shared_access_path`, then call `analyze_paths(function)`.
- `movecheck.object_lifecycle.ObjectLifecycleTracker`: `track_object`, then
  `record_creation`, `record_transfer`, `record_shared_access` and
  `verify_capability`; read `violations()` or call
  `analyze_lifecycle(object_id)`.
- `movecheck.object_state.ObjectStateTracker`: `set_state` for each object,
  then `verify_object_safety()`.
- `movecheck.pattern_database.PatternDatabase`: keyword patterns with
  `matches_pattern(pattern_type, text)` and `get_risk_level(pattern_type)`.

Findings are `SafetyViolation`, `ReferenceLeak` or `ObjectSafetyIssue`
values, each carrying a `Severity` and a message.

## What it does not do

- There is no command-line tool; it is used as a library.
- The readers are line-based and keyword-driven, not a full Move parser: they
  do not read parameters, types, struct bodies or invariants.
- There is no control-flow graph; path analyses walk a function body in order
  or work on paths registered by the caller.
- Locations in most findings are empty; only `Parser().parse_module` records
  line numbers.