"""Unit tests for evaluation, documentation lookup and doctest sandboxes."""

from __future__ import annotations

import builtins
import json
import typing as typ

import pytest

from facet.runtime import (
    Outcome,
    Sandbox,
    SymbolId,
    as_module,
    display,
    doc_category,
    evaluate,
    lookup_documentation,
    parse_reference,
    resolve_symbol,
    split_expressions,
)

if typ.TYPE_CHECKING:
    from types import ModuleType


def _lookup(text: str, module: ModuleType):  # noqa: ANN202
    return lookup_documentation(parse_reference(text), module)


@pytest.mark.parametrize(
    ("symbol", "expected"),
    [
        (SymbolId("builtins", "len"), "len"),
        (SymbolId("__main__", "main"), "main"),
        (SymbolId("pkg.mod", "Type.method"), "pkg.mod.Type.method"),
        (SymbolId("json"), "json"),
    ],
)
def test_symbol_id_display(symbol: SymbolId, expected: str) -> None:
    """Builtins and ``__main__`` symbols print unqualified."""
    assert str(symbol) == expected


def test_split_expressions_keeps_source_text() -> None:
    """Each top-level statement keeps its exact source, including multi-line ones."""
    code = "skipped line\nx = 1\nitems = [\n    1,\n    2,\n]\nx + 1"
    sources = [expression.source for expression in split_expressions(code, skip=1)]
    assert sources == ["x = 1", "items = [\n    1,\n    2,\n]", "x + 1"]


def test_split_expressions_keeps_decorators() -> None:
    """Decorated definitions keep their decorator lines."""
    code = "import functools\n@functools.cache\n@staticmethod\ndef f():\n    return 1\nf"
    sources = [expression.source for expression in split_expressions(code)]
    assert sources == [
        "import functools",
        "@functools.cache\n@staticmethod\ndef f():\n    return 1",
        "f",
    ]


def test_split_expressions_rejects_invalid_syntax() -> None:
    """Invalid text raises ``SyntaxError``."""
    with pytest.raises(SyntaxError):
        split_expressions("x = (")


def test_evaluate_resolves_names_builtins_and_submodules(sample_api: ModuleType) -> None:
    """Names fall back to builtins and imports; submodules load on demand."""
    assert evaluate(parse_reference("greet"), sample_api) is sample_api.greet
    assert evaluate(parse_reference("len"), sample_api) is builtins.len
    assert evaluate(parse_reference("json.dumps"), sample_api) is json.dumps
    area = evaluate(parse_reference("sampleapi.shapes.area"), sample_api)
    assert area(2, 3) == 6
    assert evaluate(parse_reference("MAX_STEP * 2"), sample_api) == 10


def test_evaluate_unknown_name(sample_api: ModuleType) -> None:
    """Unknown names raise ``NameError`` naming the module."""
    with pytest.raises(NameError, match="sampleapi"):
        evaluate(parse_reference("no_such_name_anywhere"), sample_api)


def test_as_module() -> None:
    """Modules pass through, names are imported, anything else is rejected."""
    assert as_module(json) is json
    assert as_module("json") is json
    with pytest.raises(TypeError):
        as_module(3)


def test_bound_and_unbound_methods_share_identity(sample_api: ModuleType) -> None:
    """``obj.method`` and ``Class.method`` normalize to one symbol."""
    expected = SymbolId("sampleapi", "Counter.increment")
    assert resolve_symbol(parse_reference("Counter.increment"), sample_api) == expected
    assert resolve_symbol(parse_reference("Counter().increment"), sample_api) == expected


@pytest.mark.parametrize(
    ("reference", "category"),
    [
        ("sampleapi", "Module"),
        ("Counter", "Type"),
        ("Counter.increment", "Method"),
        ("Counter.doubled", "Method"),
        ("greet", "Function"),
        ("len", "Function"),
        ("GREETING", "Constant"),
    ],
)
def test_doc_category(sample_api: ModuleType, reference: str, category: str) -> None:
    """Categories are assigned most specific first."""
    assert doc_category(evaluate(parse_reference(reference), sample_api)) == category


def test_lookup_documentation_for_routines(sample_api: ModuleType) -> None:
    """Routines use their cleaned docstrings and their defining module."""
    found = _lookup("greet", sample_api)
    assert found is not None
    assert found.symbol == SymbolId("sampleapi", "greet")
    assert found.category == "Function"
    assert found.docstring.startswith("Return a greeting for ``name``.")
    assert found.module is sample_api


def test_lookup_documentation_for_constants(sample_api: ModuleType) -> None:
    """Constants use the string literal following their assignment."""
    found = _lookup("MAX_STEP", sample_api)
    assert found is not None
    assert found.symbol == SymbolId("sampleapi", "MAX_STEP")
    assert found.category == "Constant"
    assert found.docstring == "Largest step accepted by `Counter.increment`."

    attribute = _lookup("Counter.limit", sample_api)
    assert attribute is not None
    assert attribute.symbol == SymbolId("sampleapi", "Counter.limit")
    assert attribute.docstring == "Highest value a counter reaches."


def test_lookup_documentation_for_properties(sample_api: ModuleType) -> None:
    """Properties are documented as methods of their class."""
    found = _lookup("Counter.doubled", sample_api)
    assert found is not None
    assert found.symbol == SymbolId("sampleapi", "Counter.doubled")
    assert found.docstring == "Twice the current value."


def test_lookup_documentation_without_docstring(sample_api: ModuleType) -> None:
    """Objects without documentation return ``None``."""
    assert _lookup("shout", sample_api) is None
    assert _lookup("UNDOCUMENTED", sample_api) is None


def test_sandbox_binds_previous_result() -> None:
    """Bindings persist and ``_`` holds the last successful value."""
    sandbox = Sandbox()
    assert sandbox.run("x = 20").value is None
    assert sandbox.run("x * 2").value == 40
    assert sandbox.run("_ + 2").value == 42


def test_sandbox_captures_output_and_errors() -> None:
    """Standard output is captured and failures are returned, not raised."""
    sandbox = Sandbox()
    printed = sandbox.run("print('hi')\n7")
    assert printed.output == "hi\n"
    assert printed.value == 7
    failed = sandbox.run("1 / 0")
    assert isinstance(failed.error, ZeroDivisionError)
    assert sandbox.namespace["_"] == 7


def test_sandbox_contains_system_exit() -> None:
    """``SystemExit`` raised by example code is returned like any other failure."""
    outcome = Sandbox().run("import sys\nsys.exit(0)")
    assert isinstance(outcome.error, SystemExit)
    assert display(outcome) == "{throws SystemExit}"


def test_sandbox_propagates_keyboard_interrupt() -> None:
    """An interrupt still stops the build."""
    with pytest.raises(KeyboardInterrupt):
        Sandbox().run("raise KeyboardInterrupt")


@pytest.mark.parametrize(
    ("outcome", "show_value", "expected"),
    [
        (Outcome(value="text"), True, "'text'"),
        (Outcome(value=None), True, ""),
        (Outcome(value=3), False, ""),
        (Outcome(value=3, output="out\n"), True, "out\n3"),
        (Outcome(error=KeyError("k"), output="partial\n"), True, "partial\n{throws KeyError}"),
    ],
)
def test_display(outcome: Outcome, show_value: bool, expected: str) -> None:  # noqa: FBT001
    """Outcomes render like an interactive session."""
    assert display(outcome, show_value=show_value) == expected
