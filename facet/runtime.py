"""Python runtime services: splitting, evaluation, docs lookup and display.

The build pipeline never evaluates or introspects anything itself; it calls
the functions in this module. They bind the abstract host-language services to
Python's own ``ast``, ``inspect`` and ``importlib`` machinery:

* :func:`split_expressions` turns directive and doctest text into top-level
  statements with their exact source text.
* :func:`evaluate` evaluates an expression against a module's namespace,
  importing modules on first reference.
* :func:`lookup_documentation` finds the canonical :class:`SymbolId`,
  category and docstring of the object an expression refers to.
* :class:`Sandbox` and :func:`display` run doctest code and render its outcome
  the way an interactive session shows it.

Examples
--------
>>> from facet.runtime import split_expressions, resolve_symbol
>>> [expr.source for expr in split_expressions("x = 1\\ny = x + 1")]
['x = 1', 'y = x + 1']
>>> import builtins
>>> str(resolve_symbol(split_expressions("len")[0].node.value, builtins))
'len'
"""

from __future__ import annotations

import ast
import builtins
import contextlib
import dataclasses as dc
import importlib
import inspect
import io
import textwrap
import typing as typ
from types import ModuleType

UNQUALIFIED_MODULES = frozenset({"builtins", "__main__"})
PREVIOUS_RESULT_NAME = "_"
THROWS_TEMPLATE = "{{throws {kind}}}"

Category = typ.Literal["Module", "Type", "Method", "Function", "Constant"]


@dc.dataclass(frozen=True, slots=True, order=True)
class SymbolId:
    """Stable identity of a documented object.

    Attributes
    ----------
    module : str
        Dotted name of the module that defines the object.
    qualname : str
        Qualified name inside ``module``; empty for modules themselves.
    """

    module: str
    qualname: str = ""

    def __str__(self) -> str:
        if not self.qualname:
            return self.module
        if self.module in UNQUALIFIED_MODULES:
            return self.qualname
        return f"{self.module}.{self.qualname}"


@dc.dataclass(frozen=True, slots=True)
class Expression:
    """A top-level statement and the exact source text it was parsed from."""

    node: ast.stmt
    source: str


@dc.dataclass(frozen=True, slots=True)
class DocLookup:
    """Result of a successful documentation lookup.

    Attributes
    ----------
    symbol : SymbolId
        Canonical identity of the documented object.
    category : str
        One of ``Module``, ``Type``, ``Method``, ``Function`` or ``Constant``.
    docstring : str
        Cleaned docstring text (Markdown).
    module : ModuleType
        Module the object is defined in; references inside the docstring
        resolve against it.
    """

    symbol: SymbolId
    category: Category
    docstring: str
    module: ModuleType


@dc.dataclass(slots=True)
class Outcome:
    """Value or exception produced by running doctest code, plus captured stdout."""

    value: object = None
    error: BaseException | None = None
    output: str = ""


class ModuleScope(dict[str, object]):
    """Evaluation locals that defer to a module, then builtins, then imports."""

    def __init__(self, module: ModuleType) -> None:
        super().__init__()
        self.module = module

    def __missing__(self, key: str) -> object:
        namespace = vars(self.module)
        if key in namespace:
            return namespace[key]
        if hasattr(builtins, key):
            return getattr(builtins, key)
        try:
            return importlib.import_module(key)
        except ImportError:
            raise KeyError(key) from None


def _statement_source(text: str, node: ast.stmt) -> str:
    """Return the source of a top-level statement, decorators included."""
    segment = ast.get_source_segment(text, node) or ""
    decorators = getattr(node, "decorator_list", None)
    if not decorators:
        return segment
    lines = text.splitlines(keepends=True)
    start = min(decorator.lineno for decorator in decorators) - 1
    return "".join(lines[start : node.lineno - 1]) + segment


def split_expressions(code: str, *, skip: int = 0) -> list[Expression]:
    """Split ``code`` into top-level statements after dropping ``skip`` lines.

    Raises
    ------
    SyntaxError
        If the remaining text is not valid Python.
    """
    text = "\n".join(code.split("\n")[skip:])
    tree = ast.parse(text)
    return [
        Expression(node=node, source=_statement_source(text, node))
        for node in tree.body
    ]


def assignment(node: ast.stmt) -> tuple[str, ast.expr] | None:
    """Return ``(name, value)`` when ``node`` is a plain ``name = value`` statement."""
    if (
        isinstance(node, ast.Assign)
        and len(node.targets) == 1
        and isinstance(node.targets[0], ast.Name)
    ):
        return node.targets[0].id, node.value
    if (
        isinstance(node, ast.AnnAssign)
        and isinstance(node.target, ast.Name)
        and node.value is not None
    ):
        return node.target.id, node.value
    return None


def parse_reference(text: str) -> ast.expr:
    """Parse the text of a reference (``foo``, ``pkg.Type.method``) as an expression."""
    return ast.parse(text.strip(), mode="eval").body


def _resolve(node: ast.expr, scope: ModuleScope) -> object:
    """Resolve names and attribute chains, importing submodules on demand."""
    if isinstance(node, ast.Name):
        try:
            return scope[node.id]
        except KeyError:
            msg = f"name '{node.id}' is not defined in module '{scope.module.__name__}'"
            raise NameError(msg) from None
    if isinstance(node, ast.Attribute):
        base = _resolve(node.value, scope)
        try:
            return getattr(base, node.attr)
        except AttributeError:
            if not inspect.ismodule(base):
                raise
            return importlib.import_module(f"{base.__name__}.{node.attr}")
    code = compile(ast.Expression(body=node), f"<{scope.module.__name__}>", "eval")
    return eval(code, {"__builtins__": builtins}, scope)  # noqa: S307


def evaluate(node: ast.expr, module: ModuleType) -> object:
    """Evaluate an expression node in the namespace of ``module``."""
    return _resolve(node, ModuleScope(module))


def as_module(value: object) -> ModuleType:
    """Coerce a ``CurrentModule`` value (module or dotted name) into a module.

    Raises
    ------
    TypeError
        If ``value`` is neither a module nor a string.
    ImportError
        If a dotted name cannot be imported.
    """
    if inspect.ismodule(value):
        return value
    if isinstance(value, str):
        return importlib.import_module(value)
    msg = f"expected a module or module name, got {type(value).__name__}"
    raise TypeError(msg)


def _owner(node: ast.expr, module: ModuleType) -> tuple[object | None, str | None]:
    """Return the object holding the referenced attribute and its name."""
    if isinstance(node, ast.Name):
        return module, node.id
    if isinstance(node, ast.Attribute):
        return evaluate(node.value, module), node.attr
    return None, None


def _unwrap(obj: object) -> object:
    """Normalize bound methods and properties to their underlying function."""
    if isinstance(obj, property) and obj.fget is not None:
        return obj.fget
    if inspect.ismethod(obj):
        return obj.__func__
    return obj


def symbol_identity(
    obj: object, *, owner: object | None = None, name: str | None = None
) -> SymbolId:
    """Derive the :class:`SymbolId` of ``obj``.

    Modules, classes and routines carry their own names. Any other value is a
    constant and is identified through the ``owner`` it was read from.

    Raises
    ------
    TypeError
        If ``obj`` is a constant and no owner/name pair is available.
    """
    target = _unwrap(obj)
    if inspect.ismodule(target):
        return SymbolId(target.__name__)
    if inspect.isclass(target) or inspect.isroutine(target):
        module = (
            getattr(target, "__module__", None)
            or getattr(getattr(target, "__objclass__", None), "__module__", None)
            or "builtins"
        )
        qualname = getattr(target, "__qualname__", None) or target.__name__
        return SymbolId(module, qualname)
    if name is not None and inspect.ismodule(owner):
        return SymbolId(owner.__name__, name)
    if name is not None and inspect.isclass(owner):
        return SymbolId(owner.__module__, f"{owner.__qualname__}.{name}")
    msg = f"cannot derive a symbol identity for {obj!r}"
    raise TypeError(msg)


def resolve_symbol(node: ast.expr, module: ModuleType) -> SymbolId:
    """Evaluate a symbol-referring expression and return its identity."""
    owner, name = _owner(node, module)
    return symbol_identity(evaluate(node, module), owner=owner, name=name)


def _is_nested_in_class(qualname: str) -> bool:
    parts = qualname.split(".")
    return len(parts) > 1 and parts[-2] != "<locals>"


def doc_category(obj: object) -> Category:
    """Return the most specific category label for ``obj``."""
    if inspect.ismodule(obj):
        return "Module"
    if inspect.isclass(obj):
        return "Type"
    if (
        inspect.ismethod(obj)
        or inspect.ismethoddescriptor(obj)
        or isinstance(obj, property)
        or (inspect.isfunction(obj) and _is_nested_in_class(obj.__qualname__))
    ):
        return "Method"
    if inspect.isroutine(obj):
        return "Function"
    return "Constant"


def attribute_docstring(owner: object, name: str) -> str | None:
    """Return the string literal that directly follows ``name = ...`` in ``owner``."""
    try:
        source = inspect.getsource(owner)  # type: ignore[arg-type]
    except (OSError, TypeError):
        return None
    tree = ast.parse(textwrap.dedent(source))
    body = tree.body
    if inspect.isclass(owner) and body and isinstance(body[0], ast.ClassDef):
        body = body[0].body
    for current, following in zip(body, body[1:], strict=False):
        target = assignment(current)
        if target is None or target[0] != name:
            continue
        if (
            isinstance(following, ast.Expr)
            and isinstance(following.value, ast.Constant)
            and isinstance(following.value.value, str)
        ):
            return inspect.cleandoc(following.value.value)
    return None


def _defining_module(obj: object, symbol: SymbolId, fallback: ModuleType) -> ModuleType:
    if inspect.ismodule(obj):
        return obj
    try:
        return importlib.import_module(symbol.module)
    except ImportError:
        return fallback


def lookup_documentation(node: ast.expr, module: ModuleType) -> DocLookup | None:
    """Return the documentation of the object ``node`` refers to.

    Returns
    -------
    DocLookup | None
        ``None`` when the object exists but carries no docstring.

    Raises
    ------
    Exception
        Whatever evaluating the reference raises (``NameError``,
        ``AttributeError``, ``ImportError`` ...).
    """
    owner, name = _owner(node, module)
    obj = evaluate(node, module)
    symbol = symbol_identity(obj, owner=owner, name=name)
    target = _unwrap(obj)
    if inspect.ismodule(target) or inspect.isclass(target) or inspect.isroutine(target):
        docstring = inspect.getdoc(obj)
    elif owner is not None and name is not None:
        docstring = attribute_docstring(owner, name)
    else:
        docstring = None
    if not docstring:
        return None
    return DocLookup(
        symbol=symbol,
        category=doc_category(obj),
        docstring=docstring,
        module=_defining_module(obj, symbol, module),
    )


class Sandbox:
    """Fresh namespace in which the chunks of one doctest block are run."""

    def __init__(self, name: str = "__doctest__") -> None:
        self.namespace: dict[str, object] = {"__name__": name, "__builtins__": builtins}

    def run(self, source: str, *, filename: str = "<doctest>") -> Outcome:
        """Execute ``source``; its value is that of a trailing expression statement."""
        buffer = io.StringIO()
        try:
            with contextlib.redirect_stdout(buffer):
                value = self._execute(source, filename)
        except KeyboardInterrupt:
            raise
        except BaseException as exc:  # noqa: BLE001 - SystemExit included, failures are rendered
            return Outcome(error=exc, output=buffer.getvalue())
        self.namespace[PREVIOUS_RESULT_NAME] = value
        return Outcome(value=value, output=buffer.getvalue())

    def _execute(self, source: str, filename: str) -> object:
        tree = ast.parse(source, filename=filename, mode="exec")
        last = tree.body[-1] if tree.body else None
        if isinstance(last, ast.Expr):
            tree.body.pop()
            exec(compile(tree, filename, "exec"), self.namespace)  # noqa: S102
            expression = ast.Expression(body=last.value)
            return eval(compile(expression, filename, "eval"), self.namespace)  # noqa: S307
        exec(compile(tree, filename, "exec"), self.namespace)  # noqa: S102
        return None


def display(outcome: Outcome, *, show_value: bool = True) -> str:
    """Render an outcome as an interactive session would show it."""
    if outcome.error is not None:
        kind = type(outcome.error).__name__
        return outcome.output + THROWS_TEMPLATE.format(kind=kind)
    if show_value and outcome.value is not None:
        return outcome.output + repr(outcome.value)
    return outcome.output


__all__ = [
    "Category",
    "DocLookup",
    "Expression",
    "ModuleScope",
    "Outcome",
    "Sandbox",
    "SymbolId",
    "as_module",
    "assignment",
    "attribute_docstring",
    "display",
    "doc_category",
    "evaluate",
    "lookup_documentation",
    "parse_reference",
    "resolve_symbol",
    "split_expressions",
    "symbol_identity",
]
