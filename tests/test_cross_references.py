"""Unit tests for ``{ref}`` link resolution across pages."""

from __future__ import annotations

import builtins
import typing as typ

import pytest

from facet.document import walk
from facet.errors import UnresolvedHeaderReferenceError, UnresolvedSymbolReferenceError
from facet.generator.cross_references import CrossReferenceResolver, relative_href

if typ.TYPE_CHECKING:
    from types import ModuleType

API_PAGE = """\
# API Reference

```
{meta}
CurrentModule = "sampleapi"
```

```
{docs}
greet
GREETING
Counter
Counter.increment
```
"""


def _resolve(result) -> dict[str, list[str]]:  # noqa: ANN001
    """Run the resolver and return each page's link targets in document order."""
    result.registry.freeze()
    CrossReferenceResolver(result.registry, default_module=builtins).run(result.states)
    return {
        state.source: [
            element.get("href", "")
            for element, _module in walk(state.blocks, builtins)
            if element.tag == "a"
        ]
        for state in result.states
    }


@pytest.mark.parametrize(
    ("target", "from_page", "expected"),
    [
        ("lib/api.html", "man/guide.html", "../lib/api.html#x"),
        ("index.html", "index.html", "index.html#x"),
        ("man/guide.html", "index.html", "man/guide.html#x"),
        ("a/b/c.html", "a/b/d.html", "c.html#x"),
    ],
)
def test_relative_href(target: str, from_page: str, expected: str) -> None:
    """Links are relative to the directory of the page holding them."""
    assert relative_href(target, "x", from_page=from_page) == expected


def test_symbol_references(expand, sample_api: ModuleType) -> None:  # noqa: ANN001, ARG001
    """Code-span links resolve in the module context where they appear."""
    guide = (
        "# Guide\n\n"
        "```\n{meta}\nCurrentModule = 'sampleapi'\n```\n\n"
        "Call [`greet`]({ref}) or [`Counter().increment`]({ref}).\n"
    )
    links = _resolve(expand({"lib/api.md": API_PAGE, "man/guide.md": guide}))
    assert links["man/guide.md"] == [
        "../lib/api.html#sampleapigreet",
        "../lib/api.html#sampleapicounterincrement",
    ]


def test_docstring_references_use_the_defining_module(expand, sample_api: ModuleType) -> None:  # noqa: ANN001, ARG001
    """References inside spliced docstrings resolve where the docstring was written."""
    page = "# API\n\n```\n{docs}\nsampleapi.GREETING\nsampleapi.greet\n```\n"
    links = _resolve(expand({"api.md": page}))
    assert links["api.md"] == ["api.html#sampleapigreet"]


def test_header_references(expand) -> None:  # noqa: ANN001
    """Header links resolve by slugged text or by an explicit id."""
    index = "# Welcome\n\nRead [Getting Started]({ref}) or [the setup]({ref#getting-started}).\n"
    guide = "## Getting Started\n\nBack to [Welcome]({ref}), see [elsewhere](other.html).\n"
    links = _resolve(expand({"index.md": index, "man/guide.md": guide}))
    assert links["index.md"] == [
        "man/guide.html#getting-started",
        "man/guide.html#getting-started",
    ]
    assert links["man/guide.md"] == ["../index.html#welcome", "other.html"]


def test_unresolved_header_reference(expand) -> None:  # noqa: ANN001
    """A header reference with no matching id is fatal."""
    with pytest.raises(UnresolvedHeaderReferenceError, match="missing-section"):
        _resolve(expand({"index.md": "See [Missing Section]({ref}).\n"}))


def test_reference_to_undocumented_symbol(expand, sample_api: ModuleType) -> None:  # noqa: ANN001, ARG001
    """Symbols that exist but were never spliced in cannot be referenced."""
    page = "See [`sampleapi.shout`]({ref}).\n"
    with pytest.raises(UnresolvedSymbolReferenceError, match=r"sampleapi\.shout"):
        _resolve(expand({"index.md": page}))


def test_reference_to_unknown_name(expand) -> None:  # noqa: ANN001
    """Names that cannot be evaluated are reported as unresolved."""
    with pytest.raises(UnresolvedSymbolReferenceError, match="no_such_name_xyz"):
        _resolve(expand({"index.md": "See [`no_such_name_xyz`]({ref}).\n"}))
