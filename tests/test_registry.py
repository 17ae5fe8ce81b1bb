"""Unit tests for the run-wide header and documentation registry."""

from __future__ import annotations

import builtins
from xml.etree.ElementTree import Element

import pytest

from facet.document import DocsEntry
from facet.errors import DuplicateDocumentationError, DuplicateHeaderIdError
from facet.markdown_parser import parse_markdown
from facet.registry import SymbolRegistry
from facet.runtime import SymbolId


def _docs_entry(qualname: str = "len") -> DocsEntry:
    return DocsEntry(
        symbol=SymbolId("builtins", qualname),
        category="Function",
        document=parse_markdown("Return the length."),
        module=builtins,
        reference=qualname,
    )


def _add_header(registry: SymbolRegistry, header_id: str, source: str = "index.md") -> None:
    registry.add_header(
        header_id,
        source=source,
        destination=source.replace(".md", ".html"),
        level=2,
        element=Element("h2"),
    )


def test_headers_are_registered_in_order() -> None:
    """Headers keep their registration order across pages."""
    registry = SymbolRegistry()
    _add_header(registry, "intro")
    _add_header(registry, "usage", source="guide.md")
    assert [entry.ordinal for entry in registry.headers.values()] == [0, 1]
    assert registry.headers["usage"].destination == "guide.html"


def test_duplicate_header_ids_are_rejected_across_pages() -> None:
    """Header ids are unique across the whole run."""
    registry = SymbolRegistry()
    _add_header(registry, "intro")
    with pytest.raises(DuplicateHeaderIdError, match="guide.md"):
        _add_header(registry, "intro", source="guide.md")


def test_docs_entries_are_keyed_by_symbol() -> None:
    """Docs entries are looked up by symbol and anchored by its slug."""
    registry = SymbolRegistry()
    doc = registry.add_doc(_docs_entry(), source="api.md", destination="api.html")
    assert registry.docs[SymbolId("builtins", "len")] is doc
    assert doc.anchor == "len"
    assert doc.reference == "len"


def test_duplicate_documentation_is_rejected() -> None:
    """A symbol may be spliced into the docs only once."""
    registry = SymbolRegistry()
    registry.add_doc(_docs_entry(), source="api.md", destination="api.html")
    with pytest.raises(DuplicateDocumentationError, match="api.md"):
        registry.add_doc(_docs_entry(), source="more.md", destination="more.html")


def test_frozen_registry_rejects_writes() -> None:
    """Writes after freezing raise ``RuntimeError``; views stay read-only."""
    registry = SymbolRegistry()
    registry.freeze()
    assert registry.frozen
    with pytest.raises(RuntimeError, match="frozen"):
        _add_header(registry, "late")
    with pytest.raises(TypeError):
        registry.headers["late"] = None  # type: ignore[index]
