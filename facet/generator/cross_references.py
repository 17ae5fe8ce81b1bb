"""Rewrite ``{ref}`` links once every page has been expanded.

Two forms are recognised in link targets:

* ``[`symbol`]({ref})`` links to the ``{docs}`` entry documenting ``symbol``,
  resolved against the module context in effect where the link appears.
* ``[Header text]({ref})`` or ``[any text]({ref#header-id})`` links to a
  registered header.

Targets become ``<relative path>#<anchor>``, relative to the directory of the
page that contains the link. Any other link is left alone.
"""

from __future__ import annotations

import posixpath
import re
import typing as typ

from loguru import logger

from facet.document import walk
from facet.errors import UnresolvedHeaderReferenceError, UnresolvedSymbolReferenceError
from facet.markdown_parser import plain_text, slugify, sole_code_span
from facet.runtime import parse_reference, resolve_symbol

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from types import ModuleType
    from xml.etree.ElementTree import Element

    from facet.document import PageState
    from facet.registry import SymbolRegistry

REFERENCE_PATTERN = re.compile(r"^\{ref(?:#(?P<id>.+))?\}$")


def relative_href(target: str, anchor: str, *, from_page: str) -> str:
    """Return ``<path from from_page's directory to target>#<anchor>``.

    Examples
    --------
    >>> relative_href("lib/api.html", "foo", from_page="man/guide.html")
    '../lib/api.html#foo'
    >>> relative_href("index.html", "intro", from_page="index.html")
    'index.html#intro'
    """
    start = posixpath.dirname(from_page) or "."
    return f"{posixpath.relpath(target, start)}#{anchor}"


class CrossReferenceResolver:
    """Resolve reference links against a frozen :class:`SymbolRegistry`."""

    def __init__(self, registry: SymbolRegistry, *, default_module: ModuleType) -> None:
        self.registry = registry
        self.default_module = default_module

    def run(self, states: cabc.Iterable[PageState]) -> int:
        """Rewrite every reference link on every page.

        Returns
        -------
        int
            Number of links rewritten.

        Raises
        ------
        UnresolvedSymbolReferenceError
            If a symbol reference names something no ``{docs}`` block covered.
        UnresolvedHeaderReferenceError
            If a header reference names an id that was never registered.
        """
        rewritten = 0
        for state in states:
            for element, module in walk(state.blocks, self.default_module):
                if element.tag == "a" and self._resolve(element, module, state):
                    rewritten += 1
        return rewritten

    def _resolve(self, link: Element, module: ModuleType, state: PageState) -> bool:
        match = REFERENCE_PATTERN.match(link.get("href") or "")
        if match is None:
            return False
        explicit_id = match.group("id")
        code = sole_code_span(link)
        if explicit_id is None and code is not None:
            href = self._symbol_href(code, module, state)
        else:
            href = self._header_href(explicit_id or plain_text(link), state)
        logger.debug("{}: {} -> {}", state.source, link.get("href"), href)
        link.set("href", href)
        return True

    def _symbol_href(self, code: str, module: ModuleType, state: PageState) -> str:
        try:
            symbol = resolve_symbol(parse_reference(code), module)
        except Exception as exc:
            msg = f"cannot resolve reference '{code}' in '{state.source}': {exc}"
            raise UnresolvedSymbolReferenceError(msg) from exc
        entry = self.registry.docs.get(symbol)
        if entry is None:
            msg = f"no doc for reference '{code}' found (from '{state.source}')."
            raise UnresolvedSymbolReferenceError(msg)
        return relative_href(entry.destination, entry.anchor, from_page=state.destination)

    def _header_href(self, text: str, state: PageState) -> str:
        header_id = slugify(text)
        entry = self.registry.headers.get(header_id)
        if entry is None:
            msg = f"no header id '{header_id}' found in document (from '{state.source}')."
            raise UnresolvedHeaderReferenceError(msg)
        return relative_href(entry.destination, entry.id, from_page=state.destination)


__all__ = ["REFERENCE_PATTERN", "CrossReferenceResolver", "relative_href"]
