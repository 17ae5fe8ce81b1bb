"""Run-wide header and documentation indexes.

:class:`SymbolRegistry` is written while pages are expanded and frozen before
cross-references are resolved. Every key is written once: a second header
with the same id, or a second ``{docs}`` entry for the same symbol, anywhere in
the run, is a fatal error.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from types import MappingProxyType

from .errors import DuplicateDocumentationError, DuplicateHeaderIdError
from .markdown_parser import slugify

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from xml.etree.ElementTree import Element

    from .document import DocsEntry
    from .runtime import SymbolId


@dc.dataclass(frozen=True, slots=True)
class HeaderEntry:
    """A registered header.

    Attributes
    ----------
    id : str
        Slug the header is addressed by.
    source : str
        Source page path relative to the source directory.
    destination : str
        Output page path relative to the build directory.
    ordinal : int
        Registration order across the whole run.
    level : int
        Header level (1-6).
    element : Element
        Header element as emitted into the expanded page.
    """

    id: str
    source: str
    destination: str
    ordinal: int
    level: int
    element: Element


@dc.dataclass(frozen=True, slots=True)
class DocEntry:
    """A registered documentation entry."""

    symbol: SymbolId
    source: str
    destination: str
    entry: DocsEntry

    @property
    def anchor(self) -> str:
        """Anchor slug of the entry on its destination page."""
        return slugify(str(self.symbol))

    @property
    def reference(self) -> str:
        """Reference text as written in the ``{docs}`` block."""
        return self.entry.reference


class SymbolRegistry:
    """Write-once indexes of headers (by id) and docs entries (by symbol)."""

    def __init__(self) -> None:
        self._headers: dict[str, HeaderEntry] = {}
        self._docs: dict[SymbolId, DocEntry] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        """Whether the registry has been closed for writing."""
        return self._frozen

    @property
    def headers(self) -> cabc.Mapping[str, HeaderEntry]:
        """Read-only view of registered headers keyed by id."""
        return MappingProxyType(self._headers)

    @property
    def docs(self) -> cabc.Mapping[SymbolId, DocEntry]:
        """Read-only view of registered docs entries keyed by symbol."""
        return MappingProxyType(self._docs)

    def freeze(self) -> None:
        """Close the registry; later writes raise ``RuntimeError``."""
        self._frozen = True

    def _ensure_writable(self) -> None:
        if self._frozen:
            msg = "the symbol registry is frozen once expansion has finished."
            raise RuntimeError(msg)

    def add_header(
        self, header_id: str, *, source: str, destination: str, level: int, element: Element
    ) -> HeaderEntry:
        """Register a header under ``header_id``.

        Raises
        ------
        DuplicateHeaderIdError
            If any page already registered ``header_id``.
        """
        self._ensure_writable()
        if header_id in self._headers:
            first = self._headers[header_id].source
            msg = f"duplicate header id '{header_id}' in '{source}' (first used in '{first}')."
            raise DuplicateHeaderIdError(msg)
        entry = HeaderEntry(
            id=header_id,
            source=source,
            destination=destination,
            ordinal=len(self._headers),
            level=level,
            element=element,
        )
        self._headers[header_id] = entry
        return entry

    def add_doc(self, entry: DocsEntry, *, source: str, destination: str) -> DocEntry:
        """Register a docs entry under its symbol.

        Raises
        ------
        DuplicateDocumentationError
            If the symbol is already documented anywhere in the run.
        """
        self._ensure_writable()
        if entry.symbol in self._docs:
            first = self._docs[entry.symbol].source
            msg = (
                f"docs for '{entry.reference}' duplicated in '{source}' "
                f"(first spliced in '{first}')."
            )
            raise DuplicateDocumentationError(msg)
        doc = DocEntry(symbol=entry.symbol, source=source, destination=destination, entry=entry)
        self._docs[entry.symbol] = doc
        return doc


__all__ = ["DocEntry", "HeaderEntry", "SymbolRegistry"]
