"""Node types for expanded pages and the context-tracking tree walk.

Expansion turns each top-level block of a parsed page into one of the node
dataclasses below. Later passes visit the expanded blocks with :func:`walk`,
which descends into every element (including docstrings spliced in by
``{docs}`` blocks) while tracking the module that references should resolve
against.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ._constants import CURRENT_MODULE_KEY
from .markdown_parser import plain_text
from .runtime import as_module

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from types import ModuleType
    from xml.etree.ElementTree import Element

    from .markdown_parser import MarkdownDocument
    from .runtime import Category, SymbolId


@dc.dataclass(slots=True)
class Page:
    """A Markdown source file and its parsed tree.

    Attributes
    ----------
    source : str
        POSIX path of the source file relative to the source directory.
    destination : str
        POSIX path of the output file relative to the build directory.
    document : MarkdownDocument
        Parsed element tree of the page.
    """

    source: str
    destination: str
    document: MarkdownDocument


@dc.dataclass(slots=True)
class Passthrough:
    """A block copied through unchanged."""

    element: Element


@dc.dataclass(slots=True)
class Header:
    """A header block and the id it was registered under."""

    level: int
    element: Element
    id: str

    @property
    def text(self) -> str:
        """Plain-text rendering of the header's content."""
        return plain_text(self.element)


@dc.dataclass(slots=True)
class CodeBlock:
    """A top-level code block that is not a directive."""

    language: str
    code: str
    element: Element


@dc.dataclass(slots=True)
class MetaDirective:
    """Snapshot of the page metadata after a ``{meta}`` block."""

    values: dict[str, object]


@dc.dataclass(slots=True)
class DocsEntry:
    """One documented symbol spliced into a page by a ``{docs}`` block."""

    symbol: SymbolId
    category: Category
    document: MarkdownDocument
    module: ModuleType
    reference: str


@dc.dataclass(slots=True)
class DocsDirective:
    """Expanded ``{docs}`` block."""

    entries: list[DocsEntry]


@dc.dataclass(slots=True)
class IndexDirective:
    """Expanded ``{index}`` block; resolved against the registry at render time."""

    options: dict[str, object]
    source: str
    destination: str


@dc.dataclass(slots=True)
class ContentsDirective:
    """Expanded ``{contents}`` block; resolved against the registry at render time."""

    options: dict[str, object]
    source: str
    destination: str


Node = (
    Passthrough
    | Header
    | CodeBlock
    | MetaDirective
    | DocsDirective
    | IndexDirective
    | ContentsDirective
)


@dc.dataclass(slots=True)
class PageState:
    """Per-page accumulator filled in while a page is expanded."""

    source: str
    destination: str
    document: MarkdownDocument
    metadata: dict[str, object] = dc.field(default_factory=dict)
    blocks: list[Node] = dc.field(default_factory=list)

    @classmethod
    def for_page(cls, page: Page) -> PageState:
        """Return a fresh state for ``page``."""
        return cls(page.source, page.destination, page.document)


def current_module(metadata: cabc.Mapping[str, object], default: ModuleType) -> ModuleType:
    """Return the module selected by ``CurrentModule`` or ``default`` when unset."""
    value = metadata.get(CURRENT_MODULE_KEY)
    return default if value is None else as_module(value)


def walk(
    blocks: cabc.Iterable[Node], default: ModuleType
) -> cabc.Iterator[tuple[Element, ModuleType]]:
    """Yield every element of the expanded ``blocks`` with its module context.

    ``{meta}`` snapshots update the context for the blocks that follow them.
    Elements inside a docs entry are yielded with the module that defines the
    documented symbol, so a docstring's own references resolve where it was
    written rather than on the page that includes it.
    """
    metadata: dict[str, object] = {}
    for block in blocks:
        match block:
            case MetaDirective(values=values):
                metadata.update(values)
            case DocsDirective(entries=entries):
                for entry in entries:
                    for element in entry.document.root.iter():
                        yield element, entry.module
            case Passthrough(element=element) | Header(element=element) | CodeBlock(
                element=element
            ):
                module = current_module(metadata, default)
                for child in element.iter():
                    yield child, module
            case _:
                continue


__all__ = [
    "CodeBlock",
    "ContentsDirective",
    "DocsDirective",
    "DocsEntry",
    "Header",
    "IndexDirective",
    "MetaDirective",
    "Node",
    "Page",
    "PageState",
    "Passthrough",
    "current_module",
    "walk",
]
