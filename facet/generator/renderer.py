"""Render expanded pages into HTML bodies.

Generic blocks are serialized by the Python-Markdown instance that parsed
them. Headers and docs entries get named anchors, top-level code blocks are
highlighted with Pygments, and ``{index}``/``{contents}`` directives are built
from the complete :class:`~facet.registry.SymbolRegistry`.
"""

from __future__ import annotations

import copy
import re
import typing as typ
from html import escape
from xml.etree.ElementTree import Element, SubElement

from markdown.serializers import to_xhtml_string
from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from facet._constants import DEFAULT_CONTENTS_DEPTH, DEPTH_KEY, PAGES_KEY
from facet.document import (
    CodeBlock,
    ContentsDirective,
    DocsDirective,
    DocsEntry,
    Header,
    IndexDirective,
    MetaDirective,
    Passthrough,
)
from facet.generator.cross_references import relative_href
from facet.markdown_parser import slugify

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from facet.document import Node, PageState
    from facet.registry import SymbolRegistry

CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')


def _page_filter(options: cabc.Mapping[str, object]) -> tuple[str, ...]:
    pages = options.get(PAGES_KEY) or ()
    if isinstance(pages, str):
        return (pages,)
    return tuple(str(page) for page in typ.cast("cabc.Iterable[object]", pages))


def _selected(prefixes: tuple[str, ...], *paths: str) -> bool:
    """Return whether any of ``paths`` starts with one of ``prefixes`` (or no filter)."""
    if not prefixes:
        return True
    return any(path.startswith(prefix) for path in paths for prefix in prefixes)


class HtmlContentRenderer:
    """Render expanded page blocks with consistent styling."""

    def __init__(self, registry: SymbolRegistry, pygments_style: str = "default") -> None:
        """Initialize a renderer bound to the run's registry.

        Parameters
        ----------
        registry : SymbolRegistry
            Fully populated registry used for anchors, indexes and contents.
        pygments_style : str, optional
            Name of the Pygments style used for syntax highlighting.
        """
        self.registry = registry
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def render_page(self, state: PageState) -> str:
        """Render every expanded block of ``state`` in order."""
        parts = (self.render_block(block, state) for block in state.blocks)
        return "\n".join(part for part in parts if part) + "\n"

    def render_block(self, block: Node, state: PageState) -> str:
        """Render a single expanded block."""
        match block:
            case Header(id=header_id, element=element):
                return f'<a id="{header_id}"></a>\n{state.document.render(element)}'
            case Passthrough(element=element):
                return state.document.render(element)
            case CodeBlock(language=language, code=code):
                return self.code_block(code, language)
            case DocsDirective(entries=entries):
                return "\n".join(self._docs_entry(entry) for entry in entries)
            case IndexDirective():
                return self._index(block)
            case ContentsDirective():
                return self._contents(block)
            case MetaDirective():
                return ""
        msg = f"unexpected block type {type(block).__name__}"
        raise TypeError(msg)

    def code_block(self, code: str, language: str | None = None) -> str:
        """Render ``code`` into highlighted HTML with an optional language tag.

        Parameters
        ----------
        code : str
            Source snippet to highlight.
        language : str, optional
            Pygments lexer name; defaults to ``"text"`` when not provided or
            when the lexer lookup fails.

        Returns
        -------
        str
            HTML containing the highlighted block with ``data-language``
            metadata applied.
        """
        lang = language or "text"
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            lexer = get_lexer_by_name("text")
        html = highlight(code, lexer, self._formatter)
        return self._attach_language_attribute(html, lang).strip()

    def _docs_entry(self, entry: DocsEntry) -> str:
        anchor = slugify(str(entry.symbol))
        body = entry.document.render_children()
        return (
            '<section class="docstring">\n'
            f'<a id="{anchor}" href="#{anchor}">#</a>\n'
            f"<p><strong>{escape(entry.category)}</strong></p>\n"
            f"{body}\n"
            "<hr />\n"
            "</section>"
        )

    def _index(self, directive: IndexDirective) -> str:
        prefixes = _page_filter(directive.options)
        links: list[tuple[tuple[str, str], str, str]] = []
        for entry in self.registry.docs.values():
            if not _selected(prefixes, entry.destination, entry.source):
                continue
            href = relative_href(
                entry.destination, entry.anchor, from_page=directive.destination
            )
            links.append(((entry.destination, entry.anchor), entry.reference, href))
        links.sort(key=lambda link: link[0])
        root = Element("ul", {"class": "index"})
        for _key, reference, href in links:
            anchor = SubElement(SubElement(root, "li"), "a", {"href": href})
            SubElement(anchor, "code").text = reference
        return to_xhtml_string(root)

    def _contents(self, directive: ContentsDirective) -> str:
        prefixes = _page_filter(directive.options)
        depth = directive.options.get(DEPTH_KEY, DEFAULT_CONTENTS_DEPTH)
        headers = sorted(
            (
                entry
                for entry in self.registry.headers.values()
                if _selected(prefixes, entry.destination, entry.source)
                and entry.level <= typ.cast("int", depth)
            ),
            key=lambda entry: entry.ordinal,
        )
        root = Element("ul", {"class": "contents"})
        stack: list[Element] = [root]
        for entry in headers:
            nesting = entry.level - 1
            del stack[nesting + 1 :]
            while len(stack) <= nesting:
                parent = stack[-1]
                holder = parent[-1] if len(parent) else SubElement(parent, "li")
                stack.append(SubElement(holder, "ul"))
            item = SubElement(stack[-1], "li")
            href = relative_href(entry.destination, entry.id, from_page=directive.destination)
            link = SubElement(item, "a", {"href": href})
            link.text = entry.element.text
            link.extend(copy.deepcopy(child) for child in entry.element)
        return to_xhtml_string(root)

    @staticmethod
    def _attach_language_attribute(html: str, language: str) -> str:
        """Add a single language attribute to an already highlighted block."""
        safe_lang = escape(language or "text", quote=True)

        def _repl(match: re.Match[str]) -> str:
            return f'<div class="codehilite" data-language="{safe_lang}">'

        return CODEHILITE_OPEN_TAG.sub(_repl, html, 1)


__all__ = ["HtmlContentRenderer"]
