"""Expand the top-level blocks of parsed pages into document nodes.

Each block is offered to an ordered tuple of handlers; the first handler that
claims it (returns ``True``) stops the search. Headers are registered and
directive code blocks (``{meta}``, ``{docs}``, ``{index}``, ``{contents}``)
are evaluated here, filling the run-wide :class:`~facet.registry.SymbolRegistry`
that the later passes read.

Example
-------
>>> import builtins
>>> from facet.document import Page
>>> from facet.generator.expander import BlockExpander
>>> from facet.markdown_parser import parse_markdown
>>> from facet.registry import SymbolRegistry
>>> registry = SymbolRegistry()
>>> expander = BlockExpander(registry, default_module=builtins)
>>> state = expander.expand(Page("index.md", "index.html", parse_markdown("# Home")))
>>> sorted(registry.headers)
['home']
"""

from __future__ import annotations

import ast
import copy
import re
import typing as typ
from xml.etree.ElementTree import Element

from loguru import logger

from facet._constants import (
    CONTENTS_MARKER,
    DOCS_MARKER,
    INDEX_MARKER,
    META_MARKER,
)
from facet.document import (
    CodeBlock,
    ContentsDirective,
    DocsDirective,
    DocsEntry,
    Header,
    IndexDirective,
    MetaDirective,
    PageState,
    Passthrough,
    current_module,
)
from facet.errors import DirectiveEvaluationError, MissingDocumentationError
from facet.markdown_parser import (
    HEADER_LEVELS,
    parse_markdown,
    plain_text,
    read_code_block,
    slugify,
)
from facet.runtime import assignment, evaluate, lookup_documentation, split_expressions

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from types import ModuleType

    from markdown.extensions import Extension

    from facet.document import Page
    from facet.registry import SymbolRegistry
    from facet.runtime import Expression

CUSTOM_ID_LINK_PATTERN = re.compile(r"^\{#(.+)\}$")
CUSTOM_ID_SUFFIX_PATTERN = re.compile(r"\s*\{#([^}\s]+)\}\s*$")


class ExpansionContext(typ.NamedTuple):
    """Shared services handed to every block handler."""

    registry: SymbolRegistry
    default_module: ModuleType
    extensions: tuple[Extension, ...]


class BlockHandler(typ.Protocol):
    """Claim-or-pass handler for one top-level block."""

    def expand(self, element: Element, state: PageState, context: ExpansionContext) -> bool:
        """Process ``element`` and return ``True`` when the block is claimed."""
        ...


def directive_body(element: Element, marker: str) -> str | None:
    """Return the body of a code block whose first line is ``marker``."""
    sample = read_code_block(element)
    if sample is None:
        return None
    first, _, body = sample.code.partition("\n")
    return body if first.strip() == marker else None


def _evaluate_assignments(
    body: str, state: PageState, context: ExpansionContext
) -> dict[str, object]:
    """Evaluate every ``name = value`` line of a directive body."""
    module = _page_module(state, context)
    values: dict[str, object] = {}
    for expression in _split(body, state):
        target = assignment(expression.node)
        if target is None:
            continue
        name, value = target
        try:
            values[name] = evaluate(value, module)
        except Exception as exc:
            msg = f"cannot evaluate '{expression.source}' in '{state.source}': {exc}"
            raise DirectiveEvaluationError(msg) from exc
    return values


def _split(body: str, state: PageState) -> list[Expression]:
    try:
        return split_expressions(body)
    except SyntaxError as exc:
        msg = f"invalid directive syntax in '{state.source}': {exc.msg} (line {exc.lineno})"
        raise DirectiveEvaluationError(msg) from exc


def _page_module(state: PageState, context: ExpansionContext) -> ModuleType:
    try:
        return current_module(state.metadata, context.default_module)
    except (TypeError, ImportError) as exc:
        msg = f"invalid CurrentModule in '{state.source}': {exc}"
        raise DirectiveEvaluationError(msg) from exc


class HeaderHandler:
    """Assign ids to header blocks and register them."""

    def expand(self, element: Element, state: PageState, context: ExpansionContext) -> bool:
        """Claim every ``h1``-``h6`` block."""
        level = HEADER_LEVELS.get(element.tag)
        if level is None:
            return False
        header, custom_id = _strip_custom_id(element)
        header_id = slugify(custom_id if custom_id is not None else plain_text(header))
        context.registry.add_header(
            header_id,
            source=state.source,
            destination=state.destination,
            level=level,
            element=header,
        )
        state.blocks.append(Header(level=level, element=header, id=header_id))
        return True


def _strip_custom_id(element: Element) -> tuple[Element, str | None]:
    """Return the header to emit and its custom id, if one was written.

    Both ``# [Title]({#id})`` and ``# Title {#id}`` are recognised. The
    returned header is a new element; the parsed tree is left untouched.
    """
    if not (element.text or "").strip() and len(element) == 1:
        link = element[0]
        match = CUSTOM_ID_LINK_PATTERN.match(link.get("href") or "")
        if link.tag == "a" and match and not (link.tail or "").strip():
            header = Element(element.tag, dict(element.attrib))
            header.text = link.text
            header.extend(copy.deepcopy(child) for child in link)
            header.tail = element.tail
            return header, match.group(1)
    header = copy.deepcopy(element)
    last = header[-1] if len(header) else None
    text = (last.tail if last is not None else header.text) or ""
    match = CUSTOM_ID_SUFFIX_PATTERN.search(text)
    if match is None:
        return element, None
    stripped = text[: match.start()]
    if last is not None:
        last.tail = stripped
    else:
        header.text = stripped
    return header, match.group(1)


class MetaBlockHandler:
    """Evaluate ``{meta}`` assignments into the page metadata."""

    marker = META_MARKER

    def expand(self, element: Element, state: PageState, context: ExpansionContext) -> bool:
        """Merge the block's assignments and emit a metadata snapshot."""
        body = directive_body(element, self.marker)
        if body is None:
            return False
        for name, value in _evaluate_assignments(body, state, context).items():
            state.metadata[name] = value
        _page_module(state, context)
        state.blocks.append(MetaDirective(values=dict(state.metadata)))
        return True


class DocsBlockHandler:
    """Splice docstrings named in ``{docs}`` blocks and register their symbols."""

    marker = DOCS_MARKER

    def expand(self, element: Element, state: PageState, context: ExpansionContext) -> bool:
        """Look up and register each reference listed in the block."""
        body = directive_body(element, self.marker)
        if body is None:
            return False
        module = _page_module(state, context)
        entries: list[DocsEntry] = []
        for expression in _split(body, state):
            entry = self._entry(expression.node, expression.source.strip(), module, state, context)
            context.registry.add_doc(
                entry, source=state.source, destination=state.destination
            )
            logger.debug("documented {} on {}", entry.symbol, state.destination)
            entries.append(entry)
        state.blocks.append(DocsDirective(entries=entries))
        return True

    @staticmethod
    def _entry(
        node: ast.stmt,
        reference: str,
        module: ModuleType,
        state: PageState,
        context: ExpansionContext,
    ) -> DocsEntry:
        if not isinstance(node, ast.Expr):
            msg = f"'{reference}' in '{state.source}' is not a reference expression."
            raise MissingDocumentationError(msg)
        try:
            found = lookup_documentation(node.value, module)
        except Exception as exc:
            msg = f"cannot find '{reference}' for '{state.source}': {exc}"
            raise MissingDocumentationError(msg) from exc
        if found is None:
            msg = f"no docs found for '{reference}' in '{state.source}'."
            raise MissingDocumentationError(msg)
        return DocsEntry(
            symbol=found.symbol,
            category=found.category,
            document=parse_markdown(found.docstring, extensions=context.extensions),
            module=found.module,
            reference=reference,
        )


class _RenderTimeDirectiveHandler:
    """Capture ``{index}``/``{contents}`` options for evaluation at render time."""

    marker: str
    node_type: type[IndexDirective] | type[ContentsDirective]

    def expand(self, element: Element, state: PageState, context: ExpansionContext) -> bool:
        body = directive_body(element, self.marker)
        if body is None:
            return False
        options = _evaluate_assignments(body, state, context)
        state.blocks.append(
            self.node_type(
                options=options, source=state.source, destination=state.destination
            )
        )
        return True


class IndexBlockHandler(_RenderTimeDirectiveHandler):
    """Expand ``{index}`` blocks."""

    marker = INDEX_MARKER
    node_type = IndexDirective


class ContentsBlockHandler(_RenderTimeDirectiveHandler):
    """Expand ``{contents}`` blocks."""

    marker = CONTENTS_MARKER
    node_type = ContentsDirective


class DefaultHandler:
    """Copy any remaining block through, keeping code blocks recognisable."""

    def expand(self, element: Element, state: PageState, context: ExpansionContext) -> bool:  # noqa: ARG002
        """Always claim the block."""
        sample = read_code_block(element)
        if sample is not None:
            state.blocks.append(
                CodeBlock(language=sample.language, code=sample.code, element=element)
            )
        else:
            state.blocks.append(Passthrough(element=element))
        return True


DEFAULT_HANDLERS: tuple[BlockHandler, ...] = (
    HeaderHandler(),
    MetaBlockHandler(),
    DocsBlockHandler(),
    IndexBlockHandler(),
    ContentsBlockHandler(),
    DefaultHandler(),
)


class BlockExpander:
    """Run the handler chain over every top-level block of each page."""

    def __init__(
        self,
        registry: SymbolRegistry,
        *,
        default_module: ModuleType,
        handlers: cabc.Sequence[BlockHandler] = DEFAULT_HANDLERS,
        extensions: cabc.Iterable[Extension] = (),
    ) -> None:
        """Initialize the expander.

        Parameters
        ----------
        registry : SymbolRegistry
            Run-wide registry receiving headers and docs entries.
        default_module : ModuleType
            Module context used until a ``{meta}`` block sets ``CurrentModule``.
        handlers : Sequence[BlockHandler], optional
            Handlers in priority order; the last one should always claim.
        extensions : Iterable[Extension], optional
            Markdown extensions used when parsing spliced docstrings.
        """
        self.handlers = tuple(handlers)
        self.context = ExpansionContext(registry, default_module, tuple(extensions))

    def expand(self, page: Page) -> PageState:
        """Expand one page, returning its filled :class:`PageState`."""
        state = PageState.for_page(page)
        for element in page.document.root:
            for handler in self.handlers:
                if handler.expand(element, state, self.context):
                    break
        logger.debug("expanded {} into {} blocks", page.source, len(state.blocks))
        return state

    def expand_all(self, pages: cabc.Iterable[Page]) -> list[PageState]:
        """Expand ``pages`` in order."""
        return [self.expand(page) for page in pages]


__all__ = [
    "DEFAULT_HANDLERS",
    "BlockExpander",
    "BlockHandler",
    "ContentsBlockHandler",
    "DefaultHandler",
    "DocsBlockHandler",
    "ExpansionContext",
    "HeaderHandler",
    "IndexBlockHandler",
    "MetaBlockHandler",
    "directive_body",
]
