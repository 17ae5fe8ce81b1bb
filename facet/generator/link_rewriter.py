"""Helpers for rewriting relative Markdown page links to generated HTML pages."""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from facet._constants import OUTPUT_EXTENSION, SOURCE_EXTENSION

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any


class RelativeLinkExtension(Extension):
    """Point links at sibling Markdown sources to the pages built from them.

    Insert this extension into a ``markdown.Markdown`` instance so that
    intra-site links (``./guide.md``, ``../lib/api.md#section``) follow the
    source-to-output mapping of the build and keep working in the generated
    HTML tree. Absolute URLs, fragments and ``{ref}`` targets are left alone.
    """

    def __init__(
        self,
        source_extension: str = SOURCE_EXTENSION,
        output_extension: str = OUTPUT_EXTENSION,
    ) -> None:
        super().__init__()
        self.source_extension = source_extension
        self.output_extension = output_extension

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the relative-link treeprocessor on the Markdown instance."""
        processor = RelativeLinkTreeprocessor(
            md, self.source_extension, self.output_extension
        )
        md.treeprocessors.register(processor, "facet_relative_links", 15)


class RelativeLinkTreeprocessor(Treeprocessor):
    """Rewrite relative ``.md`` link targets to their ``.html`` outputs."""

    def __init__(
        self, md: Markdown, source_extension: str, output_extension: str
    ) -> None:
        super().__init__(md)
        self.source_extension = source_extension
        self.output_extension = output_extension

    def run(self, root: Element) -> Element:
        """Rewrite relative anchors in the parsed markdown tree."""
        for element in root.iter():
            if element.tag == "a":
                rewritten = self._rewrite(element.get("href"))
                if rewritten:
                    element.set("href", rewritten)
        return root

    def _rewrite(self, target: str | None) -> str | None:
        """Rewrite a relative source link into an output link when applicable."""
        if not target or target.startswith(("#", "//", "{")) or "://" in target:
            return None

        lower = target.lower()
        if lower.startswith(("mailto:", "tel:", "data:", "javascript:")):
            return None

        parsed = urlsplit(target)
        if parsed.scheme or parsed.netloc or parsed.path.startswith("/"):
            return None
        stem, extension = posixpath.splitext(parsed.path)
        if extension != self.source_extension:
            return None

        url = f"{stem}{self.output_extension}"
        if parsed.query:
            url = f"{url}?{parsed.query}"
        if parsed.fragment:
            url = f"{url}#{parsed.fragment}"
        return url


__all__ = ["RelativeLinkExtension", "RelativeLinkTreeprocessor"]
