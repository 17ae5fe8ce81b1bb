r"""Parse Markdown pages into element trees consumed by the build pipeline.

Python-Markdown does the heavy lifting: this module runs its preprocessors,
block parser and treeprocessors but stops before serialization, handing back a
:class:`MarkdownDocument` whose element tree the expansion, cross-reference and
doctest passes can inspect and rewrite. Fenced code blocks are restored into
the tree as ``<pre><code class="language-X">`` elements so directive blocks and
doctests are visible to those passes.

Example
-------
>>> from facet.markdown_parser import parse_markdown, slugify
>>> document = parse_markdown("## Intro\nBody text")
>>> [child.tag for child in document.root]
['h2', 'p']
>>> slugify("Tips & Tricks")
'tips-and-tricks'
"""

from __future__ import annotations

import dataclasses as dc
import html
import re
import textwrap
import typing as typ
from xml.etree.ElementTree import Element, SubElement

from markdown import Markdown
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor
from markdown.util import AtomicString, code_escape

if typ.TYPE_CHECKING:
    import collections.abc as cabc

FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
FENCE_LABEL_PATTERN = re.compile(
    r"^([`~]{3,})([A-Za-z0-9_+#.-]+)?(,[^\r\n]+)$", re.MULTILINE
)
FENCED_BLOCK_PATTERN = re.compile(
    r"^(?P<fence>`{3,}|~{3,})[ ]*(?P<lang>[A-Za-z0-9_+#.-]+)?[^\n`]*\n"
    r"(?P<code>.*?)(?<=\n)(?P=fence)[ ]*$",
    re.MULTILINE | re.DOTALL,
)
FENCE_PLACEHOLDER = "\u0002facet-fence:{index}\u0003"
FENCE_PLACEHOLDER_PATTERN = re.compile(r"^\u0002facet-fence:(\d+)\u0003$")
LANGUAGE_CLASS_PREFIX = "language-"
HEADER_LEVELS = {f"h{level}": level for level in range(1, 7)}

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\-]+")
_REPEATED_HYPHENS = re.compile(r"-{2,}")


def slugify(value: str) -> str:
    """Return a lowercase, hyphen-separated, URL-safe slug for ``value``.

    Whitespace runs become single hyphens, ``&`` becomes ``-and-``, anything
    that is neither a word character nor a hyphen is dropped, and repeated or
    surrounding hyphens are collapsed. The result is a fixed point:
    ``slugify(slugify(s)) == slugify(s)``.
    """
    slug = _WHITESPACE.sub("-", value.strip().lower())
    slug = slug.replace("&", "-and-")
    slug = _NON_WORD.sub("", slug)
    slug = _REPEATED_HYPHENS.sub("-", slug)
    return slug.strip("-")


def plain_text(element: Element) -> str:
    """Return the unescaped text content of ``element`` and its descendants."""
    return html.unescape("".join(element.itertext())).strip()


@dc.dataclass(slots=True)
class CodeSample:
    """Language tag and raw source of a ``<pre><code>`` element.

    Attributes
    ----------
    language : str
        Fence label (for example ``"python"``); empty for unlabelled blocks.
    code : str
        Unescaped source text, including its trailing newline.
    """

    language: str
    code: str


def read_code_block(element: Element) -> CodeSample | None:
    """Return the code sample held by a ``pre`` element, or ``None`` otherwise."""
    if element.tag != "pre" or len(element) != 1 or element[0].tag != "code":
        return None
    code = element[0]
    language = ""
    for css_class in (code.get("class") or "").split():
        if css_class.startswith(LANGUAGE_CLASS_PREFIX):
            language = css_class.removeprefix(LANGUAGE_CLASS_PREFIX)
            break
    return CodeSample(language=language, code=html.unescape(code.text or ""))


def sole_code_span(element: Element) -> str | None:
    """Return the unescaped code text when ``element`` wraps exactly one code span."""
    if (element.text or "").strip() or len(element) != 1:
        return None
    child = element[0]
    if child.tag != "code" or (child.tail or "").strip():
        return None
    return html.unescape(child.text or "")


@dc.dataclass(slots=True)
class MarkdownDocument:
    """Element tree of a parsed Markdown text plus the instance that parsed it.

    Fragments must be serialized by the same ``Markdown`` instance because its
    HTML stash holds the raw HTML placeholders found while parsing.
    """

    root: Element
    markdown: Markdown

    def render(self, element: Element) -> str:
        """Serialize ``element`` to HTML, restoring stashed raw HTML."""
        output = self.markdown.serializer(element)
        for postprocessor in self.markdown.postprocessors:
            output = postprocessor.run(output)
        return output.strip()

    def render_children(self) -> str:
        """Serialize every top-level element of the document."""
        return "\n".join(self.render(child) for child in self.root)


class FencedBlockPreprocessor(Preprocessor):
    """Lift fenced code blocks out of the text, leaving numbered placeholders."""

    def __init__(self, md: Markdown, samples: list[CodeSample]) -> None:
        super().__init__(md)
        self.samples = samples

    def run(self, lines: list[str]) -> list[str]:
        """Replace every fenced block with a standalone placeholder paragraph."""
        text = "\n".join(lines)

        def _stash(match: re.Match[str]) -> str:
            code = textwrap.dedent(match.group("code"))
            self.samples.append(CodeSample(match.group("lang") or "", code))
            placeholder = FENCE_PLACEHOLDER.format(index=len(self.samples) - 1)
            return f"\n{placeholder}\n"

        return FENCED_BLOCK_PATTERN.sub(_stash, text).split("\n")


class FencedBlockTreeprocessor(Treeprocessor):
    """Swap fence placeholders for ``<pre><code>`` elements before inline parsing."""

    def __init__(self, md: Markdown, samples: list[CodeSample]) -> None:
        super().__init__(md)
        self.samples = samples

    def run(self, root: Element) -> None:
        """Restore stashed code samples in place."""
        for parent in list(root.iter()):
            index = self._placeholder_index(parent.text)
            if index is not None and not len(parent) and parent.tag != "p":
                parent.text = None
                parent.append(self._code_element(index))
            for position, child in enumerate(list(parent)):
                index = self._placeholder_index(child.text)
                if child.tag == "p" and index is not None and not len(child):
                    replacement = self._code_element(index)
                    replacement.tail = child.tail
                    parent.remove(child)
                    parent.insert(position, replacement)

    @staticmethod
    def _placeholder_index(text: str | None) -> int | None:
        match = FENCE_PLACEHOLDER_PATTERN.match((text or "").strip())
        return int(match.group(1)) if match else None

    def _code_element(self, index: int) -> Element:
        sample = self.samples[index]
        pre = Element("pre")
        code = SubElement(pre, "code")
        if sample.language:
            code.set("class", f"{LANGUAGE_CLASS_PREFIX}{sample.language}")
        code.text = AtomicString(code_escape(sample.code))
        return pre


class FencedBlockExtension(Extension):
    """Keep fenced code blocks as real elements in the parsed tree."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the fence preprocessor and its restoring treeprocessor."""
        samples: list[CodeSample] = []
        md.preprocessors.register(
            FencedBlockPreprocessor(md, samples), "facet_fenced_blocks", 25
        )
        md.treeprocessors.register(
            FencedBlockTreeprocessor(md, samples), "facet_fenced_restore", 30
        )


def normalize_fenced_blocks(text: str) -> str:
    """Dedent indented fence lines and drop ``,extra`` labels such as ``rust,no_run``."""
    without_indent = FENCED_INDENT_PATTERN.sub(r"\1", text)

    def _strip_labels(match: re.Match[str]) -> str:
        fence, language, _extras = match.groups()
        return f"{fence}{language or ''}"

    return FENCE_LABEL_PATTERN.sub(_strip_labels, without_indent)


def parse_markdown(
    text: str, *, extensions: cabc.Iterable[Extension] = ()
) -> MarkdownDocument:
    """Parse ``text`` into a :class:`MarkdownDocument` without serializing it.

    Parameters
    ----------
    text : str
        Markdown source of a page or docstring.
    extensions : Iterable[Extension], optional
        Additional Python-Markdown extensions, such as the relative link
        rewriter, registered after the built-in ones.

    Returns
    -------
    MarkdownDocument
        The fully tree-processed element tree (inline markup resolved) and the
        ``Markdown`` instance needed to serialize its fragments.
    """
    md = Markdown(
        extensions=[FencedBlockExtension(), "tables", "sane_lists", *extensions]
    )
    lines = normalize_fenced_blocks(text).split("\n")
    for preprocessor in md.preprocessors:
        lines = preprocessor.run(lines)
    root = md.parser.parseDocument(lines).getroot()
    for treeprocessor in md.treeprocessors:
        new_root = treeprocessor.run(root)
        if new_root is not None:
            root = new_root
    return MarkdownDocument(root=root, markdown=md)


__all__ = [
    "HEADER_LEVELS",
    "CodeSample",
    "FencedBlockExtension",
    "MarkdownDocument",
    "normalize_fenced_blocks",
    "parse_markdown",
    "plain_text",
    "read_code_block",
    "slugify",
    "sole_code_span",
]
