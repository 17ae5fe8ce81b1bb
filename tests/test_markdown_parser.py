"""Unit tests for Markdown parsing, fenced code handling and slugs."""

from __future__ import annotations

import pytest

from facet.markdown_parser import (
    normalize_fenced_blocks,
    parse_markdown,
    plain_text,
    read_code_block,
    slugify,
    sole_code_span,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Getting Started", "getting-started"),
        ("Tips & Tricks", "tips-and-tricks"),
        ("  Spaced   Out  ", "spaced-out"),
        ("sampleapi.Counter.increment", "sampleapicounterincrement"),
        ("--already-slugged--", "already-slugged"),
        ("What's new?", "whats-new"),
    ],
)
def test_slugify(value: str, expected: str) -> None:
    """Slugs are lowercase, hyphenated and stripped of punctuation."""
    assert slugify(value) == expected


@pytest.mark.parametrize(
    "value", ["Getting Started", "A & B & C", "x -- y", "Ünïcode Headér", "[brackets]"]
)
def test_slugify_is_a_fixed_point(value: str) -> None:
    """Slugifying a slug leaves it unchanged."""
    once = slugify(value)
    assert slugify(once) == once


def test_parse_markdown_keeps_top_level_blocks() -> None:
    """The parsed root holds one child per top-level block."""
    document = parse_markdown("## Intro\n\nBody *text*.\n\n- one\n- two\n")
    assert [child.tag for child in document.root] == ["h2", "p", "ul"]
    assert plain_text(document.root[1]) == "Body text."


def test_fenced_block_becomes_code_element() -> None:
    """Fenced blocks are restored as ``pre > code.language-X`` elements."""
    document = parse_markdown("Intro\n\n```python\nx = 1 < 2\n```\n\nOutro\n")
    assert [child.tag for child in document.root] == ["p", "pre", "p"]
    sample = read_code_block(document.root[1])
    assert sample is not None
    assert sample.language == "python"
    assert sample.code == "x = 1 < 2\n"


def test_fence_without_language_and_tilde_fence() -> None:
    """Unlabelled and ``~~~`` fences are recognised too."""
    document = parse_markdown("```\n{meta}\nx = 1\n```\n\n~~~text\nplain\n~~~\n")
    first, second = (read_code_block(child) for child in document.root)
    assert first is not None
    assert first.language == ""
    assert first.code == "{meta}\nx = 1\n"
    assert second is not None
    assert second.language == "text"


def test_fence_labels_and_indentation_are_normalized() -> None:
    """Extra fence labels are dropped and indented fences are dedented."""
    text = "  ```rust,no_run\n  fn main() {}\n  ```\n"
    assert normalize_fenced_blocks(text) == "```rust\n  fn main() {}\n```\n"
    sample = read_code_block(parse_markdown(text).root[0])
    assert sample is not None
    assert sample.language == "rust"
    assert sample.code == "fn main() {}\n"


def test_read_code_block_ignores_other_elements() -> None:
    """Only ``pre`` elements wrapping a single ``code`` child are code blocks."""
    document = parse_markdown("Just a paragraph with `code`.")
    assert read_code_block(document.root[0]) is None


def test_render_serializes_fragments_with_raw_html() -> None:
    """Fragments serialize through the parsing instance, restoring raw HTML."""
    document = parse_markdown('Some *em* text.\n\n<div class="note">kept</div>\n')
    rendered = document.render_children()
    assert "<p>Some <em>em</em> text.</p>" in rendered
    assert '<div class="note">kept</div>' in rendered


def test_render_escapes_code_once() -> None:
    """Code is escaped exactly once in the serialized output."""
    document = parse_markdown("```\na < b && c\n```\n")
    assert document.render(document.root[0]) == "<pre><code>a &lt; b &amp;&amp; c\n</code></pre>"


def test_sole_code_span() -> None:
    """A link wrapping one code span exposes the span's text."""
    document = parse_markdown("[`Counter.increment`](x) and [text `x`](y)")
    first, second = document.root[0].findall("a")
    assert sole_code_span(first) == "Counter.increment"
    assert sole_code_span(second) is None
