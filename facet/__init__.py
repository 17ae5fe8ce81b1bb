"""Build documentation sites from Markdown pages with live Python examples.

``facet`` reads a tree of Markdown pages, splices in docstrings named by
``{docs}`` blocks, resolves ``{ref}`` links across pages, checks every
``>>>`` session and ``# output:`` script example by running it, and writes
the rendered HTML next to a manifest of every anchor it produced.

Examples
--------
>>> import facet
>>> facet.build_docs(source="docs/src", build="docs/build")  # doctest: +SKIP
[PosixPath('docs/build/index.html'), ...]
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .cli import app, main
from .config import BuildConfig, build_config_from_mapping
from .generator import DocumentBuilder


def build_docs(**options: typ.Any) -> list[Path]:
    """Build a documentation site in one call.

    Parameters
    ----------
    **options : Any
        ``source`` (default ``"src"``), ``build`` (default ``"build"``),
        ``assets``, ``clean`` (default ``True``), ``format`` (``"html"`` or
        ``"fragment"``), and any other :class:`BuildConfig` field. Relative
        paths resolve against the current directory; unknown options are
        ignored.

    Returns
    -------
    list[Path]
        Files written by the build, the manifest last.

    Raises
    ------
    BuildError
        If any pipeline stage fails.
    BuildConfigError
        If an option has an invalid value.
    """
    config = build_config_from_mapping(options, root=Path.cwd())
    return DocumentBuilder(config).run()


__all__ = ["BuildConfig", "DocumentBuilder", "app", "build_docs", "main"]
