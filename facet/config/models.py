"""Typed dataclasses describing facet build configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_ASSETS_DIR = PACKAGE_ROOT / "assets"
DEFAULT_TEMPLATES_DIR = PACKAGE_ROOT / "templates"
OUTPUT_FORMATS = ("html", "fragment")


class BuildConfigError(ValueError):
    """Raised when the build configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class BuildConfig:
    """Everything one documentation build needs to know.

    Attributes
    ----------
    source_dir : Path
        Directory holding the Markdown pages and static files.
    build_dir : Path
        Directory the site is written to.
    assets_dir : Path | None
        Directory copied to ``<build_dir>/assets``; ``None`` skips the copy.
    clean : bool
        Remove ``build_dir`` before building.
    output_format : str
        ``"html"`` for full templated pages, ``"fragment"`` for bodies only.
    default_module : str
        Module references resolve against until a page sets ``CurrentModule``.
    doctest_languages : tuple[str, ...]
        Code block language tags whose examples are executed.
    site_name : str
        Name shown in page titles.
    pygments_style : str
        Pygments style used for highlighted code blocks.
    """

    source_dir: Path = Path("src")
    build_dir: Path = Path("build")
    assets_dir: Path | None = DEFAULT_ASSETS_DIR
    clean: bool = True
    output_format: str = "html"
    default_module: str = "builtins"
    doctest_languages: tuple[str, ...] = ("python", "pycon")
    site_name: str = "Documentation"
    pygments_style: str = "default"

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            choices = ", ".join(OUTPUT_FORMATS)
            msg = f"Unknown output format '{self.output_format}' (expected one of: {choices})."
            raise BuildConfigError(msg)
        if not self.default_module:
            msg = "default_module must name an importable module."
            raise BuildConfigError(msg)


__all__ = [
    "DEFAULT_ASSETS_DIR",
    "DEFAULT_TEMPLATES_DIR",
    "OUTPUT_FORMATS",
    "BuildConfig",
    "BuildConfigError",
]
