"""Shared fixtures for the facet test suite.

``sample_api`` puts the documented ``sampleapi`` package from
``tests/fixtures`` on ``sys.path``. ``site`` writes a throwaway source tree
and builds it with :class:`~facet.generator.DocumentBuilder`.
"""

from __future__ import annotations

import builtins
import dataclasses as dc
import importlib
import typing as typ
from pathlib import Path

import pytest

from facet.config import BuildConfig
from facet.document import Page
from facet.generator import BlockExpander, DocumentBuilder, destination_for
from facet.markdown_parser import parse_markdown
from facet.registry import SymbolRegistry

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from types import ModuleType

    from facet.document import PageState

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def sample_api(monkeypatch: pytest.MonkeyPatch) -> ModuleType:
    """Return the ``sampleapi`` fixture package, importable for the test's duration."""
    monkeypatch.syspath_prepend(str(FIXTURES_DIR))
    return importlib.import_module("sampleapi")


@dc.dataclass(slots=True)
class Site:
    """A temporary source tree plus helpers to build and read it."""

    root: Path

    @property
    def source_dir(self) -> Path:
        return self.root / "src"

    @property
    def build_dir(self) -> Path:
        return self.root / "build"

    def write(self, relative: str, text: str) -> Path:
        """Write ``text`` to ``src/<relative>``, creating parent directories."""
        path = self.source_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def config(self, **overrides: typ.Any) -> BuildConfig:
        """Return a fragment-format config for this tree."""
        options: dict[str, typ.Any] = {
            "source_dir": self.source_dir,
            "build_dir": self.build_dir,
            "assets_dir": None,
            "output_format": "fragment",
        }
        options.update(overrides)
        return BuildConfig(**options)

    def build(self, **overrides: typ.Any) -> list[Path]:
        """Build the tree and return the written paths."""
        return DocumentBuilder(self.config(**overrides)).run()

    def read(self, relative: str) -> str:
        """Return the text of ``build/<relative>``."""
        return (self.build_dir / relative).read_text(encoding="utf-8")


@pytest.fixture
def site(tmp_path: Path) -> Site:
    """Return an empty :class:`Site` rooted in a temporary directory."""
    site = Site(tmp_path)
    site.source_dir.mkdir()
    return site


class Expanded(typ.NamedTuple):
    """Registry and page states produced by expanding some pages."""

    registry: SymbolRegistry
    states: list[PageState]


@pytest.fixture
def expand() -> cabc.Callable[..., Expanded]:
    """Return a helper expanding ``{source path: markdown}`` pages in order."""

    def _expand(
        pages: cabc.Mapping[str, str], *, default_module: ModuleType = builtins
    ) -> Expanded:
        registry = SymbolRegistry()
        expander = BlockExpander(registry, default_module=default_module)
        parsed = [
            Page(source, destination_for(source), parse_markdown(text))
            for source, text in pages.items()
        ]
        return Expanded(registry, expander.expand_all(parsed))

    return _expand
