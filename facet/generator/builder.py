"""High-level orchestration for building a documentation site.

:class:`DocumentBuilder` consumes a :class:`~facet.config.BuildConfig` and runs
the pipeline stages in order, logging a one-line description of each:

1. set up the build directory (mirror the source tree, copy static files);
2. copy the bundled or configured assets directory;
3. parse every ``.md`` page with Python-Markdown;
4. expand directive blocks and register headers and documented symbols;
5. rewrite ``{ref}`` cross-reference links;
6. run the Python examples found in code blocks;
7. render each page and write it, followed by the build manifest.

Any :class:`~facet.errors.BuildError` aborts the run.

Example
-------
>>> from pathlib import Path
>>> from facet.config import load_build_config
>>> from facet.generator import DocumentBuilder
>>> config = load_build_config(Path("docs/facet.yaml"))  # doctest: +SKIP
>>> DocumentBuilder(config).run()  # doctest: +SKIP
[PosixPath('docs/build/index.html'), ...]
"""

from __future__ import annotations

import importlib
import json
import os
import posixpath
import shutil
import typing as typ
from pathlib import Path, PurePosixPath

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from facet._constants import (
    ASSETS_DIRNAME,
    MANIFEST_FILENAME,
    OUTPUT_EXTENSION,
    SOURCE_EXTENSION,
)
from facet.config import DEFAULT_TEMPLATES_DIR, BuildConfigError
from facet.document import Header, Page
from facet.errors import MissingSourceDirectoryError, ReservedOutputPathError
from facet.generator.cross_references import CrossReferenceResolver
from facet.generator.doctests import DoctestVerifier
from facet.generator.expander import BlockExpander
from facet.generator.link_rewriter import RelativeLinkExtension
from facet.generator.renderer import HtmlContentRenderer
from facet.markdown_parser import parse_markdown
from facet.registry import SymbolRegistry

if typ.TYPE_CHECKING:
    from types import ModuleType

    from facet.config import BuildConfig
    from facet.document import PageState

PAGE_TEMPLATE = "page.jinja"
STYLESHEET_NAME = "facet.css"


def destination_for(source: str) -> str:
    """Return the output path of a source page.

    Examples
    --------
    >>> destination_for("man/guide.md")
    'man/guide.html'
    """
    return str(PurePosixPath(source).with_suffix(OUTPUT_EXTENSION))


class DocumentBuilder:
    """Turn a source tree of Markdown pages into a rendered site."""

    def __init__(self, config: BuildConfig, *, templates_dir: Path | None = None) -> None:
        """Initialize the builder with configuration and template context.

        Parameters
        ----------
        config : BuildConfig
            Paths, output format and module context of the build.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package templates.
        """
        self.config = config
        self.templates_dir = templates_dir or DEFAULT_TEMPLATES_DIR
        self.registry = SymbolRegistry()
        self.extensions = (RelativeLinkExtension(),)
        self.renderer = HtmlContentRenderer(self.registry, config.pygments_style)
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._assets_copied = False

    def run(self) -> list[Path]:
        """Build the whole site.

        Returns
        -------
        list[Path]
            Rendered pages in source order, followed by the manifest.

        Raises
        ------
        BuildError
            Raised by whichever stage first finds a problem; nothing is retried.
        BuildConfigError
            Raised when ``default_module`` cannot be imported.
        """
        default_module = self._default_module()
        sources = self.setup_build_directory()
        self.copy_assets()

        logger.info("parsing {} page(s)", len(sources))
        pages = [self._parse(source) for source in sources]

        logger.info("expanding parsed pages")
        expander = BlockExpander(
            self.registry, default_module=default_module, extensions=self.extensions
        )
        states = expander.expand_all(pages)
        self.registry.freeze()

        logger.info("resolving cross references")
        resolver = CrossReferenceResolver(self.registry, default_module=default_module)
        rewritten = resolver.run(states)
        logger.debug("rewrote {} reference link(s)", rewritten)

        logger.info("running doctests")
        verifier = DoctestVerifier(
            default_module=default_module, languages=self.config.doctest_languages
        )
        executed = verifier.run(states)
        logger.debug("{} doctest(s) passed", executed)

        logger.info("rendering {} page(s)", len(states))
        written = [self._write_page(state) for state in states]
        written.append(self._write_manifest(states))
        return written

    def setup_build_directory(self) -> list[str]:
        """Mirror the source tree into the build directory.

        Returns
        -------
        list[str]
            POSIX paths of the Markdown pages relative to the source directory,
            in sorted walk order.

        Raises
        ------
        MissingSourceDirectoryError
            If the source directory does not exist.
        """
        source_dir = self.config.source_dir
        build_dir = self.config.build_dir
        logger.info("setting up build directory {}", build_dir)
        if not source_dir.is_dir():
            msg = f"source directory '{source_dir}' does not exist."
            raise MissingSourceDirectoryError(msg)
        if self.config.clean and build_dir.exists():
            shutil.rmtree(build_dir)
        build_dir.mkdir(parents=True, exist_ok=True)

        sources: list[str] = []
        for root, dirs, files in os.walk(source_dir):
            dirs.sort()
            relative = Path(root).relative_to(source_dir)
            (build_dir / relative).mkdir(parents=True, exist_ok=True)
            for name in sorted(files):
                path = relative / name
                if path.suffix == SOURCE_EXTENSION:
                    sources.append(path.as_posix())
                else:
                    shutil.copyfile(source_dir / path, build_dir / path)
        return sources

    def copy_assets(self) -> None:
        """Copy the assets directory to ``<build>/assets``.

        Raises
        ------
        ReservedOutputPathError
            If ``<build>/assets`` already exists.
        MissingSourceDirectoryError
            If the configured assets directory does not exist.
        """
        assets_dir = self.config.assets_dir
        if assets_dir is None:
            logger.debug("asset copying disabled")
            return
        destination = self.config.build_dir / ASSETS_DIRNAME
        logger.info("copying assets from {}", assets_dir)
        if destination.exists():
            msg = f"reserved output path '{destination}' already exists."
            raise ReservedOutputPathError(msg)
        if not assets_dir.is_dir():
            msg = f"assets directory '{assets_dir}' does not exist."
            raise MissingSourceDirectoryError(msg)
        shutil.copytree(assets_dir, destination)
        self._assets_copied = True

    def _default_module(self) -> ModuleType:
        try:
            return importlib.import_module(self.config.default_module)
        except ImportError as exc:
            msg = f"cannot import default module '{self.config.default_module}': {exc}"
            raise BuildConfigError(msg) from exc

    def _parse(self, source: str) -> Page:
        text = (self.config.source_dir / source).read_text(encoding="utf-8")
        logger.debug("parsed {}", source)
        return Page(
            source=source,
            destination=destination_for(source),
            document=parse_markdown(text, extensions=self.extensions),
        )

    def _write_page(self, state: PageState) -> Path:
        body = self.renderer.render_page(state)
        if self.config.output_format == "html":
            html = self.env.get_template(PAGE_TEMPLATE).render(**self._context(state, body))
        else:
            html = body
        path = self.config.build_dir / state.destination
        path.write_text(html, encoding="utf-8")
        logger.debug("wrote {}", state.destination)
        return path

    def _context(self, state: PageState, body: str) -> dict[str, typ.Any]:
        stylesheet = None
        if self._assets_copied:
            start = posixpath.dirname(state.destination) or "."
            stylesheet = posixpath.relpath(f"{ASSETS_DIRNAME}/{STYLESHEET_NAME}", start)
        return {
            "title": self._page_title(state),
            "site_name": self.config.site_name,
            "body": body,
            "stylesheet": stylesheet,
            "pygments_css": self.renderer.stylesheet,
            "page": state,
        }

    @staticmethod
    def _page_title(state: PageState) -> str:
        """Return the first header's text, or the file stem when there is none."""
        for block in state.blocks:
            if isinstance(block, Header):
                return block.text
        return PurePosixPath(state.source).stem

    def _write_manifest(self, states: list[PageState]) -> Path:
        """Persist the inventory of pages and anchors produced by the build."""
        manifest = {
            "pages": [state.destination for state in states],
            "headers": {
                header_id: f"{entry.destination}#{entry.id}"
                for header_id, entry in self.registry.headers.items()
            },
            "symbols": {
                str(symbol): f"{entry.destination}#{entry.anchor}"
                for symbol, entry in sorted(self.registry.docs.items())
            },
        }
        path = self.config.build_dir / MANIFEST_FILENAME
        path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        return path


__all__ = ["DocumentBuilder", "destination_for"]
