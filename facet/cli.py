"""Cyclopts CLI entrypoint for building facet documentation sites.

The ``facet`` console script defined here builds a site from a directory of
Markdown pages: directive blocks are expanded, ``{ref}`` links resolved,
Python examples executed, and each page rendered to HTML. Options come from a
``facet.yaml`` file, command-line flags, or ``FACET_*`` environment variables.

Examples
--------
Build the site described by a configuration file:

>>> from facet.cli import app
>>> app(["build", "--config", "docs/facet.yaml"])  # doctest: +SKIP

Build a source tree straight into a directory of fragments:

>>> app(["build", "--source", "src", "--build", "out", "--format", "fragment"])  # doctest: +SKIP
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from loguru import logger

from .config import BuildConfigError, build_config_from_mapping, load_build_config
from .errors import BuildError
from .generator import DocumentBuilder
from .log import configure_logging

app = App(name="facet", config=cyclopts.config.Env("FACET_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _abort(exc: Exception) -> typ.NoReturn:
    """Log ``exc`` at ERROR and exit with status 1."""
    logger.error("{}: {}", type(exc).__name__, exc)
    raise SystemExit(1) from exc


@app.command(help="Build a documentation site from Markdown pages.")
def build(
    *,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to a facet.yaml configuration file")
    ] = None,
    source: typ.Annotated[
        Path | None, Parameter(help="Directory holding the Markdown pages")
    ] = None,
    build_dir: typ.Annotated[
        Path | None, Parameter(name="--build", help="Directory the site is written to")
    ] = None,
    assets: typ.Annotated[
        Path | None, Parameter(help="Assets directory copied to <build>/assets")
    ] = None,
    clean: typ.Annotated[
        bool | None,
        Parameter(help="Remove the build directory first (--no-clean keeps it)"),
    ] = None,
    output_format: typ.Annotated[
        str | None, Parameter(name="--format", help="Output format: html or fragment")
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(name=["--verbose", "-v"], help="Log per-page detail")
    ] = False,
) -> None:
    """Build the documentation site and report every written file.

    Parameters
    ----------
    config : Path or None, optional
        YAML configuration file; relative paths inside it resolve against its
        directory. Flags given on the command line take precedence.
    source : Path or None, optional
        Source directory override (default ``src``).
    build_dir : Path or None, optional
        Build directory override (default ``build``).
    assets : Path or None, optional
        Assets directory override (default: the bundled stylesheet).
    clean : bool or None, optional
        Whether to remove the build directory before building.
    output_format : str or None, optional
        ``html`` (default) or ``fragment``.
    verbose : bool, optional
        ``--verbose`` shows per-page detail; without it only pipeline stages are logged.

    Raises
    ------
    SystemExit
        With status 1 when the build or its configuration fails.
    """
    configure_logging(2 if verbose else 1)
    overrides = {
        "source_dir": source,
        "build_dir": build_dir,
        "assets_dir": assets,
        "clean": clean,
        "output_format": output_format,
    }
    try:
        if config is not None:
            build_config = load_build_config(config, overrides=overrides)
        else:
            options = {key: value for key, value in overrides.items() if value is not None}
            build_config = build_config_from_mapping(options, root=Path.cwd())
    except (BuildConfigError, FileNotFoundError, TypeError) as exc:
        _abort(exc)
    try:
        written = DocumentBuilder(build_config).run()
    except (BuildError, BuildConfigError) as exc:
        _abort(exc)
    for path in written:
        print(f"wrote {_format_path(path)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the `facet` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()


__all__ = ["app", "build", "main"]
