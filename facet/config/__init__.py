"""Load and validate build configuration for facet documentation sites.

This subpackage parses a project's ``facet.yaml`` file (or the keyword options
passed to :func:`facet.build_docs`), resolves relative paths, and produces a
:class:`BuildConfig` that the builder consumes. Unknown options are ignored.

Examples
--------
>>> from pathlib import Path
>>> from facet.config import build_config_from_mapping
>>> config = build_config_from_mapping({"source": "pages", "clean": False}, root=Path("/docs"))
>>> config.source_dir
PosixPath('/docs/pages')
>>> config.clean
False
"""

from .loader import build_config_from_mapping, load_build_config
from .models import (
    DEFAULT_ASSETS_DIR,
    DEFAULT_TEMPLATES_DIR,
    OUTPUT_FORMATS,
    BuildConfig,
    BuildConfigError,
)

__all__ = [
    "DEFAULT_ASSETS_DIR",
    "DEFAULT_TEMPLATES_DIR",
    "OUTPUT_FORMATS",
    "BuildConfig",
    "BuildConfigError",
    "build_config_from_mapping",
    "load_build_config",
]
