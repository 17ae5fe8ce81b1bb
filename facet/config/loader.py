"""Load build configuration YAML (or keyword options) into a BuildConfig."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .models import DEFAULT_ASSETS_DIR, BuildConfig, BuildConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

# Accepted spellings for each BuildConfig field; anything else is ignored.
OPTION_ALIASES: dict[str, tuple[str, ...]] = {
    "source_dir": ("source_dir", "source", "src"),
    "build_dir": ("build_dir", "build"),
    "assets_dir": ("assets_dir", "assets"),
    "clean": ("clean",),
    "output_format": ("output_format", "format"),
    "default_module": ("default_module",),
    "doctest_languages": ("doctest_languages",),
    "site_name": ("site_name",),
    "pygments_style": ("pygments_style",),
}
_UNSET = object()


def _lookup(raw: cabc.Mapping[str, typ.Any], field: str) -> typ.Any:
    for alias in OPTION_ALIASES[field]:
        if alias in raw:
            return raw[alias]
    return _UNSET


def _resolve_path(value: object, root: Path, field: str) -> Path:
    if not isinstance(value, str | Path):
        msg = f"'{field}' must be a path, got {type(value).__name__}."
        raise BuildConfigError(msg)
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _as_bool(value: object, field: str) -> bool:
    if isinstance(value, bool):
        return value
    msg = f"'{field}' must be true or false, got {value!r}."
    raise BuildConfigError(msg)


def _as_languages(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list | tuple):
        return tuple(str(item).strip() for item in value if str(item).strip())
    msg = f"'doctest_languages' must be a list of language tags, got {value!r}."
    raise BuildConfigError(msg)


def build_config_from_mapping(
    raw: cabc.Mapping[str, typ.Any], *, root: Path
) -> BuildConfig:
    """Build a :class:`BuildConfig` from a mapping of options.

    Parameters
    ----------
    raw : Mapping[str, Any]
        Options using either the field names or their short forms
        (``source``, ``build``, ``assets``, ``format``). Unknown keys are
        ignored.
    root : Path
        Directory that relative paths are resolved against.

    Returns
    -------
    BuildConfig
        The validated configuration.

    Raises
    ------
    BuildConfigError
        If a value has the wrong type or the output format is unknown.
    """
    values: dict[str, typ.Any] = {
        "source_dir": root / "src",
        "build_dir": root / "build",
        "assets_dir": DEFAULT_ASSETS_DIR,
    }
    for field in ("source_dir", "build_dir"):
        value = _lookup(raw, field)
        if value is not _UNSET:
            values[field] = _resolve_path(value, root, field)
    assets = _lookup(raw, "assets_dir")
    if assets is not _UNSET:
        values["assets_dir"] = None if assets is None else _resolve_path(assets, root, "assets_dir")
    clean = _lookup(raw, "clean")
    if clean is not _UNSET:
        values["clean"] = _as_bool(clean, "clean")
    languages = _lookup(raw, "doctest_languages")
    if languages is not _UNSET:
        values["doctest_languages"] = _as_languages(languages)
    for field in ("output_format", "default_module", "site_name", "pygments_style"):
        value = _lookup(raw, field)
        if value is not _UNSET:
            values[field] = str(value)
    return BuildConfig(**values)


def load_build_config(
    path: Path, *, overrides: cabc.Mapping[str, typ.Any] | None = None
) -> BuildConfig:
    """Load the YAML file describing a documentation build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration (for example
        ``docs/facet.yaml``). Options may sit at the top level or under a
        ``build:`` section.
    overrides : Mapping[str, Any], optional
        Options that take precedence over the file, such as CLI flags. Paths
        given here are resolved against the current directory.

    Returns
    -------
    BuildConfig
        Parsed configuration with paths resolved against the file's directory.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    BuildConfigError
        If a value is invalid.

    Examples
    --------
    >>> from pathlib import Path
    >>> from facet.config import load_build_config
    >>> config = load_build_config(Path("docs/facet.yaml"))  # doctest: +SKIP
    >>> config.output_format  # doctest: +SKIP
    'html'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    match raw.pop("build", None):
        case dict() as section:
            raw = {**raw, **section}
        case None:
            pass
        case build_dir:
            raw["build"] = build_dir

    root = path.resolve().parent
    if overrides:
        cwd = Path.cwd()
        for key, value in overrides.items():
            if value is None:
                continue
            raw[key] = _resolve_path(value, cwd, key) if isinstance(value, Path) else value
    return build_config_from_mapping(raw, root=root)


__all__ = ["OPTION_ALIASES", "build_config_from_mapping", "load_build_config"]
