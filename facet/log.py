"""Configure the loguru sink used by the facet command line.

Library modules log through ``loguru.logger`` directly and never add sinks on
import; the CLI calls :func:`configure_logging` once per invocation so the
verbosity flag decides what reaches stderr.

Examples
--------
>>> from facet.log import configure_logging
>>> configure_logging(verbosity=1)  # doctest: +SKIP
"""

from __future__ import annotations

import sys
import typing as typ

from loguru import logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{name}</cyan> ║ "
    "<level>{message}</level>"
)
VERBOSITY_LEVELS = ("WARNING", "INFO", "DEBUG")


def level_for(verbosity: int) -> str:
    """Return the loguru level name for a ``-v`` count, clamped to DEBUG."""
    index = min(max(verbosity, 0), len(VERBOSITY_LEVELS) - 1)
    return VERBOSITY_LEVELS[index]


def configure_logging(verbosity: int = 1, *, sink: typ.TextIO | None = None) -> int:
    """Replace loguru's handlers with a single formatted sink.

    Parameters
    ----------
    verbosity : int, optional
        ``0`` shows warnings and errors, ``1`` (default) adds pipeline stage
        messages, ``2`` or more adds per-page and per-doctest detail.
    sink : TextIO, optional
        Stream receiving log records; defaults to ``sys.stderr``.

    Returns
    -------
    int
        Identifier of the installed loguru handler.
    """
    logger.remove()
    return logger.add(
        sink or sys.stderr,
        format=LOG_FORMAT,
        level=level_for(verbosity),
        colorize=sink is None,
    )


__all__ = ["LOG_FORMAT", "configure_logging", "level_for"]
