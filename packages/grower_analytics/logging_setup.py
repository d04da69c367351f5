"""Logging for ``grower_analytics``: one handler on the package root logger.

Entrypoints (the CLI, a host service) call :func:`configure_logging` once.
Library modules only ever call ``get_logger("grower_analytics.<module>")``;
until configuration happens the package logger carries a ``NullHandler`` so
importing the library stays silent.

The level comes from the ``level`` argument, else ``GROWER_ANALYTICS_LOG_LEVEL``,
else ``WARNING`` (ingest reports skipped rows at INFO, which a CLI run shows
only when asked to).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "grower_analytics"
LEVEL_ENV = "GROWER_ANALYTICS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.StreamHandler | None = None


def resolve_level(level: int | str | None) -> int:
    """Map an int, a level name or a numeric string to a logging level."""

    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.WARNING
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    mapped = logging.getLevelNamesMapping().get(name)
    if mapped is None:
        raise ValueError(f"unknown log level: {level!r}")
    return mapped


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach the package handler (first call) or adjust its level (later calls)."""

    global _handler
    resolved = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)

    if _handler is None:
        for h in list(logger.handlers):
            if isinstance(h, logging.NullHandler):
                logger.removeHandler(h)
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
        logger.addHandler(_handler)
        # records stop at the package logger; the root logger never sees them twice
        logger.propagate = False
    else:
        # follow a replaced sys.stderr (test runners swap it per invocation)
        _handler.setStream(stream or sys.stderr)

    _handler.setLevel(resolved)
    logger.setLevel(resolved)


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
