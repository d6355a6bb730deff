"""Logging setup for the propimport CLI."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "PROPIMPORT_LOG_LEVEL"
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def resolve_log_level(raw: str | None, default: int = logging.INFO) -> int:
    """Map a level name or number to a logging level, falling back to ``default``."""
    if raw is None or not raw.strip():
        return default
    value = raw.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelNamesMapping().get(value.upper())
    return default if level is None else level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger for import runs.

    Without an explicit ``level`` the ``PROPIMPORT_LOG_LEVEL`` variable decides,
    defaulting to INFO. Transport and SQL loggers stay at WARNING unless the
    root level is DEBUG, so extraction progress is not buried in request lines.
    """

    resolved = level if level is not None else resolve_log_level(os.getenv(LOG_LEVEL_ENV))
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    if resolved > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
