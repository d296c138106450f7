"""Logging setup for the API process and the seeding scripts."""

import logging
import sys

from platform_core.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Library loggers that drown out cache and store messages at DEBUG.
_NOISY_LOGGERS = ("aiosqlite", "asyncio")


def setup_logging(level: int | None = None) -> None:
    """Configure root logging to stdout.

    Args:
        level: Explicit level; defaults to DEBUG when settings.debug, else INFO.
    """
    settings = get_settings()
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    if not settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
