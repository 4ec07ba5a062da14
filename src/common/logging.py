"""
Process-wide logging setup for the API service and the export CLI.
Records go to stderr as `time | level | logger | message`; chatty library loggers are held at WARNING.
"""

from __future__ import annotations

import logging

from src.common.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "multipart")

_configured = False


def resolve_level(level_name: str | None) -> int:
    """Map a level name to its numeric value; unknown names fall back to INFO."""

    if not level_name:
        return logging.INFO
    level = logging.getLevelName(level_name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(*, level_name: str | None = None) -> None:
    """Install the root handler once; `level_name` overrides LOG_LEVEL from the environment."""

    global _configured
    if _configured:
        return

    level = resolve_level(level_name or get_settings().LOG_LEVEL)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    _configured = True
