"""Logging helpers for the tapstream package."""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_CONFIGURED = False


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Configure basic logging once for the application.

    When ``level`` is omitted the ``log_level`` setting is used.
    """

    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    if level is None:
        from .config import get_settings

        level = get_settings().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    _LOGGER_CONFIGURED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger in the ``tapstream`` namespace."""

    return logging.getLogger(name or "tapstream")


__all__ = ["configure_logging", "get_logger"]
