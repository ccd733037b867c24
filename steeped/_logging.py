"""
Logging setup for the `steeped` logger tree.

Modules log through `logging.getLogger(__name__)`; this only attaches a
console handler once.
"""

from __future__ import annotations

import logging

from steeped.config import LoggingSettings

ROOT_LOGGER = "steeped"


def setup_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    settings = settings or LoggingSettings()
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(settings.level.upper())

    if not any(getattr(h, "_steeped", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler._steeped = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    for handler in logger.handlers:
        if getattr(handler, "_steeped", False):
            handler.setFormatter(logging.Formatter(settings.format_string))
    return logger


__all__ = ("ROOT_LOGGER", "setup_logging")
