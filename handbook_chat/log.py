"""
Logger factory for the handbook_chat package.

All module loggers are children of the ``handbook_chat`` logger, which owns a
single stdout handler. Call ``set_level`` once at startup to apply LOG_LEVEL.

Usage:
    from handbook_chat.log import get_logger
    logger = get_logger(__name__)
"""

from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER = "handbook_chat"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    # Avoid duplicate handlers on re-import (uvicorn --reload)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package logger (``__name__`` of the caller)."""
    _package_logger()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def set_level(level: str | int) -> None:
    """Set the package log level, e.g. "DEBUG" or logging.WARNING. Unknown names fall back to INFO."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    _package_logger().setLevel(level)
