"""Logging setup for the cashbook command line."""

import logging
import os
import sys
from typing import Optional

LOGGER_NAME = "cashbook"
DEFAULT_LEVEL = "WARNING"
LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"


def resolve_level(level: Optional[str] = None) -> int:
    """Turn a level name (or CASHBOOK_LOG_LEVEL) into a logging level.

    Raises:
        ValueError: If the name is not a known logging level
    """
    name = (level or os.getenv("CASHBOOK_LOG_LEVEL") or DEFAULT_LEVEL).strip().upper()
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level '{level}'")
    return value


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Install a single stderr handler on the package logger.

    Calling it again replaces the handler instead of stacking a new one.

    Args:
        level: Level name; defaults to CASHBOOK_LOG_LEVEL, then WARNING

    Returns:
        The configured ``cashbook`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_cashbook_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._cashbook_handler = True
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    return logger
