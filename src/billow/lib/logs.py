"""
Logging utilities for Billow.

Provides a simple logger factory that creates configured Python loggers
with consistent formatting across the sync layer, services and pages.
"""

import logging
import os
from pathlib import Path

# Default log level from environment or INFO
_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def logger(name: str) -> logging.Logger:
    """
    Create and configure a logger for the given name.

    If name is a file path (e.g., __file__), the module name is namespaced
    under ``billow`` so that every package logger shares one parent.

    Args:
        name: Logger name or __file__ path.

    Returns:
        Configured logging.Logger instance.
    """
    if "/" in name or "\\" in name:
        name = f"billow.{Path(name).stem}"

    log = logging.getLogger(name)

    # Only configure if not already configured
    if not log.handlers:
        log.setLevel(getattr(logging, _LOG_LEVEL, logging.INFO))
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        log.addHandler(handler)

    return log


def set_level(level: str) -> None:
    """Change the level of every logger created through :func:`logger`."""
    resolved = getattr(logging, level.upper(), logging.INFO)
    for name, log in logging.root.manager.loggerDict.items():
        if name.startswith("billow.") and isinstance(log, logging.Logger):
            log.setLevel(resolved)
