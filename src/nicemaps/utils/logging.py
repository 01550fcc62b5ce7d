"""
Logging for nicemaps.

Library modules only call ``get_logger(__name__)``; the package logger carries a
NullHandler so an embedding NiceGUI app decides where records go. Demos call
``configure_logging()`` to get stderr output, with the level taken from
NICEMAPS_LOG_LEVEL unless given.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_ENV = "NICEMAPS_LOG_LEVEL"


def configure_logging(level: Optional[Union[str, int]] = None, *, force: bool = False) -> None:
    """
    Send the 'nicemaps' logger (never root) to stderr.

    Unknown level names fall back to INFO. Without ``force`` an existing stderr
    handler is kept and only the level changes.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("nicemaps")
    logger.setLevel(level)

    if force:
        for h in logger.handlers[:]:
            if not isinstance(h, logging.NullHandler):
                h.close()
                logger.removeHandler(h)
    else:
        for h in logger.handlers:
            if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
                h.setLevel(level)
                return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=DEFAULT_FMT, datefmt=DEFAULT_DATEFMT))
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for ``name``; the package logger when omitted."""
    return logging.getLogger(name or "nicemaps")
