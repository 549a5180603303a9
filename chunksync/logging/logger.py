# chunksync/logging/logger.py
"""
Unified logging setup for chunksync.

Every module uses:
    from chunksync.logging.logger import get_logger
    logger = get_logger(__name__)

Log namespaces follow module paths, so configuring the ``chunksync``
logger once (usually from the CLI entrypoint) covers the whole package.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO, Union

DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_ROOT_LOGGER = "chunksync"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """
    Configure the package logger.

    Safe to call multiple times; only one handler is ever installed.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(_ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    root.setLevel(level)
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Modules call this to get a logger.

    Do NOT configure logging here; configuration happens in configure_logging().
    """
    return logging.getLogger(name)


__all__ = ["DEFAULT_FORMAT", "configure_logging", "get_logger"]
