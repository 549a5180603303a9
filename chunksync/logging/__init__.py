# chunksync/logging/__init__.py
"""Logging helpers shared by every chunksync module."""

from chunksync.logging.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
