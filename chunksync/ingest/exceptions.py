# chunksync/ingest/exceptions.py
"""Errors raised by the local indexing side (chunking, store, scanning)."""

from __future__ import annotations


class IngestionError(Exception):
    """Base exception for local indexing failures."""

    pass


class ChunkingError(IngestionError):
    """
    A chunking strategy could not process a document.

    Never escapes the chunking engine; it triggers a fallback to a
    simpler strategy instead.
    """

    pass


class StoreNotOpenError(IngestionError, RuntimeError):
    """The chunk store was used before open() or after close()."""

    def __init__(self, operation: str):
        super().__init__(f"ChunkStore.{operation}() called before open()")
        self.operation = operation


__all__ = ["IngestionError", "ChunkingError", "StoreNotOpenError"]
