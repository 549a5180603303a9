# chunksync/ingest/chunking/base.py
"""
Base protocol for chunking strategies.

Each strategy must implement:
- plugin_name: str - The strategy identifier ("markdown", "transcript", "plaintext")
- chunker_id: str - ID including the params that affect output ("markdown:3200:50")
- chunk_text(text, file_path) -> List[Chunk]

Strategies may raise ChunkingError on input they cannot handle; the
ChunkingRouter catches it and falls back to the plaintext strategy.
"""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from chunksync.ingest.models import Chunk

MIN_CHUNK_CHARS = 50
MAX_CHUNK_CHARS = 3200


@runtime_checkable
class ChunkerPlugin(Protocol):
    """
    Protocol for chunking strategies.

    Contract:
    - every returned chunk has 1..max_chunk_chars characters of trimmed content
      and at least min_chunk_chars of it
    - ``text[chunk.start_offset:chunk.end_offset] == chunk.content`` for
      strategies that chunk the raw text
    """

    plugin_name: str

    @property
    def chunker_id(self) -> str: ...

    def chunk_text(self, text: str, file_path: str) -> List[Chunk]: ...


def validate_bounds(min_chunk_chars: int, max_chunk_chars: int) -> None:
    """Shared __post_init__ validation for strategy dataclasses."""
    if min_chunk_chars < 1:
        raise ValueError(f"min_chunk_chars must be >= 1, got {min_chunk_chars}")
    if max_chunk_chars < min_chunk_chars:
        raise ValueError(
            f"min_chunk_chars ({min_chunk_chars}) must be <= max_chunk_chars ({max_chunk_chars})"
        )


__all__ = ["ChunkerPlugin", "MIN_CHUNK_CHARS", "MAX_CHUNK_CHARS", "validate_bounds"]
