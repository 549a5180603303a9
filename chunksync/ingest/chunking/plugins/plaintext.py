# chunksync/ingest/chunking/plugins/plaintext.py
"""
Paragraph-window chunker for plain text.

Paragraphs (separated by one or more blank lines) are greedily packed into
windows while the window stays within max_chunk_chars. Oversized
paragraphs are split at sentences, then at whitespace.

Chunker ID format: "plaintext:{max_chunk_chars}:{min_chunk_chars}"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from chunksync.ingest.chunking.base import MAX_CHUNK_CHARS, MIN_CHUNK_CHARS, validate_bounds
from chunksync.ingest.chunking.splitting import split_paragraphs
from chunksync.ingest.models import Chunk, ChunkType


@dataclass
class PlaintextChunker:
    """
    Example:
        >>> chunker = PlaintextChunker(min_chunk_chars=1)
        >>> [c.content for c in chunker.chunk_text("one\\n\\ntwo", "a.txt")]
        ['one\\n\\ntwo']
    """

    plugin_name: str = field(default="plaintext", repr=False)
    min_chunk_chars: int = MIN_CHUNK_CHARS
    max_chunk_chars: int = MAX_CHUNK_CHARS

    def __post_init__(self) -> None:
        validate_bounds(self.min_chunk_chars, self.max_chunk_chars)

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:{self.max_chunk_chars}:{self.min_chunk_chars}"

    def chunk_text(self, text: str, file_path: str) -> List[Chunk]:
        chunks: List[Chunk] = []
        for start, end in split_paragraphs(text, self.max_chunk_chars):
            if end - start < self.min_chunk_chars:
                continue
            chunks.append(
                Chunk(
                    file_path=file_path,
                    chunk_type=ChunkType.PLAINTEXT_PARAGRAPH,
                    content=text[start:end],
                    start_offset=start,
                    end_offset=end,
                )
            )
        return chunks


__all__ = ["PlaintextChunker"]
