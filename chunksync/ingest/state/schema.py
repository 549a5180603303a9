# chunksync/ingest/state/schema.py
"""
Persisted schema of ``.chunksync/index.json``.

    {
      "version": 1,
      "file_hashes": {path: {"hash", "modified_at", "chunk_count"}},
      "chunks": [ChunkRow, ...],
      "embeddings": {chunk_id: [float, ...]}
    }

Keys and fields are snake_case on disk. Paths are project-relative.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from chunksync.ingest.models import Chunk, ChunkType

INDEX_VERSION = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileHashRecord(BaseModel):
    """Per-file record of the content that was last chunked."""

    model_config = ConfigDict(extra="forbid")

    hash: str = Field(..., description="SHA-256 of the file content")
    modified_at: datetime = Field(default_factory=utcnow, description="When the record was written")
    chunk_count: int = Field(default=0, ge=0, description="Chunks produced from this content")


class ChunkRow(BaseModel):
    """A stored chunk."""

    model_config = ConfigDict(extra="forbid")

    id: str
    file_path: str
    chunk_type: ChunkType
    content: str
    start_offset: int
    end_offset: int
    heading_path: Optional[str] = None
    speaker: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ChunkRow":
        return cls(**chunk.model_dump())

    def to_chunk(self) -> Chunk:
        return Chunk(**self.model_dump(exclude={"created_at"}))


class IndexState(BaseModel):
    """Root of index.json."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(default=INDEX_VERSION)
    file_hashes: Dict[str, FileHashRecord] = Field(default_factory=dict)
    chunks: List[ChunkRow] = Field(default_factory=list)
    embeddings: Dict[str, List[float]] = Field(default_factory=dict)


__all__ = ["INDEX_VERSION", "FileHashRecord", "ChunkRow", "IndexState", "utcnow"]
