# chunksync/ingest/models.py
"""
Chunk - the unit the whole pipeline moves around.

A chunk is a bounded span of one document's extracted text, sized for a
single embedding call. Offsets index into that extracted text, so
``text[chunk.start_offset:chunk.end_offset] == chunk.content``.

Field names are snake_case in Python and camelCase on the wire
(``chunk.model_dump(by_alias=True)``), which is what the indexing backend
expects.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ChunkType(str, Enum):
    """Which chunking strategy produced a chunk."""

    MARKDOWN_HEADING = "markdown_heading"
    TRANSCRIPT_SPEAKER_TURN = "transcript_speaker_turn"
    PLAINTEXT_PARAGRAPH = "plaintext_paragraph"


def new_chunk_id() -> str:
    return str(uuid.uuid4())


class Chunk(BaseModel):
    """
    Canonical chunk model.

    Examples:
        >>> Chunk(file_path="notes.md", chunk_type=ChunkType.MARKDOWN_HEADING,
        ...       content="# A\\ntext", start_offset=0, end_offset=9, heading_path="A")
    """

    id: str = Field(default_factory=new_chunk_id, description="Unique, immutable chunk id")
    file_path: str = Field(..., description="Project-relative path of the source file")
    chunk_type: ChunkType = Field(..., description="Strategy that produced the chunk")
    content: str = Field(..., description="Chunk text")
    start_offset: int = Field(..., ge=0, description="Start offset in the extracted text")
    end_offset: int = Field(..., ge=0, description="End offset (exclusive) in the extracted text")
    heading_path: Optional[str] = Field(default=None, description="Markdown headings, ' > ' joined")
    speaker: Optional[str] = Field(default=None, description="Transcript speaker display name")
    start_time: Optional[float] = Field(default=None, description="Turn start (s)")
    end_time: Optional[float] = Field(default=None, description="Turn end (s)")

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def check_offsets(self) -> "Chunk":
        if self.start_offset > self.end_offset:
            raise ValueError(
                f"start_offset ({self.start_offset}) must be <= end_offset ({self.end_offset})"
            )
        return self

    def to_wire(self) -> dict:
        """Serialize with the backend's camelCase field names."""
        return self.model_dump(by_alias=True, mode="json")


__all__ = ["ChunkType", "Chunk", "new_chunk_id"]
