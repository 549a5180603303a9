# chunksync/ingest/chunking/__init__.py
"""
Chunking engine: document text -> ordered list of chunks.

    from chunksync.ingest.chunking import ChunkingRouter
    chunks = ChunkingRouter.from_config().chunk("doc.md", text)
"""

from chunksync.ingest.chunking.base import MAX_CHUNK_CHARS, MIN_CHUNK_CHARS, ChunkerPlugin
from chunksync.ingest.chunking.router import ChunkingRouter
from chunksync.ingest.chunking.speakers import SpeakerNames

__all__ = [
    "ChunkerPlugin",
    "ChunkingRouter",
    "SpeakerNames",
    "MIN_CHUNK_CHARS",
    "MAX_CHUNK_CHARS",
]
