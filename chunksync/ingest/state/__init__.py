# chunksync/ingest/state/__init__.py
"""Local index persistence (index.json)."""

from chunksync.ingest.state.schema import ChunkRow, FileHashRecord, IndexState
from chunksync.ingest.state.store import ChunkStore

__all__ = ["ChunkRow", "ChunkStore", "FileHashRecord", "IndexState"]
