# chunksync/ingest/__init__.py
"""Local indexing: chunking, Merkle change detection, chunk store and indexer."""

from chunksync.ingest.models import Chunk, ChunkType

__all__ = ["Chunk", "ChunkType"]
