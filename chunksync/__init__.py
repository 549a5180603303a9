# chunksync/__init__.py
"""
chunksync - incremental chunking, embedding and sync of text workspaces.

Splits markdown, transcripts and plain text into retrieval-sized chunks,
embeds them through a remote provider, keeps everything in a local
index, and pushes only changed files to a remote indexing backend using
Merkle-style change detection.
"""

__version__ = "0.3.0"

from chunksync.ingest.models import Chunk, ChunkType

__all__ = ["Chunk", "ChunkType", "__version__"]
