# chunksync/ingest/chunking/plugins/__init__.py
"""Built-in chunking strategies."""

from chunksync.ingest.chunking.plugins.markdown import MarkdownChunker
from chunksync.ingest.chunking.plugins.plaintext import PlaintextChunker
from chunksync.ingest.chunking.plugins.transcript import TranscriptChunker

__all__ = ["MarkdownChunker", "PlaintextChunker", "TranscriptChunker"]
