# chunksync/ingest/chunking/router.py
"""
ChunkingRouter - the chunking engine entry point.

Routes a document to a strategy by filename suffix:

    *.transcript.json  ->  TranscriptChunker
    *.md, *.markdown   ->  MarkdownChunker
    anything else      ->  PlaintextChunker

``chunk(file_path, content)`` never raises. If a strategy fails (e.g. a
transcript that is not valid JSON) the whole document is re-chunked with
the plaintext strategy instead.

Usage:
    router = ChunkingRouter.from_config(config.chunking)
    chunks = router.chunk("notes/meeting.md", text)
"""

from __future__ import annotations

from typing import Dict, List, Optional

from chunksync.config.schema import ChunkingConfig
from chunksync.ingest.chunking.base import ChunkerPlugin
from chunksync.ingest.chunking.plugins import MarkdownChunker, PlaintextChunker, TranscriptChunker
from chunksync.ingest.chunking.speakers import SpeakerNames
from chunksync.ingest.models import Chunk
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import CHUNKING

logger = get_logger(__name__)

TRANSCRIPT_SUFFIX = ".transcript.json"
MARKDOWN_SUFFIXES = (".md", ".markdown")


class ChunkingRouter:
    """
    Routes documents to suffix-specific chunkers, with plaintext as the
    default and as the fallback for failed strategies.
    """

    def __init__(
        self,
        chunker_map: Dict[str, ChunkerPlugin],
        default_chunker: ChunkerPlugin,
    ) -> None:
        """
        Args:
            chunker_map: Lowercase filename suffix -> chunker. Longer suffixes
                         win, so ".transcript.json" beats ".json".
            default_chunker: Used for unknown suffixes and as fallback.
        """
        self._chunker_map = {suffix.lower(): c for suffix, c in chunker_map.items()}
        self._suffixes = sorted(self._chunker_map, key=len, reverse=True)
        self._default_chunker = default_chunker

    @classmethod
    def from_config(
        cls,
        config: Optional[ChunkingConfig] = None,
        speaker_names: Optional[SpeakerNames] = None,
    ) -> "ChunkingRouter":
        config = config or ChunkingConfig()
        bounds = dict(min_chunk_chars=config.min_chunk_chars, max_chunk_chars=config.max_chunk_chars)

        markdown = MarkdownChunker(**bounds)
        transcript = TranscriptChunker(
            merge_gap=config.transcript_merge_gap,
            speaker_names=speaker_names,
            **bounds,
        )
        chunker_map: Dict[str, ChunkerPlugin] = {TRANSCRIPT_SUFFIX: transcript}
        for suffix in MARKDOWN_SUFFIXES:
            chunker_map[suffix] = markdown

        return cls(chunker_map=chunker_map, default_chunker=PlaintextChunker(**bounds))

    @property
    def default_chunker(self) -> ChunkerPlugin:
        return self._default_chunker

    def get_chunker(self, file_path: str) -> ChunkerPlugin:
        name = file_path.lower()
        for suffix in self._suffixes:
            if name.endswith(suffix):
                return self._chunker_map[suffix]
        return self._default_chunker

    def chunk(self, file_path: str, content: str) -> List[Chunk]:
        """Chunk one document. Never raises."""
        if not content or not content.strip():
            logger.debug(f"{CHUNKING} Empty content for document: {file_path}")
            return []

        chunker = self.get_chunker(file_path)
        try:
            chunks = chunker.chunk_text(content, file_path)
        except Exception as e:
            if chunker is self._default_chunker:
                logger.error(f"{CHUNKING} {chunker.plugin_name} failed on '{file_path}': {e}")
                return []
            logger.warning(
                f"{CHUNKING} {chunker.plugin_name} failed on '{file_path}', "
                f"falling back to {self._default_chunker.plugin_name}: {e}"
            )
            return self._fallback(file_path, content)

        logger.debug(f"{CHUNKING} '{file_path}' -> {len(chunks)} chunks ({chunker.chunker_id})")
        return chunks

    def _fallback(self, file_path: str, content: str) -> List[Chunk]:
        try:
            return self._default_chunker.chunk_text(content, file_path)
        except Exception as e:
            logger.error(f"{CHUNKING} Fallback chunking failed on '{file_path}': {e}")
            return []


__all__ = ["ChunkingRouter", "TRANSCRIPT_SUFFIX", "MARKDOWN_SUFFIXES"]
