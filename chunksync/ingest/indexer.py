# chunksync/ingest/indexer.py
"""
IndexService - keeps the local chunk store in step with the workspace.

One pass (``index_workspace``):
    1. Scan indexable files
    2. Drop files that disappeared (chunks, embeddings and hash record)
    3. Re-chunk files whose content hash changed: delete-then-insert,
       then record the new hash and chunk count
    4. Embed the backlog (chunks without vectors)

Unchanged files are never re-chunked, so their chunk ids and vectors
survive across passes.

Usage:
    service = IndexService.from_config(project_path, store, config)
    report = await service.index_workspace()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from chunksync.config.schema import ChunksyncConfig
from chunksync.embedding.pipeline import EmbeddingPipeline, EmbeddingRequest, EmbeddingResult
from chunksync.ingest.chunking.router import ChunkingRouter
from chunksync.ingest.chunking.speakers import SpeakerNames
from chunksync.ingest.merkle import normalize_path
from chunksync.ingest.scanner import ScannedDocument, WorkspaceScanner
from chunksync.ingest.state.store import ChunkStore
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import INDEX

logger = get_logger(__name__)

CHUNK_BATCH_SIZE = 10


class IndexPhase(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    READY = "ready"
    ERROR = "error"


@dataclass
class IndexProgress:
    phase: IndexPhase = IndexPhase.IDLE
    files_total: int = 0
    files_done: int = 0
    chunks_total: int = 0
    chunks_embedded: int = 0
    message: Optional[str] = None


@dataclass
class IndexReport:
    files_scanned: int = 0
    files_chunked: int = 0
    files_removed: int = 0
    chunks_total: int = 0
    embedded: int = 0
    failed: int = 0
    file_hashes: Dict[str, str] = field(default_factory=dict)


ProgressListener = Callable[[IndexProgress], None]


class IndexService:
    """Incremental indexer for one project."""

    def __init__(
        self,
        project_path: Union[str, Path],
        store: ChunkStore,
        pipeline: EmbeddingPipeline,
        router: Optional[ChunkingRouter] = None,
        scanner: Optional[WorkspaceScanner] = None,
        speaker_names: Optional[SpeakerNames] = None,
        on_progress: Optional[ProgressListener] = None,
    ) -> None:
        self._root = Path(project_path).resolve()
        self._store = store
        self._pipeline = pipeline
        self._speaker_names = speaker_names or SpeakerNames()
        self._router = router or ChunkingRouter.from_config(speaker_names=self._speaker_names)
        self._scanner = scanner or WorkspaceScanner()
        self._on_progress = on_progress
        self._progress = IndexProgress()
        self._cancel_event = asyncio.Event()

    @classmethod
    def from_config(
        cls,
        project_path: Union[str, Path],
        store: ChunkStore,
        config: ChunksyncConfig,
        pipeline: Optional[EmbeddingPipeline] = None,
        on_progress: Optional[ProgressListener] = None,
    ) -> "IndexService":
        speaker_names = SpeakerNames()
        return cls(
            project_path=project_path,
            store=store,
            pipeline=pipeline or EmbeddingPipeline(config.embedding),
            router=ChunkingRouter.from_config(config.chunking, speaker_names=speaker_names),
            scanner=WorkspaceScanner.from_config(config.scan),
            speaker_names=speaker_names,
            on_progress=on_progress,
        )

    @property
    def project_root(self) -> Path:
        return self._root

    @property
    def progress(self) -> IndexProgress:
        return self._progress

    @property
    def speaker_names(self) -> SpeakerNames:
        return self._speaker_names

    def cancel(self) -> None:
        """Stop the running pass at the next file batch or embedding batch boundary."""
        self._cancel_event.set()

    def _report(self, phase: IndexPhase, **changes: object) -> None:
        self._progress.phase = phase
        for key, value in changes.items():
            setattr(self._progress, key, value)
        if self._on_progress is not None:
            self._on_progress(self._progress)

    def _relative(self, file_path: Union[str, Path]) -> str:
        return normalize_path(Path(file_path).as_posix(), self._root.as_posix())

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    async def index_workspace(self) -> IndexReport:
        self._cancel_event = asyncio.Event()
        self._progress = IndexProgress()
        report = IndexReport()

        try:
            self._report(IndexPhase.SCANNING)
            scan = await asyncio.to_thread(self._scanner.scan, self._root)
            current = scan.by_path()
            stored = self._store.get_all_file_hashes()

            report.files_scanned = scan.total_scanned
            report.file_hashes = {doc.path: doc.content_hash for doc in scan.files}

            for path in stored:
                if path not in current:
                    self.remove_file(path)
                    report.files_removed += 1

            changed = [
                doc
                for doc in scan.files
                if doc.path not in stored or stored[doc.path].hash != doc.content_hash
            ]
            logger.info(
                f"{INDEX} {len(scan.files)} files scanned, {len(changed)} changed, "
                f"{report.files_removed} removed"
            )

            self._report(IndexPhase.CHUNKING, files_total=len(changed), files_done=0)
            for i in range(0, len(changed), CHUNK_BATCH_SIZE):
                if self._cancel_event.is_set():
                    logger.info(f"{INDEX} Cancelled during chunking")
                    break
                for doc in changed[i : i + CHUNK_BATCH_SIZE]:
                    self._rechunk(doc)
                    report.files_chunked += 1
                self._report(IndexPhase.CHUNKING, files_done=report.files_chunked)
                await asyncio.sleep(0)

            result = await self.embed_backlog()
            report.embedded = result.embedded_count
            report.failed = result.failed_count
            report.chunks_total = self._store.chunk_count

        except Exception as e:
            self._report(IndexPhase.ERROR, message=str(e))
            logger.error(f"{INDEX} Indexing failed: {e}")
            raise

        self._report(IndexPhase.READY, message=None)
        return report

    def _rechunk(self, doc: ScannedDocument) -> int:
        chunks = self._router.chunk(doc.path, doc.content)
        self._store.remove_chunks_for_file(doc.path)
        self._store.insert_chunks(chunks)
        self._store.set_file_hash(doc.path, doc.content_hash, len(chunks))
        return len(chunks)

    async def embed_backlog(self) -> EmbeddingResult:
        """Embed every stored chunk that has no vector yet."""
        backlog = self._store.get_chunks_without_embeddings()
        self._report(IndexPhase.EMBEDDING, chunks_total=len(backlog), chunks_embedded=0)
        if not backlog:
            return EmbeddingResult()

        def on_batch(done: int, total: int) -> None:
            self._report(IndexPhase.EMBEDDING, chunks_embedded=done, chunks_total=total)

        result = await self._pipeline.embed(
            EmbeddingRequest.from_rows(backlog),
            on_progress=on_batch,
            cancel_event=self._cancel_event,
        )
        self._store.set_embeddings(result.embeddings)
        if result.failed:
            logger.warning(f"{INDEX} {result.failed_count} chunks left without embeddings")
        return result

    async def index_file(self, file_path: Union[str, Path]) -> int:
        """
        Re-index one file (after a save, rename or copy).

        Returns the number of chunks stored for it. A file that no longer
        exists or isn't indexable is removed from the index.
        """
        rel = self._relative(file_path)
        try:
            doc = await asyncio.to_thread(self._scanner.read, self._root, rel)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"{INDEX} Cannot read {rel}: {e}")
            doc = None

        if doc is None:
            self.remove_file(rel)
            return 0

        record = self._store.get_file_hash(rel)
        if record is not None and record.hash == doc.content_hash:
            return record.chunk_count

        count = self._rechunk(doc)
        await self.embed_backlog()
        self._report(IndexPhase.READY)
        return count

    def remove_file(self, file_path: Union[str, Path]) -> List[str]:
        """Drop a file's chunks, embeddings and hash record. Returns the removed chunk ids."""
        rel = self._relative(file_path)
        removed = self._store.remove_chunks_for_file(rel)
        self._store.remove_file_hash(rel)
        if removed:
            logger.debug(f"{INDEX} Removed {rel} ({len(removed)} chunks)")
        return removed

    async def rename_speaker(self, transcript_path: Union[str, Path], speaker_id: str, name: str) -> int:
        """
        Set a display name for a transcript speaker and re-chunk the transcript.

        The hash record is rewritten in place, so the file never drops out of
        the local tree. Returns the number of chunks stored for it.
        """
        rel = self._relative(transcript_path)
        self._speaker_names.rename(rel, speaker_id, name)
        try:
            doc = await asyncio.to_thread(self._scanner.read, self._root, rel)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"{INDEX} Cannot read {rel}: {e}")
            doc = None

        if doc is None:
            self.remove_file(rel)
            return 0

        count = self._rechunk(doc)
        await self.embed_backlog()
        self._report(IndexPhase.READY)
        return count


__all__ = [
    "CHUNK_BATCH_SIZE",
    "IndexPhase",
    "IndexProgress",
    "IndexReport",
    "IndexService",
]
