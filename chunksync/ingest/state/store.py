# chunksync/ingest/state/store.py
"""
ChunkStore - local authoritative index of file hashes, chunks and embeddings.

State lives in memory while the store is open and is written to
``.chunksync/index.json``. Writes are debounced: every mutation marks the
store dirty and (re)arms a timer, so a burst of mutations produces one
write once activity pauses. ``close()`` forces a synchronous flush.

Without a running event loop (plain synchronous use) nothing is written
until ``flush()`` or ``close()``.

The store has no reentrancy guard. Two sync cycles against the same
project must be serialized by the caller.

Usage:
    store = ChunkStore()
    store.open(project_path)
    store.remove_chunks_for_file("notes/a.md")
    store.insert_chunks(chunks)
    store.set_file_hash("notes/a.md", content_hash, len(chunks))
    store.close()
"""

from __future__ import annotations

import asyncio
import json
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from chunksync.core.paths import ProjectPaths, atomic_write_text
from chunksync.core.scheduler import DebouncedTask
from chunksync.ingest.exceptions import StoreNotOpenError
from chunksync.ingest.models import Chunk
from chunksync.ingest.state.schema import ChunkRow, FileHashRecord, IndexState, utcnow
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import STORE

logger = get_logger(__name__)

DEFAULT_FLUSH_DELAY = 0.5


class ChunkStore:
    """Debounced, JSON-backed store for one project."""

    def __init__(self, flush_delay: float = DEFAULT_FLUSH_DELAY) -> None:
        self._state: Optional[IndexState] = None
        self._path: Optional[Path] = None
        self._dirty = False
        self._generation = 0
        self._persisted_generation = 0
        self._write_lock = threading.Lock()
        self._flusher = DebouncedTask(self._flush_async, delay=flush_delay)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._state is not None

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def dirty(self) -> bool:
        return self._dirty

    def open(self, project_path: Union[str, Path]) -> None:
        """
        Load index.json, or create and persist an empty index.

        After open() the backing file always exists.
        """
        paths = ProjectPaths.for_project(project_path)
        paths.ensure_state_dir()
        self._path = paths.index_file

        state: Optional[IndexState] = None
        if self._path.exists():
            try:
                with self._path.open("r", encoding="utf-8") as f:
                    state = IndexState.model_validate(json.load(f))
                logger.debug(
                    f"{STORE} Loaded {len(state.chunks)} chunks, "
                    f"{len(state.embeddings)} embeddings from {self._path}"
                )
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"{STORE} Failed to load {self._path}, starting empty: {e}")

        self._dirty = False
        self._generation = 0
        self._persisted_generation = 0

        if state is None:
            self._state = IndexState()
            self._dirty = True
            self._generation = 1
            self.flush()
        else:
            self._state = state

    def close(self) -> None:
        """Flush synchronously if dirty, then discard in-memory state."""
        if self._state is None:
            return
        self._flusher.cancel()
        self.flush()
        self._state = None
        self._dirty = False
        logger.debug(f"{STORE} Closed {self._path}")

    def flush(self) -> None:
        """Write index.json now if there are unsaved changes."""
        if self._state is None or not self._dirty:
            return
        self._flusher.cancel()
        generation = self._generation
        self._write(self._serialize(), generation)
        if self._generation == generation:
            self._dirty = False

    async def wait_for_flush(self) -> None:
        """Wait until a pending debounced flush has run."""
        await self._flusher.wait()

    def _serialize(self) -> str:
        return self._data("flush").model_dump_json()

    def _write(self, payload: str, generation: int) -> None:
        if self._path is None:
            raise StoreNotOpenError("flush")
        with self._write_lock:
            if generation <= self._persisted_generation:
                return
            atomic_write_text(self._path, payload)
            self._persisted_generation = generation
        logger.debug(f"{STORE} Flushed {self._path}")

    async def _flush_async(self) -> None:
        if self._state is None or not self._dirty:
            return
        generation = self._generation
        payload = self._serialize()
        await asyncio.to_thread(self._write, payload, generation)
        if self._generation == generation:
            self._dirty = False

    def _data(self, operation: str) -> IndexState:
        if self._state is None:
            raise StoreNotOpenError(operation)
        return self._state

    def _mark_dirty(self) -> None:
        self._dirty = True
        self._generation += 1
        self._flusher.schedule()

    # ------------------------------------------------------------------
    # File hashes
    # ------------------------------------------------------------------

    def get_file_hash(self, file_path: str) -> Optional[FileHashRecord]:
        return self._data("get_file_hash").file_hashes.get(file_path)

    def get_all_file_hashes(self) -> Dict[str, FileHashRecord]:
        return dict(self._data("get_all_file_hashes").file_hashes)

    def set_file_hash(self, file_path: str, content_hash: str, chunk_count: int) -> None:
        state = self._data("set_file_hash")
        state.file_hashes[file_path] = FileHashRecord(
            hash=content_hash, modified_at=utcnow(), chunk_count=chunk_count
        )
        self._mark_dirty()

    def remove_file_hash(self, file_path: str) -> bool:
        state = self._data("remove_file_hash")
        if state.file_hashes.pop(file_path, None) is None:
            return False
        self._mark_dirty()
        return True

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def get_all_chunks(self) -> List[ChunkRow]:
        return list(self._data("get_all_chunks").chunks)

    def get_chunks_for_file(self, file_path: str) -> List[ChunkRow]:
        return [row for row in self._data("get_chunks_for_file").chunks if row.file_path == file_path]

    def insert_chunks(self, chunks: Iterable[Union[Chunk, ChunkRow]]) -> int:
        """Append chunks. Ids are trusted to be unique; no dedup check."""
        state = self._data("insert_chunks")
        rows = [c if isinstance(c, ChunkRow) else ChunkRow.from_chunk(c) for c in chunks]
        if not rows:
            return 0
        state.chunks.extend(rows)
        self._mark_dirty()
        return len(rows)

    def remove_chunks_for_file(self, file_path: str) -> List[str]:
        """
        Remove every chunk of a file together with its embeddings.

        Returns:
            Ids of the removed chunks.
        """
        state = self._data("remove_chunks_for_file")
        removed = [row.id for row in state.chunks if row.file_path == file_path]
        if not removed:
            return []

        state.chunks = [row for row in state.chunks if row.file_path != file_path]
        for chunk_id in removed:
            state.embeddings.pop(chunk_id, None)

        self._mark_dirty()
        logger.debug(f"{STORE} Removed {len(removed)} chunks for {file_path}")
        return removed

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def get_embedding(self, chunk_id: str) -> Optional[List[float]]:
        return self._data("get_embedding").embeddings.get(chunk_id)

    def set_embeddings(self, embeddings: Mapping[str, Sequence[float]]) -> int:
        """
        Merge vectors into the map.

        Vectors for chunks that no longer exist (removed while their batch
        was in flight) are dropped. Returns the number stored.
        """
        state = self._data("set_embeddings")
        known = {row.id for row in state.chunks}
        stored = 0
        for chunk_id, vector in embeddings.items():
            if chunk_id not in known:
                continue
            state.embeddings[chunk_id] = list(vector)
            stored += 1

        dropped = len(embeddings) - stored
        if dropped:
            logger.debug(f"{STORE} Dropped {dropped} embeddings for chunks that no longer exist")
        if stored:
            self._mark_dirty()
        return stored

    def get_chunks_without_embeddings(self) -> List[ChunkRow]:
        """The embedding backlog."""
        state = self._data("get_chunks_without_embeddings")
        return [row for row in state.chunks if row.id not in state.embeddings]

    # ------------------------------------------------------------------
    # Counts / maintenance
    # ------------------------------------------------------------------

    @property
    def chunk_count(self) -> int:
        return len(self._data("chunk_count").chunks)

    @property
    def embedding_count(self) -> int:
        return len(self._data("embedding_count").embeddings)

    @property
    def file_count(self) -> int:
        return len(self._data("file_count").file_hashes)

    def clear(self) -> None:
        """Drop everything (forces a full re-index)."""
        self._data("clear")
        self._state = IndexState()
        self._mark_dirty()


__all__ = ["ChunkStore", "DEFAULT_FLUSH_DELAY"]
