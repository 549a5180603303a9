# tests/unit/test_chunk_store.py
"""
Tests for ChunkStore.

Key behaviors:
1. open() always leaves index.json on disk
2. Chunk removal takes the chunk's embeddings with it
3. Embeddings for unknown chunks are dropped
4. Mutations flush once after the debounce delay; close() flushes synchronously
5. Use before open() raises StoreNotOpenError
"""

from __future__ import annotations

import json

import pytest

from chunksync.core.paths import ProjectPaths
from chunksync.ingest.exceptions import StoreNotOpenError
from chunksync.ingest.models import Chunk, ChunkType
from chunksync.ingest.state.store import ChunkStore


def _chunk(path: str, content: str = "some content", start: int = 0) -> Chunk:
    return Chunk(
        file_path=path,
        chunk_type=ChunkType.PLAINTEXT_PARAGRAPH,
        content=content,
        start_offset=start,
        end_offset=start + len(content),
    )


def _read_index(root) -> dict:
    return json.loads(ProjectPaths.for_project(root).index_file.read_text(encoding="utf-8"))


@pytest.fixture
def store(tmp_path):
    s = ChunkStore(flush_delay=0.01)
    s.open(tmp_path)
    yield s
    s.close()


class TestLifecycle:
    """Tests for open/close/flush."""

    def test_open_creates_index_file(self, tmp_path):
        store = ChunkStore()
        store.open(tmp_path)

        data = _read_index(tmp_path)
        assert data["version"] == 1
        assert data["chunks"] == []
        assert store.is_open
        assert not store.dirty

    def test_reopen_restores_state(self, tmp_path):
        store = ChunkStore()
        store.open(tmp_path)
        chunk = _chunk("a.txt")
        store.insert_chunks([chunk])
        store.set_file_hash("a.txt", "h1", 1)
        store.set_embeddings({chunk.id: [0.1, 0.2]})
        store.close()

        reopened = ChunkStore()
        reopened.open(tmp_path)

        assert [r.id for r in reopened.get_all_chunks()] == [chunk.id]
        assert reopened.get_file_hash("a.txt").hash == "h1"
        assert reopened.get_embedding(chunk.id) == [0.1, 0.2]

    def test_corrupt_index_starts_empty(self, tmp_path):
        paths = ProjectPaths.for_project(tmp_path)
        paths.ensure_state_dir()
        paths.index_file.write_text("{not json", encoding="utf-8")

        store = ChunkStore()
        store.open(tmp_path)

        assert store.chunk_count == 0
        assert _read_index(tmp_path)["chunks"] == []

    def test_use_before_open_raises(self):
        store = ChunkStore()

        with pytest.raises(StoreNotOpenError, match=r"get_all_chunks\(\) called before open"):
            store.get_all_chunks()

    def test_use_after_close_raises(self, tmp_path):
        store = ChunkStore()
        store.open(tmp_path)
        store.close()

        with pytest.raises(StoreNotOpenError):
            store.set_file_hash("a", "h", 0)

    def test_write_without_path_raises(self):
        store = ChunkStore()

        with pytest.raises(StoreNotOpenError, match=r"flush\(\) called before open"):
            store._write("{}", 1)

    def test_no_write_without_loop_until_flush(self, store, tmp_path):
        store.insert_chunks([_chunk("a.txt")])

        assert store.dirty
        assert _read_index(tmp_path)["chunks"] == []

        store.flush()

        assert not store.dirty
        assert len(_read_index(tmp_path)["chunks"]) == 1


class TestChunks:
    """Tests for chunk rows and their embeddings."""

    def test_remove_chunks_for_file(self, store):
        """Removing a file's 3 chunks leaves the other file's 2 and their vectors."""
        a = [_chunk("a.txt", f"chunk {i}") for i in range(3)]
        b = [_chunk("b.txt", f"chunk {i}") for i in range(2)]
        store.insert_chunks(a + b)
        store.set_embeddings({c.id: [1.0] for c in a + b})

        removed = store.remove_chunks_for_file("a.txt")

        assert sorted(removed) == sorted(c.id for c in a)
        assert store.chunk_count == 2
        assert store.embedding_count == 2
        assert all(store.get_embedding(c.id) is None for c in a)

    def test_remove_unknown_file(self, store):
        assert store.remove_chunks_for_file("missing.txt") == []
        assert not store.dirty

    def test_insert_returns_count(self, store):
        assert store.insert_chunks([_chunk("a.txt"), _chunk("a.txt")]) == 2
        assert store.insert_chunks([]) == 0

    def test_rows_round_trip_to_chunks(self, store):
        chunk = Chunk(
            file_path="t.transcript.json",
            chunk_type=ChunkType.TRANSCRIPT_SPEAKER_TURN,
            content="hi there",
            start_offset=0,
            end_offset=8,
            speaker="Alice",
            start_time=0.0,
            end_time=2.0,
        )
        store.insert_chunks([chunk])

        assert store.get_chunks_for_file("t.transcript.json")[0].to_chunk() == chunk

    def test_backlog(self, store):
        a, b = _chunk("a.txt"), _chunk("b.txt")
        store.insert_chunks([a, b])
        store.set_embeddings({a.id: [1.0]})

        assert [r.id for r in store.get_chunks_without_embeddings()] == [b.id]


class TestEmbeddingsAndHashes:
    def test_orphan_embeddings_dropped(self, store):
        chunk = _chunk("a.txt")
        store.insert_chunks([chunk])

        stored = store.set_embeddings({chunk.id: [1.0], "gone": [2.0]})

        assert stored == 1
        assert store.get_embedding("gone") is None

    def test_file_hash_records(self, store):
        store.set_file_hash("a.txt", "h1", 3)

        record = store.get_file_hash("a.txt")
        assert (record.hash, record.chunk_count) == ("h1", 3)
        assert store.file_count == 1
        assert store.remove_file_hash("a.txt") is True
        assert store.remove_file_hash("a.txt") is False

    def test_clear(self, store):
        chunk = _chunk("a.txt")
        store.insert_chunks([chunk])
        store.set_embeddings({chunk.id: [1.0]})
        store.set_file_hash("a.txt", "h", 1)

        store.clear()

        assert (store.chunk_count, store.embedding_count, store.file_count) == (0, 0, 0)


class TestDebouncedFlush:
    """Tests for the debounced writer."""

    @pytest.mark.asyncio
    async def test_burst_flushes_once_after_delay(self, tmp_path):
        store = ChunkStore(flush_delay=0.01)
        store.open(tmp_path)

        for i in range(5):
            store.insert_chunks([_chunk("a.txt", f"chunk {i}")])
        assert _read_index(tmp_path)["chunks"] == []

        await store.wait_for_flush()

        assert len(_read_index(tmp_path)["chunks"]) == 5
        assert not store.dirty
        store.close()

    @pytest.mark.asyncio
    async def test_close_flushes_pending_changes(self, tmp_path):
        store = ChunkStore(flush_delay=10.0)
        store.open(tmp_path)
        store.set_file_hash("a.txt", "h1", 0)

        store.close()

        assert _read_index(tmp_path)["file_hashes"]["a.txt"]["hash"] == "h1"
