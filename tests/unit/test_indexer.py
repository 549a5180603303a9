# tests/unit/test_indexer.py
"""
Tests for IndexService.

Key behaviors:
1. First pass chunks and embeds every indexable file
2. Unchanged files keep their chunk ids and vectors
3. Changed files are re-chunked delete-then-insert; removed files are dropped
4. Embedding failures leave chunks in the backlog for the next pass
5. Cancellation stops the pass at a batch boundary
"""

from __future__ import annotations

import pytest

from chunksync.ingest.indexer import IndexPhase, IndexService
from chunksync.ingest.models import ChunkType


@pytest.fixture
def make_service(project_dir, fake_provider, make_pipeline):
    def factory(store, pipeline=None, on_progress=None) -> IndexService:
        return IndexService(
            project_dir,
            store,
            pipeline or make_pipeline(fake_provider),
            on_progress=on_progress,
        )

    return factory


def _ids_for(store, path):
    return sorted(row.id for row in store.get_chunks_for_file(path))


class TestIndexWorkspace:
    """Tests for full passes."""

    @pytest.mark.asyncio
    async def test_first_pass(self, project_store, make_service):
        phases = []
        service = make_service(project_store, on_progress=lambda p: phases.append(p.phase))

        report = await service.index_workspace()

        assert report.files_scanned == 3
        assert report.files_chunked == 3
        assert report.chunks_total == 5
        assert report.embedded == 5
        assert report.failed == 0
        assert sorted(project_store.get_all_file_hashes()) == [
            "notes/guide.md",
            "standup.transcript.json",
            "todo.txt",
        ]
        assert project_store.get_chunks_without_embeddings() == []
        assert phases[0] == IndexPhase.SCANNING
        assert phases[-1] == IndexPhase.READY
        assert service.progress.phase == IndexPhase.READY

    @pytest.mark.asyncio
    async def test_chunk_types_by_suffix(self, project_store, make_service):
        await make_service(project_store).index_workspace()

        types = {row.file_path: row.chunk_type for row in project_store.get_all_chunks()}
        assert types == {
            "notes/guide.md": ChunkType.MARKDOWN_HEADING,
            "todo.txt": ChunkType.PLAINTEXT_PARAGRAPH,
            "standup.transcript.json": ChunkType.TRANSCRIPT_SPEAKER_TURN,
        }

    @pytest.mark.asyncio
    async def test_file_hash_records_chunk_count(self, project_store, make_service):
        await make_service(project_store).index_workspace()

        assert project_store.get_file_hash("notes/guide.md").chunk_count == 2
        assert project_store.get_file_hash("standup.transcript.json").chunk_count == 2

    @pytest.mark.asyncio
    async def test_unchanged_files_untouched(self, project_store, make_service, fake_provider):
        service = make_service(project_store)
        await service.index_workspace()
        ids_before = sorted(row.id for row in project_store.get_all_chunks())
        calls_before = len(fake_provider.calls)

        report = await service.index_workspace()

        assert report.files_chunked == 0
        assert report.embedded == 0
        assert sorted(row.id for row in project_store.get_all_chunks()) == ids_before
        assert len(fake_provider.calls) == calls_before

    @pytest.mark.asyncio
    async def test_modified_file_rechunked(self, project_dir, project_store, make_service):
        service = make_service(project_store)
        await service.index_workspace()
        guide_ids = _ids_for(project_store, "notes/guide.md")
        todo_ids = _ids_for(project_store, "todo.txt")

        (project_dir / "todo.txt").write_text(
            "A completely rewritten note that is long enough to become a chunk.", encoding="utf-8"
        )
        report = await service.index_workspace()

        assert report.files_chunked == 1
        assert _ids_for(project_store, "notes/guide.md") == guide_ids
        new_ids = _ids_for(project_store, "todo.txt")
        assert len(new_ids) == 1
        assert set(new_ids).isdisjoint(todo_ids)
        assert all(project_store.get_embedding(i) is None for i in todo_ids)
        assert project_store.get_embedding(new_ids[0]) is not None

    @pytest.mark.asyncio
    async def test_deleted_file_removed(self, project_dir, project_store, make_service):
        service = make_service(project_store)
        await service.index_workspace()

        (project_dir / "todo.txt").unlink()
        report = await service.index_workspace()

        assert report.files_removed == 1
        assert project_store.get_chunks_for_file("todo.txt") == []
        assert project_store.get_file_hash("todo.txt") is None
        assert project_store.chunk_count == project_store.embedding_count == 4

    @pytest.mark.asyncio
    async def test_failed_embeddings_retried_next_pass(
        self, project_store, make_service, make_pipeline, fake_provider
    ):
        report = await make_service(project_store, pipeline=make_pipeline(api_key=None)).index_workspace()

        assert report.failed == 5
        assert len(project_store.get_chunks_without_embeddings()) == 5

        report = await make_service(project_store).index_workspace()

        assert report.files_chunked == 0
        assert report.embedded == 5
        assert project_store.get_chunks_without_embeddings() == []

    @pytest.mark.asyncio
    async def test_cancel_before_chunking(self, project_store, make_service):
        service = None

        def on_progress(progress):
            if progress.phase == IndexPhase.CHUNKING:
                service.cancel()

        service = make_service(project_store, on_progress=on_progress)
        report = await service.index_workspace()

        assert report.files_chunked == 0
        assert project_store.chunk_count == 0
        assert project_store.get_all_file_hashes() == {}


class TestSingleFile:
    """Tests for per-file operations."""

    @pytest.mark.asyncio
    async def test_index_file(self, project_dir, project_store, make_service):
        service = make_service(project_store)

        count = await service.index_file(project_dir / "notes" / "guide.md")

        assert count == 2
        assert project_store.get_file_hash("notes/guide.md") is not None
        assert project_store.embedding_count == 2

    @pytest.mark.asyncio
    async def test_index_file_unchanged_returns_stored_count(self, project_store, make_service, fake_provider):
        service = make_service(project_store)
        await service.index_file("todo.txt")
        calls = len(fake_provider.calls)

        assert await service.index_file("todo.txt") == 1
        assert len(fake_provider.calls) == calls

    @pytest.mark.asyncio
    async def test_index_missing_file_removes_it(self, project_dir, project_store, make_service):
        service = make_service(project_store)
        await service.index_workspace()
        (project_dir / "todo.txt").unlink()

        assert await service.index_file("todo.txt") == 0
        assert project_store.get_chunks_for_file("todo.txt") == []

    @pytest.mark.asyncio
    async def test_remove_file(self, project_store, make_service):
        service = make_service(project_store)
        await service.index_workspace()

        removed = service.remove_file("notes/guide.md")

        assert len(removed) == 2
        assert project_store.get_file_hash("notes/guide.md") is None

    @pytest.mark.asyncio
    async def test_rename_speaker(self, project_store, make_service):
        service = make_service(project_store)
        await service.index_workspace()

        count = await service.rename_speaker("standup.transcript.json", "SPEAKER_00", "Alice")

        assert count == 2
        assert project_store.get_file_hash("standup.transcript.json") is not None
        speakers = [row.speaker for row in project_store.get_chunks_for_file("standup.transcript.json")]
        assert speakers == ["Alice", "SPEAKER_01"]
