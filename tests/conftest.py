# tests/conftest.py
"""
Shared fixtures.

- fake_provider: scripted in-memory embedding provider (no network)
- recording_sleep: async sleep replacement that records delays
- make_pipeline: EmbeddingPipeline factory wired to the fakes
- project_dir: a small workspace with markdown, text and a transcript
- project_store: ChunkStore opened on project_dir, closed inside the loop
- backend: in-memory indexing backend (httpx.MockTransport handler)
- sync_client: SyncClient wired to the backend
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import httpx
import pytest
import pytest_asyncio

from chunksync.config.schema import EmbeddingConfig, SyncConfig
from chunksync.embedding.pipeline import EmbeddingPipeline
from chunksync.ingest.state.store import ChunkStore
from chunksync.sync.client import SyncClient

DIMENSIONS = 4


class FakeEmbeddingProvider:
    """Returns deterministic vectors; optionally raises scripted errors first."""

    def __init__(self, errors: Optional[List[Exception]] = None, on_call: Optional[Callable] = None):
        self.errors = list(errors or [])
        self.calls: List[List[str]] = []
        self.closed = False
        self.on_call = on_call

    @property
    def dimensions(self) -> int:
        return DIMENSIONS

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.on_call is not None:
            self.on_call(len(self.calls))
        if self.errors:
            raise self.errors.pop(0)
        return [[float(len(t)), 0.0, 0.0, 1.0] for t in texts]

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _make_pipeline(
    provider: Optional[FakeEmbeddingProvider] = None,
    sleep: Optional[RecordingSleep] = None,
    api_key: Optional[str] = "test-key",
    **config_overrides,
) -> EmbeddingPipeline:
    from chunksync.embedding.credentials import CredentialError

    provider = provider or FakeEmbeddingProvider()

    def resolve() -> str:
        if api_key is None:
            raise CredentialError("no key")
        return api_key

    return EmbeddingPipeline(
        config=EmbeddingConfig(dimensions=DIMENSIONS, **config_overrides),
        provider_factory=lambda key: provider,
        api_key_resolver=resolve,
        sleep=sleep or RecordingSleep(),
    )


MARKDOWN_DOC = """# Guide

This guide explains how the workspace indexer splits documents into chunks.

## Setup

Install the package and point it at a folder full of notes and transcripts.
"""

TEXT_DOC = """First paragraph of a plain text note, long enough to be kept as a chunk.

Second paragraph of the same note, also comfortably above the minimum size."""

TRANSCRIPT_DOC = json.dumps(
    {
        "segments": [
            {"speaker": "SPEAKER_00", "text": "Welcome everyone to the weekly planning meeting.", "startTime": 0.0, "endTime": 3.0},
            {"speaker": "SPEAKER_00", "text": "Let us start with the roadmap.", "startTime": 3.5, "endTime": 5.0},
            {"speaker": "SPEAKER_01", "text": "Thanks. The roadmap slipped by a week because of the release.", "startTime": 6.0, "endTime": 9.0},
        ]
    }
)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    (root / "notes").mkdir(parents=True)
    (root / "notes" / "guide.md").write_text(MARKDOWN_DOC, encoding="utf-8")
    (root / "todo.txt").write_text(TEXT_DOC, encoding="utf-8")
    (root / "standup.transcript.json").write_text(TRANSCRIPT_DOC, encoding="utf-8")
    (root / "image.png").write_bytes(b"\x89PNG")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD.md").write_text("# ignored\n" * 20, encoding="utf-8")
    return root


@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_pipeline() -> Callable[..., EmbeddingPipeline]:
    """Factory: make_pipeline(provider, sleep, api_key=..., **EmbeddingConfig overrides)."""
    return _make_pipeline


class FakeBackend:
    """In-memory indexing backend behind httpx.MockTransport."""

    def __init__(self) -> None:
        self.tree: Optional[dict] = None
        self.projects: List[dict] = []
        self.pushes: List[dict] = []
        self.requests: List[httpx.Request] = []
        self.push_status: Optional[int] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if path.endswith("/projects/ensure"):
            self.projects.append(body)
            return httpx.Response(200, json={"ok": True})
        if path.endswith("/merkle"):
            if self.tree is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json=self.tree)
        if path.endswith("/chunks"):
            if self.push_status is not None:
                return httpx.Response(self.push_status, json={"error": "rejected"})
            self.pushes.append(body)
            self.tree = body["merkleTree"]
            files = body["changedFiles"]
            deleted = sum(1 for f in files if not f["chunks"])
            return httpx.Response(200, json={"inserted": len(files) - deleted, "updated": 0, "deleted": deleted})
        if path.endswith("/index"):
            return httpx.Response(200, json={"jobId": "job-1"})
        if path.endswith("/status"):
            return httpx.Response(
                200,
                json={"status": "ready", "progress": 1.0, "totalFiles": 3, "indexedFiles": 3, "totalChunks": 5},
            )
        return httpx.Response(404)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sync_client(backend: FakeBackend) -> SyncClient:
    config = SyncConfig(base_url="https://sync.test/api/indexing", token="t0k")
    return SyncClient(config, transport=httpx.MockTransport(backend))


@pytest_asyncio.fixture
async def project_store(project_dir: Path):
    store = ChunkStore(flush_delay=0.01)
    store.open(project_dir)
    yield store
    store.close()
