# tests/unit/test_cli.py
"""
Tests for the CLI commands.

Embedding credentials are removed from the environment so no provider is
ever called; the backend is replaced with the in-memory FakeBackend.
"""

from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

from chunksync.cli.cli import app
from chunksync.cli.context import CLIContext
from chunksync.core.paths import ProjectPaths
from chunksync.sync.client import SyncClient

runner = CliRunner()


@pytest.fixture(autouse=True)
def offline_env(monkeypatch):
    for name in (
        "OPENAI_API_KEY",
        "CHUNKSYNC_EMBEDDING_API_KEY",
        "CHUNKSYNC_SYNC_URL",
        "CHUNKSYNC_SYNC_TOKEN",
        "INDEXING_SERVICE_URL",
        "CHUNKSYNC_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_backend_client(monkeypatch, backend):
    monkeypatch.setattr(
        CLIContext,
        "sync_client",
        lambda self: SyncClient(self.config.sync, transport=httpx.MockTransport(backend)),
    )
    return backend


class TestIndexCommand:
    def test_index(self, project_dir):
        result = runner.invoke(app, ["index", str(project_dir)])

        assert result.exit_code == 0, result.output
        assert "Index up to date" in result.output
        assert ProjectPaths.for_project(project_dir).index_file.exists()

    def test_missing_credential_reported(self, project_dir):
        result = runner.invoke(app, ["index", str(project_dir)])

        assert "no embedding yet" in result.output

    def test_not_a_directory(self, tmp_path):
        result = runner.invoke(app, ["index", str(tmp_path / "missing")])

        assert result.exit_code == 2
        assert "Not a directory" in result.output

    def test_bad_config(self, project_dir, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("embedding:\n  batchsize: 1\n", encoding="utf-8")

        result = runner.invoke(app, ["index", str(project_dir), "--config", str(config)])

        assert result.exit_code == 2


class TestSyncCommand:
    def test_sync(self, project_dir, fake_backend_client):
        result = runner.invoke(app, ["sync", str(project_dir), "--name", "notes"])

        assert result.exit_code == 0, result.output
        assert "Synced 3 files" in result.output
        assert fake_backend_client.projects[0]["name"] == "notes"

    def test_second_sync_already_in_sync(self, project_dir, fake_backend_client):
        runner.invoke(app, ["sync", str(project_dir)])

        result = runner.invoke(app, ["sync", str(project_dir)])

        assert result.exit_code == 0
        assert "Already in sync" in result.output
        assert len(fake_backend_client.pushes) == 1

    def test_conflict_exit_code(self, project_dir, fake_backend_client):
        fake_backend_client.push_status = 409

        result = runner.invoke(app, ["sync", str(project_dir)])

        assert result.exit_code == 1
        assert "File changed during sync" in result.output
        assert not ProjectPaths.for_project(project_dir).merkle_file.exists()


class TestStatusCommands:
    def test_status_before_sync(self, project_dir):
        runner.invoke(app, ["index", str(project_dir)])

        result = runner.invoke(app, ["status", str(project_dir)])

        assert result.exit_code == 0
        assert "Chunks" in result.output
        assert "never" in result.output

    def test_remote_status(self, project_dir, fake_backend_client):
        runner.invoke(app, ["sync", str(project_dir)])

        result = runner.invoke(app, ["status", str(project_dir), "--remote"])

        assert result.exit_code == 0
        assert "ready" in result.output

    def test_remote_index(self, project_dir, fake_backend_client):
        result = runner.invoke(app, ["remote-index", str(project_dir), "-f", "todo.txt"])

        assert result.exit_code == 0
        assert "job-1" in result.output


class TestProjectCommands:
    def test_project_id(self, project_dir):
        result = runner.invoke(app, ["project-id", str(project_dir)])

        assert result.exit_code == 0
        assert result.output.strip().startswith("lf-")

    def test_set_project_id(self, project_dir):
        runner.invoke(app, ["project-id", str(project_dir), "--set", "team-notes"])

        result = runner.invoke(app, ["project-id", str(project_dir)])

        assert result.output.strip() == "team-notes"

    def test_reset(self, project_dir):
        runner.invoke(app, ["index", str(project_dir)])

        result = runner.invoke(app, ["reset", str(project_dir), "--yes"])

        assert result.exit_code == 0
        data = json.loads(ProjectPaths.for_project(project_dir).index_file.read_text(encoding="utf-8"))
        assert data["chunks"] == []
        assert data["file_hashes"] == {}

    def test_reset_declined(self, project_dir):
        result = runner.invoke(app, ["reset", str(project_dir)], input="n\n")

        assert result.exit_code == 1
