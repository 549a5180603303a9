# tests/unit/test_config_loader.py
"""
Tests for layered configuration loading.

Merge order: package defaults -> user YAML -> environment.
"""

from __future__ import annotations

import pytest

from chunksync.config.loader import (
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    deep_merge,
    env_overrides,
    load_config,
)
from chunksync.config.schema import ChunkingConfig, ScanConfig, SyncConfig


class TestDefaults:
    def test_defaults_load(self):
        config = load_config(environ={})

        assert config.chunking.min_chunk_chars == 50
        assert config.chunking.max_chunk_chars == 3200
        assert config.embedding.batch_size == 100
        assert config.embedding.max_attempts == 3
        assert config.store.flush_delay == 0.5
        assert config.sync.base_url == "https://leapfrogapp.com/api/indexing"
        assert config.log_level == "INFO"


class TestUserFile:
    """Tests for YAML overrides."""

    def test_partial_override_keeps_defaults(self, tmp_path):
        path = tmp_path / "chunksync.yaml"
        path.write_text("embedding:\n  batch_size: 20\n", encoding="utf-8")

        config = load_config(path, environ={})

        assert config.embedding.batch_size == 20
        assert config.embedding.max_attempts == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "missing.yaml", environ={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("embedding: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigParseError):
            load_config(path, environ={})

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigParseError):
            load_config(path, environ={})

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("embedding:\n  batchsize: 20\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path, environ={})

        assert exc_info.value.path == path

    def test_inverted_bounds_rejected(self, tmp_path):
        path = tmp_path / "bounds.yaml"
        path.write_text("chunking:\n  min_chunk_chars: 500\n  max_chunk_chars: 100\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(path, environ={})


class TestEnvironment:
    """Tests for environment overrides."""

    def test_service_origin_gets_api_prefix(self):
        config = load_config(environ={"INDEXING_SERVICE_URL": "http://localhost:3000/"})

        assert config.sync.base_url == "http://localhost:3000/api/indexing"

    def test_explicit_sync_url_wins(self):
        config = load_config(
            environ={
                "INDEXING_SERVICE_URL": "http://localhost:3000",
                "CHUNKSYNC_SYNC_URL": "http://backend/api/v2/",
            }
        )

        assert config.sync.base_url == "http://backend/api/v2"

    def test_token_and_log_level(self):
        overrides = env_overrides({"CHUNKSYNC_SYNC_TOKEN": "t0k", "CHUNKSYNC_LOG_LEVEL": "debug"})

        assert overrides == {"sync": {"token": "t0k"}, "log_level": "DEBUG"}

    def test_env_beats_file(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("sync:\n  token: from-file\n", encoding="utf-8")

        config = load_config(path, environ={"CHUNKSYNC_SYNC_TOKEN": "from-env"})

        assert config.sync.token == "from-env"


class TestHelpers:
    def test_deep_merge(self):
        assert deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 10}}) == {
            "a": 1,
            "b": {"c": 10, "d": 3},
        }

    def test_deep_merge_replaces_lists(self):
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_extensions_normalized(self):
        assert ScanConfig(extensions=["MD", ".Txt"]).extensions == [".md", ".txt"]

    def test_sync_url_trailing_slash(self):
        assert SyncConfig(base_url="http://x/api/").base_url == "http://x/api"

    def test_chunking_bounds(self):
        with pytest.raises(ValueError):
            ChunkingConfig(min_chunk_chars=10, max_chunk_chars=5)
