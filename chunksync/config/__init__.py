# chunksync/config/__init__.py
"""Configuration schema and loading."""

from chunksync.config.loader import ConfigError, load_config
from chunksync.config.schema import (
    ChunkingConfig,
    ChunksyncConfig,
    EmbeddingConfig,
    ScanConfig,
    StoreConfig,
    SyncConfig,
)

__all__ = [
    "ChunkingConfig",
    "ChunksyncConfig",
    "ConfigError",
    "EmbeddingConfig",
    "ScanConfig",
    "StoreConfig",
    "SyncConfig",
    "load_config",
]
