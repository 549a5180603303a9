# chunksync/config/schema.py
"""
Configuration schema for chunksync.

This is the SINGLE source of truth for runtime settings.

Schema hierarchy:
- ChunksyncConfig: The root config
- ChunkingConfig: Chunk size bounds and transcript merging
- EmbeddingConfig: Provider endpoint, model and retry policy
- StoreConfig: Local index persistence
- SyncConfig: Remote indexing backend
- ScanConfig: Which workspace files are indexed
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# =============================================================================
# Chunking
# =============================================================================


class ChunkingConfig(BaseModel):
    """Chunk size bounds shared by every chunking strategy."""

    min_chunk_chars: int = Field(default=50, ge=1, description="Chunks below this (trimmed) are dropped")
    max_chunk_chars: int = Field(default=3200, ge=1, description="No chunk may exceed this")
    transcript_merge_gap: float = Field(
        default=2.0, ge=0, description="Max silence (s) between same-speaker segments to merge"
    )

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_bounds(self) -> "ChunkingConfig":
        if self.min_chunk_chars > self.max_chunk_chars:
            raise ValueError(
                f"min_chunk_chars ({self.min_chunk_chars}) must be <= "
                f"max_chunk_chars ({self.max_chunk_chars})"
            )
        return self


# =============================================================================
# Embedding
# =============================================================================


class EmbeddingConfig(BaseModel):
    """
    Embedding provider and batching policy.

    Examples:
        >>> EmbeddingConfig(batch_size=50, max_attempts=5)
    """

    model: str = Field(default="text-embedding-3-small", description="Provider model id")
    dimensions: int = Field(default=1536, ge=1, description="Vector size produced by the model")
    base_url: str = Field(default="https://api.openai.com/v1", description="Provider API root")
    api_key: Optional[str] = Field(default=None, description="Explicit key; env vars otherwise")
    batch_size: int = Field(default=100, ge=1, description="Texts per provider request")
    max_attempts: int = Field(default=3, ge=1, description="Attempts per batch, first call included")
    initial_retry_delay: float = Field(default=1.0, ge=0, description="First backoff delay (s)")
    max_retry_delay: float = Field(default=30.0, ge=0, description="Backoff cap (s)")
    batch_delay: float = Field(default=0.2, ge=0, description="Pause between batches (s)")
    timeout: float = Field(default=60.0, gt=0, description="Per-request timeout (s)")

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# Store / Sync / Scan
# =============================================================================


class StoreConfig(BaseModel):
    """Local index persistence."""

    flush_delay: float = Field(default=0.5, ge=0, description="Debounce window for index.json writes (s)")

    model_config = ConfigDict(extra="forbid")


class SyncConfig(BaseModel):
    """Remote indexing backend."""

    base_url: str = Field(
        default="https://leapfrogapp.com/api/indexing", description="Backend API root"
    )
    token: Optional[str] = Field(default=None, description="Bearer token for the backend")
    push_timeout: float = Field(default=120.0, gt=0, description="End-to-end limit for a push (s)")
    request_timeout: float = Field(default=30.0, gt=0, description="Limit for other requests (s)")

    model_config = ConfigDict(extra="forbid")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ScanConfig(BaseModel):
    """Which files of a workspace are indexed."""

    extensions: list[str] = Field(
        default_factory=lambda: [".md", ".markdown", ".txt", ".transcript.json"],
        description="Indexable filename suffixes",
    )
    ignored: list[str] = Field(
        default_factory=lambda: [".chunksync", ".git", ".vscode", "node_modules", ".DS_Store"],
        description="Path components that are never scanned",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("extensions", mode="before")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Ensure all suffixes start with a dot and are lowercase."""
        if not isinstance(v, list):
            return v
        normalized = []
        for ext in v:
            ext = str(ext).lower()
            if not ext.startswith("."):
                ext = f".{ext}"
            normalized.append(ext)
        return normalized


class ChunksyncConfig(BaseModel):
    """Root configuration."""

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    log_level: str = Field(default="INFO", description="Level for the chunksync logger")

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "ChunkingConfig",
    "EmbeddingConfig",
    "StoreConfig",
    "SyncConfig",
    "ScanConfig",
    "ChunksyncConfig",
]
