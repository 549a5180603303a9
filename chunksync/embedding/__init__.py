# chunksync/embedding/__init__.py
"""Embedding provider and the batched embedding pipeline."""

from chunksync.embedding.pipeline import EmbeddingPipeline, EmbeddingRequest, EmbeddingResult
from chunksync.embedding.provider import EmbeddingProvider, OpenAIEmbeddingProvider

__all__ = [
    "EmbeddingPipeline",
    "EmbeddingProvider",
    "EmbeddingRequest",
    "EmbeddingResult",
    "OpenAIEmbeddingProvider",
]
