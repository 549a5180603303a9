# chunksync/embedding/provider.py
"""
Embedding provider interface and its HTTP implementation.

There is exactly one concrete provider: an OpenAI-compatible
``POST /embeddings`` endpoint called through httpx. Anything that
implements ``EmbeddingProvider`` (tests use small fakes) can be plugged
into the pipeline instead.

Request:  {"model": "...", "input": ["text", ...]}
Response: {"data": [{"index": 0, "embedding": [...]}, ...]}

The response is sorted by ``index`` before vectors are returned, so the
i-th vector always belongs to the i-th input regardless of the order the
provider lists them in.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

import httpx

from chunksync.config.schema import EmbeddingConfig
from chunksync.core.http import APIError, create_async_api_client, handle_api_error, raise_for_status
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import EMBEDDING

logger = get_logger(__name__)

PROVIDER_NAME = "openai"
EMBEDDINGS_ENDPOINT = "/embeddings"


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns a list of texts into vectors, aligned to input order."""

    @property
    def dimensions(self) -> int: ...

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Raises:
            APIError: On any provider failure. ``retryable`` tells the
                      caller whether a retry can help.
        """
        ...

    async def aclose(self) -> None: ...


def vectors_by_index(data: Any, expected: int) -> List[List[float]]:
    """
    Extract vectors from a provider response, ordered by reported index.

    Raises:
        APIError: If the payload is malformed or the count doesn't match.
    """
    items = data.get("data") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise APIError(message="Malformed embedding response: missing 'data'", provider=PROVIDER_NAME)

    try:
        ordered = sorted(items, key=lambda item: int(item["index"]))
        vectors = [[float(x) for x in item["embedding"]] for item in ordered]
    except (KeyError, TypeError, ValueError) as e:
        raise APIError(
            message="Malformed embedding response", provider=PROVIDER_NAME, details=str(e)
        ) from e

    if len(vectors) != expected:
        raise APIError(
            message=f"Embedding count mismatch: got {len(vectors)}, expected {expected}",
            provider=PROVIDER_NAME,
        )
    return vectors


class OpenAIEmbeddingProvider:
    """
    HTTP embedding provider.

    Usage:
        async with OpenAIEmbeddingProvider(api_key, config) as provider:
            vectors = await provider.embed_texts(["hello", "world"])
    """

    def __init__(
        self,
        api_key: str,
        config: Optional[EmbeddingConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or EmbeddingConfig()
        kwargs = {"transport": transport} if transport is not None else {}
        self._client = create_async_api_client(
            base_url=self._config.base_url,
            api_key=api_key,
            timeout=self._config.timeout,
            **kwargs,
        )

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        payload = {"model": self._config.model, "input": list(texts)}
        try:
            response = await self._client.post(EMBEDDINGS_ENDPOINT, json=payload)
        except httpx.HTTPError as e:
            raise handle_api_error(e, provider=PROVIDER_NAME, endpoint=EMBEDDINGS_ENDPOINT) from e

        raise_for_status(response, provider=PROVIDER_NAME, endpoint=EMBEDDINGS_ENDPOINT)

        try:
            data = response.json()
        except ValueError as e:
            raise APIError(
                message="Embedding response is not JSON",
                provider=PROVIDER_NAME,
                endpoint=EMBEDDINGS_ENDPOINT,
                original_error=e,
            ) from e

        vectors = vectors_by_index(data, expected=len(texts))
        logger.debug(f"{EMBEDDING} Embedded {len(vectors)} texts with {self._config.model}")
        return vectors

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenAIEmbeddingProvider":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


__all__ = [
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "vectors_by_index",
    "PROVIDER_NAME",
]
