# chunksync/embedding/pipeline.py
"""
EmbeddingPipeline - batched, retried, cancellable embedding of chunks.

Flow per ``embed()`` call:
    1. Resolve the provider credential. Missing -> every id failed, no network.
    2. Split requests into batches (default 100).
    3. For each batch:
       - check the cancel event; once set, every remaining id is failed
       - call the provider; retry rate-limit (429) and server (5xx) errors
         with exponential backoff (1s, 2s, 4s ... capped at 30s) or the
         provider's Retry-After hint, up to max_attempts calls in total
       - a batch that still fails is failed as a whole; the next batch runs
    4. Pause batch_delay between batches.

``embed_query()`` is best-effort: it returns None on any failure so query
time features can degrade instead of erroring.

Usage:
    pipeline = EmbeddingPipeline(config.embedding)
    result = await pipeline.embed(requests, on_progress=print, cancel_event=event)
    store.set_embeddings(result.embeddings)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from chunksync.config.schema import EmbeddingConfig
from chunksync.core.http import APIError
from chunksync.embedding.credentials import CredentialError, resolve_api_key
from chunksync.embedding.provider import PROVIDER_NAME, EmbeddingProvider, OpenAIEmbeddingProvider
from chunksync.ingest.state.schema import ChunkRow
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import EMBEDDING

logger = get_logger(__name__)

ProviderFactory = Callable[[str], EmbeddingProvider]
ApiKeyResolver = Callable[[], str]
ProgressCallback = Callable[[int, int], None]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class EmbeddingRequest:
    id: str
    text: str

    @classmethod
    def from_rows(cls, rows: Iterable[ChunkRow]) -> List["EmbeddingRequest"]:
        return [cls(id=row.id, text=row.content) for row in rows]


@dataclass
class EmbeddingResult:
    embeddings: Dict[str, List[float]] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)

    @property
    def embedded_count(self) -> int:
        return len(self.embeddings)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class EmbeddingPipeline:
    """Drives an EmbeddingProvider in rate-limited, retried batches."""

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        provider_factory: Optional[ProviderFactory] = None,
        api_key_resolver: Optional[ApiKeyResolver] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config or EmbeddingConfig()
        self._provider_factory = provider_factory or (
            lambda api_key: OpenAIEmbeddingProvider(api_key, self._config)
        )
        self._api_key_resolver = api_key_resolver or (
            lambda: resolve_api_key(provider=PROVIDER_NAME, api_key=self._config.api_key)
        )
        self._sleep = sleep

    @property
    def config(self) -> EmbeddingConfig:
        return self._config

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based): initial * 2^(attempt-1), capped."""
        delay = self._config.initial_retry_delay * (2 ** (attempt - 1))
        return min(delay, self._config.max_retry_delay)

    async def embed(
        self,
        requests: Sequence[EmbeddingRequest],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> EmbeddingResult:
        """
        Embed every request.

        Returns:
            EmbeddingResult mapping request ids to vectors, plus the ids that
            failed (missing credential, exhausted retries, terminal errors,
            or cancellation).
        """
        result = EmbeddingResult()
        if not requests:
            return result

        try:
            api_key = self._api_key_resolver()
        except CredentialError as e:
            logger.warning(f"{EMBEDDING} No provider credential, skipping {len(requests)} chunks: {e}")
            result.failed = [r.id for r in requests]
            return result

        size = self._config.batch_size
        batches = [requests[i : i + size] for i in range(0, len(requests), size)]
        total = len(requests)
        done = 0

        provider = self._provider_factory(api_key)
        try:
            for i, batch in enumerate(batches):
                if i > 0 and self._config.batch_delay > 0:
                    await self._sleep(self._config.batch_delay)

                if cancel_event is not None and cancel_event.is_set():
                    remaining = [r.id for b in batches[i:] for r in b]
                    logger.info(f"{EMBEDDING} Cancelled, {len(remaining)} chunks not embedded")
                    result.failed.extend(remaining)
                    break

                logger.debug(f"{EMBEDDING} Batch {i + 1}/{len(batches)} ({len(batch)} texts)")
                try:
                    vectors = await self._embed_batch_with_retry(provider, [r.text for r in batch])
                except APIError as e:
                    logger.warning(f"{EMBEDDING} Batch {i + 1}/{len(batches)} failed: {e}")
                    result.failed.extend(r.id for r in batch)
                else:
                    for request, vector in zip(batch, vectors):
                        result.embeddings[request.id] = vector

                done += len(batch)
                if on_progress is not None:
                    on_progress(done, total)
        finally:
            await provider.aclose()

        logger.info(
            f"{EMBEDDING} Embedded {result.embedded_count}/{total} chunks "
            f"({result.failed_count} failed)"
        )
        return result

    async def _embed_batch_with_retry(
        self,
        provider: EmbeddingProvider,
        texts: List[str],
    ) -> List[List[float]]:
        max_attempts = self._config.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                return await provider.embed_texts(texts)
            except APIError as e:
                if not e.retryable or attempt >= max_attempts:
                    raise
                if e.retry_after is not None:
                    wait = min(e.retry_after, self._config.max_retry_delay)
                else:
                    wait = self.backoff_delay(attempt)
                logger.warning(
                    f"{EMBEDDING} Attempt {attempt}/{max_attempts} failed ({e}), retrying in {wait:.1f}s"
                )
                await self._sleep(wait)

        raise AssertionError("unreachable")

    async def embed_query(self, text: str) -> Optional[List[float]]:
        """Embed one query string. Never raises; any failure yields None."""
        if not text.strip():
            return None
        try:
            api_key = self._api_key_resolver()
            provider = self._provider_factory(api_key)
            try:
                vectors = await provider.embed_texts([text])
            finally:
                await provider.aclose()
        except Exception as e:
            logger.warning(f"{EMBEDDING} Query embedding failed: {e}")
            return None
        return vectors[0] if vectors else None


__all__ = [
    "EmbeddingRequest",
    "EmbeddingResult",
    "EmbeddingPipeline",
    "ProviderFactory",
]
