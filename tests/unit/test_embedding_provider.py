# tests/unit/test_embedding_provider.py
"""Tests for the HTTP embedding provider and credential resolution."""

from __future__ import annotations

import json

import httpx
import pytest

from chunksync.config.schema import EmbeddingConfig
from chunksync.core.http import APIError, RateLimitError, ServerError
from chunksync.embedding.credentials import CredentialError, resolve_api_key
from chunksync.embedding.provider import OpenAIEmbeddingProvider, vectors_by_index


def _provider(handler) -> OpenAIEmbeddingProvider:
    config = EmbeddingConfig(base_url="https://embed.test/v1", model="test-model", dimensions=2)
    return OpenAIEmbeddingProvider("sk-test", config, transport=httpx.MockTransport(handler))


class TestVectorsByIndex:
    def test_out_of_order_indices_sorted(self):
        """Vectors returned as [i=1, i=0] come back in input order."""
        data = {"data": [{"index": 1, "embedding": [1.0, 1.0]}, {"index": 0, "embedding": [0.0, 0.0]}]}

        assert vectors_by_index(data, expected=2) == [[0.0, 0.0], [1.0, 1.0]]

    def test_count_mismatch(self):
        with pytest.raises(APIError, match="count mismatch"):
            vectors_by_index({"data": [{"index": 0, "embedding": [1.0]}]}, expected=2)

    @pytest.mark.parametrize("data", [{}, [], {"data": [{"embedding": [1.0]}]}, {"data": [{"index": 0}]}])
    def test_malformed(self, data):
        with pytest.raises(APIError):
            vectors_by_index(data, expected=1)


class TestOpenAIEmbeddingProvider:
    """Tests against a mocked /embeddings endpoint."""

    @pytest.mark.asyncio
    async def test_request_and_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"data": [{"index": 1, "embedding": [2, 2]}, {"index": 0, "embedding": [1, 1]}]},
            )

        async with _provider(handler) as provider:
            vectors = await provider.embed_texts(["a", "b"])

        assert vectors == [[1.0, 1.0], [2.0, 2.0]]
        assert seen["url"] == "https://embed.test/v1/embeddings"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"] == {"model": "test-model", "input": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_rate_limit_classified(self):
        def handler(request):
            return httpx.Response(429, headers={"Retry-After": "3"}, json={"error": {"message": "slow"}})

        async with _provider(handler) as provider:
            with pytest.raises(RateLimitError) as exc_info:
                await provider.embed_texts(["a"])

        assert exc_info.value.retryable
        assert exc_info.value.retry_after == 3.0

    @pytest.mark.asyncio
    async def test_server_error_classified(self):
        async with _provider(lambda request: httpx.Response(502)) as provider:
            with pytest.raises(ServerError):
                await provider.embed_texts(["a"])

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        async with _provider(lambda request: httpx.Response(200, text="oops")) as provider:
            with pytest.raises(APIError, match="not JSON"):
                await provider.embed_texts(["a"])

    @pytest.mark.asyncio
    async def test_empty_input_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        async with _provider(handler) as provider:
            assert await provider.embed_texts([]) == []


class TestResolveApiKey:
    def test_explicit_wins(self):
        assert resolve_api_key(provider="openai", api_key="k1", environ={"OPENAI_API_KEY": "k2"}) == "k1"

    def test_provider_env(self):
        assert resolve_api_key(provider="openai", environ={"OPENAI_API_KEY": "k2"}) == "k2"

    def test_generic_env(self):
        assert resolve_api_key(provider="openai", environ={"CHUNKSYNC_EMBEDDING_API_KEY": "k3"}) == "k3"

    def test_missing(self):
        with pytest.raises(CredentialError, match="OPENAI_API_KEY"):
            resolve_api_key(provider="openai", environ={})
