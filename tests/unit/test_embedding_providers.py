"""Unit tests for embedding provider adapters: OpenAI, Ollama: and the integrity check."""

from __future__ import annotations

import json
import math
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from contentvec.config.settings import Settings
from contentvec.providers.embedding.integrity import check_embedding
from contentvec.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from contentvec.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from contentvec.utils.errors import (
    DimensionMismatchError,
    InvalidInputError,
    InvalidValuesError,
    ProviderError,
    ProviderRateLimitedError,
    ProviderUnauthenticatedError,
)


def _settings(**overrides) -> Settings:
    defaults = {
        "_env_file": None,
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "embedding_model": "text-embedding-3-small",
        "ollama_base_url": "http://ollama.test",
        "default_embedding_dimension": 1536,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _openai_response(vector: list[float]) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=vector)]
    response.usage = MagicMock(total_tokens=7)
    return response


def _mock_openai_client(response=None, side_effect=None) -> AsyncMock:
    client = AsyncMock()
    client.embeddings.create = AsyncMock(return_value=response, side_effect=side_effect)
    return client


def _http_response(status: int) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", "https://api.openai.com/v1/embeddings"))


# ======================================================================
# Integrity check
# ======================================================================


class TestCheckEmbedding:
    def test_valid_vector_returned_as_floats(self) -> None:
        assert check_embedding([1, 0.5, -2], 3) == [1.0, 0.5, -2.0]

    def test_wrong_length(self) -> None:
        with pytest.raises(DimensionMismatchError, match="has 2 dimensions, expected 3"):
            check_embedding([0.1, 0.2], 3, provider_name="openai")

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_values(self, bad: float) -> None:
        with pytest.raises(InvalidValuesError):
            check_embedding([0.1, bad, 0.3], 3)


# ======================================================================
# OpenAI Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    def test_get_provider_name(self) -> None:
        assert OpenAIEmbeddingProvider(_settings()).get_provider_name() == "openai"

    def test_is_available_with_key(self) -> None:
        assert OpenAIEmbeddingProvider(_settings()).is_available() is True

    def test_is_available_without_key(self) -> None:
        assert OpenAIEmbeddingProvider(_settings(openai_api_key="")).is_available() is False

    def test_get_dimension_known_models(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings())
        assert provider.get_dimension() == 1536
        assert provider.get_dimension("text-embedding-3-large") == 3072

    def test_get_dimension_unknown_model_falls_back_to_setting(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(default_embedding_dimension=512))
        assert provider.get_dimension("custom-model") == 512

    @pytest.mark.asyncio
    async def test_embed_success_normalizes_text(self) -> None:
        client = _mock_openai_client(_openai_response([0.1] * 1536))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        vector = await provider.embed("  hello \n  world ")

        assert len(vector) == 1536
        kwargs = client.embeddings.create.call_args.kwargs
        assert kwargs["input"] == "hello world"
        assert kwargs["model"] == "text-embedding-3-small"
        assert "dimensions" not in kwargs

    @pytest.mark.asyncio
    async def test_embed_requests_shortened_dimension(self) -> None:
        client = _mock_openai_client(_openai_response([0.2] * 256))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        vector = await provider.embed("hello", dimension=256)

        assert len(vector) == 256
        assert client.embeddings.create.call_args.kwargs["dimensions"] == 256

    @pytest.mark.asyncio
    async def test_empty_text_rejected_without_call(self) -> None:
        client = _mock_openai_client(_openai_response([0.1] * 1536))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        with pytest.raises(InvalidInputError):
            await provider.embed("   \n ")
        client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_key_is_unauthenticated(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_api_key=""))
        with pytest.raises(ProviderUnauthenticatedError):
            await provider.embed("hello")

    @pytest.mark.asyncio
    async def test_rate_limit_classified(self) -> None:
        error = openai.RateLimitError("slow down", response=_http_response(429), body=None)
        provider = OpenAIEmbeddingProvider(_settings(), client=_mock_openai_client(side_effect=error))

        with pytest.raises(ProviderRateLimitedError) as exc_info:
            await provider.embed("hello")
        assert exc_info.value.provider_name == "openai"

    @pytest.mark.asyncio
    async def test_authentication_error_classified(self) -> None:
        error = openai.AuthenticationError("bad key", response=_http_response(401), body=None)
        provider = OpenAIEmbeddingProvider(_settings(), client=_mock_openai_client(side_effect=error))

        with pytest.raises(ProviderUnauthenticatedError):
            await provider.embed("hello")

    @pytest.mark.asyncio
    async def test_other_api_error_is_provider_error(self) -> None:
        error = openai.APIError(message="server exploded", request=MagicMock(), body=None)
        provider = OpenAIEmbeddingProvider(_settings(), client=_mock_openai_client(side_effect=error))

        with pytest.raises(ProviderError) as exc_info:
            await provider.embed("hello")
        assert not isinstance(exc_info.value, (ProviderRateLimitedError, ProviderUnauthenticatedError))

    @pytest.mark.asyncio
    async def test_wrong_dimension_rejected(self) -> None:
        client = _mock_openai_client(_openai_response([0.1] * 10))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        with pytest.raises(DimensionMismatchError):
            await provider.embed("hello")

    @pytest.mark.asyncio
    async def test_empty_data_is_provider_error(self) -> None:
        response = _openai_response([0.1])
        response.data = []
        provider = OpenAIEmbeddingProvider(_settings(), client=_mock_openai_client(response))

        with pytest.raises(ProviderError):
            await provider.embed("hello")


# ======================================================================
# Ollama Embedding Provider
# ======================================================================


def _ollama(handler) -> OllamaEmbeddingProvider:
    client = httpx.AsyncClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    return OllamaEmbeddingProvider(_settings(embedding_model="nomic-embed-text"), client=client)


class TestOllamaEmbeddingProvider:
    def test_openai_model_replaced_by_local_default(self) -> None:
        provider = OllamaEmbeddingProvider(_settings())
        assert provider.get_dimension() == 768
        assert provider.get_provider_name() == "ollama"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_embed_success(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"embeddings": [[0.5] * 768]})

        vector = await _ollama(handler).embed("  a   cell ")

        assert len(vector) == 768
        assert seen["path"] == "/api/embed"
        assert seen["body"] == {"model": "nomic-embed-text", "input": "a cell"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error_cls"),
        [
            (429, ProviderRateLimitedError),
            (401, ProviderUnauthenticatedError),
            (500, ProviderError),
        ],
    )
    async def test_http_errors_classified(self, status: int, error_cls: type) -> None:
        provider = _ollama(lambda request: httpx.Response(status, text="nope"))
        with pytest.raises(error_cls):
            await provider.embed("hello")

    @pytest.mark.asyncio
    async def test_transport_error_is_provider_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderError):
            await _ollama(handler).embed("hello")

    @pytest.mark.asyncio
    async def test_nan_rejected(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            # JSON has no NaN literal; a provider bug can still produce one.
            return httpx.Response(200, content=b'{"embeddings": [[NaN, 0.1, 0.2]]}')

        with pytest.raises(InvalidValuesError):
            await _ollama(handler).embed("hello", dimension=3)

    @pytest.mark.asyncio
    async def test_empty_embeddings_is_provider_error(self) -> None:
        provider = _ollama(lambda request: httpx.Response(200, json={"embeddings": []}))
        with pytest.raises(ProviderError):
            await provider.embed("hello")
