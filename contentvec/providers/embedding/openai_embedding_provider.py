"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible providers via a custom
``base_url``.  Failures are classified by HTTP status: 429 becomes
:class:`ProviderRateLimitedError`, 401 becomes
:class:`ProviderUnauthenticatedError`, anything else :class:`ProviderError`.
"""

from __future__ import annotations

import openai
import structlog

from contentvec.config.settings import Settings
from contentvec.interfaces.embedding_provider import IEmbeddingProvider
from contentvec.providers.embedding.integrity import check_embedding
from contentvec.utils.errors import (
    InvalidInputError,
    ProviderError,
    ProviderRateLimitedError,
    ProviderUnauthenticatedError,
)
from contentvec.utils.text_normalizer import normalize_text

logger = structlog.get_logger(logger_name=__name__)

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# Models that accept the ``dimensions`` request parameter (shortened output).
_VARIABLE_DIMENSION_PREFIX = "text-embedding-3"


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  The client is
    only constructed when an API key is configured; without one,
    :meth:`embed` raises :class:`ProviderUnauthenticatedError`.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._model = settings.embedding_model or "text-embedding-3-small"

        # Build client kwargs: add base_url only when configured.
        if client is None and self._api_key:
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": settings.embedding_timeout_seconds,
                # No internal retry: throttling is surfaced to the caller.
                "max_retries": 0,
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)
        self._client = client

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(
        self,
        text: str,
        model: str | None = None,
        dimension: int | None = None,
    ) -> list[float]:
        normalized = normalize_text(text) if isinstance(text, str) else ""
        if not normalized:
            raise InvalidInputError(provider_name=self.get_provider_name())

        if self._client is None:
            raise ProviderUnauthenticatedError(
                message="OPENAI_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )

        model = model or self._model
        expected = dimension or self.get_dimension(model)
        request: dict = {"model": model, "input": normalized, "encoding_format": "float"}
        if model.startswith(_VARIABLE_DIMENSION_PREFIX) and expected != self.get_dimension(model):
            request["dimensions"] = expected

        try:
            response = await self._client.embeddings.create(**request)
        except openai.RateLimitError as exc:
            logger.error("openai_rate_limited", model=model)
            raise ProviderRateLimitedError(
                message="OpenAI rate limit exceeded. Please try again later.",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.AuthenticationError as exc:
            logger.error("openai_invalid_api_key", model=model)
            raise ProviderUnauthenticatedError(
                message="Invalid OpenAI API key",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            logger.error("openai_embedding_error", model=model, error=str(exc))
            raise ProviderError(
                message=f"OpenAI embedding API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise ProviderError(
                message="OpenAI returned no embedding data",
                provider_name=self.get_provider_name(),
            )

        logger.debug(
            "openai_embedding",
            model=model,
            chars=len(normalized),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return check_embedding(
            response.data[0].embedding, expected, provider_name=self.get_provider_name()
        )

    def get_dimension(self, model: str | None = None) -> int:
        return _MODEL_DIMENSIONS.get(
            model or self._model, self._settings.default_embedding_dimension
        )

    def get_provider_name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
