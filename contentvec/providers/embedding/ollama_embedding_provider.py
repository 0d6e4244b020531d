"""Ollama embedding provider adapter (local, no API key).

Calls Ollama's native ``POST /api/embed`` endpoint over ``httpx``.  Useful
for development and air-gapped deployments; profiles indexed with it must
declare the model's dimension (768 for ``nomic-embed-text``).
"""

from __future__ import annotations

import httpx
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

_MODEL_DIMENSIONS: dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
}


class OllamaEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by a local Ollama server."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url.rstrip("/")
        model = settings.embedding_model
        # The OpenAI default makes no sense against Ollama.
        self._model = model if model in _MODEL_DIMENSIONS or ":" in model else "nomic-embed-text"
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=settings.embedding_timeout_seconds,
        )

    async def embed(
        self,
        text: str,
        model: str | None = None,
        dimension: int | None = None,
    ) -> list[float]:
        normalized = normalize_text(text) if isinstance(text, str) else ""
        if not normalized:
            raise InvalidInputError(provider_name=self.get_provider_name())

        model = model or self._model
        expected = dimension or self.get_dimension(model)

        try:
            response = await self._client.post(
                "/api/embed", json={"model": model, "input": normalized}
            )
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"Ollama request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 429:
            raise ProviderRateLimitedError(provider_name=self.get_provider_name())
        if response.status_code == 401:
            raise ProviderUnauthenticatedError(provider_name=self.get_provider_name())
        if response.status_code >= 400:
            raise ProviderError(
                message=f"Ollama returned HTTP {response.status_code}: {response.text[:200]}",
                provider_name=self.get_provider_name(),
            )

        embeddings = response.json().get("embeddings") or []
        if not embeddings:
            raise ProviderError(
                message="Ollama returned no embeddings",
                provider_name=self.get_provider_name(),
            )

        logger.debug("ollama_embedding", model=model, chars=len(normalized))
        return check_embedding(embeddings[0], expected, provider_name=self.get_provider_name())

    def get_dimension(self, model: str | None = None) -> int:
        return _MODEL_DIMENSIONS.get(
            model or self._model, self._settings.default_embedding_dimension
        )

    def get_provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def close(self) -> None:
        await self._client.aclose()
