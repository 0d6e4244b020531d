"""Abstract base class for text-embedding service providers.

Defines the contract for turning one piece of text into one dense vector.
Implementations may wrap the OpenAI embeddings API, a local Ollama model,
or any other backend; the Indexer and the Query Engine only see this
interface, so providers are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider : text-embedding-3-small by default (requires API key)
#   OllamaEmbeddingProvider : nomic-embed-text etc. via a local Ollama server
# Located in: contentvec/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by indexing and search.

    Every returned vector has passed the integrity check in
    :mod:`contentvec.providers.embedding.integrity`: its length equals the
    expected dimension and every component is finite.
    """

    @abstractmethod
    async def embed(
        self,
        text: str,
        model: str | None = None,
        dimension: int | None = None,
    ) -> list[float]:
        """Generate the embedding vector for *text*.

        Parameters
        ----------
        text:
            Text to embed.  It is normalized (trimmed, whitespace runs
            collapsed) before the provider call.
        model:
            Model identifier; the provider's configured model when omitted.
        dimension:
            Expected vector length, typically the profile's
            ``embedding_dimension``.  Defaults to :meth:`get_dimension`.

        Returns
        -------
        list[float]
            The embedding vector.

        Raises
        ------
        contentvec.utils.errors.InvalidInputError
            If *text* is empty after normalization.  No provider call is made.
        contentvec.utils.errors.ProviderRateLimitedError
            If the provider throttled the request.  Never retried internally.
        contentvec.utils.errors.ProviderUnauthenticatedError
            If the credential is missing or rejected.
        contentvec.utils.errors.ProviderError
            For any other provider failure.
        contentvec.utils.errors.EmbeddingIntegrityError
            If the returned vector has the wrong length or non-finite values.
        """

    @abstractmethod
    def get_dimension(self, model: str | None = None) -> int:
        """Return the default vector length for *model* (or the configured model).

        Example values: ``1536`` (``text-embedding-3-small``), ``768``
        (``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider.

        Example return values: ``"openai"``, ``"ollama"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Implementations verify that credentials (if any) are present
        without generating an actual embedding.
        """
