"""Embedding provider implementations.

Two implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider: text-embedding-3-small (1536 dims) by default.
       Requires OPENAI_API_KEY.
    2. OllamaEmbeddingProvider: local models via Ollama's /api/embed.

Both run every returned vector through ``integrity.check_embedding``.
"""

from contentvec.providers.embedding.integrity import check_embedding
from contentvec.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from contentvec.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OllamaEmbeddingProvider", "OpenAIEmbeddingProvider", "check_embedding"]
