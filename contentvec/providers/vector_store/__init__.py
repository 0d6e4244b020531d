"""Vector store implementations.

PgVectorStoreProvider: PostgreSQL + pgvector, HNSW-accelerated search.
"""

from contentvec.providers.vector_store.pgvector_provider import (
    PgVectorStoreProvider,
    build_search_query,
)

__all__ = ["PgVectorStoreProvider", "build_search_query"]
