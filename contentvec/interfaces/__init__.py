"""Abstract interfaces for every external collaborator.

Services depend only on these ABCs; concrete adapters live under
``contentvec.providers`` and are wired in ``contentvec.main``.
"""

from contentvec.interfaces.content_source import IContentSource
from contentvec.interfaces.embedding_provider import IEmbeddingProvider
from contentvec.interfaces.job_store import IJobStore
from contentvec.interfaces.profile_store import IProfileStore
from contentvec.interfaces.query_log_provider import IQueryLogProvider
from contentvec.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IContentSource",
    "IEmbeddingProvider",
    "IJobStore",
    "IProfileStore",
    "IQueryLogProvider",
    "IVectorStoreProvider",
]
