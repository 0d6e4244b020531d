"""Abstract base class for the vector store gateway.

Defines the contract for persisting embeddings under their natural key and
answering metric-aware nearest-neighbour queries.  The production adapter
is PostgreSQL + pgvector; tests use an in-memory implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from contentvec.models.profile import DistanceMetric
from contentvec.models.vector import SearchHit, VectorRecord


# Concrete implementation: PgVectorStoreProvider (contentvec/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector persistence and similarity search.

    **Natural key.**  A record is identified by ``(profile_id, content_type,
    content_id, field_name, locale)`` where a ``None`` locale is one stable
    key of its own.  :meth:`upsert` on an existing key replaces embedding
    and metadata instead of inserting a duplicate.

    **Metadata filters** passed to :meth:`search` are exact-equality
    matches on top-level metadata keys, compared as text, all ANDed:

    * ``{"category": "tech"}``: records whose ``metadata.category`` is "tech"
    * ``{"archived": None}``  : records where the key is null or absent
    """

    @abstractmethod
    async def upsert(
        self,
        profile_id: str,
        content_type: str,
        content_id: str,
        field_name: str,
        locale: str | None,
        embedding: list[float],
        metadata: dict[str, Any] | None = None,
    ) -> VectorRecord:
        """Insert or replace the record at the natural key atomically.

        Returns
        -------
        VectorRecord
            The stored record; ``updated_at`` advances on every call.

        Raises
        ------
        contentvec.utils.errors.StoreError
            If the statement fails.
        """

    @abstractmethod
    async def search(
        self,
        query_embedding: list[float],
        distance_metric: DistanceMetric | str = DistanceMetric.COSINE,
        k: int = 10,
        profile_id: str | None = None,
        content_type: str | None = None,
        metadata_filters: dict[str, Any] | None = None,
        min_similarity: float | None = None,
    ) -> list[SearchHit]:
        """Return at most *k* records ranked by ascending distance.

        Parameters
        ----------
        query_embedding:
            The query vector.
        distance_metric:
            ``cosine``, ``l2`` or ``dot``.
        k:
            Maximum number of hits, in [1, 1000].
        profile_id, content_type:
            Optional equality restrictions.
        metadata_filters:
            Exact-match filters (see class docstring).
        min_similarity:
            Similarity floor in [0, 1] for cosine and dot; ignored for l2.

        Raises
        ------
        contentvec.utils.errors.InvalidRangeError
            If *k* or *min_similarity* is out of range.
        contentvec.utils.errors.StoreError
            If the query fails.
        """

    @abstractmethod
    async def delete_by_content(self, content_type: str, content_id: str) -> int:
        """Delete every record for one content item, across profiles and fields.

        Returns
        -------
        int
            The number of records removed.
        """

    @abstractmethod
    async def count(self, profile_id: str | None = None) -> int:
        """Return the number of stored records, optionally for one profile."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"pgvector"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is connected."""
