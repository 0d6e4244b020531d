"""Abstract base class for the search query history log.

The log is append-only: one :class:`~contentvec.models.query_log.SearchQueryLog`
row per successful search plus one result row per returned hit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from contentvec.models.query_log import SearchQueryLog
from contentvec.models.vector import SearchHit


# Concrete implementation: PostgresQueryLogProvider (contentvec/providers/query_log/)
class IQueryLogProvider(ABC):
    """Contract for recording and reading past searches."""

    @abstractmethod
    async def log_query(self, profile_id: str | None, query_text: str, k: int) -> str:
        """Record a search and return the new query id."""

    @abstractmethod
    async def log_results(self, query_id: str, hits: list[SearchHit]) -> None:
        """Record *hits* under *query_id*; position is the 1-based rank."""

    @abstractmethod
    async def get_query_history(
        self,
        profile_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[SearchQueryLog]:
        """Return past searches newest first, each with its ordered results.

        Raises
        ------
        contentvec.utils.errors.InvalidRangeError
            If *limit* is outside [1, 1000] or *offset* is negative.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this log."""
