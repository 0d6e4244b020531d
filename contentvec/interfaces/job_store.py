"""Abstract base class for indexing job persistence.

Status transitions are conditional: each ``mark_*`` method only succeeds
from the states that precede it, so a job's status never moves backward.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from contentvec.models.job import IndexingJob


# Concrete implementation: PostgresJobStore (contentvec/providers/job_store/)
class IJobStore(ABC):
    """Contract for indexing job bookkeeping."""

    @abstractmethod
    async def create(self, job: IndexingJob) -> IndexingJob:
        """Insert a new job (normally ``pending``) and return it."""

    @abstractmethod
    async def get(self, job_id: str) -> IndexingJob | None:
        """Return the job, or ``None``."""

    @abstractmethod
    async def mark_running(self, job_id: str) -> bool:
        """Move ``pending`` → ``running`` and stamp ``started_at``.

        Returns ``False`` if the job was not pending.
        """

    @abstractmethod
    async def mark_completed(self, job_id: str, processed: int, failed: int) -> bool:
        """Move ``running`` → ``completed`` recording item counts."""

    @abstractmethod
    async def mark_failed(self, job_id: str, error_message: str) -> bool:
        """Move ``pending`` or ``running`` → ``failed`` recording the error."""

    @abstractmethod
    async def list(self, profile_id: str | None = None, limit: int = 50) -> list[IndexingJob]:
        """Return jobs newest first, optionally for one profile."""
