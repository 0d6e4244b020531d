"""Indexing job models.

An :class:`IndexingJob` tracks one background index or reindex run.  Its
status only ever moves forward::

    pending → running → completed
                      → failed
    pending → failed   (cancelled before it started)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JobType(str, Enum):
    INDEX = "index"
    REINDEX = "reindex"


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class IndexingJob(BaseModel):
    """State of one background indexing run."""

    model_config = ConfigDict(frozen=True)

    id: str
    profile_id: str | None = None
    type: JobType = JobType.INDEX
    status: JobStatus = JobStatus.PENDING
    total_items: int | None = None
    processed_items: int = 0
    failed_items: int = 0
    params: dict[str, Any] = Field(default_factory=dict)
    error_message: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    created_at: datetime | None = None


class IndexingRunResult(BaseModel):
    """Counts reported by a completed indexing run."""

    model_config = ConfigDict(frozen=True)

    processed: int = 0
    failed: int = 0
