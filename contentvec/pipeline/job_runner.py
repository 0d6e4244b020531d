"""Fire-and-forget execution of indexing runs as tracked jobs.

# ─── JOB LIFECYCLE (Junior Developer Guide) ───────────────────────────
#
#   submit() ──→ job row created "pending" ──→ asyncio task scheduled
#                 (returns immediately)               │
#                                                     ▼
#                                    mark_running ── Indexer.run ──┬─→ mark_completed
#                                                                  └─→ mark_failed
#
# The job store's conditional UPDATEs guarantee the status only moves
# forward.  Exceptions never escape the task: every failure ends in
# mark_failed with the error message.  Outstanding tasks are kept in a
# dict keyed by job id so they are not garbage-collected mid-run and can
# be cancelled on shutdown.
#
# There is no per-profile exclusion: two concurrent runs for the same
# profile both write through the idempotent upsert.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import uuid

import structlog

from contentvec.interfaces.job_store import IJobStore
from contentvec.interfaces.profile_store import IProfileStore
from contentvec.models.job import IndexingJob, JobStatus, JobType
from contentvec.services.indexer import Indexer
from contentvec.utils.errors import ContentVecError, NotFoundError

logger = structlog.get_logger(logger_name=__name__)

_CANCELLED_MESSAGE = "Cancelled by shutdown"


class IndexingJobRunner:
    """Schedules :class:`Indexer` runs in the background and records their outcome."""

    def __init__(self, indexer: Indexer, job_store: IJobStore, profile_store: IProfileStore) -> None:
        self._indexer = indexer
        self._jobs = job_store
        self._profiles = profile_store
        self._tasks: dict[str, asyncio.Task] = {}

    async def submit(self, profile_id: str, job_type: JobType | str = JobType.INDEX) -> IndexingJob:
        """Create a pending job for *profile_id* and start it in the background.

        Raises
        ------
        NotFoundError
            If the profile does not exist.  No job is created.
        """
        profile = await self._profiles.get(profile_id)
        if profile is None:
            raise NotFoundError(message=f"Profile {profile_id} not found")

        job = await self._jobs.create(
            IndexingJob(
                id=str(uuid.uuid4()),
                profile_id=profile.id,
                type=JobType(job_type),
                status=JobStatus.PENDING,
                params={"profile_slug": profile.slug},
            )
        )
        task = asyncio.create_task(self._run(job.id, profile.id), name=f"indexing-job-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t, job_id=job.id: self._tasks.pop(job_id, None))

        logger.info("indexing_job_submitted", job_id=job.id, profile_id=profile.id, type=job.type.value)
        return job

    async def get_job(self, job_id: str) -> IndexingJob | None:
        return await self._jobs.get(job_id)

    async def list_jobs(self, profile_id: str | None = None, limit: int = 50) -> list[IndexingJob]:
        return await self._jobs.list(profile_id=profile_id, limit=limit)

    @property
    def active_job_ids(self) -> list[str]:
        return list(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every outstanding job task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding tasks and mark their jobs failed."""
        pending = dict(self._tasks)
        for task in pending.values():
            task.cancel()
        if pending:
            await asyncio.gather(*pending.values(), return_exceptions=True)
        for job_id in pending:
            try:
                await self._jobs.mark_failed(job_id, _CANCELLED_MESSAGE)
            except ContentVecError as exc:
                logger.warning("indexing_job_cancel_unrecorded", job_id=job_id, error=str(exc))
        if pending:
            logger.info("indexing_jobs_cancelled", count=len(pending))

    async def _run(self, job_id: str, profile_id: str) -> None:
        try:
            await self._jobs.mark_running(job_id)
            result = await self._indexer.run(profile_id)
            await self._jobs.mark_completed(job_id, result.processed, result.failed)
            logger.info(
                "indexing_job_completed",
                job_id=job_id,
                profile_id=profile_id,
                processed=result.processed,
                failed=result.failed,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "indexing_job_failed",
                job_id=job_id,
                profile_id=profile_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            try:
                await self._jobs.mark_failed(job_id, str(exc) or type(exc).__name__)
            except Exception as store_exc:  # noqa: BLE001
                logger.error("indexing_job_status_unrecorded", job_id=job_id, error=str(store_exc))
