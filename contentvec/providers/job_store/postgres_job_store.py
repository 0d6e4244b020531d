"""PostgreSQL-backed indexing job store.

Every status change is a conditional ``UPDATE ... WHERE status IN (...)``,
so two racing writers can never move a job backward: the update that loses
the race matches zero rows and reports ``False``.
"""

from __future__ import annotations

import asyncpg
import structlog

from contentvec.interfaces.job_store import IJobStore
from contentvec.models.job import IndexingJob, JobStatus, JobType
from contentvec.providers.postgres.database import STORE_ERRORS, PostgresDatabase, to_uuid
from contentvec.utils.errors import StoreError

logger = structlog.get_logger(logger_name=__name__)

_JOB_COLUMNS = """\
id, profile_id, type, status, total_items, processed_items, failed_items,
params, error_message, started_at, finished_at, created_at"""

_INSERT_JOB_SQL = f"""\
INSERT INTO embedding_jobs (id, profile_id, type, status, params)
VALUES ($1, $2, $3, $4, $5)
RETURNING {_JOB_COLUMNS};
"""

_SELECT_JOB_SQL = f"SELECT {_JOB_COLUMNS} FROM embedding_jobs WHERE id = $1;"

_MARK_RUNNING_SQL = """\
UPDATE embedding_jobs
SET status = 'running', started_at = now()
WHERE id = $1 AND status = 'pending';
"""

_MARK_COMPLETED_SQL = """\
UPDATE embedding_jobs
SET status = 'completed', processed_items = $2, failed_items = $3,
    total_items = $2 + $3, finished_at = now()
WHERE id = $1 AND status = 'running';
"""

_MARK_FAILED_SQL = """\
UPDATE embedding_jobs
SET status = 'failed', error_message = $2, finished_at = now()
WHERE id = $1 AND status IN ('pending', 'running');
"""

_LIST_JOBS_SQL = f"""\
SELECT {_JOB_COLUMNS} FROM embedding_jobs
ORDER BY created_at DESC
LIMIT $1;
"""

_LIST_JOBS_BY_PROFILE_SQL = f"""\
SELECT {_JOB_COLUMNS} FROM embedding_jobs
WHERE profile_id = $1
ORDER BY created_at DESC
LIMIT $2;
"""


def _job_from_row(row: asyncpg.Record) -> IndexingJob:
    return IndexingJob(
        id=str(row["id"]),
        profile_id=str(row["profile_id"]) if row["profile_id"] else None,
        type=JobType(row["type"]),
        status=JobStatus(row["status"]),
        total_items=row["total_items"],
        processed_items=row["processed_items"],
        failed_items=row["failed_items"],
        params=row["params"] or {},
        error_message=row["error_message"],
        started_at=row["started_at"],
        finished_at=row["finished_at"],
        created_at=row["created_at"],
    )


class PostgresJobStore(IJobStore):
    """Indexing job bookkeeping on the shared asyncpg pool."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    async def create(self, job: IndexingJob) -> IndexingJob:
        row = await self._fetchrow(
            _INSERT_JOB_SQL,
            to_uuid(job.id),
            to_uuid(job.profile_id),
            job.type.value,
            job.status.value,
            job.params,
        )
        return _job_from_row(row)

    async def get(self, job_id: str) -> IndexingJob | None:
        job_uuid = to_uuid(job_id)
        if job_uuid is None:
            return None
        row = await self._fetchrow(_SELECT_JOB_SQL, job_uuid)
        return _job_from_row(row) if row else None

    async def mark_running(self, job_id: str) -> bool:
        return await self._transition(_MARK_RUNNING_SQL, job_id)

    async def mark_completed(self, job_id: str, processed: int, failed: int) -> bool:
        return await self._transition(_MARK_COMPLETED_SQL, job_id, processed, failed)

    async def mark_failed(self, job_id: str, error_message: str) -> bool:
        return await self._transition(_MARK_FAILED_SQL, job_id, error_message)

    async def list(self, profile_id: str | None = None, limit: int = 50) -> list[IndexingJob]:
        try:
            async with self._db.acquire() as conn:
                if profile_id is None:
                    rows = await conn.fetch(_LIST_JOBS_SQL, limit)
                else:
                    profile_uuid = to_uuid(profile_id)
                    if profile_uuid is None:
                        return []
                    rows = await conn.fetch(_LIST_JOBS_BY_PROFILE_SQL, profile_uuid, limit)
        except STORE_ERRORS as exc:
            raise StoreError(message=f"Job list failed: {exc}", provider_name="postgres") from exc
        return [_job_from_row(row) for row in rows]

    async def _fetchrow(self, sql: str, *args: object) -> asyncpg.Record | None:
        try:
            async with self._db.acquire() as conn:
                return await conn.fetchrow(sql, *args)
        except STORE_ERRORS as exc:
            raise StoreError(message=f"Job query failed: {exc}", provider_name="postgres") from exc

    async def _transition(self, sql: str, job_id: str, *args: object) -> bool:
        job_uuid = to_uuid(job_id)
        if job_uuid is None:
            return False
        try:
            async with self._db.acquire() as conn:
                status = await conn.execute(sql, job_uuid, *args)
        except STORE_ERRORS as exc:
            raise StoreError(message=f"Job update failed: {exc}", provider_name="postgres") from exc
        applied = status != "UPDATE 0"
        if not applied:
            logger.warning("job_transition_skipped", job_id=job_id)
        return applied
