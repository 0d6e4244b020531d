"""Indexing job store implementations."""

from contentvec.providers.job_store.postgres_job_store import PostgresJobStore

__all__ = ["PostgresJobStore"]
