"""Background execution of indexing runs."""

from contentvec.pipeline.job_runner import IndexingJobRunner

__all__ = ["IndexingJobRunner"]
