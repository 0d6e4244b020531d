"""Domain models for contentvec.  All models are frozen pydantic v2 models."""

from contentvec.models.content import ContentItem, ContentTypeSchema
from contentvec.models.job import IndexingJob, IndexingRunResult, JobStatus, JobType
from contentvec.models.profile import (
    DEFAULT_EMBEDDING_DIMENSION,
    DEFAULT_EMBEDDING_MODEL,
    MAX_EMBEDDING_DIMENSION,
    DistanceMetric,
    Profile,
    ProfileField,
    ProfileFieldInput,
)
from contentvec.models.query_log import SearchQueryLog, SearchResultLog
from contentvec.models.vector import MAX_K, SearchHit, SearchOptions, VectorRecord

__all__ = [
    "ContentItem",
    "ContentTypeSchema",
    "DEFAULT_EMBEDDING_DIMENSION",
    "DEFAULT_EMBEDDING_MODEL",
    "DistanceMetric",
    "IndexingJob",
    "IndexingRunResult",
    "JobStatus",
    "JobType",
    "MAX_EMBEDDING_DIMENSION",
    "MAX_K",
    "Profile",
    "ProfileField",
    "ProfileFieldInput",
    "SearchHit",
    "SearchOptions",
    "SearchQueryLog",
    "SearchResultLog",
    "VectorRecord",
]
