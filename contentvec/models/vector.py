"""Vector record and search data models.

A :class:`VectorRecord` is one stored embedding, identified by its natural
key ``(profile_id, content_type, content_id, field_name, locale)``.  A
:class:`SearchHit` is one ranked result of a nearest-neighbour search.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from contentvec.models.profile import DistanceMetric

# Upper bound on the number of neighbours a single search may request.
MAX_K = 1000


class VectorRecord(BaseModel):
    """One stored embedding plus its identifying and descriptive data.

    ``locale`` is ``None`` when the content has no locale; the store keeps
    that as a distinct, stable key separate from every real locale.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    profile_id: str
    content_type: str
    content_id: str
    field_name: str
    locale: str | None = None
    embedding: list[float] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SearchHit(BaseModel):
    """A ranked nearest-neighbour result.

    ``distance`` is the raw operator value.  ``similarity_score`` is derived
    from it: ``1 - distance`` for cosine, ``-distance`` for dot, and
    ``None`` for l2, which has no bounded similarity.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    profile_id: str
    content_type: str
    content_id: str
    field_name: str
    locale: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    distance: float
    similarity_score: float | None = None


class SearchOptions(BaseModel):
    """Options for a semantic search request.

    Range checks are performed by the Query Engine so that violations raise
    the domain ``ValidationError`` rather than pydantic's own.
    """

    model_config = ConfigDict(frozen=True)

    profile_id: str | None = None
    content_type: str | None = None
    k: int = 10
    distance_metric: DistanceMetric | str = DistanceMetric.COSINE
    metadata_filters: dict[str, Any] = Field(default_factory=dict)
    min_similarity: float | None = None
    log_query: bool = True
