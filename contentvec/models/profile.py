"""Embedding profile data models.

A **profile** is a named configuration declaring which content fields are
embedded, with which model, at which dimension, and under which distance
metric.  Profiles are created and deleted only by explicit calls; deleting
one cascades to its fields and every vector indexed under it.

All models use frozen config to enforce immutability.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DistanceMetric(str, Enum):
    """Similarity metric used to rank nearest neighbours.

    Each value maps to one pgvector operator:

    * ``cosine`` → ``<=>`` (cosine distance in [0, 2])
    * ``l2``     → ``<->`` (Euclidean distance)
    * ``dot``    → ``<#>`` (negative inner product)
    """

    COSINE = "cosine"
    L2 = "l2"
    DOT = "dot"


DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_EMBEDDING_DIMENSION = 1536
MAX_EMBEDDING_DIMENSION = 16000


class ProfileField(BaseModel):
    """One content field declared on a profile.

    ``field_name`` may be a dotted path (``component.child``) addressing a
    text value inside a repeatable nested structure.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    profile_id: str
    content_type: str
    field_name: str
    enabled: bool = True
    weight: float = Field(default=1.0, description="Relative weight (stored, not applied to ranking).")


class ProfileFieldInput(BaseModel):
    """A field declaration supplied when creating a profile."""

    model_config = ConfigDict(frozen=True)

    content_type: str = ""
    field_name: str = ""
    enabled: bool = True
    weight: float = 1.0


class Profile(BaseModel):
    """A named embedding configuration together with its fields."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str
    description: str | None = None
    enabled: bool = True
    auto_sync: bool = False
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_dimension: int = DEFAULT_EMBEDDING_DIMENSION
    distance_metric: DistanceMetric = DistanceMetric.COSINE
    created_at: datetime | None = None
    updated_at: datetime | None = None
    fields: list[ProfileField] = Field(default_factory=list)

    @property
    def enabled_fields(self) -> list[ProfileField]:
        """Fields the Indexer should process; disabled fields are kept but skipped."""
        return [f for f in self.fields if f.enabled]
