"""Query history models.  Rows are append-only."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchResultLog(BaseModel):
    """One logged hit of a past search; ``position`` is its 1-based rank."""

    model_config = ConfigDict(frozen=True)

    id: str
    query_id: str
    content_type: str
    content_id: str
    field_name: str
    locale: str | None = None
    similarity_score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    position: int = Field(ge=1)


class SearchQueryLog(BaseModel):
    """A logged search together with its ordered results."""

    model_config = ConfigDict(frozen=True)

    id: str
    profile_id: str | None = None
    query_text: str
    k: int
    created_at: datetime | None = None
    results: list[SearchResultLog] = Field(default_factory=list)
