"""Pydantic request/response schemas for the contentvec API.

# ─── HOW SCHEMAS WORK (Junior Developer Guide) ────────────────────────
#
# Request schemas are deliberately permissive (defaults everywhere, no
# ge/le constraints): range and format checks live in the services so
# a violation surfaces as the domain ValidationError → HTTP 400 with a
# ``field`` pointer, the same as for every other caller.
#
# Every successful response uses the envelope ``{"data": ..., "meta": {}}``.
# Errors use ``{"error": <class>, "detail": <message>, "field": <name?>}``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Uniform success wrapper."""

    data: Any = None
    meta: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Structured error body returned by the error handlers."""

    error: str
    detail: str
    field: str | None = None


class QueryRequest(BaseModel):
    """Body of ``POST /query``."""

    query: str = ""
    profile_id: str | None = None
    content_type: str | None = None
    k: int = 10
    distance_metric: str = "cosine"
    filters: dict[str, Any] = Field(default_factory=dict)
    min_similarity: float | None = None


class ProfileFieldRequest(BaseModel):
    content_type: str = ""
    field_name: str = ""
    enabled: bool = True
    weight: float = 1.0


class CreateProfileRequest(BaseModel):
    """Body of ``POST /profiles``."""

    name: str = ""
    slug: str = ""
    description: str | None = None
    fields: list[ProfileFieldRequest] = Field(default_factory=list)
    distance_metric: str | None = None
    dimension: int | None = None
    embedding_model: str | None = None
    enabled: bool = True
    auto_sync: bool = False


class GenerateEmbeddingRequest(BaseModel):
    """Body of ``POST /generate``: embed one field value manually."""

    profile_id: str = ""
    content_type: str = ""
    content_id: str = ""
    field_name: str = ""
    text: str = ""
    locale: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProviderStatus(BaseModel):
    name: str
    available: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    providers: list[ProviderStatus] = Field(default_factory=list)
