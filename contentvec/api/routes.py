"""FastAPI API routes for contentvec.

Provides REST endpoints for profile management, indexing jobs, semantic
search, manual embedding writes, query history and health.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern.

# ─── API ROUTE MAP (Junior Developer Guide) ───────────────────────────
#
# Endpoint (prefix /api/v1/embeddings)      Method  Description
# ─────────────────────────────────────────────────────────────────────
# /query                                    POST    Semantic search (JSON body)
# /profiles                                 GET     List profiles, newest first
# /profiles                                 POST    Create profile (+ index job)
# /profiles/{profile_id}                    GET     One profile with its fields
# /profiles/{profile_id}                    DELETE  Delete profile and vectors
# /profiles/{profile_id}/reindex            POST    Queue a reindex job (202)
# /generate                                 POST    Embed one field value
# /content/{content_type}/{content_id}      DELETE  Drop vectors of an item
# /jobs                                     GET     Indexing jobs
# /logs, /queries                           GET     Query history
# /content-types                            GET     Host content types
# /health                                   GET     Health + provider status
# /{profile_name}/query                     GET     Search by slug or name
#
# The catch-all ``/{profile_name}/query`` route is registered last so the
# fixed paths above win.
#
# DEPENDENCY INJECTION PATTERN:
# Each route function declares its dependencies as type-annotated params.
# FastAPI resolves these via Depends() which calls helper functions that
# read from app.state (populated at startup by main.py's _lifespan).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request

from contentvec import __version__
from contentvec.api.schemas import (
    CreateProfileRequest,
    Envelope,
    GenerateEmbeddingRequest,
    HealthResponse,
    ProviderStatus,
    QueryRequest,
)
from contentvec.interfaces.content_source import IContentSource
from contentvec.interfaces.query_log_provider import IQueryLogProvider
from contentvec.models.job import JobType
from contentvec.models.profile import Profile
from contentvec.models.vector import SearchOptions
from contentvec.pipeline.job_runner import IndexingJobRunner
from contentvec.services.profile_registry import ProfileRegistry
from contentvec.services.query_engine import QueryEngine
from contentvec.services.vector_service import VectorService
from contentvec.utils.errors import InvalidInputError, NotFoundError
from contentvec.utils.logging import get_logger
from contentvec.utils.validation import parse_metric, validate_search_bounds

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/embeddings")


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_registry(request: Request) -> ProfileRegistry:
    return request.app.state.profile_registry


def _get_query_engine(request: Request) -> QueryEngine:
    return request.app.state.query_engine


def _get_vector_service(request: Request) -> VectorService:
    return request.app.state.vector_service


def _get_job_runner(request: Request) -> IndexingJobRunner:
    return request.app.state.job_runner


def _get_query_log(request: Request) -> IQueryLogProvider:
    return request.app.state.query_log


def _get_content_source(request: Request) -> IContentSource:
    return request.app.state.content_source


def _get_health_providers(request: Request) -> list[Any]:
    """Return the providers whose availability ``/health`` reports."""
    state = request.app.state
    names = ("embedding_provider", "vector_store", "content_source")
    return [getattr(state, name) for name in names if getattr(state, name, None) is not None]


RegistryDep = Annotated[ProfileRegistry, Depends(_get_registry)]
QueryEngineDep = Annotated[QueryEngine, Depends(_get_query_engine)]
VectorServiceDep = Annotated[VectorService, Depends(_get_vector_service)]
JobRunnerDep = Annotated[IndexingJobRunner, Depends(_get_job_runner)]
QueryLogDep = Annotated[IQueryLogProvider, Depends(_get_query_log)]
ContentSourceDep = Annotated[IContentSource, Depends(_get_content_source)]
HealthProvidersDep = Annotated[list[Any], Depends(_get_health_providers)]


def _envelope(data: Any, **meta: Any) -> dict[str, Any]:
    return Envelope(data=data, meta=meta).model_dump(mode="json")


def _profile_payload(profile: Profile) -> dict[str, Any]:
    return profile.model_dump(mode="json")


async def _require_profile(registry: ProfileRegistry, profile_id: str) -> Profile:
    profile = await registry.get(profile_id)
    if profile is None:
        raise NotFoundError(message=f"Profile {profile_id} not found")
    return profile


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@router.post("/query")
async def query(body: QueryRequest, registry: RegistryDep, engine: QueryEngineDep) -> dict[str, Any]:
    """Embed the query text and return ranked hits."""
    options = SearchOptions(
        profile_id=body.profile_id,
        content_type=body.content_type,
        k=body.k,
        distance_metric=body.distance_metric,
        metadata_filters=body.filters,
        min_similarity=body.min_similarity,
    )
    QueryEngine.validate(body.query, options)
    profile = await registry.get(body.profile_id) if body.profile_id else None
    hits = await engine.search(body.query, options, profile=profile)
    return _envelope(
        [hit.model_dump(mode="json") for hit in hits],
        count=len(hits),
        k=body.k,
        distance_metric=body.distance_metric,
    )


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@router.get("/profiles")
async def list_profiles(registry: RegistryDep) -> dict[str, Any]:
    profiles = await registry.list()
    return _envelope([_profile_payload(p) for p in profiles], count=len(profiles))


@router.post("/profiles", status_code=201)
async def create_profile(
    body: CreateProfileRequest,
    registry: RegistryDep,
    runner: JobRunnerDep,
) -> dict[str, Any]:
    """Create a profile; an enabled profile is indexed right away in the background."""
    profile = await registry.create(
        name=body.name,
        slug=body.slug,
        description=body.description,
        fields=[f.model_dump() for f in body.fields],
        distance_metric=body.distance_metric,
        dimension=body.dimension,
        embedding_model=body.embedding_model,
        enabled=body.enabled,
        auto_sync=body.auto_sync,
    )
    job_id = None
    if profile.enabled:
        job = await runner.submit(profile.id, JobType.INDEX)
        job_id = job.id
    return _envelope(_profile_payload(profile), job_id=job_id)


@router.get("/profiles/{profile_id}")
async def get_profile(profile_id: str, registry: RegistryDep) -> dict[str, Any]:
    profile = await _require_profile(registry, profile_id)
    return _envelope(_profile_payload(profile))


@router.delete("/profiles/{profile_id}")
async def delete_profile(profile_id: str, registry: RegistryDep) -> dict[str, Any]:
    await registry.delete(profile_id)
    return _envelope({"id": profile_id, "deleted": True})


@router.post("/profiles/{profile_id}/reindex", status_code=202)
async def reindex_profile(profile_id: str, runner: JobRunnerDep) -> dict[str, Any]:
    """Queue a reindex run and return the pending job without waiting for it."""
    job = await runner.submit(profile_id, JobType.REINDEX)
    return _envelope(job.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Vectors
# ---------------------------------------------------------------------------


@router.post("/generate", status_code=201)
async def generate_embedding(body: GenerateEmbeddingRequest, service: VectorServiceDep) -> dict[str, Any]:
    record = await service.upsert_embedding(
        profile_id=body.profile_id,
        content_type=body.content_type,
        content_id=body.content_id,
        field_name=body.field_name,
        text=body.text,
        locale=body.locale,
        metadata=body.metadata,
    )
    # The embedding itself is large and of no use to API callers.
    return _envelope(record.model_dump(mode="json", exclude={"embedding"}))


@router.delete("/content/{content_type}/{content_id}")
async def delete_content(content_type: str, content_id: str, service: VectorServiceDep) -> dict[str, Any]:
    """Remove every vector stored for a content item that the host deleted."""
    removed = await service.delete_content(content_type, content_id)
    _logger.info("content_vectors_deleted", content_type=content_type, content_id=content_id, removed=removed)
    return _envelope({"deleted": removed})


# ---------------------------------------------------------------------------
# Jobs & history
# ---------------------------------------------------------------------------


@router.get("/jobs")
async def list_jobs(
    runner: JobRunnerDep,
    profile_id: str | None = None,
    limit: int = 50,
) -> dict[str, Any]:
    jobs = await runner.list_jobs(profile_id=profile_id, limit=limit)
    return _envelope([j.model_dump(mode="json") for j in jobs], count=len(jobs))


@router.get("/logs")
@router.get("/queries")
async def query_history(
    query_log: QueryLogDep,
    profile_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> dict[str, Any]:
    """Past searches newest first, each with its ranked results."""
    entries = await query_log.get_query_history(profile_id=profile_id, limit=limit, offset=offset)
    return _envelope(
        [e.model_dump(mode="json") for e in entries],
        count=len(entries),
        limit=limit,
        offset=offset,
    )


# ---------------------------------------------------------------------------
# Host content & health
# ---------------------------------------------------------------------------


@router.get("/content-types")
async def list_content_types(source: ContentSourceDep) -> dict[str, Any]:
    types = await source.list_content_types()
    return _envelope([t.model_dump(mode="json") for t in types], count=len(types))


@router.get("/health")
async def health(providers: HealthProvidersDep) -> dict[str, Any]:
    statuses = [
        ProviderStatus(name=p.get_provider_name(), available=bool(p.is_available()))
        for p in providers
    ]
    status = "healthy" if all(s.available for s in statuses) else "degraded"
    return _envelope(HealthResponse(status=status, version=__version__, providers=statuses).model_dump())


# ---------------------------------------------------------------------------
# Search by profile identifier (registered last)
# ---------------------------------------------------------------------------


@router.get("/{profile_name}/query")
async def query_by_profile_name(
    profile_name: str,
    registry: RegistryDep,
    engine: QueryEngineDep,
    q: str = "",
    k: int = 10,
    distance_metric: str | None = None,
    min_similarity: float | None = None,
) -> dict[str, Any]:
    """Search one profile addressed by slug or name.

    The profile's own distance metric applies unless the caller overrides it.
    """
    if not q.strip():
        raise InvalidInputError(message="Query parameter q is required", field="q")
    validate_search_bounds(k, min_similarity)
    if distance_metric is not None:
        parse_metric(distance_metric)
    profile = await registry.get_by_identifier(profile_name)
    if profile is None:
        suggestion = await registry.suggest(profile_name)
        hint = f"; did you mean {suggestion!r}?" if suggestion else ""
        raise NotFoundError(message=f"Profile {profile_name!r} not found{hint}")

    metric = distance_metric or profile.distance_metric.value
    options = SearchOptions(
        profile_id=profile.id,
        k=k,
        distance_metric=metric,
        min_similarity=min_similarity,
    )
    hits = await engine.search(q, options, profile=profile)
    return _envelope(
        [hit.model_dump(mode="json") for hit in hits],
        count=len(hits),
        profile=profile.slug,
        k=k,
        distance_metric=metric,
    )
