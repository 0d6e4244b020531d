"""Shared pytest fixtures for the contentvec test suite.

The in-memory fakes below implement the provider interfaces with real
behaviour (natural-key upserts, cosine/l2/dot ranking, forward-only job
transitions) so service tests exercise actual semantics rather than mock
call counts.
"""

from __future__ import annotations

import hashlib
import json
import math
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from contentvec.config.settings import Settings
from contentvec.interfaces.content_source import IContentSource
from contentvec.interfaces.embedding_provider import IEmbeddingProvider
from contentvec.interfaces.job_store import IJobStore
from contentvec.interfaces.profile_store import IProfileStore
from contentvec.interfaces.query_log_provider import IQueryLogProvider
from contentvec.interfaces.vector_store_provider import IVectorStoreProvider
from contentvec.models.content import ContentItem, ContentTypeSchema
from contentvec.models.job import IndexingJob, JobStatus
from contentvec.models.profile import DistanceMetric, Profile
from contentvec.models.query_log import SearchQueryLog, SearchResultLog
from contentvec.models.vector import SearchHit, VectorRecord
from contentvec.pipeline.job_runner import IndexingJobRunner
from contentvec.providers.embedding.integrity import check_embedding
from contentvec.services.indexer import Indexer
from contentvec.services.profile_registry import ProfileRegistry
from contentvec.services.query_engine import QueryEngine
from contentvec.services.vector_service import VectorService
from contentvec.utils.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    ProviderError,
    StoreError,
)
from contentvec.utils.text_normalizer import normalize_text
from contentvec.utils.validation import parse_metric, validate_history_window, validate_search_bounds

TEST_DIMENSION = 4


def _now() -> datetime:
    return datetime.now(timezone.utc)


def hashed_vector(text: str, dimension: int = TEST_DIMENSION) -> list[float]:
    """Deterministic unit vector derived from *text*."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    raw = [(digest[i] / 255.0) * 2 - 1 for i in range(dimension)]
    norm = math.sqrt(sum(v * v for v in raw)) or 1.0
    return [v / norm for v in raw]


# ---------------------------------------------------------------------------
# Embedding provider
# ---------------------------------------------------------------------------


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Returns fixed vectors for known texts and hashed vectors otherwise.

    ``fail_on`` texts raise :class:`ProviderError`; ``override_dimension``
    makes the provider return vectors of the wrong length.
    """

    def __init__(self, dimension: int = TEST_DIMENSION) -> None:
        self.dimension = dimension
        self.vectors: dict[str, list[float]] = {}
        self.fail_on: set[str] = set()
        self.override_dimension: int | None = None
        self.calls: list[dict[str, Any]] = []

    async def embed(self, text: str, model: str | None = None, dimension: int | None = None) -> list[float]:
        normalized = normalize_text(text) if isinstance(text, str) else ""
        if not normalized:
            raise InvalidInputError(provider_name="fake")
        self.calls.append({"text": normalized, "model": model, "dimension": dimension})
        if normalized in self.fail_on:
            raise ProviderError(message=f"cannot embed {normalized!r}", provider_name="fake")
        expected = dimension or self.dimension
        size = self.override_dimension or expected
        vector = self.vectors.get(normalized) or hashed_vector(normalized, size)
        return check_embedding(vector, expected, provider_name="fake")

    def get_dimension(self, model: str | None = None) -> int:
        return self.dimension

    def get_provider_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Vector store
# ---------------------------------------------------------------------------


def _cosine_distance(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return 1.0 - (dot / norm if norm else 0.0)


def _l2_distance(a: list[float], b: list[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def _negative_inner_product(a: list[float], b: list[float]) -> float:
    return -sum(x * y for x, y in zip(a, b))


_DISTANCES = {
    DistanceMetric.COSINE: _cosine_distance,
    DistanceMetric.L2: _l2_distance,
    DistanceMetric.DOT: _negative_inner_product,
}


def _metadata_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else json.dumps(value)


class InMemoryVectorStore(IVectorStoreProvider):
    """Dict keyed by the natural key; ranks with the same formulas as pgvector."""

    def __init__(self) -> None:
        self.records: dict[tuple, VectorRecord] = {}

    async def upsert(
        self,
        profile_id: str,
        content_type: str,
        content_id: str,
        field_name: str,
        locale: str | None,
        embedding: list[float],
        metadata: dict[str, Any] | None = None,
    ) -> VectorRecord:
        key = (profile_id, content_type, content_id, field_name, locale)
        existing = self.records.get(key)
        now = _now()
        if existing is not None and now <= existing.updated_at:
            now = existing.updated_at + timedelta(microseconds=1)
        record = VectorRecord(
            id=existing.id if existing else f"vec-{len(self.records) + 1}",
            profile_id=profile_id,
            content_type=content_type,
            content_id=content_id,
            field_name=field_name,
            locale=locale,
            embedding=list(embedding),
            metadata=dict(metadata or {}),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self.records[key] = record
        return record

    async def search(
        self,
        query_embedding: list[float],
        distance_metric: DistanceMetric | str = DistanceMetric.COSINE,
        k: int = 10,
        profile_id: str | None = None,
        content_type: str | None = None,
        metadata_filters: dict[str, Any] | None = None,
        min_similarity: float | None = None,
    ) -> list[SearchHit]:
        metric = parse_metric(distance_metric)
        validate_search_bounds(k, min_similarity)
        hits: list[SearchHit] = []
        for record in self.records.values():
            if profile_id is not None and record.profile_id != profile_id:
                continue
            if content_type is not None and record.content_type != content_type:
                continue
            if not all(
                _metadata_text(record.metadata.get(key)) == _metadata_text(value)
                for key, value in (metadata_filters or {}).items()
            ):
                continue
            distance = _DISTANCES[metric](record.embedding, query_embedding)
            if metric is DistanceMetric.COSINE:
                similarity: float | None = 1.0 - distance
            elif metric is DistanceMetric.DOT:
                similarity = -distance
            else:
                similarity = None
            if min_similarity is not None and similarity is not None and similarity < min_similarity:
                continue
            hits.append(
                SearchHit(
                    id=record.id,
                    profile_id=record.profile_id,
                    content_type=record.content_type,
                    content_id=record.content_id,
                    field_name=record.field_name,
                    locale=record.locale,
                    metadata=record.metadata,
                    distance=distance,
                    similarity_score=similarity,
                )
            )
        hits.sort(key=lambda h: h.distance)
        return hits[:k]

    async def delete_by_content(self, content_type: str, content_id: str) -> int:
        doomed = [k for k, r in self.records.items() if r.content_type == content_type and r.content_id == content_id]
        for key in doomed:
            del self.records[key]
        return len(doomed)

    async def count(self, profile_id: str | None = None) -> int:
        return sum(1 for r in self.records.values() if profile_id is None or r.profile_id == profile_id)

    def delete_profile(self, profile_id: str) -> None:
        for key in [k for k, r in self.records.items() if r.profile_id == profile_id]:
            del self.records[key]

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Profile / job / query-log stores
# ---------------------------------------------------------------------------


class InMemoryProfileStore(IProfileStore):
    def __init__(self, vector_store: InMemoryVectorStore | None = None) -> None:
        self.profiles: dict[str, Profile] = {}
        self._vector_store = vector_store

    async def create(self, profile: Profile) -> Profile:
        if any(p.slug == profile.slug for p in self.profiles.values()):
            raise ConflictError(message=f"Profile slug {profile.slug!r} already exists")
        now = _now() + timedelta(microseconds=len(self.profiles))
        stored = profile.model_copy(update={"created_at": now, "updated_at": now})
        self.profiles[stored.id] = stored
        return stored

    async def get(self, profile_id: str) -> Profile | None:
        return self.profiles.get(profile_id)

    async def get_by_slug(self, slug: str) -> Profile | None:
        return next((p for p in self.profiles.values() if p.slug == slug), None)

    async def get_by_name(self, name: str) -> Profile | None:
        return next((p for p in self.profiles.values() if p.name == name), None)

    async def list(self) -> list[Profile]:
        return sorted(self.profiles.values(), key=lambda p: p.created_at, reverse=True)

    async def delete(self, profile_id: str) -> None:
        if profile_id not in self.profiles:
            raise NotFoundError(message=f"Profile {profile_id} not found")
        if self._vector_store is not None:
            self._vector_store.delete_profile(profile_id)
        del self.profiles[profile_id]

    def get_provider_name(self) -> str:
        return "memory"


class InMemoryJobStore(IJobStore):
    def __init__(self) -> None:
        self.jobs: dict[str, IndexingJob] = {}
        self.transitions: list[tuple[str, JobStatus]] = []

    async def create(self, job: IndexingJob) -> IndexingJob:
        stored = job.model_copy(update={"created_at": _now() + timedelta(microseconds=len(self.jobs))})
        self.jobs[stored.id] = stored
        return stored

    async def get(self, job_id: str) -> IndexingJob | None:
        return self.jobs.get(job_id)

    def _move(self, job_id: str, allowed: tuple[JobStatus, ...], **changes: Any) -> bool:
        job = self.jobs.get(job_id)
        if job is None or job.status not in allowed:
            return False
        self.jobs[job_id] = job.model_copy(update=changes)
        self.transitions.append((job_id, changes["status"]))
        return True

    async def mark_running(self, job_id: str) -> bool:
        return self._move(job_id, (JobStatus.PENDING,), status=JobStatus.RUNNING, started_at=_now())

    async def mark_completed(self, job_id: str, processed: int, failed: int) -> bool:
        return self._move(
            job_id,
            (JobStatus.RUNNING,),
            status=JobStatus.COMPLETED,
            processed_items=processed,
            failed_items=failed,
            total_items=processed + failed,
            finished_at=_now(),
        )

    async def mark_failed(self, job_id: str, error_message: str) -> bool:
        return self._move(
            job_id,
            (JobStatus.PENDING, JobStatus.RUNNING),
            status=JobStatus.FAILED,
            error_message=error_message,
            finished_at=_now(),
        )

    async def list(self, profile_id: str | None = None, limit: int = 50) -> list[IndexingJob]:
        jobs = [j for j in self.jobs.values() if profile_id is None or j.profile_id == profile_id]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)[:limit]


class InMemoryQueryLog(IQueryLogProvider):
    def __init__(self) -> None:
        self.queries: list[SearchQueryLog] = []
        self.fail = False

    async def log_query(self, profile_id: str | None, query_text: str, k: int) -> str:
        if self.fail:
            raise StoreError(message="query log unavailable", provider_name="memory")
        query_id = f"q-{len(self.queries) + 1}"
        self.queries.append(
            SearchQueryLog(
                id=query_id,
                profile_id=profile_id,
                query_text=query_text,
                k=k,
                created_at=_now() + timedelta(microseconds=len(self.queries)),
            )
        )
        return query_id

    async def log_results(self, query_id: str, hits: list[SearchHit]) -> None:
        index = next(i for i, q in enumerate(self.queries) if q.id == query_id)
        results = [
            SearchResultLog(
                id=f"{query_id}-r{position}",
                query_id=query_id,
                content_type=hit.content_type,
                content_id=hit.content_id,
                field_name=hit.field_name,
                locale=hit.locale,
                similarity_score=hit.similarity_score,
                metadata=hit.metadata,
                position=position,
            )
            for position, hit in enumerate(hits, start=1)
        ]
        self.queries[index] = self.queries[index].model_copy(update={"results": results})

    async def get_query_history(
        self,
        profile_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[SearchQueryLog]:
        validate_history_window(limit, offset)
        matching = [q for q in self.queries if profile_id is None or q.profile_id == profile_id]
        matching.sort(key=lambda q: q.created_at, reverse=True)
        return matching[offset : offset + limit]

    def get_provider_name(self) -> str:
        return "memory"


# ---------------------------------------------------------------------------
# Content source
# ---------------------------------------------------------------------------


class FakeContentSource(IContentSource):
    """Serves items per content-type uid; ``fail_uids`` raise ProviderError."""

    def __init__(self) -> None:
        self.items: dict[str, list[ContentItem]] = {}
        self.types: list[ContentTypeSchema] = []
        self.fail_uids: set[str] = set()
        self.requests: list[tuple[str, list[str] | None]] = []

    def add(self, uid: str, item_id: str, locale: str | None = None, **data: Any) -> ContentItem:
        item = ContentItem(id=item_id, content_type=uid, locale=locale, data=data)
        self.items.setdefault(uid, []).append(item)
        return item

    async def list_content_items(
        self,
        content_type_uid: str,
        only_published: bool = True,
        include_nested: list[str] | None = None,
    ) -> list[ContentItem]:
        self.requests.append((content_type_uid, include_nested))
        if content_type_uid in self.fail_uids:
            raise ProviderError(message=f"cannot fetch {content_type_uid}", provider_name="fake-cms")
        return list(self.items.get(content_type_uid, []))

    async def list_content_types(self) -> list[ContentTypeSchema]:
        return list(self.types)

    def get_provider_name(self) -> str:
        return "fake-cms"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        default_embedding_dimension=TEST_DIMENSION,
        content_api_url="http://cms.test",
        content_api_token="token-123",
        content_page_size=2,
    )


@pytest.fixture
def embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def profile_store(vector_store: InMemoryVectorStore) -> InMemoryProfileStore:
    return InMemoryProfileStore(vector_store)


@pytest.fixture
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def query_log() -> InMemoryQueryLog:
    return InMemoryQueryLog()


@pytest.fixture
def content_source() -> FakeContentSource:
    return FakeContentSource()


@pytest.fixture
def registry(profile_store: InMemoryProfileStore) -> ProfileRegistry:
    return ProfileRegistry(profile_store, default_dimension=TEST_DIMENSION)


@pytest.fixture
def vector_service(
    profile_store: InMemoryProfileStore,
    embedder: FakeEmbeddingProvider,
    vector_store: InMemoryVectorStore,
) -> VectorService:
    return VectorService(profile_store, embedder, vector_store)


@pytest.fixture
def indexer(
    profile_store: InMemoryProfileStore,
    content_source: FakeContentSource,
    vector_service: VectorService,
) -> Indexer:
    return Indexer(
        profile_store,
        content_source,
        vector_service,
        content_type_map={"Exam Question": "api::exam-question.exam-question"},
        concurrency=2,
    )


@pytest.fixture
def query_engine(
    embedder: FakeEmbeddingProvider,
    vector_store: InMemoryVectorStore,
    query_log: InMemoryQueryLog,
) -> QueryEngine:
    return QueryEngine(embedder, vector_store, query_log)


@pytest.fixture
def job_runner(indexer: Indexer, job_store: InMemoryJobStore, profile_store: InMemoryProfileStore) -> IndexingJobRunner:
    return IndexingJobRunner(indexer, job_store, profile_store)
