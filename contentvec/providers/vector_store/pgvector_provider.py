"""PostgreSQL + pgvector vector store adapter.

Implements :class:`IVectorStoreProvider` on the ``embedding_vectors``
table.  Nearest-neighbour ranking is delegated to pgvector's HNSW indexes;
this module only builds the SQL.

# ─── OPERATORS AND SIMILARITY ─────────────────────────────────────────
#
#   metric   operator   distance                 similarity_score
#   ──────   ────────   ──────────────────────   ────────────────
#   cosine   <=>        cosine distance [0, 2]   1 - distance
#   l2       <->        Euclidean distance       NULL (unbounded)
#   dot      <#>        negative inner product   distance * -1
#
# ORDER BY always uses the bare operator expression so the planner can
# pick the HNSW index for that operator class.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
import uuid
from typing import Any

import structlog

from contentvec.interfaces.vector_store_provider import IVectorStoreProvider
from contentvec.models.profile import DistanceMetric
from contentvec.models.vector import SearchHit, VectorRecord
from contentvec.providers.postgres.database import STORE_ERRORS, PostgresDatabase, to_uuid
from contentvec.utils.errors import StoreError, ValidationError
from contentvec.utils.validation import parse_metric, validate_search_bounds

logger = structlog.get_logger(logger_name=__name__)

_OPERATORS: dict[DistanceMetric, str] = {
    DistanceMetric.COSINE: "<=>",
    DistanceMetric.L2: "<->",
    DistanceMetric.DOT: "<#>",
}

_UPSERT_SQL = """\
INSERT INTO embedding_vectors
    (id, profile_id, content_type, content_id, field_name, locale, embedding, metadata)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
ON CONFLICT (profile_id, content_type, content_id, field_name, locale_key)
DO UPDATE SET
    embedding  = EXCLUDED.embedding,
    metadata   = EXCLUDED.metadata,
    updated_at = clock_timestamp()
RETURNING id, profile_id, content_type, content_id, field_name, locale,
          metadata, created_at, updated_at;
"""

_DELETE_BY_CONTENT_SQL = """\
DELETE FROM embedding_vectors WHERE content_type = $1 AND content_id = $2;
"""

_COUNT_SQL = "SELECT COUNT(*) FROM embedding_vectors;"
_COUNT_BY_PROFILE_SQL = "SELECT COUNT(*) FROM embedding_vectors WHERE profile_id = $1;"


def _filter_text(value: Any) -> str:
    """Render a filter value the way ``jsonb ->>`` renders the stored value."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _similarity_expr(metric: DistanceMetric, distance_expr: str) -> str:
    if metric is DistanceMetric.COSINE:
        return f"1 - ({distance_expr})"
    if metric is DistanceMetric.DOT:
        return f"({distance_expr}) * -1"
    return "NULL::float8"


def build_search_query(
    query_embedding: Any,
    distance_metric: DistanceMetric | str = DistanceMetric.COSINE,
    k: int = 10,
    profile_id: Any = None,
    content_type: str | None = None,
    metadata_filters: dict[str, Any] | None = None,
    min_similarity: float | None = None,
) -> tuple[str, list[Any]]:
    """Build the nearest-neighbour SELECT and its bind parameters.

    Pure function: no I/O.  Metadata filter keys and values are bound as
    parameters, never interpolated.  ``min_similarity`` becomes a WHERE
    predicate for cosine and dot and is ignored for l2.

    Returns
    -------
    tuple[str, list]
        ``(sql, params)`` ready for ``asyncpg.Connection.fetch(sql, *params)``.
    """
    metric = parse_metric(distance_metric)
    validate_search_bounds(k, min_similarity)

    op = _OPERATORS[metric]
    params: list[Any] = [query_embedding]
    distance_expr = f"embedding {op} $1"
    similarity_expr = _similarity_expr(metric, distance_expr)
    where: list[str] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    if profile_id is not None:
        where.append(f"profile_id = {bind(profile_id)}")
    if content_type is not None:
        where.append(f"content_type = {bind(content_type)}")
    for key, value in (metadata_filters or {}).items():
        key_ref = bind(str(key))
        if value is None:
            where.append(f"(metadata ->> {key_ref}::text) IS NULL")
        else:
            where.append(f"(metadata ->> {key_ref}::text) = {bind(_filter_text(value))}")
    if min_similarity is not None and metric is not DistanceMetric.L2:
        where.append(f"{similarity_expr} >= {bind(float(min_similarity))}")

    where_sql = f"WHERE {' AND '.join(where)}\n" if where else ""
    sql = (
        "SELECT id, profile_id, content_type, content_id, field_name, locale, metadata,\n"
        f"       {distance_expr} AS distance,\n"
        f"       {similarity_expr} AS similarity_score\n"
        "FROM embedding_vectors\n"
        f"{where_sql}"
        f"ORDER BY {distance_expr}\n"
        f"LIMIT {bind(k)};"
    )
    return sql, params


class PgVectorStoreProvider(IVectorStoreProvider):
    """Vector store gateway over PostgreSQL with the pgvector extension."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

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
        profile_uuid = to_uuid(profile_id)
        if profile_uuid is None:
            raise ValidationError(message=f"Invalid profile id {profile_id!r}", field="profile_id")
        try:
            async with self._db.acquire() as conn:
                row = await conn.fetchrow(
                    _UPSERT_SQL,
                    uuid.uuid4(),
                    profile_uuid,
                    content_type,
                    str(content_id),
                    field_name,
                    locale,
                    embedding,
                    metadata or {},
                )
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Vector upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return VectorRecord(
            id=str(row["id"]),
            profile_id=str(row["profile_id"]),
            content_type=row["content_type"],
            content_id=row["content_id"],
            field_name=row["field_name"],
            locale=row["locale"],
            embedding=list(embedding),
            metadata=row["metadata"] or {},
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

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
        profile_uuid = None
        if profile_id is not None:
            profile_uuid = to_uuid(profile_id)
            if profile_uuid is None:
                # Validate the remaining arguments even though nothing can match.
                validate_search_bounds(k, min_similarity)
                parse_metric(distance_metric)
                return []

        sql, params = build_search_query(
            query_embedding,
            distance_metric=distance_metric,
            k=k,
            profile_id=profile_uuid,
            content_type=content_type,
            metadata_filters=metadata_filters,
            min_similarity=min_similarity,
        )
        try:
            async with self._db.acquire() as conn:
                rows = await conn.fetch(sql, *params)
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Vector search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return [
            SearchHit(
                id=str(row["id"]),
                profile_id=str(row["profile_id"]),
                content_type=row["content_type"],
                content_id=row["content_id"],
                field_name=row["field_name"],
                locale=row["locale"],
                metadata=row["metadata"] or {},
                distance=float(row["distance"]),
                similarity_score=(
                    float(row["similarity_score"])
                    if row["similarity_score"] is not None
                    else None
                ),
            )
            for row in rows
        ]

    async def delete_by_content(self, content_type: str, content_id: str) -> int:
        try:
            async with self._db.acquire() as conn:
                status = await conn.execute(_DELETE_BY_CONTENT_SQL, content_type, str(content_id))
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Vector delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        # asyncpg returns the command tag, e.g. "DELETE 3".
        deleted = int(status.split()[-1])
        logger.info(
            "vectors_deleted_for_content",
            content_type=content_type,
            content_id=content_id,
            deleted=deleted,
        )
        return deleted

    async def count(self, profile_id: str | None = None) -> int:
        try:
            async with self._db.acquire() as conn:
                if profile_id is None:
                    return int(await conn.fetchval(_COUNT_SQL))
                profile_uuid = to_uuid(profile_id)
                if profile_uuid is None:
                    return 0
                return int(await conn.fetchval(_COUNT_BY_PROFILE_SQL, profile_uuid))
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Vector count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "pgvector"

    def is_available(self) -> bool:
        return self._db.is_connected
