"""PostgreSQL-backed search history log.

Writes one ``embedding_queries`` row per successful search and one
``embedding_query_results`` row per hit.  Reads return queries newest
first with their results ordered by position.
"""

from __future__ import annotations

import uuid

import structlog

from contentvec.interfaces.query_log_provider import IQueryLogProvider
from contentvec.models.query_log import SearchQueryLog, SearchResultLog
from contentvec.models.vector import SearchHit
from contentvec.providers.postgres.database import STORE_ERRORS, PostgresDatabase, to_uuid
from contentvec.utils.errors import StoreError
from contentvec.utils.validation import validate_history_window

logger = structlog.get_logger(logger_name=__name__)

_INSERT_QUERY_SQL = """\
INSERT INTO embedding_queries (id, profile_id, query_text, k)
VALUES ($1, $2, $3, $4);
"""

_INSERT_RESULT_SQL = """\
INSERT INTO embedding_query_results
    (id, query_id, content_type, content_id, field_name, locale,
     similarity_score, metadata, position)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9);
"""

_SELECT_QUERIES_SQL = """\
SELECT id, profile_id, query_text, k, created_at
FROM embedding_queries
ORDER BY created_at DESC
LIMIT $1 OFFSET $2;
"""

_SELECT_QUERIES_BY_PROFILE_SQL = """\
SELECT id, profile_id, query_text, k, created_at
FROM embedding_queries
WHERE profile_id = $3
ORDER BY created_at DESC
LIMIT $1 OFFSET $2;
"""

_SELECT_RESULTS_SQL = """\
SELECT id, query_id, content_type, content_id, field_name, locale,
       similarity_score, metadata, position
FROM embedding_query_results
WHERE query_id = ANY($1::uuid[])
ORDER BY query_id, position;
"""


class PostgresQueryLogProvider(IQueryLogProvider):
    """Append-only search history on the shared asyncpg pool."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    async def log_query(self, profile_id: str | None, query_text: str, k: int) -> str:
        query_id = uuid.uuid4()
        try:
            async with self._db.acquire() as conn:
                await conn.execute(
                    _INSERT_QUERY_SQL, query_id, to_uuid(profile_id), query_text, k
                )
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Query log insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return str(query_id)

    async def log_results(self, query_id: str, hits: list[SearchHit]) -> None:
        if not hits:
            return
        query_uuid = to_uuid(query_id)
        rows = [
            (
                uuid.uuid4(),
                query_uuid,
                hit.content_type,
                hit.content_id,
                hit.field_name,
                hit.locale,
                hit.similarity_score,
                hit.metadata,
                position,
            )
            for position, hit in enumerate(hits, start=1)
        ]
        try:
            async with self._db.transaction() as conn:
                await conn.executemany(_INSERT_RESULT_SQL, rows)
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Query result log insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def get_query_history(
        self,
        profile_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[SearchQueryLog]:
        validate_history_window(limit, offset)
        try:
            async with self._db.acquire() as conn:
                if profile_id is None:
                    query_rows = await conn.fetch(_SELECT_QUERIES_SQL, limit, offset)
                else:
                    profile_uuid = to_uuid(profile_id)
                    if profile_uuid is None:
                        return []
                    query_rows = await conn.fetch(
                        _SELECT_QUERIES_BY_PROFILE_SQL, limit, offset, profile_uuid
                    )
                result_rows = (
                    await conn.fetch(_SELECT_RESULTS_SQL, [row["id"] for row in query_rows])
                    if query_rows
                    else []
                )
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Query history read failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        results: dict[str, list[SearchResultLog]] = {}
        for row in result_rows:
            entry = SearchResultLog(
                id=str(row["id"]),
                query_id=str(row["query_id"]),
                content_type=row["content_type"],
                content_id=row["content_id"],
                field_name=row["field_name"],
                locale=row["locale"],
                similarity_score=(
                    float(row["similarity_score"]) if row["similarity_score"] is not None else None
                ),
                metadata=row["metadata"] or {},
                position=row["position"],
            )
            results.setdefault(entry.query_id, []).append(entry)

        return [
            SearchQueryLog(
                id=str(row["id"]),
                profile_id=str(row["profile_id"]) if row["profile_id"] else None,
                query_text=row["query_text"],
                k=row["k"],
                created_at=row["created_at"],
                results=results.get(str(row["id"]), []),
            )
            for row in query_rows
        ]

    def get_provider_name(self) -> str:
        return "postgres"
