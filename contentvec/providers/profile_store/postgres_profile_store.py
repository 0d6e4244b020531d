"""PostgreSQL-backed profile store.

Persists profiles and their fields to ``embedding_profiles`` and
``embedding_profile_fields``.  Create and delete each run in a single
transaction so a profile never exists without its fields and a delete
never leaves orphaned vectors behind.
"""

from __future__ import annotations

from decimal import Decimal

import asyncpg
import structlog

from contentvec.interfaces.profile_store import IProfileStore
from contentvec.models.profile import DistanceMetric, Profile, ProfileField
from contentvec.providers.postgres.database import STORE_ERRORS, PostgresDatabase, to_uuid
from contentvec.utils.errors import ConflictError, NotFoundError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_INSERT_PROFILE_SQL = """\
INSERT INTO embedding_profiles
    (id, name, slug, description, enabled, auto_sync,
     embedding_model, embedding_dimension, distance_metric)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
RETURNING created_at, updated_at;
"""

_INSERT_FIELD_SQL = """\
INSERT INTO embedding_profile_fields
    (id, profile_id, content_type, field_name, enabled, weight)
VALUES ($1, $2, $3, $4, $5, $6);
"""

_SELECT_PROFILE_COLUMNS = """\
SELECT id, name, slug, description, enabled, auto_sync, embedding_model,
       embedding_dimension, distance_metric, created_at, updated_at
FROM embedding_profiles
"""

_SELECT_BY_ID_SQL = _SELECT_PROFILE_COLUMNS + "WHERE id = $1;"
_SELECT_BY_SLUG_SQL = _SELECT_PROFILE_COLUMNS + "WHERE slug = $1;"
_SELECT_BY_NAME_SQL = _SELECT_PROFILE_COLUMNS + "WHERE name = $1 ORDER BY created_at DESC LIMIT 1;"
_SELECT_ALL_SQL = _SELECT_PROFILE_COLUMNS + "ORDER BY created_at DESC;"

_SELECT_FIELDS_SQL = """\
SELECT id, profile_id, content_type, field_name, enabled, weight
FROM embedding_profile_fields
WHERE profile_id = ANY($1::uuid[])
ORDER BY created_at, content_type, field_name;
"""

_DELETE_VECTORS_SQL = "DELETE FROM embedding_vectors WHERE profile_id = $1;"
_DELETE_FIELDS_SQL = "DELETE FROM embedding_profile_fields WHERE profile_id = $1;"
_DELETE_PROFILE_SQL = "DELETE FROM embedding_profiles WHERE id = $1;"


def _field_from_row(row: asyncpg.Record) -> ProfileField:
    return ProfileField(
        id=str(row["id"]),
        profile_id=str(row["profile_id"]),
        content_type=row["content_type"],
        field_name=row["field_name"],
        enabled=row["enabled"],
        weight=float(row["weight"]),
    )


def _profile_from_row(row: asyncpg.Record, fields: list[ProfileField]) -> Profile:
    return Profile(
        id=str(row["id"]),
        name=row["name"],
        slug=row["slug"],
        description=row["description"],
        enabled=row["enabled"],
        auto_sync=row["auto_sync"],
        embedding_model=row["embedding_model"],
        embedding_dimension=row["embedding_dimension"],
        distance_metric=DistanceMetric(row["distance_metric"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        fields=fields,
    )


class PostgresProfileStore(IProfileStore):
    """Profile persistence on the shared asyncpg pool."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    async def create(self, profile: Profile) -> Profile:
        try:
            async with self._db.transaction() as conn:
                row = await conn.fetchrow(
                    _INSERT_PROFILE_SQL,
                    to_uuid(profile.id),
                    profile.name,
                    profile.slug,
                    profile.description,
                    profile.enabled,
                    profile.auto_sync,
                    profile.embedding_model,
                    profile.embedding_dimension,
                    profile.distance_metric.value,
                )
                await conn.executemany(
                    _INSERT_FIELD_SQL,
                    [
                        (
                            to_uuid(f.id),
                            to_uuid(profile.id),
                            f.content_type,
                            f.field_name,
                            f.enabled,
                            Decimal(str(f.weight)),
                        )
                        for f in profile.fields
                    ],
                )
        except asyncpg.UniqueViolationError as exc:
            raise ConflictError(
                message=f"A profile with slug '{profile.slug}' already exists",
                provider_name=self.get_provider_name(),
            ) from exc
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Profile create failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("profile_created", profile_id=profile.id, slug=profile.slug)
        return profile.model_copy(
            update={"created_at": row["created_at"], "updated_at": row["updated_at"]}
        )

    async def get(self, profile_id: str) -> Profile | None:
        profile_uuid = to_uuid(profile_id)
        if profile_uuid is None:
            return None
        return await self._fetch_one(_SELECT_BY_ID_SQL, profile_uuid)

    async def get_by_slug(self, slug: str) -> Profile | None:
        return await self._fetch_one(_SELECT_BY_SLUG_SQL, slug)

    async def get_by_name(self, name: str) -> Profile | None:
        return await self._fetch_one(_SELECT_BY_NAME_SQL, name)

    async def list(self) -> list[Profile]:
        try:
            async with self._db.acquire() as conn:
                rows = await conn.fetch(_SELECT_ALL_SQL)
                fields = await self._fetch_fields(conn, [row["id"] for row in rows])
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Profile list failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return [_profile_from_row(row, fields.get(str(row["id"]), [])) for row in rows]

    async def delete(self, profile_id: str) -> None:
        profile_uuid = to_uuid(profile_id)
        if profile_uuid is None:
            raise NotFoundError(
                message=f"Profile {profile_id} not found",
                provider_name=self.get_provider_name(),
            )
        try:
            async with self._db.transaction() as conn:
                vectors = await conn.execute(_DELETE_VECTORS_SQL, profile_uuid)
                await conn.execute(_DELETE_FIELDS_SQL, profile_uuid)
                status = await conn.execute(_DELETE_PROFILE_SQL, profile_uuid)
                if status == "DELETE 0":
                    # Raising inside the block rolls the transaction back.
                    raise NotFoundError(
                        message=f"Profile {profile_id} not found",
                        provider_name=self.get_provider_name(),
                    )
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Profile delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "profile_deleted",
            profile_id=profile_id,
            vectors_deleted=int(vectors.split()[-1]),
        )

    def get_provider_name(self) -> str:
        return "postgres"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_one(self, sql: str, arg: object) -> Profile | None:
        try:
            async with self._db.acquire() as conn:
                row = await conn.fetchrow(sql, arg)
                if row is None:
                    return None
                fields = await self._fetch_fields(conn, [row["id"]])
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Profile lookup failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return _profile_from_row(row, fields.get(str(row["id"]), []))

    @staticmethod
    async def _fetch_fields(
        conn: asyncpg.Connection, profile_ids: list
    ) -> dict[str, list[ProfileField]]:
        if not profile_ids:
            return {}
        by_profile: dict[str, list[ProfileField]] = {}
        for row in await conn.fetch(_SELECT_FIELDS_SQL, profile_ids):
            field = _field_from_row(row)
            by_profile.setdefault(field.profile_id, []).append(field)
        return by_profile
