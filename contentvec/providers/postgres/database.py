"""Shared asyncpg connection pool for every PostgreSQL-backed provider.

The pgvector codec and a JSON codec for ``jsonb`` are registered on each
pooled connection, so providers pass ``list[float]`` embeddings and plain
``dict`` metadata straight through as bind parameters.

The ``vector`` extension must exist before the codec can be registered, so
:meth:`PostgresDatabase.connect` creates it over a one-off connection
before opening the pool.
"""

from __future__ import annotations

import json
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import asyncpg
import structlog
from pgvector.asyncpg import register_vector

from contentvec.config.settings import Settings
from contentvec.utils.errors import ConfigurationError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_CREATE_EXTENSION_SQL = "CREATE EXTENSION IF NOT EXISTS vector;"

# Errors a statement may raise that are wrapped as StoreError by providers.
STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


async def _init_connection(conn: asyncpg.Connection) -> None:
    await register_vector(conn)
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


class PostgresDatabase:
    """Owns the asyncpg pool; providers borrow connections from it."""

    def __init__(self, settings: Settings) -> None:
        self._dsn = settings.database_url
        self._min_size = settings.db_pool_min_size
        self._max_size = settings.db_pool_max_size
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Create the ``vector`` extension and open the pool.  Idempotent."""
        if self._pool is not None:
            return
        try:
            conn = await asyncpg.connect(self._dsn)
            try:
                await conn.execute(_CREATE_EXTENSION_SQL)
            finally:
                await conn.close()
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                init=_init_connection,
            )
        except STORE_ERRORS as exc:
            raise StoreError(
                message=f"Failed to connect to PostgreSQL: {exc}",
                provider_name="postgres",
            ) from exc
        logger.info("postgres_pool_opened", min_size=self._min_size, max_size=self._max_size)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("postgres_pool_closed")

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise ConfigurationError(
                message="Database pool is not open; call connect() first",
                provider_name="postgres",
            )
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection with an open transaction; rolled back on error."""
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn


def to_uuid(value: str | None) -> uuid.UUID | None:
    """Parse *value* as a UUID, returning ``None`` for anything unparseable.

    Lookups by a malformed id are treated as "not found" rather than as a
    driver error.
    """
    if value is None:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
