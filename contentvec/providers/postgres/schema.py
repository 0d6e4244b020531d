"""Idempotent DDL for the contentvec schema.

Every statement uses ``IF NOT EXISTS`` so :func:`create_schema` can run on
every startup.

# ─── TABLES ───────────────────────────────────────────────────────────
#
#   embedding_profiles          one row per profile
#   embedding_profile_fields    declared fields   (cascade on profile)
#   embedding_vectors           stored embeddings (cascade on profile)
#   embedding_jobs              indexing jobs     (profile set null)
#   embedding_queries           search history    (profile set null)
#   embedding_query_results     logged hits       (cascade on query)
#
# ``embedding_vectors.locale_key`` is a generated column holding
# ``COALESCE(locale, '')`` so the natural-key unique constraint treats
# "no locale" as one stable key.  Plain ``UNIQUE(..., locale)`` would not:
# PostgreSQL considers NULLs distinct.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncpg
import structlog

logger = structlog.get_logger(logger_name=__name__)

_CREATE_PROFILES_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS embedding_profiles (
    id                   uuid PRIMARY KEY,
    name                 varchar(255) NOT NULL,
    slug                 varchar(255) NOT NULL UNIQUE,
    description          text,
    enabled              boolean NOT NULL DEFAULT true,
    auto_sync            boolean NOT NULL DEFAULT false,
    embedding_model      varchar(255) NOT NULL DEFAULT 'text-embedding-3-small',
    embedding_dimension  integer NOT NULL DEFAULT 1536,
    distance_metric      varchar(16) NOT NULL DEFAULT 'cosine',
    created_at           timestamptz NOT NULL DEFAULT now(),
    updated_at           timestamptz NOT NULL DEFAULT now()
);
"""

_CREATE_PROFILE_FIELDS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS embedding_profile_fields (
    id            uuid PRIMARY KEY,
    profile_id    uuid NOT NULL REFERENCES embedding_profiles(id) ON DELETE CASCADE,
    content_type  varchar(255) NOT NULL,
    field_name    varchar(255) NOT NULL,
    enabled       boolean NOT NULL DEFAULT true,
    weight        numeric(6, 3) NOT NULL DEFAULT 1.0,
    created_at    timestamptz NOT NULL DEFAULT now(),
    updated_at    timestamptz NOT NULL DEFAULT now(),
    UNIQUE (profile_id, content_type, field_name)
);
"""

_CREATE_VECTORS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS embedding_vectors (
    id            uuid PRIMARY KEY,
    profile_id    uuid NOT NULL REFERENCES embedding_profiles(id) ON DELETE CASCADE,
    content_type  varchar(255) NOT NULL,
    content_id    varchar(255) NOT NULL,
    field_name    varchar(255) NOT NULL,
    locale        varchar(32),
    locale_key    varchar(32) GENERATED ALWAYS AS (COALESCE(locale, '')) STORED,
    embedding     vector({dimension}) NOT NULL,
    metadata      jsonb NOT NULL DEFAULT '{{}}'::jsonb,
    created_at    timestamptz NOT NULL DEFAULT now(),
    updated_at    timestamptz NOT NULL DEFAULT now(),
    CONSTRAINT embedding_vectors_natural_key
        UNIQUE (profile_id, content_type, content_id, field_name, locale_key)
);
"""

_CREATE_JOBS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS embedding_jobs (
    id               uuid PRIMARY KEY,
    profile_id       uuid REFERENCES embedding_profiles(id) ON DELETE SET NULL,
    type             varchar(50) NOT NULL,
    status           varchar(50) NOT NULL DEFAULT 'pending',
    total_items      integer,
    processed_items  integer NOT NULL DEFAULT 0,
    failed_items     integer NOT NULL DEFAULT 0,
    params           jsonb NOT NULL DEFAULT '{}'::jsonb,
    error_message    text,
    started_at       timestamptz,
    finished_at      timestamptz,
    created_at       timestamptz NOT NULL DEFAULT now()
);
"""

_CREATE_QUERIES_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS embedding_queries (
    id          uuid PRIMARY KEY,
    profile_id  uuid REFERENCES embedding_profiles(id) ON DELETE SET NULL,
    query_text  text NOT NULL,
    k           integer NOT NULL DEFAULT 10,
    created_at  timestamptz NOT NULL DEFAULT clock_timestamp()
);
"""

_CREATE_QUERY_RESULTS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS embedding_query_results (
    id                uuid PRIMARY KEY,
    query_id          uuid NOT NULL REFERENCES embedding_queries(id) ON DELETE CASCADE,
    content_type      varchar(255) NOT NULL,
    content_id        varchar(255) NOT NULL,
    field_name        varchar(255) NOT NULL,
    locale            varchar(32),
    similarity_score  double precision,
    metadata          jsonb NOT NULL DEFAULT '{}'::jsonb,
    position          integer NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_profile_fields_profile ON embedding_profile_fields(profile_id);",
    "CREATE INDEX IF NOT EXISTS idx_vectors_profile ON embedding_vectors(profile_id);",
    "CREATE INDEX IF NOT EXISTS idx_vectors_content ON embedding_vectors(content_type, content_id);",
    "CREATE INDEX IF NOT EXISTS idx_vectors_content_type ON embedding_vectors(content_type);",
    "CREATE INDEX IF NOT EXISTS idx_vectors_locale ON embedding_vectors(locale) WHERE locale IS NOT NULL;",
    "CREATE INDEX IF NOT EXISTS idx_vectors_metadata ON embedding_vectors USING GIN (metadata);",
    "CREATE INDEX IF NOT EXISTS idx_jobs_profile ON embedding_jobs(profile_id);",
    "CREATE INDEX IF NOT EXISTS idx_jobs_status ON embedding_jobs(status);",
    "CREATE INDEX IF NOT EXISTS idx_jobs_created ON embedding_jobs(created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_queries_profile ON embedding_queries(profile_id);",
    "CREATE INDEX IF NOT EXISTS idx_queries_created ON embedding_queries(created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_query_results_query ON embedding_query_results(query_id);",
    "CREATE INDEX IF NOT EXISTS idx_query_results_content ON embedding_query_results(content_type, content_id);",
]

# One HNSW index per operator class so every metric's ORDER BY is accelerated.
_HNSW_OPERATOR_CLASSES = {
    "cosine": "vector_cosine_ops",
    "l2": "vector_l2_ops",
    "dot": "vector_ip_ops",
}

_CREATE_HNSW_INDEX_SQL = """\
CREATE INDEX IF NOT EXISTS idx_vectors_embedding_hnsw_{metric}
ON embedding_vectors
USING hnsw (embedding {opclass})
WITH (m = 16, ef_construction = 64);
"""


def schema_statements(dimension: int) -> list[str]:
    """Return every DDL statement in execution order."""
    statements = [
        _CREATE_PROFILES_TABLE_SQL,
        _CREATE_PROFILE_FIELDS_TABLE_SQL,
        _CREATE_VECTORS_TABLE_SQL.format(dimension=int(dimension)),
        _CREATE_JOBS_TABLE_SQL,
        _CREATE_QUERIES_TABLE_SQL,
        _CREATE_QUERY_RESULTS_TABLE_SQL,
        *_CREATE_INDICES_SQL,
    ]
    statements.extend(
        _CREATE_HNSW_INDEX_SQL.format(metric=metric, opclass=opclass)
        for metric, opclass in _HNSW_OPERATOR_CLASSES.items()
    )
    return statements


async def create_schema(conn: asyncpg.Connection, dimension: int) -> None:
    """Create every table and index if missing, in one transaction."""
    async with conn.transaction():
        for statement in schema_statements(dimension):
            await conn.execute(statement)
    logger.info("schema_initialized", dimension=dimension)
