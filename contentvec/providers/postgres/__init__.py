"""PostgreSQL plumbing shared by the pgvector, profile, job and query-log providers."""

from contentvec.providers.postgres.database import PostgresDatabase
from contentvec.providers.postgres.schema import create_schema, schema_statements

__all__ = ["PostgresDatabase", "create_schema", "schema_statements"]
