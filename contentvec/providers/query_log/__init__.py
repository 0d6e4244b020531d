"""Search history log implementations."""

from contentvec.providers.query_log.postgres_query_log_provider import PostgresQueryLogProvider

__all__ = ["PostgresQueryLogProvider"]
