"""Profile store implementations."""

from contentvec.providers.profile_store.postgres_profile_store import PostgresProfileStore

__all__ = ["PostgresProfileStore"]
