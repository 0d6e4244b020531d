"""Abstract base class for profile persistence.

The store is a thin persistence boundary: validation lives in
:class:`~contentvec.services.profile_registry.ProfileRegistry`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from contentvec.models.profile import Profile


# Concrete implementation: PostgresProfileStore (contentvec/providers/profile_store/)
class IProfileStore(ABC):
    """Contract for storing profiles together with their fields."""

    @abstractmethod
    async def create(self, profile: Profile) -> Profile:
        """Insert the profile row and all field rows in one transaction.

        Raises
        ------
        contentvec.utils.errors.ConflictError
            If the slug is already taken.  Nothing is written.
        """

    @abstractmethod
    async def get(self, profile_id: str) -> Profile | None:
        """Return the profile with its fields, or ``None``."""

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Profile | None:
        """Return the profile whose slug equals *slug*, or ``None``."""

    @abstractmethod
    async def get_by_name(self, name: str) -> Profile | None:
        """Return the profile whose name equals *name*, or ``None``."""

    @abstractmethod
    async def list(self) -> list[Profile]:
        """Return every profile with its fields, newest first."""

    @abstractmethod
    async def delete(self, profile_id: str) -> None:
        """Delete the profile's vectors, fields and row in one transaction.

        Raises
        ------
        contentvec.utils.errors.NotFoundError
            If no such profile exists.  The transaction is rolled back.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
