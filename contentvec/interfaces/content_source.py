"""Abstract base class for the host content source.

The host content runtime owns documents and their schema.  The Indexer
reads published items through this boundary; the API lists content types
through it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from contentvec.models.content import ContentItem, ContentTypeSchema


# Concrete implementation: HttpContentProvider (contentvec/providers/content/)
class IContentSource(ABC):
    """Contract for reading documents from the host content runtime."""

    @abstractmethod
    async def list_content_items(
        self,
        content_type_uid: str,
        only_published: bool = True,
        include_nested: list[str] | None = None,
    ) -> list[ContentItem]:
        """Return every item of one content type.

        Parameters
        ----------
        content_type_uid:
            Canonical identifier, e.g. ``"api::article.article"``.
        only_published:
            Restrict to published documents.
        include_nested:
            Top-level attributes holding nested components that must be
            loaded with each item (the roots of dotted field paths).

        Raises
        ------
        contentvec.utils.errors.ProviderError
            If the host cannot be reached or rejects the request.
        """

    @abstractmethod
    async def list_content_types(self) -> list[ContentTypeSchema]:
        """Return content types with their embeddable text fields."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this source."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the source is configured."""
