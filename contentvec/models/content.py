"""Content models describing documents owned by the host content runtime.

The host CMS is an external collaborator; these models capture only what
the Indexer and the ``/content-types`` endpoint need from it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentItem(BaseModel):
    """A published document fetched from the content source.

    ``data`` is the item's raw attribute mapping, nested components
    included, as returned by the host.  Field paths resolve against it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    content_type: str
    locale: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def title(self) -> str | None:
        """Display title: the item's ``title``, else its ``name``, else None."""
        for key in ("title", "name"):
            value = self.data.get(key)
            if isinstance(value, str) and value:
                return value
        return None


class ContentTypeSchema(BaseModel):
    """A content type and the text fields available for embedding.

    ``fields`` lists direct text fields; nested component children appear
    as dotted paths (``component.child``).
    """

    model_config = ConfigDict(frozen=True)

    uid: str
    display_name: str
    fields: list[str] = Field(default_factory=list)
