"""Single-field embedding writes and content deletion.

:meth:`VectorService.upsert_embedding` is the one write path used by both
the Indexer and the manual ``/generate`` endpoint: embed with the
profile's model and dimension, let the provider's integrity check reject a
bad vector, then upsert at the natural key.
"""

from __future__ import annotations

from typing import Any

import structlog

from contentvec.interfaces.embedding_provider import IEmbeddingProvider
from contentvec.interfaces.profile_store import IProfileStore
from contentvec.interfaces.vector_store_provider import IVectorStoreProvider
from contentvec.models.profile import Profile
from contentvec.models.vector import VectorRecord
from contentvec.utils.errors import NotFoundError, ValidationError

logger = structlog.get_logger(logger_name=__name__)


class VectorService:
    """Embeds text and writes the result to the vector store."""

    def __init__(
        self,
        profile_store: IProfileStore,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
    ) -> None:
        self._profiles = profile_store
        self._embedder = embedding_provider
        self._vectors = vector_store

    async def upsert_embedding(
        self,
        profile_id: str,
        content_type: str,
        content_id: str,
        field_name: str,
        text: str,
        locale: str | None = None,
        metadata: dict[str, Any] | None = None,
        profile: Profile | None = None,
    ) -> VectorRecord:
        """Embed *text* and upsert it under the natural key.

        *profile* may be passed by callers that already loaded it (the
        Indexer does, once per run) to skip the lookup.

        Raises
        ------
        ValidationError
            If a required parameter is missing.
        NotFoundError
            If the profile does not exist.
        EmbeddingIntegrityError
            If the provider returned an unusable vector; nothing is written.
        """
        required = {
            "profile_id": profile_id,
            "content_type": content_type,
            "content_id": content_id,
            "field_name": field_name,
            "text": text,
        }
        for name, value in required.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(message=f"{name} is required", field=name)

        if profile is None:
            profile = await self._profiles.get(profile_id)
            if profile is None:
                raise NotFoundError(message=f"Profile {profile_id} not found")

        embedding = await self._embedder.embed(
            text,
            model=profile.embedding_model,
            dimension=profile.embedding_dimension,
        )
        record = await self._vectors.upsert(
            profile_id=profile.id,
            content_type=content_type,
            content_id=str(content_id),
            field_name=field_name,
            locale=locale or None,
            embedding=embedding,
            metadata=metadata or {},
        )
        logger.debug(
            "embedding_upserted",
            profile_id=profile.id,
            content_type=content_type,
            content_id=content_id,
            field_name=field_name,
            locale=locale,
        )
        return record

    async def delete_content(self, content_type: str, content_id: str) -> int:
        """Remove every vector for one content item across all profiles."""
        if not content_type or not content_id:
            raise ValidationError(
                message="content_type and content_id are required", field="content_id"
            )
        return await self._vectors.delete_by_content(content_type, str(content_id))
