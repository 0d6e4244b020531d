"""Profile registry: validated create, lookup and cascading delete of profiles.

Every constraint is checked before the store is touched, so an invalid
request never leaves a partial profile behind.  Persistence itself is
delegated to an :class:`~contentvec.interfaces.profile_store.IProfileStore`.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Iterable

import structlog

from contentvec.interfaces.profile_store import IProfileStore
from contentvec.models.profile import (
    DEFAULT_EMBEDDING_DIMENSION,
    DEFAULT_EMBEDDING_MODEL,
    MAX_EMBEDDING_DIMENSION,
    DistanceMetric,
    Profile,
    ProfileField,
    ProfileFieldInput,
)
from contentvec.utils.errors import ValidationError
from contentvec.utils.field_path import FieldPath
from contentvec.utils.text_normalizer import suggest_identifier

logger = structlog.get_logger(logger_name=__name__)

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")


def _coerce_field(value: ProfileFieldInput | dict[str, Any]) -> ProfileFieldInput:
    if isinstance(value, ProfileFieldInput):
        return value
    return ProfileFieldInput(**value)


class ProfileRegistry:
    """Creates, reads and deletes embedding profiles.

    Parameters
    ----------
    store:
        Persistence backend.
    default_dimension, default_metric, default_model:
        Applied when a create request leaves them unset.
    supported_dimensions:
        When given, the only dimensions the vector store can hold.  The
        pgvector column is typed with a fixed dimension, so main wires the
        configured default here.
    """

    def __init__(
        self,
        store: IProfileStore,
        default_dimension: int = DEFAULT_EMBEDDING_DIMENSION,
        default_metric: DistanceMetric | str = DistanceMetric.COSINE,
        default_model: str = DEFAULT_EMBEDDING_MODEL,
        supported_dimensions: Iterable[int] | None = None,
    ) -> None:
        self._store = store
        self._default_dimension = default_dimension
        self._default_metric = DistanceMetric(default_metric)
        self._default_model = default_model
        self._supported_dimensions = (
            frozenset(supported_dimensions) if supported_dimensions is not None else None
        )

    async def create(
        self,
        name: str,
        slug: str,
        fields: list[ProfileFieldInput | dict[str, Any]],
        description: str | None = None,
        distance_metric: DistanceMetric | str | None = None,
        dimension: int | None = None,
        embedding_model: str | None = None,
        enabled: bool = True,
        auto_sync: bool = False,
    ) -> Profile:
        """Validate and persist a new profile with its fields.

        Raises
        ------
        ValidationError
            On any constraint violation; ``field`` names the offending input.
        ConflictError
            If *slug* is already taken.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(message="Profile name is required", field="name")
        if not isinstance(slug, str) or not _SLUG_RE.match(slug):
            raise ValidationError(
                message="Slug must contain only lowercase letters, numbers, and hyphens",
                field="slug",
            )
        if not fields:
            raise ValidationError(message="At least one field is required", field="fields")

        try:
            field_inputs = [_coerce_field(f) for f in fields]
        except (TypeError, ValueError) as exc:
            raise ValidationError(message=f"Invalid field declaration: {exc}", field="fields") from exc

        seen: set[tuple[str, str]] = set()
        for index, field in enumerate(field_inputs):
            if not field.content_type.strip() or not field.field_name.strip():
                raise ValidationError(
                    message=f"Field {index} must have content_type and field_name",
                    field=f"fields[{index}]",
                )
            try:
                FieldPath.parse(field.field_name)
            except ValueError as exc:
                raise ValidationError(message=str(exc), field=f"fields[{index}].field_name") from exc
            key = (field.content_type, field.field_name)
            if key in seen:
                raise ValidationError(
                    message=f"Duplicate field {field.content_type}.{field.field_name}",
                    field=f"fields[{index}]",
                )
            seen.add(key)

        metric_value = distance_metric if distance_metric is not None else self._default_metric
        try:
            metric = DistanceMetric(metric_value)
        except ValueError as exc:
            raise ValidationError(
                message=f"Unknown distance metric {metric_value!r}; expected cosine, l2 or dot",
                field="distance_metric",
            ) from exc

        dim = dimension if dimension is not None else self._default_dimension
        if isinstance(dim, bool) or not isinstance(dim, int) or not 1 <= dim <= MAX_EMBEDDING_DIMENSION:
            raise ValidationError(
                message=f"Dimension must be between 1 and {MAX_EMBEDDING_DIMENSION}",
                field="dimension",
            )
        if self._supported_dimensions is not None and dim not in self._supported_dimensions:
            raise ValidationError(
                message=(
                    f"Dimension {dim} is not supported by the vector store "
                    f"(supported: {sorted(self._supported_dimensions)})"
                ),
                field="dimension",
            )

        profile_id = str(uuid.uuid4())
        profile = Profile(
            id=profile_id,
            name=name.strip(),
            slug=slug,
            description=description,
            enabled=enabled,
            auto_sync=auto_sync,
            embedding_model=embedding_model or self._default_model,
            embedding_dimension=dim,
            distance_metric=metric,
            fields=[
                ProfileField(
                    id=str(uuid.uuid4()),
                    profile_id=profile_id,
                    content_type=f.content_type,
                    field_name=f.field_name,
                    enabled=f.enabled,
                    weight=f.weight,
                )
                for f in field_inputs
            ],
        )
        created = await self._store.create(profile)
        logger.info(
            "profile_registered",
            profile_id=created.id,
            slug=created.slug,
            fields=len(created.fields),
            metric=created.distance_metric.value,
            dimension=created.embedding_dimension,
        )
        return created

    async def get(self, profile_id: str) -> Profile | None:
        return await self._store.get(profile_id)

    async def get_by_identifier(self, identifier: str) -> Profile | None:
        """Look a profile up by slug, then by name."""
        profile = await self._store.get_by_slug(identifier)
        if profile is None:
            profile = await self._store.get_by_name(identifier)
        return profile

    async def list(self) -> list[Profile]:
        return await self._store.list()

    async def delete(self, profile_id: str) -> None:
        """Delete the profile, its fields and its vectors.

        Raises
        ------
        NotFoundError
            If the profile does not exist.
        """
        await self._store.delete(profile_id)
        logger.info("profile_removed", profile_id=profile_id)

    async def suggest(self, identifier: str) -> str | None:
        """Return the closest existing slug or name for a failed lookup."""
        profiles = await self._store.list()
        candidates = [p.slug for p in profiles] + [p.name for p in profiles]
        return suggest_identifier(identifier, candidates)
