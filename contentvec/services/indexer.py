"""Indexer: walks a profile's content and upserts one vector per text value.

# ─── INDEXING RUN (Junior Developer Guide) ────────────────────────────
#
#   1. Load the profile               → NotFoundError / NoFieldsConfiguredError
#   2. Group enabled fields by content type
#   3. Per content type:
#        resolve its canonical uid, fetch published items with every
#        nested root populated.  A fetch failure counts ONE failure and
#        the run moves on to the next content type.
#   4. Per item × field: FieldPath.resolve() yields zero or more text
#      values ("units").  Each unit is embedded and upserted; a unit
#      failure is logged and counted, never fatal.  Units run
#      concurrently behind a semaphore (indexing_concurrency).
#   5. Return {processed, failed}.
#
# Re-running overwrites vectors in place (natural-key upsert).  Vectors
# for content that has since disappeared are NOT removed here.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

import structlog

from contentvec.interfaces.content_source import IContentSource
from contentvec.interfaces.profile_store import IProfileStore
from contentvec.models.content import ContentItem
from contentvec.models.job import IndexingRunResult
from contentvec.models.profile import Profile, ProfileField
from contentvec.services.vector_service import VectorService
from contentvec.utils.concurrency import throttled_gather
from contentvec.utils.errors import ContentVecError, NoFieldsConfiguredError, NotFoundError
from contentvec.utils.field_path import FieldPath, ResolvedValue, nested_roots
from contentvec.utils.text_normalizer import to_kebab_case

logger = structlog.get_logger(logger_name=__name__)


def resolve_content_type_uid(label: str, mapping: dict[str, str] | None = None) -> str:
    """Return the host's canonical identifier for a profile content-type label.

    Resolution order: explicit *mapping* entry, the label itself when it
    already looks like an identifier (contains ``::``), otherwise a derived
    ``api::<kebab>.<kebab>`` with a warning.
    """
    if mapping and label in mapping:
        return mapping[label]
    if "::" in label:
        return label
    kebab = to_kebab_case(label)
    derived = f"api::{kebab}.{kebab}"
    logger.warning("content_type_uid_derived", label=label, uid=derived)
    return derived


class Indexer:
    """Runs full indexing passes for one profile at a time."""

    def __init__(
        self,
        profile_store: IProfileStore,
        content_source: IContentSource,
        vector_service: VectorService,
        content_type_map: dict[str, str] | None = None,
        concurrency: int = 4,
    ) -> None:
        self._profiles = profile_store
        self._content = content_source
        self._vectors = vector_service
        self._content_type_map = dict(content_type_map or {})
        self._concurrency = max(1, concurrency)

    async def run(self, profile_id: str) -> IndexingRunResult:
        """Index every enabled field of *profile_id*.

        Raises
        ------
        NotFoundError
            If the profile does not exist.
        NoFieldsConfiguredError
            If the profile has no enabled fields.
        """
        profile = await self._profiles.get(profile_id)
        if profile is None:
            raise NotFoundError(message=f"Profile {profile_id} not found")
        fields = profile.enabled_fields
        if not fields:
            raise NoFieldsConfiguredError(message=f"Profile {profile_id} has no fields configured")

        by_content_type: dict[str, list[ProfileField]] = defaultdict(list)
        for field in fields:
            by_content_type[field.content_type].append(field)

        logger.info(
            "indexing_started",
            profile_id=profile.id,
            content_types=len(by_content_type),
            fields=len(fields),
        )

        semaphore = asyncio.Semaphore(self._concurrency)
        processed = 0
        failed = 0
        for content_type, ct_fields in by_content_type.items():
            ct_processed, ct_failed = await self._index_content_type(
                profile, content_type, ct_fields, semaphore
            )
            processed += ct_processed
            failed += ct_failed

        logger.info(
            "indexing_completed",
            profile_id=profile.id,
            processed=processed,
            failed=failed,
        )
        return IndexingRunResult(processed=processed, failed=failed)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _index_content_type(
        self,
        profile: Profile,
        content_type: str,
        fields: list[ProfileField],
        semaphore: asyncio.Semaphore,
    ) -> tuple[int, int]:
        paths: list[FieldPath] = []
        failed = 0
        for field in fields:
            try:
                paths.append(FieldPath.parse(field.field_name))
            except ValueError as exc:
                logger.error(
                    "field_path_invalid",
                    profile_id=profile.id,
                    content_type=content_type,
                    field_name=field.field_name,
                    error=str(exc),
                )
                failed += 1

        uid = resolve_content_type_uid(content_type, self._content_type_map)
        try:
            items = await self._content.list_content_items(
                uid,
                only_published=True,
                include_nested=nested_roots([p.raw for p in paths]),
            )
        except ContentVecError as exc:
            logger.error(
                "content_fetch_failed",
                profile_id=profile.id,
                content_type=content_type,
                uid=uid,
                error=str(exc),
            )
            return 0, failed + 1

        logger.info("content_type_processing", content_type=content_type, uid=uid, items=len(items))

        units: list[tuple[ContentItem, ResolvedValue]] = []
        for item in items:
            for path in paths:
                resolved = path.resolve(item.data)
                if not resolved:
                    logger.debug(
                        "field_skipped_no_text",
                        content_type=content_type,
                        content_id=item.id,
                        field_name=path.raw,
                    )
                units.extend((item, value) for value in resolved)

        results = await throttled_gather(
            [self._index_unit(profile, content_type, item, value) for item, value in units],
            semaphore=semaphore,
        )

        processed = 0
        for (item, value), outcome in zip(units, results):
            if isinstance(outcome, Exception):
                failed += 1
                logger.error(
                    "embedding_unit_failed",
                    profile_id=profile.id,
                    content_type=content_type,
                    content_id=item.id,
                    field_name=value.key,
                    error_type=type(outcome).__name__,
                    error=str(outcome),
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                processed += 1
        return processed, failed

    async def _index_unit(
        self,
        profile: Profile,
        content_type: str,
        item: ContentItem,
        value: ResolvedValue,
    ) -> None:
        metadata: dict[str, Any] = {"title": item.title}
        if value.element_index is not None:
            metadata["component_index"] = value.element_index
        await self._vectors.upsert_embedding(
            profile_id=profile.id,
            content_type=content_type,
            content_id=item.id,
            field_name=value.key,
            text=value.text,
            locale=item.locale,
            metadata=metadata,
            profile=profile,
        )
