"""Headless-CMS REST content source.

Reads published documents and content-type schemas from the host content
runtime's REST API over ``httpx``.  Handles both the flat item shape
(``{"documentId": ..., "title": ...}``) and the older wrapped shape
(``{"id": ..., "attributes": {...}}``).

# ─── ENDPOINTS ────────────────────────────────────────────────────────
#
#   GET {base}/api/{pluralName}?status=published&populate[0]=...
#       &pagination[page]=N&pagination[pageSize]=M
#   GET {base}/api/content-type-builder/content-types
#   GET {base}/api/content-type-builder/components
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from contentvec.config.settings import Settings
from contentvec.interfaces.content_source import IContentSource
from contentvec.models.content import ContentItem, ContentTypeSchema
from contentvec.utils.errors import ProviderError, ProviderUnauthenticatedError

logger = structlog.get_logger(logger_name=__name__)

_TEXT_FIELD_TYPES = frozenset({"text", "richtext", "string"})

# System content types never offered for embedding.
_SKIPPED_UID_PREFIXES = ("admin::", "plugin::")

_CONTENT_TYPES_PATH = "/api/content-type-builder/content-types"
_COMPONENTS_PATH = "/api/content-type-builder/components"


def _flatten_item(raw: dict[str, Any]) -> dict[str, Any]:
    """Return the item's attributes as one flat mapping."""
    if isinstance(raw.get("attributes"), dict):
        flat = dict(raw["attributes"])
        flat.setdefault("id", raw.get("id"))
        return flat
    return dict(raw)


def _text_fields(attributes: dict[str, Any]) -> list[str]:
    return [
        name
        for name, spec in attributes.items()
        if isinstance(spec, dict) and spec.get("type") in _TEXT_FIELD_TYPES
    ]


class HttpContentProvider(IContentSource):
    """Content source backed by the host CMS's REST API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._base_url = settings.content_api_url.rstrip("/")
        self._page_size = max(1, settings.content_page_size)
        headers = {"Accept": "application/json"}
        if settings.content_api_token:
            headers["Authorization"] = f"Bearer {settings.content_api_token}"
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url, headers=headers, timeout=30.0
        )
        self._plural_names: dict[str, str] | None = None

    # ------------------------------------------------------------------
    # IContentSource implementation
    # ------------------------------------------------------------------

    async def list_content_items(
        self,
        content_type_uid: str,
        only_published: bool = True,
        include_nested: list[str] | None = None,
    ) -> list[ContentItem]:
        plural = await self._plural_name(content_type_uid)
        base_params: dict[str, Any] = {"pagination[pageSize]": self._page_size}
        if only_published:
            base_params["status"] = "published"
        for index, name in enumerate(include_nested or []):
            base_params[f"populate[{index}]"] = name

        items: list[ContentItem] = []
        page = 1
        while True:
            payload = await self._get_json(
                f"/api/{plural}", params={**base_params, "pagination[page]": page}
            )
            for raw in payload.get("data") or []:
                data = _flatten_item(raw)
                item_id = data.get("documentId") or data.get("id")
                if item_id is None:
                    continue
                items.append(
                    ContentItem(
                        id=str(item_id),
                        content_type=content_type_uid,
                        locale=data.get("locale") or None,
                        data=data,
                    )
                )
            pagination = (payload.get("meta") or {}).get("pagination") or {}
            if page >= int(pagination.get("pageCount") or 1):
                break
            page += 1

        logger.info(
            "content_items_fetched",
            content_type=content_type_uid,
            count=len(items),
            pages=page,
        )
        return items

    async def list_content_types(self) -> list[ContentTypeSchema]:
        types_payload = await self._get_json(_CONTENT_TYPES_PATH)
        components_payload = await self._get_json(_COMPONENTS_PATH)

        component_fields = {
            entry.get("uid"): _text_fields((entry.get("schema") or {}).get("attributes") or {})
            for entry in components_payload.get("data") or []
        }

        result: list[ContentTypeSchema] = []
        for entry in types_payload.get("data") or []:
            uid = entry.get("uid") or ""
            if not uid or uid.startswith(_SKIPPED_UID_PREFIXES):
                continue
            schema = entry.get("schema") or {}
            fields: list[str] = []
            for name, spec in (schema.get("attributes") or {}).items():
                if not isinstance(spec, dict):
                    continue
                if spec.get("type") in _TEXT_FIELD_TYPES:
                    fields.append(name)
                elif spec.get("type") == "component":
                    children = component_fields.get(spec.get("component"), [])
                    fields.extend(f"{name}.{child}" for child in children)
            if fields:
                result.append(
                    ContentTypeSchema(
                        uid=uid,
                        display_name=schema.get("displayName") or uid,
                        fields=fields,
                    )
                )
        return result

    def get_provider_name(self) -> str:
        return "cms"

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _plural_name(self, uid: str) -> str:
        """Resolve the REST collection name for *uid*.

        Looked up from the content-type builder and cached after the first
        successful response.  While the schema endpoint is unavailable the
        uid's singular name is used and the lookup is retried next call.
        """
        plural_names = self._plural_names
        if plural_names is None:
            try:
                payload = await self._get_json(_CONTENT_TYPES_PATH)
            except ProviderError as exc:
                logger.warning("content_type_schema_unavailable", error=str(exc))
                plural_names = {}
            else:
                plural_names = self._plural_names = {
                    entry.get("uid"): (entry.get("schema") or {}).get("pluralName")
                    for entry in payload.get("data") or []
                    if (entry.get("schema") or {}).get("pluralName")
                }

        plural = plural_names.get(uid)
        if plural:
            return plural
        singular = uid.split(".")[-1] if "." in uid else uid.split("::")[-1]
        logger.warning("content_type_plural_unknown", uid=uid, fallback=singular)
        return singular

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"Content API request to {path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code in (401, 403):
            raise ProviderUnauthenticatedError(
                message=f"Content API rejected the token ({response.status_code})",
                provider_name=self.get_provider_name(),
            )
        if response.status_code >= 400:
            raise ProviderError(
                message=f"Content API returned HTTP {response.status_code} for {path}",
                provider_name=self.get_provider_name(),
            )
        return response.json()
