"""Unit tests for HttpContentProvider using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from contentvec.config.settings import Settings
from contentvec.providers.content.http_content_provider import HttpContentProvider
from contentvec.utils.errors import ProviderError, ProviderUnauthenticatedError

EXAM_UID = "api::exam-question.exam-question"

CONTENT_TYPES = {
    "data": [
        {
            "uid": EXAM_UID,
            "schema": {
                "displayName": "Exam Question",
                "pluralName": "exam-questions",
                "attributes": {
                    "question": {"type": "text"},
                    "difficulty": {"type": "integer"},
                    "question_variants": {"type": "component", "component": "exam.variant", "repeatable": True},
                },
            },
        },
        {
            "uid": "api::tag.tag",
            "schema": {"displayName": "Tag", "pluralName": "tags", "attributes": {"weight": {"type": "integer"}}},
        },
        {
            "uid": "plugin::users-permissions.user",
            "schema": {"displayName": "User", "pluralName": "users", "attributes": {"username": {"type": "string"}}},
        },
    ]
}

COMPONENTS = {
    "data": [
        {
            "uid": "exam.variant",
            "schema": {"attributes": {"question_variant": {"type": "richtext"}, "order": {"type": "integer"}}},
        }
    ]
}


def _provider(handler, settings: Settings) -> HttpContentProvider:
    client = httpx.AsyncClient(base_url="http://cms.test", transport=httpx.MockTransport(handler))
    return HttpContentProvider(settings, client=client)


class TestListContentItems:
    @pytest.mark.asyncio
    async def test_paginates_and_populates(self, settings: Settings) -> None:
        seen: list[httpx.QueryParams] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/content-type-builder/content-types":
                return httpx.Response(200, json=CONTENT_TYPES)
            assert request.url.path == "/api/exam-questions"
            seen.append(request.url.params)
            page = int(request.url.params["pagination[page]"])
            data = {
                1: [{"documentId": "a1", "question": "Q1"}, {"documentId": "a2", "question": "Q2"}],
                2: [{"documentId": "a3", "question": "Q3", "locale": "fr"}],
            }[page]
            return httpx.Response(200, json={"data": data, "meta": {"pagination": {"page": page, "pageCount": 2}}})

        items = await _provider(handler, settings).list_content_items(EXAM_UID, include_nested=["question_variants"])

        assert [i.id for i in items] == ["a1", "a2", "a3"]
        assert items[2].locale == "fr"
        assert items[0].locale is None
        assert items[0].content_type == EXAM_UID
        assert items[0].data["question"] == "Q1"
        assert [p["pagination[page]"] for p in seen] == ["1", "2"]
        assert seen[0]["pagination[pageSize]"] == "2"
        assert seen[0]["status"] == "published"
        assert seen[0]["populate[0]"] == "question_variants"

    @pytest.mark.asyncio
    async def test_wrapped_attributes_flattened(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/api/content-type-builder"):
                return httpx.Response(200, json=CONTENT_TYPES)
            return httpx.Response(
                200,
                json={"data": [{"id": 12, "attributes": {"question": "Wrapped?", "title": "Old shape"}}, {"attributes": {}}]},
            )

        items = await _provider(handler, settings).list_content_items(EXAM_UID)

        assert len(items) == 1
        assert items[0].id == "12"
        assert items[0].data["question"] == "Wrapped?"
        assert items[0].title == "Old shape"

    @pytest.mark.asyncio
    async def test_drafts_allowed_when_requested(self, settings: Settings) -> None:
        seen: list[httpx.QueryParams] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/api/content-type-builder"):
                return httpx.Response(200, json=CONTENT_TYPES)
            seen.append(request.url.params)
            return httpx.Response(200, json={"data": []})

        await _provider(handler, settings).list_content_items(EXAM_UID, only_published=False)

        assert "status" not in seen[0]

    @pytest.mark.asyncio
    async def test_plural_falls_back_to_singular_name(self, settings: Settings) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.startswith("/api/content-type-builder"):
                return httpx.Response(404)
            return httpx.Response(200, json={"data": []})

        await _provider(handler, settings).list_content_items("api::article.article")

        assert paths[-1] == "/api/article"

    @pytest.mark.asyncio
    async def test_schema_looked_up_once(self, settings: Settings) -> None:
        schema_calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal schema_calls
            if request.url.path.startswith("/api/content-type-builder"):
                schema_calls += 1
                return httpx.Response(200, json=CONTENT_TYPES)
            return httpx.Response(200, json={"data": []})

        provider = _provider(handler, settings)
        await provider.list_content_items(EXAM_UID)
        await provider.list_content_items(EXAM_UID)

        assert schema_calls == 1

    @pytest.mark.asyncio
    async def test_schema_retried_after_failure(self, settings: Settings) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.startswith("/api/content-type-builder"):
                if paths.count(request.url.path) == 1:
                    return httpx.Response(503)
                return httpx.Response(200, json=CONTENT_TYPES)
            return httpx.Response(200, json={"data": []})

        provider = _provider(handler, settings)
        await provider.list_content_items(EXAM_UID)
        await provider.list_content_items(EXAM_UID)
        await provider.list_content_items(EXAM_UID)

        assert paths == [
            "/api/content-type-builder/content-types",
            "/api/exam-question",
            "/api/content-type-builder/content-types",
            "/api/exam-questions",
            "/api/exam-questions",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("status", "error_cls"), [(401, ProviderUnauthenticatedError), (403, ProviderUnauthenticatedError), (500, ProviderError)])
    async def test_http_errors(self, settings: Settings, status: int, error_cls: type) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/api/content-type-builder"):
                return httpx.Response(200, json=CONTENT_TYPES)
            return httpx.Response(status)

        with pytest.raises(error_cls):
            await _provider(handler, settings).list_content_items(EXAM_UID)

    @pytest.mark.asyncio
    async def test_transport_error(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderError) as exc_info:
            await _provider(handler, settings).list_content_items(EXAM_UID)
        assert exc_info.value.provider_name == "cms"


class TestListContentTypes:
    @pytest.mark.asyncio
    async def test_text_and_component_fields(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/components"):
                return httpx.Response(200, json=COMPONENTS)
            return httpx.Response(200, json=CONTENT_TYPES)

        types = await _provider(handler, settings).list_content_types()

        assert len(types) == 1
        assert types[0].uid == EXAM_UID
        assert types[0].display_name == "Exam Question"
        assert types[0].fields == ["question", "question_variants.question_variant"]


class TestClientSetup:
    def test_bearer_token_header(self, settings: Settings) -> None:
        provider = HttpContentProvider(settings)
        assert provider._client.headers["Authorization"] == "Bearer token-123"
        assert provider.is_available() is True
        assert provider.get_provider_name() == "cms"

    def test_no_token_no_header(self, settings: Settings) -> None:
        provider = HttpContentProvider(settings.model_copy(update={"content_api_token": ""}))
        assert "Authorization" not in provider._client.headers
