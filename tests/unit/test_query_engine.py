"""Unit tests for QueryEngine ordering: validate, embed, search, then log."""

from __future__ import annotations

import pytest
import pytest_asyncio

from contentvec.models.vector import SearchOptions
from contentvec.services.query_engine import QueryEngine
from contentvec.utils.errors import InvalidInputError, InvalidRangeError, ProviderError, ValidationError

QUESTION = {"content_type": "Exam Question", "field_name": "question"}


@pytest_asyncio.fixture
async def seeded_profile(registry, vector_service, embedder):
    profile = await registry.create(name="Exam Questions", slug="exam-questions", fields=[QUESTION])
    embedder.vectors.update(
        {
            "cell biology": [1.0, 0.0, 0.0, 0.0],
            "What is a cell?": [0.9, 0.1, 0.0, 0.0],
            "What is a gene?": [0.1, 0.9, 0.0, 0.0],
            "Define osmosis.": [0.0, 0.0, 1.0, 0.0],
        }
    )
    for content_id, text, level in (("1", "What is a cell?", "1"), ("2", "What is a gene?", "2"), ("3", "Define osmosis.", "1")):
        await vector_service.upsert_embedding(
            profile.id, "Exam Question", content_id, "question", text, metadata={"level": level}
        )
    return profile


class TestSearch:
    @pytest.mark.asyncio
    async def test_ranked_by_cosine(self, query_engine: QueryEngine, seeded_profile) -> None:
        profile = seeded_profile

        hits = await query_engine.search("cell biology", SearchOptions(profile_id=profile.id, k=2), profile=profile)

        assert [h.content_id for h in hits] == ["1", "2"]
        assert hits[0].similarity_score == pytest.approx(1 - hits[0].distance)
        assert hits[0].similarity_score > hits[1].similarity_score

    @pytest.mark.asyncio
    async def test_l2_has_no_similarity(self, query_engine: QueryEngine, seeded_profile) -> None:
        hits = await query_engine.search("cell biology", SearchOptions(distance_metric="l2", k=3))

        assert hits[0].content_id == "1"
        assert all(h.similarity_score is None for h in hits)

    @pytest.mark.asyncio
    async def test_dot_similarity_is_negated_distance(self, query_engine: QueryEngine, seeded_profile) -> None:
        hits = await query_engine.search("cell biology", SearchOptions(distance_metric="dot", k=1))

        assert hits[0].similarity_score == pytest.approx(0.9)
        assert hits[0].distance == pytest.approx(-0.9)

    @pytest.mark.asyncio
    async def test_filters_and_threshold(self, query_engine: QueryEngine, seeded_profile) -> None:
        filtered = await query_engine.search("cell biology", SearchOptions(metadata_filters={"level": "1"}))
        assert {h.content_id for h in filtered} == {"1", "3"}

        thresholded = await query_engine.search("cell biology", SearchOptions(min_similarity=0.5))
        assert [h.content_id for h in thresholded] == ["1"]

    @pytest.mark.asyncio
    async def test_filter_on_key_absent_from_record(
        self, query_engine: QueryEngine, seeded_profile, vector_service
    ) -> None:
        await vector_service.upsert_embedding(
            seeded_profile.id, "Exam Question", "4", "question", "Untagged question", metadata={"topic": "cells"}
        )

        by_level = await query_engine.search("cell biology", SearchOptions(metadata_filters={"level": "1"}))
        unlevelled = await query_engine.search("cell biology", SearchOptions(metadata_filters={"level": None}))

        assert {h.content_id for h in by_level} == {"1", "3"}
        assert [h.content_id for h in unlevelled] == ["4"]

    @pytest.mark.asyncio
    async def test_empty_store_returns_empty(self, query_engine: QueryEngine) -> None:
        assert await query_engine.search("anything") == []

    @pytest.mark.asyncio
    async def test_profile_model_used_for_query_embedding(self, query_engine: QueryEngine, registry, embedder) -> None:
        profile = await registry.create(
            name="Custom", slug="custom", fields=[QUESTION], embedding_model="custom-model"
        )

        await query_engine.search("hello", profile=profile)

        assert embedder.calls[-1] == {"text": "hello", "model": "custom-model", "dimension": 4}


class TestValidationBeforeIO:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("text", "options", "error_cls"),
        [
            ("   ", SearchOptions(), InvalidInputError),
            ("hello", SearchOptions(k=0), InvalidRangeError),
            ("hello", SearchOptions(k=1001), InvalidRangeError),
            ("hello", SearchOptions(min_similarity=1.5), InvalidRangeError),
            ("hello", SearchOptions(distance_metric="hamming"), ValidationError),
        ],
    )
    async def test_rejected_without_embedding(
        self, query_engine: QueryEngine, embedder, query_log, text: str, options: SearchOptions, error_cls: type
    ) -> None:
        with pytest.raises(error_cls):
            await query_engine.search(text, options)

        assert embedder.calls == []
        assert query_log.queries == []


class TestHistoryLogging:
    @pytest.mark.asyncio
    async def test_logged_after_success(self, query_engine: QueryEngine, seeded_profile, query_log) -> None:
        profile = seeded_profile

        hits = await query_engine.search("cell biology", SearchOptions(profile_id=profile.id, k=2))

        assert len(query_log.queries) == 1
        logged = query_log.queries[0]
        assert (logged.profile_id, logged.query_text, logged.k) == (profile.id, "cell biology", 2)
        assert [r.content_id for r in logged.results] == [h.content_id for h in hits]
        assert [r.position for r in logged.results] == [1, 2]

    @pytest.mark.asyncio
    async def test_logging_can_be_disabled(self, query_engine: QueryEngine, query_log) -> None:
        await query_engine.search("hello", SearchOptions(log_query=False))
        assert query_log.queries == []

    @pytest.mark.asyncio
    async def test_log_failure_does_not_fail_search(self, query_engine: QueryEngine, seeded_profile, query_log) -> None:
        query_log.fail = True

        hits = await query_engine.search("cell biology")

        assert len(hits) == 3

    @pytest.mark.asyncio
    async def test_nothing_logged_when_embedding_fails(self, query_engine: QueryEngine, embedder, query_log) -> None:
        embedder.fail_on.add("hello")

        with pytest.raises(ProviderError):
            await query_engine.search("hello")

        assert query_log.queries == []

    @pytest.mark.asyncio
    async def test_engine_without_log(self, embedder, vector_store) -> None:
        engine = QueryEngine(embedder, vector_store)
        assert await engine.search("hello") == []
