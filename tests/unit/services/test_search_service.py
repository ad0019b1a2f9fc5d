"""Unit tests for SearchService."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given
from hypothesis import strategies as st

from scrapbook.core.deadline import Deadline
from scrapbook.core.errors import DeadlineExceeded, InvalidInput
from scrapbook.services.models import (
    ContentItem,
    NewContentItem,
    SearchRequest,
    SearchResult,
    SimilarityResult,
)
from scrapbook.services.search_service import SearchService, merge_results


def result(id_: str) -> SearchResult:
    return SearchResult(
        id=id_,
        title=None,
        description=None,
        content_type="text",
        tags=[],
        source_url=None,
        created_at=datetime.now(timezone.utc),
    )


def item(id_: str, content_type: str = "url") -> ContentItem:
    return ContentItem(id=id_, user_id="alice", content_type=content_type, raw_content=id_)


@pytest.mark.unit
class TestMergeResults:
    """Tests for merge_results."""

    def test_semantic_first_without_duplicates(self):
        merged = merge_results([result("a"), result("b")], [result("b"), result("c")], 10)
        assert [r.id for r in merged] == ["a", "b", "c"]

    def test_limit(self):
        merged = merge_results([result("a")], [result("b"), result("c")], 2)
        assert [r.id for r in merged] == ["a", "b"]

    def test_merge_properties(self):
        ids = st.lists(st.sampled_from("abcdefgh"), unique=True, max_size=8)

        @given(ids, ids, st.integers(min_value=1, max_value=10))
        def check(semantic_ids, keyword_ids, limit):
            merged = [r.id for r in merge_results(
                [result(i) for i in semantic_ids], [result(i) for i in keyword_ids], limit
            )]
            assert len(merged) <= limit
            assert len(merged) == len(set(merged))
            expected = semantic_ids + [i for i in keyword_ids if i not in semantic_ids]
            assert merged == expected[:limit]

        check()


@pytest.mark.unit
class TestSearchService:
    """Tests for SearchService.search against the in-memory repositories."""

    async def seed(self, content_repo, embedding_repo, fake_llm):
        created = {}
        for text, content_type in [
            ("python asyncio event loop", "url"),
            ("sourdough bread recipe", "text"),
            ("python packaging guide", "text"),
        ]:
            stored = await content_repo.create(
                NewContentItem(user_id="alice", content_type=content_type, raw_content=text)
            )
            await embedding_repo.store(stored.id, await fake_llm.embed(text))
            created[text] = stored
        return created

    @pytest.mark.asyncio
    async def test_keyword_mode(self, content_repo, embedding_repo, fake_llm):
        created = await self.seed(content_repo, embedding_repo, fake_llm)
        service = SearchService(content_repo, embedding_repo, fake_llm)

        response = await service.search("alice", SearchRequest(query="bread", mode="keyword"))
        assert [r.id for r in response.results] == [created["sourdough bread recipe"].id]
        assert response.total == 1
        assert response.results[0].score is None
        fake_llm.embed.reset_mock()
        await service.search("alice", SearchRequest(query="bread", mode="keyword"))
        fake_llm.embed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_semantic_mode_scores(self, content_repo, embedding_repo, fake_llm):
        created = await self.seed(content_repo, embedding_repo, fake_llm)
        service = SearchService(content_repo, embedding_repo, fake_llm)

        response = await service.search(
            "alice", SearchRequest(query="sourdough bread recipe", mode="semantic", limit=3)
        )
        assert response.results[0].id == created["sourdough bread recipe"].id
        assert response.results[0].score == pytest.approx(1.0)
        scores = [r.score for r in response.results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_hybrid_with_type_filter(self, content_repo, embedding_repo, fake_llm):
        created = await self.seed(content_repo, embedding_repo, fake_llm)
        service = SearchService(content_repo, embedding_repo, fake_llm)

        response = await service.search(
            "alice", SearchRequest(query="python", mode="hybrid", types=["text"])
        )
        ids = [r.id for r in response.results]
        assert created["python packaging guide"].id in ids
        assert created["python asyncio event loop"].id not in ids
        assert all(r.content_type == "text" for r in response.results)
        assert response.total == len(response.results)

    @pytest.mark.asyncio
    async def test_other_owner_sees_nothing(self, content_repo, embedding_repo, fake_llm):
        await self.seed(content_repo, embedding_repo, fake_llm)
        service = SearchService(content_repo, embedding_repo, fake_llm)
        response = await service.search("bob", SearchRequest(query="python"))
        assert response.results == []
        assert response.total == 0

    @pytest.mark.asyncio
    async def test_hybrid_falls_back_when_embedding_fails(
        self, content_repo, embedding_repo, fake_llm
    ):
        created = await self.seed(content_repo, embedding_repo, fake_llm)
        fake_llm.embed = AsyncMock(side_effect=RuntimeError("embedder offline"))
        service = SearchService(content_repo, embedding_repo, fake_llm)

        response = await service.search("alice", SearchRequest(query="bread"))
        assert [r.id for r in response.results] == [created["sourdough bread recipe"].id]

    @pytest.mark.asyncio
    async def test_semantic_failure_propagates_in_semantic_mode(
        self, content_repo, embedding_repo, fake_llm
    ):
        fake_llm.embed = AsyncMock(side_effect=RuntimeError("embedder offline"))
        service = SearchService(content_repo, embedding_repo, fake_llm)
        with pytest.raises(RuntimeError):
            await service.search("alice", SearchRequest(query="x", mode="semantic"))

    @pytest.mark.asyncio
    async def test_invalid_mode(self, content_repo, embedding_repo, fake_llm):
        service = SearchService(content_repo, embedding_repo, fake_llm)
        with pytest.raises(InvalidInput):
            await service.search("alice", SearchRequest(query="x", mode="fuzzy"))

    @pytest.mark.asyncio
    async def test_expired_deadline(self, content_repo, embedding_repo, fake_llm):
        service = SearchService(content_repo, embedding_repo, fake_llm)
        with pytest.raises(DeadlineExceeded):
            await service.semantic_search("alice", "x", 5, Deadline(0))


@pytest.mark.unit
class TestSemanticOrdering:
    """Semantic results follow similarity order, not repository order."""

    @pytest.mark.asyncio
    async def test_order_comes_from_similarity(self, fake_llm):
        content_repo = MagicMock()
        content_repo.find_by_ids = AsyncMock(return_value=[item("b"), item("a")])
        embedding_repo = MagicMock()
        embedding_repo.search_similar = AsyncMock(
            return_value=[SimilarityResult("a", 0.9), SimilarityResult("b", 0.5)]
        )
        service = SearchService(content_repo, embedding_repo, fake_llm)

        results = await service.semantic_search("alice", "query", 5)

        assert [r.id for r in results] == ["a", "b"]
        assert [r.score for r in results] == [0.9, 0.5]
        content_repo.find_by_ids.assert_awaited_once_with(["a", "b"], "alice")

    @pytest.mark.asyncio
    async def test_missing_items_are_dropped(self, fake_llm):
        content_repo = MagicMock()
        content_repo.find_by_ids = AsyncMock(return_value=[item("b")])
        embedding_repo = MagicMock()
        embedding_repo.search_similar = AsyncMock(
            return_value=[SimilarityResult("a", 0.9), SimilarityResult("b", 0.5)]
        )
        service = SearchService(content_repo, embedding_repo, fake_llm)
        assert [r.id for r in await service.semantic_search("alice", "q", 5)] == ["b"]

    @pytest.mark.asyncio
    async def test_no_hits_skips_lookup(self, fake_llm):
        content_repo = MagicMock()
        content_repo.find_by_ids = AsyncMock()
        embedding_repo = MagicMock()
        embedding_repo.search_similar = AsyncMock(return_value=[])
        service = SearchService(content_repo, embedding_repo, fake_llm)
        assert await service.semantic_search("alice", "q", 5) == []
        content_repo.find_by_ids.assert_not_awaited()
