"""Unit tests for AskService."""

import pytest

from scrapbook.core.constants import NO_RESULTS_ANSWER
from scrapbook.core.synthesis import AnswerSynthesizer
from scrapbook.services.ask_service import AskService
from scrapbook.services.models import AskRequest, ContentUpdate, NewContentItem
from scrapbook.services.search_service import SearchService


async def seed(content_repo, texts):
    items = []
    for text in texts:
        created = await content_repo.create(
            NewContentItem(user_id="alice", content_type="text", raw_content=text)
        )
        await content_repo.update(created.id, "alice", ContentUpdate(title=text.title()))
        items.append(created)
    return items


def make_service(content_repo, embedding_repo, llm):
    search = SearchService(content_repo, embedding_repo, llm)
    return AskService(search, content_repo, AnswerSynthesizer(llm))


@pytest.mark.unit
class TestAskService:
    """Tests for AskService.ask."""

    @pytest.mark.asyncio
    async def test_no_results_skips_model(self, content_repo, embedding_repo, fake_llm):
        service = make_service(content_repo, embedding_repo, fake_llm)
        response = await service.ask("alice", AskRequest(query="anything", mode="keyword"))

        assert response.answer == NO_RESULTS_ANSWER
        assert response.sources == []
        assert response.total_sources_searched == 0
        fake_llm.generate_answer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cited_sources_sorted_by_citation(self, content_repo, embedding_repo, make_llm):
        llm = make_llm(answer="Both mention python [2] and also [1]. Ignore [9].")
        items = await seed(content_repo, ["python tips and tricks", "python basics"])
        service = make_service(content_repo, embedding_repo, llm)

        response = await service.ask("alice", AskRequest(query="python tips", mode="keyword"))

        assert response.answer.startswith("Both mention python")
        assert [s.citation_number for s in response.sources] == [1, 2]
        # keyword rank: two term hits before one
        assert [s.id for s in response.sources] == [items[0].id, items[1].id]
        assert response.sources[0].title == "Python Tips And Tricks"
        assert response.total_sources_searched == 2

    @pytest.mark.asyncio
    async def test_uncited_sources_are_omitted(self, content_repo, embedding_repo, make_llm):
        llm = make_llm(answer="Only the second one helps [2].")
        items = await seed(content_repo, ["python tips and tricks", "python basics"])
        service = make_service(content_repo, embedding_repo, llm)

        response = await service.ask("alice", AskRequest(query="python tips", mode="keyword"))
        assert [(s.id, s.citation_number) for s in response.sources] == [(items[1].id, 2)]
        assert response.total_sources_searched == 2

    @pytest.mark.asyncio
    async def test_sources_sent_in_retrieval_order(self, content_repo, embedding_repo, fake_llm):
        items = await seed(content_repo, ["rust ownership", "rust ownership borrowing"])
        service = make_service(content_repo, embedding_repo, fake_llm)

        await service.ask(
            "alice", AskRequest(query="ownership borrowing", mode="keyword", model="m2")
        )

        options = fake_llm.last_options
        assert [s.id for s in options.sources] == [items[1].id, items[0].id]
        assert options.sources[0].excerpt == "rust ownership borrowing"
        assert options.model == "m2"

    @pytest.mark.asyncio
    async def test_limit_bounds_sources(self, content_repo, embedding_repo, fake_llm):
        await seed(content_repo, [f"note {i}" for i in range(8)])
        service = make_service(content_repo, embedding_repo, fake_llm)

        await service.ask("alice", AskRequest(query="note", mode="keyword", limit=3))
        assert len(fake_llm.last_options.sources) == 3
