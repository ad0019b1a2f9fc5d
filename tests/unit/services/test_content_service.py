"""Unit tests for ContentService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from scrapbook.core.errors import InvalidInput, NotFound, UpstreamFetchFailed
from scrapbook.core.models import ExtractedLinkContent
from scrapbook.services.content_service import ContentService
from scrapbook.services.enrichment_service import EnrichmentService
from scrapbook.services.models import (
    CaptureRequest,
    EnrichmentStatus,
    SummarizeResult,
)
from scrapbook.services.task_runner import TaskRunner, TaskStatus


@pytest.fixture
async def runner():
    r = TaskRunner()
    await r.start()
    yield r
    await r.stop()


@pytest.fixture
def link_preview():
    """Link preview double returning a fixed page."""
    client = MagicMock()
    client.fetch_link_content = AsyncMock(
        return_value=ExtractedLinkContent(
            url="https://example.com/post",
            title="Async Python",
            description="A primer",
            site_name="Example",
            content="Event loops schedule coroutines.",
            truncated=False,
        )
    )
    return client


@pytest.fixture
def service(content_repo, embedding_repo, fake_llm, link_preview, runner, make_session):
    enrichment = EnrichmentService(content_repo, embedding_repo, fake_llm)
    return ContentService(
        content_repo,
        enrichment,
        link_preview,
        runner,
        session_factory=make_session,
    )


@pytest.mark.unit
class TestCapture:
    """Tests for ContentService.capture."""

    @pytest.mark.asyncio
    async def test_capture_text_and_enrich(self, service, content_repo, runner):
        response = await service.capture(
            "alice", CaptureRequest(content="  remember the milk  ", tags=["todo"])
        )
        assert response.status == "captured"
        assert response.enrichment == "pending"
        assert response.summary_task_id is None

        info = await runner.wait(response.task_id, timeout=5)
        assert info.status == TaskStatus.COMPLETED
        assert info.result == {"item_id": response.id, "enriched": True}
        assert info.metadata == {"item_id": response.id, "owner": "alice"}

        item = await content_repo.find_by_id(response.id, "alice")
        assert item.content_type == "text"
        assert item.raw_content == "remember the milk"
        assert item.source_url is None
        assert item.title == "Captured item"
        assert item.enrichment_status == EnrichmentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_capture_url_stores_page_text(self, service, content_repo, link_preview):
        response = await service.capture("alice", CaptureRequest(content="https://Example.com/post"))

        item = await content_repo.find_by_id(response.id, "alice")
        assert item.content_type == "url"
        assert item.source_domain == "example.com"
        assert item.raw_content == (
            "Async Python\n\nA primer\n\nEvent loops schedule coroutines."
        )
        link_preview.fetch_link_content.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_capture_url_fetch_failure_stores_url(
        self, service, content_repo, link_preview
    ):
        link_preview.fetch_link_content.side_effect = UpstreamFetchFailed("HTTP 500")
        response = await service.capture("alice", CaptureRequest(content="https://example.com/x"))

        item = await content_repo.find_by_id(response.id, "alice")
        assert item.raw_content == "https://example.com/x"
        assert item.source_url == "https://example.com/x"

    @pytest.mark.asyncio
    async def test_enrichment_failure_marks_item(
        self, service, content_repo, fake_llm, runner
    ):
        fake_llm.enrich = AsyncMock(side_effect=RuntimeError("model down"))
        response = await service.capture("alice", CaptureRequest(content="some note"))

        info = await runner.wait(response.task_id, timeout=5)
        assert info.result == {"item_id": response.id, "enriched": False}
        item = await content_repo.find_by_id(response.id, "alice")
        assert item.enrichment_status == EnrichmentStatus.FAILED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n\t"])
    async def test_empty_content_rejected(self, service, content):
        with pytest.raises(InvalidInput):
            await service.capture("alice", CaptureRequest(content=content))


@pytest.mark.unit
class TestCaptureWithSummary:
    """Tests for the optional summarize job."""

    def make(self, service, summarize):
        summarize_service = MagicMock()
        summarize_service.summarize = summarize
        service.summarize_service = summarize_service
        return service

    @pytest.mark.asyncio
    async def test_summary_stored(self, service, content_repo, runner):
        summarize = AsyncMock(
            return_value=SummarizeResult(
                summary="Short take.",
                content_type="article",
                title="Async Python",
                source_url="https://example.com/post",
                extracted_content="",
            )
        )
        self.make(service, summarize)

        response = await service.capture(
            "alice", CaptureRequest(content="https://example.com/post", summarize=True)
        )
        assert response.summary_task_id is not None

        info = await runner.wait(response.summary_task_id, timeout=5)
        assert info.task_type == "summarize"
        assert info.result == {"item_id": response.id, "summarized": True}
        item = await content_repo.find_by_id(response.id, "alice")
        assert item.summary == "Short take."
        options = summarize.call_args.args[1]
        assert options.include_metadata is False

    @pytest.mark.asyncio
    async def test_summary_failure_marks_item_failed(self, service, content_repo, runner):
        self.make(service, AsyncMock(side_effect=UpstreamFetchFailed("boom")))

        response = await service.capture(
            "alice", CaptureRequest(content="https://example.com/post", summarize=True)
        )
        await runner.wait(response.task_id, timeout=5)
        info = await runner.wait(response.summary_task_id, timeout=5)

        assert info.status == TaskStatus.COMPLETED
        assert info.result == {"item_id": response.id, "summarized": False}
        item = await content_repo.find_by_id(response.id, "alice")
        assert item.enrichment_status == EnrichmentStatus.FAILED

    @pytest.mark.asyncio
    async def test_non_web_url_is_stored_without_fetching(
        self, service, content_repo, link_preview
    ):
        summarize = AsyncMock()
        self.make(service, summarize)
        response = await service.capture(
            "alice", CaptureRequest(content="mailto:someone@example.com", summarize=True)
        )

        item = await content_repo.find_by_id(response.id, "alice")
        assert item.content_type == "url"
        assert item.raw_content == "mailto:someone@example.com"
        assert response.summary_task_id is None
        link_preview.fetch_link_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_text_is_never_summarized(self, service):
        summarize = AsyncMock()
        self.make(service, summarize)
        response = await service.capture("alice", CaptureRequest(content="plain", summarize=True))
        assert response.summary_task_id is None
        summarize.assert_not_awaited()


@pytest.mark.unit
class TestGetItem:
    """Tests for ContentService.get_item."""

    @pytest.mark.asyncio
    async def test_owner_scoped(self, service):
        response = await service.capture("alice", CaptureRequest(content="secret"))
        assert (await service.get_item("alice", response.id)).raw_content == "secret"
        with pytest.raises(NotFound):
            await service.get_item("bob", response.id)

    @pytest.mark.asyncio
    async def test_unknown_id(self, service):
        with pytest.raises(NotFound):
            await service.get_item("alice", "missing")
