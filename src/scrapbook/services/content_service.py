"""Capture flow: store incoming content and enrich it in the background."""

import logging
from typing import Callable, Optional

import aiohttp

from scrapbook.core.deadline import Deadline
from scrapbook.core.errors import InvalidInput, NotFound, ScrapbookError
from scrapbook.core.models import InputKind
from scrapbook.core.result import Parsed
from scrapbook.core.urls import clean_url, detect_input_kind, normalized_host, parse_web_url
from scrapbook.extraction.link_preview import LinkPreviewClient
from scrapbook.services.enrichment_service import EnrichmentService
from scrapbook.services.models import (
    CaptureRequest,
    CaptureResponse,
    ContentItem,
    ContentUpdate,
    EnrichmentStatus,
    NewContentItem,
    SummarizeOptions,
)
from scrapbook.services.task_runner import TaskRunner

logger = logging.getLogger(__name__)


class ContentService:
    """Service for capturing and reading content items.

    Enrichment (and optional summarization) is submitted to the task runner
    and never awaited by ``capture``.
    """

    def __init__(
        self,
        content_repository,
        enrichment_service: EnrichmentService,
        link_preview: LinkPreviewClient,
        task_runner: TaskRunner,
        summarize_service=None,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self.content_repository = content_repository
        self.enrichment_service = enrichment_service
        self.link_preview = link_preview
        self.task_runner = task_runner
        self.summarize_service = summarize_service
        self.session_factory = session_factory

    async def _url_content(self, url: str, deadline: Optional[Deadline]) -> str:
        """``title\\n\\ndescription\\n\\ncontent`` for a URL, or the URL itself if fetching fails."""
        try:
            async with self.session_factory() as session:
                link = await self.link_preview.fetch_link_content(url, session, deadline)
        except ScrapbookError as e:
            logger.warning(f"Could not extract {url}, storing the URL only: {e}")
            return url
        return "\n\n".join(part for part in (link.title, link.description, link.content) if part)

    async def capture(
        self,
        owner: str,
        request: CaptureRequest,
        deadline: Optional[Deadline] = None,
    ) -> CaptureResponse:
        """Store ``request.content`` for ``owner`` and schedule enrichment.

        Raises:
            InvalidInput: Empty content.
        """
        content = request.content.strip()
        if not content:
            raise InvalidInput("Content is required")

        kind = detect_input_kind(content)
        raw_content = content
        source_url = None
        source_domain = None
        is_web = False

        if kind == InputKind.URL:
            source_url = clean_url(content)
            source_domain = normalized_host(source_url) or None
            is_web = isinstance(parse_web_url(source_url), Parsed)
            if is_web:
                raw_content = await self._url_content(source_url, deadline)

        item = await self.content_repository.create(
            NewContentItem(
                user_id=owner,
                content_type=kind.value,
                raw_content=raw_content,
                source_url=source_url,
                source_domain=source_domain,
                tags=list(request.tags),
            )
        )
        logger.info(f"Captured {kind.value} item {item.id}")

        async def _enrich(progress_callback):
            progress_callback("enriching", 0, 1)
            ok = await self.enrichment_service.enrich(item)
            progress_callback("done", 1, 1)
            return {"item_id": item.id, "enriched": ok}

        task_id = await self.task_runner.submit(
            "enrich", _enrich, metadata={"item_id": item.id, "owner": owner}
        )

        summary_task_id = None
        if request.summarize and is_web and self.summarize_service is not None:
            summary_task_id = await self.task_runner.submit(
                "summarize",
                self._summarize_job(item),
                metadata={"item_id": item.id, "owner": owner},
            )

        return CaptureResponse(
            id=item.id,
            task_id=task_id,
            summary_task_id=summary_task_id,
        )

    def _summarize_job(self, item: ContentItem):
        async def _summarize(progress_callback):
            progress_callback("summarizing", 0, 1)
            try:
                result = await self.summarize_service.summarize(
                    item.source_url, SummarizeOptions(include_metadata=False)
                )
                await self.content_repository.update(
                    item.id, item.user_id, ContentUpdate(summary=result.summary)
                )
            except Exception as e:
                logger.error(f"Summarization failed for item {item.id}: {e}")
                try:
                    await self.content_repository.update(
                        item.id,
                        item.user_id,
                        ContentUpdate(enrichment_status=EnrichmentStatus.FAILED),
                    )
                except Exception as update_error:
                    logger.error(f"Failed to update status for item {item.id}: {update_error}")
                return {"item_id": item.id, "summarized": False}
            progress_callback("done", 1, 1)
            return {"item_id": item.id, "summarized": True}

        return _summarize

    async def get_item(self, owner: str, item_id: str) -> ContentItem:
        """Return one of the owner's items.

        Raises:
            NotFound: No such item for this owner.
        """
        item = await self.content_repository.find_by_id(item_id, owner)
        if item is None:
            raise NotFound(f"Item not found: {item_id}")
        return item
