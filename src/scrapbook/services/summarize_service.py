"""Summarize service - extracts content from a URL or file and summarizes it.

Extraction cascades through source-specific strategies:

- Twitter/X and Reddit URLs use their platform handler when it is configured,
  falling back to the generic article strategy otherwise or on failure.
- Google Docs links are exported as DOCX.
- Other URLs are classified; assets are downloaded and run through the
  document extractor (images go to the model as attachments), pages go to
  the article strategy. An "asset" that turns out to be HTML is retried as
  an article.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import aiohttp

from scrapbook.core.constants import (
    EXTRACTED_PREVIEW_CHARS,
    MARKITDOWN_TIMEOUT,
    MAX_UPLOAD_BYTES,
)
from scrapbook.core.deadline import Deadline
from scrapbook.core.errors import (
    EmptyExtractedText,
    InvalidInput,
    LooksLikeWebsite,
)
from scrapbook.core.models import (
    AssetInput,
    AssetKind,
    AssetTarget,
    Attachment,
    ContentType,
    ExtractedSource,
    GenerateAnswerOptions,
    InputKind,
)
from scrapbook.core.result import ParseFailure
from scrapbook.core.urls import (
    clean_url,
    detect_input_kind,
    looks_like_url,
    normalized_host,
    parse_absolute_url,
    parse_web_url,
)
from scrapbook.extraction.asset_classifier import classify_url
from scrapbook.extraction.assets import download_asset, load_asset_from_path
from scrapbook.extraction.document_text import extract_text_with_preprocessing
from scrapbook.extraction.google_docs import download_google_doc, is_google_doc_url
from scrapbook.extraction.handlers import ContentHandler, ContentHandlerRegistry
from scrapbook.extraction.reddit_handler import is_reddit_url
from scrapbook.extraction.twitter_handler import is_twitter_url
from scrapbook.services.models import (
    SummarizeFileResult,
    SummarizeOptions,
    SummarizeResult,
    SummaryLength,
    UploadedFile,
)

logger = logging.getLogger(__name__)

LENGTH_GUIDELINES: Dict[str, str] = {
    "short": "Provide a brief 2-3 sentence summary capturing only the main point.",
    "medium": "Provide a summary of 1-2 paragraphs covering the key points and main arguments.",
    "long": (
        "Provide a comprehensive summary of 3-4 paragraphs with detailed coverage "
        "of all major points, arguments, and conclusions."
    ),
    "xl": (
        "Provide a detailed summary of 5-7 paragraphs that walks through the content "
        "section by section, including supporting evidence and notable examples."
    ),
    "xxl": (
        "Provide an exhaustive, well-structured summary with headings for each major "
        "section, covering every significant point, argument, example, and conclusion."
    ),
}

MAX_TOKENS: Dict[str, int] = {
    "short": 150,
    "medium": 400,
    "long": 800,
    "xl": 1200,
    "xxl": 2000,
}

CONTEXT_DESCRIPTIONS: Dict[ContentType, str] = {
    ContentType.TWITTER: "a tweet or Twitter/X post",
    ContentType.REDDIT: "a Reddit post with comments",
    ContentType.ARTICLE: "a web article or page",
    ContentType.DOCUMENT: "a document",
    ContentType.IMAGE: "an image (attached)",
}

IMAGE_PLACEHOLDER = "[The image is attached. Describe and summarize what it shows.]"

SOCIAL_TYPES = (ContentType.TWITTER, ContentType.REDDIT)


def detect_content_type(value: str) -> ContentType:
    """Classify a captured string for summarization.

    Any valid absolute URL is twitter, reddit, or article; URL-shaped strings
    that fail to parse are ``unknown``. Everything else is ``image`` for
    inline image data and ``text`` otherwise.
    """
    url = clean_url(value)
    if looks_like_url(url):
        if isinstance(parse_absolute_url(url), ParseFailure):
            return ContentType.UNKNOWN
        if is_twitter_url(url):
            return ContentType.TWITTER
        if is_reddit_url(url):
            return ContentType.REDDIT
        return ContentType.ARTICLE

    if detect_input_kind(value) == InputKind.IMAGE:
        return ContentType.IMAGE
    return ContentType.TEXT


def build_summarize_prompt(content: str, content_type: ContentType, length: SummaryLength) -> str:
    """Summarization prompt for ``content`` at the requested length."""
    guideline = LENGTH_GUIDELINES.get(length, LENGTH_GUIDELINES["medium"])
    description = CONTEXT_DESCRIPTIONS.get(content_type, CONTEXT_DESCRIPTIONS[ContentType.ARTICLE])

    return f"""You are a helpful assistant that summarizes content. You are given {description}.

{guideline}

Focus on:
- The main topic or claim
- Key supporting points or evidence
- Any notable conclusions or takeaways

Do not include phrases like "This article discusses" or "The author mentions". Just provide the summary directly.

Content to summarize:
---
{content}
---

Summary:"""


def get_status_message(status: Dict[str, bool]) -> str:
    """Human-readable summary of which content sources are configured."""
    labels = {"twitter": "Twitter/X", "reddit": "Reddit", "articles": "Articles"}
    configured = [label for key, label in labels.items() if status.get(key)]
    not_configured = [label for key, label in labels.items() if not status.get(key)]

    if not not_configured:
        return "All content sources are configured and ready."
    return f"Configured: {', '.join(configured)}. Not configured: {', '.join(not_configured)}."


@dataclass
class _AssetSummary:
    summary: str
    content_type: ContentType
    text: str
    truncated: bool


class SummarizeService:
    """Orchestrates extraction and summarization.

    Capability handles are injected; a new ``aiohttp.ClientSession`` is opened
    per request from ``session_factory``.
    """

    def __init__(
        self,
        llm,
        registry: ContentHandlerRegistry,
        article_handler: ContentHandler,
        *,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        uvx_command: Optional[str] = None,
        markitdown_timeout: float = MARKITDOWN_TIMEOUT,
        request_deadline: Optional[float] = None,
    ):
        self.llm = llm
        self.registry = registry
        self.article_handler = article_handler
        self.session_factory = session_factory
        self.max_upload_bytes = max_upload_bytes
        self.uvx_command = uvx_command
        self.markitdown_timeout = markitdown_timeout
        self.request_deadline = request_deadline

    def _deadline(self, deadline: Optional[Deadline]) -> Deadline:
        return deadline if deadline is not None else Deadline(self.request_deadline)

    async def summarize(
        self,
        url: str,
        options: Optional[SummarizeOptions] = None,
        deadline: Optional[Deadline] = None,
    ) -> SummarizeResult:
        """Extract and summarize the content behind ``url``.

        Raises:
            InvalidInput: ``url`` is not a valid http(s) URL.
            UnsupportedMediaType: The URL points to an unsupported file.
            SizeLimitExceeded: The URL points to a file over the size cap.
            UpstreamFetchFailed: The content could not be fetched.
        """
        options = options or SummarizeOptions()
        deadline = self._deadline(deadline)
        url = clean_url(url)
        if isinstance(parse_web_url(url), ParseFailure):
            raise InvalidInput("Invalid URL format")
        content_type = detect_content_type(url)

        async with self.session_factory() as session:
            if content_type in SOCIAL_TYPES:
                extracted = await self._extract_social(url, content_type, session, deadline)
                return await self._summarize_source(extracted, content_type, url, options)

            asset: Optional[AssetInput] = None
            if is_google_doc_url(url):
                asset = await download_google_doc(url, session, deadline, self.max_upload_bytes)
            else:
                target = await classify_url(url, session, deadline)
                if isinstance(target, AssetTarget):
                    try:
                        asset = await download_asset(url, session, deadline, self.max_upload_bytes)
                    except LooksLikeWebsite as e:
                        logger.info(f"{url} looks like a website, using article strategy: {e}")

            if asset is None:
                extracted = await self.article_handler.extract(
                    url, session=session, deadline=deadline
                )
                return await self._summarize_source(extracted, ContentType.ARTICLE, url, options)

        result = await self._summarize_asset(asset, options, deadline)
        metadata = {
            "domain": normalized_host(url),
            "filename": asset.filename,
            "media_type": asset.media_type,
        }
        return SummarizeResult(
            summary=result.summary,
            content_type=result.content_type.value,
            title=asset.filename,
            source_url=url,
            extracted_content=result.text[:EXTRACTED_PREVIEW_CHARS],
            metadata=metadata if options.include_metadata else None,
        )

    async def summarize_file(
        self,
        upload: UploadedFile,
        options: Optional[SummarizeOptions] = None,
        deadline: Optional[Deadline] = None,
    ) -> SummarizeFileResult:
        """Summarize a file already written to local disk.

        Raises:
            InvalidInput: ``upload.file_path`` is not a file.
            SizeLimitExceeded: The file is over the size cap.
            UnsupportedMediaType: The file type is not supported.
            EmptyExtractedText: No text could be extracted.
        """
        options = options or SummarizeOptions()
        deadline = self._deadline(deadline)
        asset = await asyncio.to_thread(
            load_asset_from_path,
            upload.file_path,
            upload.original_name,
            upload.mime_type,
            self.max_upload_bytes,
        )

        result = await self._summarize_asset(asset, options, deadline)
        metadata = {"size_bytes": asset.size_bytes, "media_type": asset.media_type}
        return SummarizeFileResult(
            summary=result.summary,
            content_type=result.content_type.value,
            title=asset.filename,
            filename=asset.filename,
            media_type=asset.media_type,
            extracted_content=result.text[:EXTRACTED_PREVIEW_CHARS],
            truncated=result.truncated,
            metadata=metadata if options.include_metadata else None,
        )

    def get_service_status(self) -> Dict[str, bool]:
        """Which content sources can be used right now."""
        status = self.registry.status()
        return {
            "twitter": status.get("twitter", False),
            "reddit": status.get("reddit", False),
            "articles": True,
        }

    async def _extract_social(
        self,
        url: str,
        content_type: ContentType,
        session: aiohttp.ClientSession,
        deadline: Deadline,
    ) -> ExtractedSource:
        handler = self.registry.get_handler(url)
        if handler is not None and handler.is_configured():
            try:
                return await handler.extract(url, session=session, deadline=deadline)
            except Exception as e:
                logger.warning(f"{handler.name} extraction failed for {url}, falling back: {e}")
        else:
            logger.info(f"{content_type.value} not configured, using article strategy for {url}")

        return await self.article_handler.extract(url, session=session, deadline=deadline)

    async def _summarize_source(
        self,
        extracted: ExtractedSource,
        content_type: ContentType,
        url: str,
        options: SummarizeOptions,
    ) -> SummarizeResult:
        if not extracted.content.strip():
            raise EmptyExtractedText(f"No content could be extracted from {url}")

        summary = await self._generate(
            build_summarize_prompt(extracted.content, content_type, options.length), options
        )
        return SummarizeResult(
            summary=summary,
            content_type=content_type.value,
            title=extracted.title,
            source_url=url,
            extracted_content=extracted.content[:EXTRACTED_PREVIEW_CHARS],
            metadata=dict(extracted.metadata) if options.include_metadata else None,
        )

    async def _summarize_asset(
        self,
        asset: AssetInput,
        options: SummarizeOptions,
        deadline: Deadline,
    ) -> _AssetSummary:
        if asset.kind == AssetKind.IMAGE:
            attachment = Attachment(
                kind=AssetKind.IMAGE,
                media_type=asset.media_type,
                data=base64.b64encode(asset.data).decode("ascii"),
                filename=asset.filename,
            )
            prompt = build_summarize_prompt(IMAGE_PLACEHOLDER, ContentType.IMAGE, options.length)
            summary = await self._generate(prompt, options, attachments=[attachment])
            return _AssetSummary(summary, ContentType.IMAGE, "", False)

        extracted = await extract_text_with_preprocessing(
            asset,
            uvx_command=self.uvx_command,
            timeout=self.markitdown_timeout,
            deadline=deadline,
        )
        if not extracted.text:
            raise EmptyExtractedText(
                f"No text could be extracted from {asset.filename or 'the document'}"
            )

        prompt = build_summarize_prompt(extracted.text, ContentType.DOCUMENT, options.length)
        summary = await self._generate(prompt, options)
        return _AssetSummary(summary, ContentType.DOCUMENT, extracted.text, extracted.truncated)

    async def _generate(self, prompt: str, options: SummarizeOptions, attachments=None) -> str:
        result = await self.llm.generate_answer(
            GenerateAnswerOptions(
                query=prompt,
                sources=[],
                max_tokens=MAX_TOKENS.get(options.length, MAX_TOKENS["medium"]),
                attachments=list(attachments or []),
                model=options.model,
            )
        )
        return result.answer
