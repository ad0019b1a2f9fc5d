"""Source-specific extraction strategies.

Each recognized source (Twitter/X, Reddit, ...) has a handler that knows how
to turn a URL into an ``ExtractedSource``. The registry picks the first
handler whose ``matches`` accepts a URL. The generic article handler is kept
outside the registry and used when no platform handler applies.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import aiohttp

from scrapbook.core.deadline import Deadline
from scrapbook.core.models import ExtractedSource
from scrapbook.core.urls import normalized_host
from scrapbook.extraction.link_preview import LinkPreviewClient

logger = logging.getLogger(__name__)


class ContentHandler(ABC):
    """Base class for source-specific extraction strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier of this source (e.g., 'twitter'). Also its content type."""
        pass

    @abstractmethod
    def matches(self, url: str) -> bool:
        """
        Check if this handler can process the given URL.

        Args:
            url: URL to check

        Returns:
            True if this handler should process the URL
        """
        pass

    def is_configured(self) -> bool:
        """Whether the credentials this handler needs are present."""
        return True

    @abstractmethod
    async def extract(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession,
        deadline: Optional[Deadline] = None,
    ) -> ExtractedSource:
        """
        Fetch ``url`` and compose its text, title and metadata.

        Raises:
            NotConfigured: Credentials are missing.
            UpstreamFetchFailed: The source could not be fetched.
        """
        pass


class ArticleHandler(ContentHandler):
    """Generic web page strategy backed by the link-preview client."""

    def __init__(self, link_preview: LinkPreviewClient):
        self.link_preview = link_preview

    @property
    def name(self) -> str:
        return "article"

    def matches(self, url: str) -> bool:
        return bool(normalized_host(url))

    async def extract(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession,
        deadline: Optional[Deadline] = None,
    ) -> ExtractedSource:
        link = await self.link_preview.fetch_link_content(url, session, deadline)
        metadata = {"domain": link.site_name or normalized_host(url)}
        if link.transcript_source:
            metadata["transcript_source"] = link.transcript_source
        return ExtractedSource(content=link.content, title=link.title, metadata=metadata)


class ContentHandlerRegistry:
    """Registry for source-specific content handlers."""

    def __init__(self) -> None:
        self._handlers: List[ContentHandler] = []

    def register(self, handler: ContentHandler) -> None:
        """
        Register a new content handler.

        Handlers are checked in registration order, so register more
        specific handlers before generic ones.

        Args:
            handler: ContentHandler instance to register
        """
        self._handlers.append(handler)
        logger.debug(f"Registered content handler: {handler.name}")

    def get_handler(self, url: str) -> Optional[ContentHandler]:
        """
        Find the first handler that can process the given URL.

        Args:
            url: URL to check

        Returns:
            ContentHandler instance or None if no handler matches
        """
        for handler in self._handlers:
            if handler.matches(url):
                logger.debug(f"Using {handler.name} handler for {url}")
                return handler
        return None

    def status(self) -> Dict[str, bool]:
        """Configured flag per registered handler."""
        return {h.name: h.is_configured() for h in self._handlers}
