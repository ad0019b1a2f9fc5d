"""Generic web page extraction (the link-preview capability).

Fetches a page, pulls title/description/site name from meta tags and
reduces the main content to whitespace-normalized plain text. YouTube
video pages additionally get their transcript.
"""

import asyncio
import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

import aiohttp
from bs4 import BeautifulSoup
from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import CouldNotRetrieveTranscript, NoTranscriptFound

from scrapbook.core.constants import ARTICLE_FETCH_TIMEOUT, MAX_LINK_CONTENT_CHARS
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.errors import InvalidInput, UpstreamFetchFailed
from scrapbook.core.models import ExtractedLinkContent
from scrapbook.core.result import ParseFailure
from scrapbook.core.urls import clean_url, normalized_host, parse_web_url
from scrapbook.utils.web import BROWSER_HEADERS, clean_html_for_content, strip_boilerplate

logger = logging.getLogger(__name__)

MAIN_CONTENT_SELECTOR = 'article, main, [role="main"], .content, #content, body'

NITTER_MIRROR = "https://nitter.poast.org"
OLD_REDDIT_MIRROR = "https://old.reddit.com"

YOUTUBE_HOSTS = frozenset({"youtube.com", "m.youtube.com", "youtu.be"})

_WHITESPACE = re.compile(r"\s+")


def get_scrapable_url(url: str) -> str:
    """Rewrite social URLs to mirrors that serve static HTML."""
    host = normalized_host(url)
    parts = urlsplit(url)
    if host in ("x.com", "twitter.com"):
        return f"{NITTER_MIRROR}{parts.path}"
    if host == "reddit.com":
        query = f"?{parts.query}" if parts.query else ""
        return f"{OLD_REDDIT_MIRROR}{parts.path}{query}"
    return url


def extract_youtube_video_id(url: str) -> Optional[str]:
    """
    Extract a YouTube video ID from a URL.

    Supports ``watch?v=``, ``youtu.be/``, ``/embed/`` and ``/v/`` forms.
    """
    host = normalized_host(url)
    if host not in YOUTUBE_HOSTS:
        return None

    parts = urlsplit(url)
    if host == "youtu.be":
        return parts.path.strip("/").split("/")[0] or None

    if parts.path == "/watch":
        values = parse_qs(parts.query).get("v")
        return values[0] if values else None

    for prefix in ("/embed/", "/v/", "/shorts/"):
        if parts.path.startswith(prefix):
            return parts.path[len(prefix) :].split("/")[0] or None

    return None


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> Optional[str]:
    tag = soup.find("meta", attrs={attr: value})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _fetch_transcript_lines(video_id: str) -> Optional[List[str]]:
    """Blocking transcript lookup; prefers manually created English captions."""
    try:
        transcript_list = YouTubeTranscriptApi().list(video_id)
        try:
            transcript = transcript_list.find_manually_created_transcript(["en"])
        except NoTranscriptFound:
            transcript = transcript_list.find_generated_transcript(["en"])
        return [snippet.text for snippet in transcript.fetch()]
    except CouldNotRetrieveTranscript as e:
        logger.warning(f"Transcript not available for {video_id}: {e}")
        return None


class LinkPreviewClient:
    """Fetches web pages and reduces them to ``ExtractedLinkContent``."""

    def __init__(self, max_characters: int = MAX_LINK_CONTENT_CHARS):
        self.max_characters = max_characters

    async def fetch_link_content(
        self,
        url: str,
        session: aiohttp.ClientSession,
        deadline: Optional[Deadline] = None,
    ) -> ExtractedLinkContent:
        """Fetch ``url`` and extract its readable content.

        Raises:
            InvalidInput: ``url`` is not an http(s) URL.
            UpstreamFetchFailed: Network error or non-200 response.
        """
        deadline = ensure_deadline(deadline)
        normalized = clean_url(url)
        parsed = parse_web_url(normalized)
        if isinstance(parsed, ParseFailure):
            raise InvalidInput(f"Invalid URL: {url} ({parsed.reason})")

        html, final_url = await self._fetch_html(
            get_scrapable_url(normalized), session, deadline
        )
        soup = BeautifulSoup(html, "html.parser")

        title = (
            _meta_content(soup, "property", "og:title")
            or _meta_content(soup, "name", "twitter:title")
            or (_normalize(soup.title.get_text()) if soup.title else None)
            or None
        )
        description = (
            _meta_content(soup, "property", "og:description")
            or _meta_content(soup, "name", "twitter:description")
            or _meta_content(soup, "name", "description")
        )
        site_name = _meta_content(soup, "property", "og:site_name") or normalized_host(
            final_url
        )

        text = self._main_text(soup)

        result = ExtractedLinkContent(
            url=normalized,
            title=title,
            description=description,
            site_name=site_name or None,
            content="",
            truncated=False,
        )

        video_id = extract_youtube_video_id(normalized)
        if video_id:
            lines = await self._transcript(video_id, deadline)
            result.is_video_only = True
            if lines:
                transcript = _normalize(" ".join(lines))
                result.transcript_source = "youtube"
                result.transcript_characters = len(transcript)
                result.transcript_lines = len(lines)
                text = transcript

        result.total_characters = len(text)
        result.word_count = len(text.split())
        result.truncated = len(text) > self.max_characters
        result.content = text[: self.max_characters]

        logger.info(
            f"Extracted {result.total_characters} chars from {normalized}"
            + (" (truncated)" if result.truncated else "")
        )
        return result

    async def _fetch_html(
        self, url: str, session: aiohttp.ClientSession, deadline: Deadline
    ) -> Tuple[str, str]:
        deadline.check("article fetch")
        logger.info(f"Fetching page: {url}")
        try:
            async with session.get(
                url,
                headers=BROWSER_HEADERS,
                timeout=deadline.client_timeout(ARTICLE_FETCH_TIMEOUT),
            ) as response:
                if response.status != 200:
                    raise UpstreamFetchFailed(f"HTTP {response.status} fetching {url}")
                html = await response.text()
                return html, str(response.url)
        except asyncio.TimeoutError:
            raise UpstreamFetchFailed(f"Timeout fetching {url}")
        except aiohttp.ClientError as e:
            raise UpstreamFetchFailed(f"Error fetching {url}: {e}")

    def _main_text(self, soup: BeautifulSoup) -> str:
        strip_boilerplate(soup)
        content = soup.select_one(MAIN_CONTENT_SELECTOR)
        if content is None:
            return ""
        clean_html_for_content(content)
        return _normalize(content.get_text(" "))

    async def _transcript(self, video_id: str, deadline: Deadline) -> Optional[List[str]]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(_fetch_transcript_lines, video_id),
                timeout=deadline.timeout(ARTICLE_FETCH_TIMEOUT),
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching transcript for {video_id}")
            return None
