"""Decide whether a URL points at a downloadable file or at a web page.

The decision is a best-effort heuristic that avoids downloading the full
resource:

1. A recognizable non-page file extension in the path means asset.
2. A ``HEAD`` probe: a non-HTML content type, or a content-disposition
   filename with an extension, means asset.
3. A ranged ``GET`` of the first bytes: a non-HTML content type, or a body
   that does not start like an HTML document, means asset.

Any probe failure or inconclusive answer falls through to "website". Probes
are never retried.
"""

import asyncio
import logging
import mimetypes
import os
from typing import Optional
from urllib.parse import urlsplit

import aiohttp

from scrapbook.core.constants import CLASSIFY_PROBE_TIMEOUT, CLASSIFY_SNIFF_BYTES
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.models import AssetTarget, UrlTarget, WebsiteTarget
from scrapbook.extraction.assets import (
    HTML_MEDIA_TYPES,
    filename_from_content_disposition,
    looks_like_html,
    normalize_media_type,
)
from scrapbook.utils.web import BROWSER_HEADERS

logger = logging.getLogger(__name__)

PAGE_EXTENSIONS = frozenset({".html", ".htm", ".php", ".asp", ".aspx"})


def file_extension(path: str) -> str:
    """Lowercased extension of the last path segment ('' if none)."""
    return os.path.splitext(os.path.basename(path))[1].lower()


def has_file_extension(path: str) -> bool:
    """True if ``path`` ends in an extension that names a known non-page type."""
    ext = file_extension(path)
    if not ext or ext in PAGE_EXTENSIONS:
        return False
    media_type, _ = mimetypes.guess_type(f"file{ext}")
    return media_type is not None


def _is_non_html(content_type: Optional[str]) -> bool:
    media_type = normalize_media_type(content_type)
    return media_type is not None and media_type not in HTML_MEDIA_TYPES


async def _probe_head(
    url: str, session: aiohttp.ClientSession, deadline: Deadline
) -> Optional[str]:
    """Return a reason string if the HEAD response identifies an asset."""
    async with session.head(
        url,
        headers=BROWSER_HEADERS,
        timeout=deadline.client_timeout(CLASSIFY_PROBE_TIMEOUT),
        allow_redirects=True,
    ) as response:
        if response.status >= 400:
            return None
        if _is_non_html(response.headers.get("Content-Type")):
            return "head-content-type"
        filename = filename_from_content_disposition(
            response.headers.get("Content-Disposition")
        )
        if filename and file_extension(filename):
            return "head-content-disposition"
    return None


async def _probe_range(
    url: str, session: aiohttp.ClientSession, deadline: Deadline
) -> Optional[str]:
    """Return a reason string if the first bytes identify an asset."""
    headers = {**BROWSER_HEADERS, "Range": f"bytes=0-{CLASSIFY_SNIFF_BYTES - 1}"}
    async with session.get(
        url,
        headers=headers,
        timeout=deadline.client_timeout(CLASSIFY_PROBE_TIMEOUT),
        allow_redirects=True,
    ) as response:
        if response.status >= 400:
            return None
        if _is_non_html(response.headers.get("Content-Type")):
            return "range-content-type"
        prefix = await response.content.read(CLASSIFY_SNIFF_BYTES)
        if prefix.strip() and not looks_like_html(prefix):
            return "range-sniff"
    return None


async def classify_url(
    url: str,
    session: aiohttp.ClientSession,
    deadline: Optional[Deadline] = None,
) -> UrlTarget:
    """Classify ``url`` as an ``AssetTarget`` or a ``WebsiteTarget``."""
    if has_file_extension(urlsplit(url).path):
        return AssetTarget(url=url, reason="extension")

    deadline = ensure_deadline(deadline)

    for probe in (_probe_head, _probe_range):
        if deadline.expired:
            break
        try:
            reason = await probe(url, session, deadline)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"{probe.__name__} failed for {url}: {e}")
            continue
        if reason:
            logger.info(f"Classified {url} as asset ({reason})")
            return AssetTarget(url=url, reason=reason)

    return WebsiteTarget(url=url)
