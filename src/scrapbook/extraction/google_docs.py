"""Google Docs export.

Public documents at ``docs.google.com/document/d/<id>`` are exported as
DOCX and handed to the document extractor like any other asset.
"""

import asyncio
import logging
import re
from typing import Optional

import aiohttp

from scrapbook.core.constants import ASSET_DOWNLOAD_TIMEOUT, MAX_UPLOAD_BYTES
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.errors import InvalidInput, SizeLimitExceeded, UpstreamFetchFailed
from scrapbook.core.models import AssetInput
from scrapbook.core.result import ParseFailure
from scrapbook.core.urls import parse_web_url
from scrapbook.extraction.assets import (
    DOCX,
    asset_from_bytes,
    filename_from_content_disposition,
    read_body_limited,
)
from scrapbook.utils.web import BROWSER_HEADERS

logger = logging.getLogger(__name__)

GOOGLE_DOC_HOST = "docs.google.com"

_DOC_PATH = re.compile(r"/document/d/", re.I)
_DOC_ID = re.compile(r"/document/d/([a-zA-Z0-9_-]+)")


def is_google_doc_url(url: str) -> bool:
    parsed = parse_web_url(url)
    if isinstance(parsed, ParseFailure):
        return False
    return parsed.value.hostname == GOOGLE_DOC_HOST and bool(_DOC_PATH.search(parsed.value.path))


def extract_google_doc_id(url: str) -> Optional[str]:
    match = _DOC_ID.search(url)
    return match.group(1) if match else None


def export_url(doc_id: str) -> str:
    return f"https://docs.google.com/document/d/{doc_id}/export?format=docx"


async def download_google_doc(
    url: str,
    session: aiohttp.ClientSession,
    deadline: Optional[Deadline] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> AssetInput:
    """Export a public Google Doc as a DOCX asset.

    Raises:
        InvalidInput: The URL does not contain a document id.
        UpstreamFetchFailed: Export failed, or returned HTML (private document).
        SizeLimitExceeded: The export is larger than ``max_bytes``.
    """
    doc_id = extract_google_doc_id(url)
    if not doc_id:
        raise InvalidInput("Unsupported Google Docs URL format.")

    deadline = ensure_deadline(deadline)
    deadline.check("Google Docs export")
    logger.info(f"Exporting Google Doc {doc_id} as DOCX")

    try:
        async with session.get(
            export_url(doc_id),
            headers=BROWSER_HEADERS,
            timeout=deadline.client_timeout(ASSET_DOWNLOAD_TIMEOUT),
        ) as response:
            if response.status != 200:
                raise UpstreamFetchFailed(f"Google Docs export failed ({response.status}).")

            content_type = response.headers.get("Content-Type", "")
            if "text/html" in content_type:
                raise UpstreamFetchFailed(
                    "Google Docs export returned HTML. Is the document public?"
                )

            content_length = response.headers.get("Content-Length")
            if content_length and content_length.isdigit() and int(content_length) > max_bytes:
                raise SizeLimitExceeded(
                    f"Google Doc too large ({content_length} bytes). Limit is {max_bytes}.",
                    size_bytes=int(content_length),
                    limit=max_bytes,
                )

            data = await read_body_limited(response, max_bytes, "Google Doc")
            filename = filename_from_content_disposition(
                response.headers.get("Content-Disposition")
            )
    except asyncio.TimeoutError:
        raise UpstreamFetchFailed("Timeout exporting Google Doc")
    except aiohttp.ClientError as e:
        raise UpstreamFetchFailed(f"Error exporting Google Doc: {e}")

    return asset_from_bytes(
        data,
        filename=filename or f"google-doc-{doc_id}.docx",
        provided_mime_type=DOCX,
        max_bytes=max_bytes,
    )
