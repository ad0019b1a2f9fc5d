"""Plain-text extraction from document assets.

Native parsers cover plain text, PDF (PyMuPDF) and Word ``.docx``
(python-docx). Every result is whitespace-collapsed and capped at
``MAX_EXTRACTED_TEXT_CHARS``.
"""

import asyncio
import io
import logging
import re
from typing import Optional

import pymupdf as fitz
from docx import Document

from scrapbook.core.constants import MARKITDOWN_TIMEOUT, MAX_EXTRACTED_TEXT_CHARS
from scrapbook.core.deadline import Deadline
from scrapbook.core.errors import UnsupportedDocumentType
from scrapbook.core.models import AssetInput, AssetKind, ExtractedDocumentText
from scrapbook.extraction.assets import DOCX, PDF
from scrapbook.extraction.markitdown import can_preprocess, convert_to_markdown

logger = logging.getLogger(__name__)

PLAIN_TEXT = "text/plain"
NATIVE_MEDIA_TYPES = frozenset({PLAIN_TEXT, PDF, DOCX})

_WHITESPACE = re.compile(r"\s+")


def normalize_text(value: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", value).strip()


def truncate_text(value: str, max_chars: int = MAX_EXTRACTED_TEXT_CHARS) -> ExtractedDocumentText:
    if len(value) <= max_chars:
        return ExtractedDocumentText(text=value, truncated=False)
    return ExtractedDocumentText(text=value[:max_chars], truncated=True)


def _pdf_text(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return "\n".join(page.get_text() for page in doc)


def _docx_text(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join(para.text for para in doc.paragraphs)


def extract_document_text(asset: AssetInput) -> ExtractedDocumentText:
    """Extract normalized, length-bounded text from a document asset.

    Raises:
        UnsupportedDocumentType: The asset is not a document, its media type
            has no native parser, or the parser could not read it.
    """
    if asset.kind != AssetKind.DOCUMENT:
        raise UnsupportedDocumentType(
            "Unsupported asset type for document extraction.",
            media_type=asset.media_type,
        )

    media_type = asset.media_type
    if media_type not in NATIVE_MEDIA_TYPES:
        raise UnsupportedDocumentType(
            f"Unsupported document type: {media_type}", media_type=media_type
        )

    try:
        if media_type == PLAIN_TEXT:
            raw = asset.data.decode("utf-8", errors="replace")
        elif media_type == PDF:
            raw = _pdf_text(asset.data)
        else:
            raw = _docx_text(asset.data)
    except Exception as e:
        logger.warning(f"Failed to parse {media_type} document: {e}")
        raise UnsupportedDocumentType(
            f"Could not read {media_type} document: {e}", media_type=media_type
        )

    return truncate_text(normalize_text(raw))


async def extract_text_with_preprocessing(
    asset: AssetInput,
    *,
    uvx_command: Optional[str] = None,
    timeout: float = MARKITDOWN_TIMEOUT,
    deadline: Optional[Deadline] = None,
) -> ExtractedDocumentText:
    """Extract text, falling back to markitdown for preprocess-capable types.

    The native parser runs in a worker thread. If it cannot handle the asset
    and the media type is preprocess-capable, the bytes are converted to
    markdown instead.
    """
    try:
        return await asyncio.to_thread(extract_document_text, asset)
    except UnsupportedDocumentType:
        if asset.kind != AssetKind.DOCUMENT or not can_preprocess(asset.media_type):
            raise
        logger.info(f"Falling back to markitdown for {asset.media_type}")

    markdown = await convert_to_markdown(
        asset.data,
        asset.filename,
        asset.media_type,
        uvx_command=uvx_command,
        timeout=timeout,
        deadline=deadline,
    )
    return truncate_text(normalize_text(markdown))
