"""Asset loading, media-type sniffing and remote download.

Every path that turns bytes into an ``AssetInput`` goes through
``asset_from_bytes`` so the size cap, the archive ban and the media-type
allow-list are enforced in one place.
"""

import asyncio
import io
import logging
import mimetypes
import os
import re
import zipfile
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

import aiohttp

from scrapbook.core.constants import (
    ASSET_DOWNLOAD_TIMEOUT,
    DOWNLOAD_CHUNK_BYTES,
    MAX_UPLOAD_BYTES,
)
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.errors import (
    InvalidInput,
    LooksLikeWebsite,
    SizeLimitExceeded,
    UnsupportedMediaType,
    UpstreamFetchFailed,
)
from scrapbook.core.models import AssetInput, AssetKind
from scrapbook.extraction.markitdown import PREPROCESS_MEDIA_TYPES

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"
PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HTML_MEDIA_TYPES = frozenset({"text/html", "application/xhtml+xml"})

SUPPORTED_DOCUMENT_TYPES = frozenset({PDF, DOCX, "text/plain"}) | PREPROCESS_MEDIA_TYPES

SUPPORTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

ARCHIVE_MEDIA_TYPES = frozenset(
    {
        "application/zip",
        "application/x-zip-compressed",
        "application/x-7z-compressed",
        "application/x-rar-compressed",
        "application/x-tar",
        "application/gzip",
    }
)

# mimetypes' built-in table varies by platform; pin the types we rely on.
for _ext, _type in (
    (".docx", DOCX),
    (".pptx", PPTX),
    (".xlsx", XLSX),
    (".webp", "image/webp"),
    (".rtf", "application/rtf"),
):
    mimetypes.add_type(_type, _ext)

_HTML_PREFIXES = ("<!doctype html", "<html", "<head")
_DISPOSITION_FILENAME = re.compile(r"filename\*?=(?:UTF-8''|\")?([^\";]+)[\";]?", re.I)


def normalize_media_type(value: Optional[str]) -> Optional[str]:
    """Lowercase a MIME type and drop any ``;`` parameters."""
    if not value:
        return None
    trimmed = value.strip().lower()
    if not trimmed:
        return None
    return trimmed.split(";")[0].strip() or None


def looks_like_html(prefix: bytes) -> bool:
    """True if ``prefix`` starts like an HTML document."""
    head = prefix[:512].decode("utf-8", errors="ignore").lstrip().lower()
    return head.startswith(_HTML_PREFIXES)


def _sniff_zip(data: bytes) -> str:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = archive.namelist()
    except zipfile.BadZipFile:
        return "application/zip"
    if any(name.startswith("word/") for name in names):
        return DOCX
    if any(name.startswith("ppt/") for name in names):
        return PPTX
    if any(name.startswith("xl/") for name in names):
        return XLSX
    return "application/zip"


def sniff_media_type(data: bytes) -> Optional[str]:
    """Identify a payload from its magic bytes.

    Returns None when the bytes carry no recognizable signature.
    """
    if data.startswith(b"%PDF"):
        return PDF
    if data.startswith(b"PK\x03\x04"):
        return _sniff_zip(data)
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data.startswith(b"\x1f\x8b"):
        return "application/gzip"
    if data.startswith(b"7z\xbc\xaf\x27\x1c"):
        return "application/x-7z-compressed"
    if data.startswith(b"Rar!\x1a\x07"):
        return "application/x-rar-compressed"
    if data[257:262] == b"ustar":
        return "application/x-tar"
    if data.startswith(b"{\\rtf"):
        return "application/rtf"
    if looks_like_html(data):
        return "text/html"
    return None


def detect_media_type(
    data: bytes, filename: Optional[str], provided_mime_type: Optional[str] = None
) -> str:
    """Resolve the media type of a payload.

    Sniffed bytes win, then a non-generic header hint, then the filename
    extension. Falls back to ``application/octet-stream``.
    """
    sniffed = sniff_media_type(data)
    if sniffed:
        return sniffed

    header = normalize_media_type(provided_mime_type)
    if header and header != OCTET_STREAM:
        return header

    if filename:
        by_ext, _ = mimetypes.guess_type(filename)
        if by_ext:
            return by_ext

    return OCTET_STREAM


def classify_asset_kind(media_type: str) -> Optional[AssetKind]:
    """Map a media type onto the asset kinds we can process."""
    if media_type.startswith("image/"):
        return AssetKind.IMAGE if media_type in SUPPORTED_IMAGE_TYPES else None
    if media_type in SUPPORTED_DOCUMENT_TYPES:
        return AssetKind.DOCUMENT
    return None


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """Extract the filename from a Content-Disposition header, if any."""
    if not header:
        return None
    match = _DISPOSITION_FILENAME.search(header)
    if not match:
        return None
    value = match.group(1).strip()
    return unquote(value) if value else None


def filename_from_url(url: str) -> Optional[str]:
    """Last path segment of ``url``, or None for bare hosts."""
    name = os.path.basename(unquote(urlsplit(url).path))
    return name or None


def asset_from_bytes(
    data: bytes,
    filename: Optional[str] = None,
    provided_mime_type: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> AssetInput:
    """Validate ``data`` and wrap it as an ``AssetInput``.

    Raises:
        SizeLimitExceeded: Payload is larger than ``max_bytes``.
        UnsupportedMediaType: Archive or unrecognized media type.
    """
    size = len(data)
    if size > max_bytes:
        raise SizeLimitExceeded(
            f"File too large ({size} bytes). Limit is {max_bytes} bytes.",
            size_bytes=size,
            limit=max_bytes,
        )

    media_type = detect_media_type(data, filename, provided_mime_type)
    label = filename or "upload"

    if media_type in ARCHIVE_MEDIA_TYPES:
        raise UnsupportedMediaType(
            f"Unsupported file type: {label} ({media_type}). "
            "Archive formats are not supported.",
            media_type=media_type,
        )

    kind = classify_asset_kind(media_type)
    if kind is None:
        raise UnsupportedMediaType(
            f"Unsupported file type: {label} ({media_type}).", media_type=media_type
        )

    return AssetInput(
        kind=kind,
        media_type=media_type,
        filename=filename,
        data=data,
        size_bytes=size,
    )


def load_asset_from_path(
    file_path: str,
    original_name: Optional[str] = None,
    provided_mime_type: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> AssetInput:
    """Load a local file as an ``AssetInput``.

    The file is stat'ed first so oversized files are rejected before any
    bytes are read.

    Args:
        file_path: Path to the file on disk.
        original_name: Name the caller uploaded the file under. Falls back to
            the basename of ``file_path`` when empty.
        provided_mime_type: Caller hint, used only if sniffing is inconclusive.
        max_bytes: Size cap in bytes.

    Raises:
        InvalidInput: ``file_path`` is not a regular file.
        SizeLimitExceeded: File is larger than ``max_bytes``.
        UnsupportedMediaType: Archive or unrecognized media type.
    """
    path = Path(file_path)
    if not path.is_file():
        raise InvalidInput(f"Not a file: {file_path}")

    size = path.stat().st_size
    if size > max_bytes:
        raise SizeLimitExceeded(
            f"File too large ({size} bytes). Limit is {max_bytes} bytes.",
            size_bytes=size,
            limit=max_bytes,
        )

    filename = (original_name or "").strip() or path.name
    return asset_from_bytes(
        path.read_bytes(),
        filename=filename,
        provided_mime_type=provided_mime_type,
        max_bytes=max_bytes,
    )


async def read_body_limited(
    response: aiohttp.ClientResponse, max_bytes: int, label: str = "File"
) -> bytes:
    """Stream a response body, stopping as soon as it passes ``max_bytes``.

    Raises:
        SizeLimitExceeded: More than ``max_bytes`` bytes arrived.
    """
    chunks = []
    received = 0
    async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_BYTES):
        received += len(chunk)
        if received > max_bytes:
            raise SizeLimitExceeded(
                f"{label} too large (more than {max_bytes} bytes).",
                size_bytes=received,
                limit=max_bytes,
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def download_asset(
    url: str,
    session: aiohttp.ClientSession,
    deadline: Optional[Deadline] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> AssetInput:
    """Download ``url`` and validate it as an asset.

    The size cap is checked against ``Content-Length`` before reading and
    against the running byte count while the body streams in.

    Raises:
        LooksLikeWebsite: The resource turned out to be an HTML page.
        SizeLimitExceeded: Resource is larger than ``max_bytes``.
        UnsupportedMediaType: Archive or unrecognized media type.
        UpstreamFetchFailed: Network error or non-200 response.
    """
    deadline = ensure_deadline(deadline)
    deadline.check("asset download")
    logger.info(f"Downloading asset: {url}")

    try:
        async with session.get(
            url,
            timeout=deadline.client_timeout(ASSET_DOWNLOAD_TIMEOUT),
            allow_redirects=True,
        ) as response:
            if response.status != 200:
                raise UpstreamFetchFailed(f"Asset download failed (HTTP {response.status})")

            header_type = normalize_media_type(response.headers.get("Content-Type"))
            if header_type in HTML_MEDIA_TYPES:
                raise LooksLikeWebsite(
                    f"URL returned an HTML page: {url}", media_type=header_type
                )

            content_length = response.headers.get("Content-Length")
            if content_length and content_length.isdigit():
                declared = int(content_length)
                if declared > max_bytes:
                    raise SizeLimitExceeded(
                        f"File too large ({declared} bytes). Limit is {max_bytes} bytes.",
                        size_bytes=declared,
                        limit=max_bytes,
                    )

            data = await read_body_limited(response, max_bytes)
            filename = filename_from_content_disposition(
                response.headers.get("Content-Disposition")
            ) or filename_from_url(url)
    except asyncio.TimeoutError:
        raise UpstreamFetchFailed(f"Timeout downloading {url}")
    except aiohttp.ClientError as e:
        raise UpstreamFetchFailed(f"Error downloading {url}: {e}")

    if looks_like_html(data):
        raise LooksLikeWebsite(f"URL returned an HTML page: {url}", media_type="text/html")

    asset = asset_from_bytes(
        data, filename=filename, provided_mime_type=header_type, max_bytes=max_bytes
    )
    logger.info(f"Downloaded {asset.media_type} asset ({asset.size_bytes} bytes)")
    return asset
