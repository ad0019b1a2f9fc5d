"""Document preprocessing through the external ``markitdown`` converter.

Formats we cannot parse natively (legacy Office, RTF, HTML, spreadsheets,
slides) are converted to markdown by running
``uvx --from markitdown[all] markitdown <file>``.
"""

import logging
import os
import re
import shutil
import tempfile
from typing import Optional

from scrapbook.core.constants import MARKITDOWN_TIMEOUT
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.errors import EmptyExtractedText
from scrapbook.extraction.process import run_command

logger = logging.getLogger(__name__)

PREPROCESS_MEDIA_TYPES = frozenset(
    {
        "application/msword",
        "application/rtf",
        "text/rtf",
        "text/html",
        "application/xhtml+xml",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)

_UNSAFE_NAME_CHARS = re.compile(r"[^\w.-]+")


def can_preprocess(media_type: Optional[str]) -> bool:
    """True if ``media_type`` can be converted by markitdown."""
    return media_type in PREPROCESS_MEDIA_TYPES


def guess_extension(filename_hint: Optional[str], media_type: Optional[str]) -> str:
    """File extension markitdown should see for the input."""
    ext = os.path.splitext(filename_hint)[1].lower() if filename_hint else ""
    if ext:
        return ext
    if media_type in ("text/html", "application/xhtml+xml"):
        return ".html"
    if media_type == "application/pdf":
        return ".pdf"
    return ".bin"


def safe_base_name(filename_hint: Optional[str]) -> str:
    """Filesystem-safe stem for the temporary input file."""
    if not filename_hint:
        return "input"
    stem = os.path.splitext(os.path.basename(filename_hint))[0]
    return _UNSAFE_NAME_CHARS.sub("-", stem)[:64] or "input"


async def convert_to_markdown(
    data: bytes,
    filename_hint: Optional[str] = None,
    media_type_hint: Optional[str] = None,
    *,
    uvx_command: Optional[str] = None,
    timeout: float = MARKITDOWN_TIMEOUT,
    deadline: Optional[Deadline] = None,
) -> str:
    """Convert a document to markdown with markitdown.

    The input is written to a private temporary directory which is removed
    afterwards regardless of outcome.

    Raises:
        EmptyExtractedText: markitdown produced no output.
        UpstreamFetchFailed: The converter could not be run or failed.
    """
    deadline = ensure_deadline(deadline)
    deadline.check("markitdown conversion")

    tmp_dir = tempfile.mkdtemp(prefix="scrapbook-markitdown-")
    file_path = os.path.join(
        tmp_dir, safe_base_name(filename_hint) + guess_extension(filename_hint, media_type_hint)
    )
    command = (uvx_command or "").strip() or "uvx"

    try:
        with open(file_path, "wb") as f:
            f.write(data)

        logger.info(f"Converting {os.path.basename(file_path)} with markitdown")
        stdout = await run_command(
            [command, "--from", "markitdown[all]", "markitdown", file_path],
            timeout=deadline.timeout(timeout),
        )
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)

    markdown = stdout.strip()
    if not markdown:
        raise EmptyExtractedText("markitdown returned empty output")
    return markdown
