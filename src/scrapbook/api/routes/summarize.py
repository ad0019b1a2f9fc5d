"""Summarization endpoints for URLs and uploaded files."""

import logging
import os
import shutil
import tempfile
from dataclasses import asdict
from pathlib import Path

from fastapi import APIRouter, File, Form, UploadFile

from scrapbook.api.deps import SummarizeServiceDep
from scrapbook.api.schemas import (
    ServiceStatus,
    SummarizeFileResponse,
    SummarizeRequest,
    SummarizeResponse,
    SummarizeStatusResponse,
)
from scrapbook.api.schemas.summarize import SummaryLengthField
from scrapbook.services.models import SummarizeOptions, UploadedFile
from scrapbook.services.summarize_service import get_status_message

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SummarizeResponse)
async def summarize_url(
    body: SummarizeRequest, summarize_service: SummarizeServiceDep
) -> SummarizeResponse:
    """Summarize a URL (Twitter/X, Reddit, article, or direct file link)."""
    result = await summarize_service.summarize(
        body.url,
        SummarizeOptions(
            length=body.length,
            include_metadata=body.include_metadata,
            model=body.model,
        ),
    )
    return SummarizeResponse(**asdict(result))


@router.post("/file", response_model=SummarizeFileResponse)
async def summarize_file(
    summarize_service: SummarizeServiceDep,
    file: UploadFile = File(...),
    length: SummaryLengthField = Form("medium"),
    include_metadata: bool = Form(True),
) -> SummarizeFileResponse:
    """Summarize an uploaded document or image."""
    tmpdir = tempfile.mkdtemp(prefix="scrapbook-upload-")
    try:
        name = os.path.basename(file.filename or "") or "upload"
        path = Path(tmpdir) / name
        with open(path, "wb") as out:
            shutil.copyfileobj(file.file, out)

        result = await summarize_service.summarize_file(
            UploadedFile(
                file_path=str(path),
                original_name=file.filename,
                mime_type=file.content_type,
            ),
            SummarizeOptions(length=length, include_metadata=include_metadata),
        )
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)

    return SummarizeFileResponse(**asdict(result))


@router.get("/status", response_model=SummarizeStatusResponse)
async def summarize_status(summarize_service: SummarizeServiceDep) -> SummarizeStatusResponse:
    """Which content sources are configured."""
    status = summarize_service.get_service_status()
    return SummarizeStatusResponse(
        services=ServiceStatus(**status),
        message=get_status_message(status),
    )
