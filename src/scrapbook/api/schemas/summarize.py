"""Summarize-related schemas."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

SummaryLengthField = Literal["short", "medium", "long", "xl", "xxl"]


class SummarizeRequest(BaseModel):
    """Request body for summarizing a URL."""

    url: str = Field(min_length=1)
    length: SummaryLengthField = "medium"
    include_metadata: bool = True
    model: Optional[str] = None


class SummarizeResponse(BaseModel):
    """Summary of a URL."""

    summary: str
    content_type: str
    title: Optional[str] = None
    source_url: str
    extracted_content: str
    metadata: Optional[Dict[str, Any]] = None


class SummarizeFileResponse(BaseModel):
    """Summary of an uploaded file."""

    summary: str
    content_type: str
    title: Optional[str] = None
    filename: Optional[str] = None
    media_type: str
    extracted_content: str
    truncated: bool = False
    source_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ServiceStatus(BaseModel):
    """Which content sources are usable."""

    twitter: bool
    reddit: bool
    articles: bool


class SummarizeStatusResponse(BaseModel):
    """Content source status with a human-readable message."""

    services: ServiceStatus
    message: str
