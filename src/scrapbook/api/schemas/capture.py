"""Capture and item schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CaptureRequest(BaseModel):
    """Request body for capturing content."""

    content: str = Field(min_length=1)
    tags: List[str] = Field(default_factory=list)
    summarize: bool = False


class CaptureResponse(BaseModel):
    """Acknowledgement of a capture."""

    id: str
    status: str
    enrichment: str
    task_id: Optional[str] = None
    summary_task_id: Optional[str] = None


class ItemResponse(BaseModel):
    """A stored content item."""

    id: str
    content_type: str
    raw_content: str
    source_url: Optional[str] = None
    source_domain: Optional[str] = None
    image_path: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    enrichment_status: str
    summary: Optional[str] = None
    created_at: datetime
    updated_at: datetime
