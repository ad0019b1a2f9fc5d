"""Query memory schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TopResultItem(BaseModel):
    """An item a recorded query surfaced."""

    id: str
    title: Optional[str] = None
    content_type: str


class QueryMemoryItem(BaseModel):
    """A recorded search or ask query."""

    id: str
    query: str
    search_mode: str
    endpoint: str
    top_results: List[TopResultItem] = Field(default_factory=list)
    result_count: int
    created_at: datetime


class MemoryResponse(BaseModel):
    """Recorded queries, newest first."""

    memories: List[QueryMemoryItem]
    total: int
