"""Search-related schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SearchModeField = Literal["keyword", "semantic", "hybrid"]


class SearchRequest(BaseModel):
    """Request body for searching the library."""

    query: str = Field(min_length=1)
    mode: SearchModeField = "hybrid"
    types: Optional[List[str]] = None
    limit: int = Field(default=20, ge=1, le=100)


class SearchResultItem(BaseModel):
    """A single search hit."""

    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    content_type: str
    tags: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None
    created_at: datetime
    score: Optional[float] = None


class SearchResponse(BaseModel):
    """Search results."""

    results: List[SearchResultItem]
    total: int
