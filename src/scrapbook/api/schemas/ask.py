"""Question-answering schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .search import SearchModeField


class AskRequest(BaseModel):
    """Request body for asking a question over the library."""

    query: str = Field(min_length=1, max_length=1000)
    limit: int = Field(default=5, ge=1, le=10)
    mode: SearchModeField = "hybrid"
    model: Optional[str] = None


class AskSourceItem(BaseModel):
    """A cited source."""

    id: str
    title: Optional[str] = None
    content_type: str
    source_url: Optional[str] = None
    citation_number: int


class AskResponse(BaseModel):
    """A cited answer."""

    answer: str
    sources: List[AskSourceItem] = Field(default_factory=list)
    total_sources_searched: int = 0
