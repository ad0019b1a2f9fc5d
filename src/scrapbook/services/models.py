"""Dataclasses for service layer models.

These models are used for data transfer between services and the API layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

SummaryLength = Literal["short", "medium", "long", "xl", "xxl"]
SearchMode = Literal["keyword", "semantic", "hybrid"]


class EnrichmentStatus(str, Enum):
    """Lifecycle of background enrichment for a captured item."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ContentItem:
    """A captured item as persisted by the content repository."""

    id: str
    user_id: str
    content_type: str
    raw_content: str
    source_url: Optional[str] = None
    source_domain: Optional[str] = None
    image_path: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    enrichment_status: EnrichmentStatus = EnrichmentStatus.PENDING
    summary: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "content_type": self.content_type,
            "raw_content": self.raw_content,
            "source_url": self.source_url,
            "source_domain": self.source_domain,
            "image_path": self.image_path,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "enrichment_status": self.enrichment_status.value,
            "summary": self.summary,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class NewContentItem:
    """Fields supplied when creating a content item."""

    user_id: str
    content_type: str
    raw_content: str
    source_url: Optional[str] = None
    source_domain: Optional[str] = None
    image_path: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class ContentUpdate:
    """Partial update for a content item. ``None`` fields are left untouched."""

    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    enrichment_status: Optional[EnrichmentStatus] = None
    summary: Optional[str] = None


@dataclass(frozen=True)
class SimilarityResult:
    """One nearest-neighbour hit from the embedding index."""

    id: str
    similarity: float


# Summarize -----------------------------------------------------------------


@dataclass
class SummarizeOptions:
    """Caller options for a summarize request."""

    length: SummaryLength = "medium"
    include_metadata: bool = True
    model: Optional[str] = None


@dataclass
class UploadedFile:
    """A file the caller uploaded, already written to local disk."""

    file_path: str
    original_name: Optional[str] = None
    mime_type: Optional[str] = None


@dataclass
class SummarizeResult:
    """Uniform output of the summarize pipeline."""

    summary: str
    content_type: str
    title: Optional[str]
    source_url: str
    extracted_content: str
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class SummarizeFileResult:
    """Summarize output for an uploaded file."""

    summary: str
    content_type: str
    title: Optional[str]
    filename: Optional[str]
    media_type: str
    extracted_content: str
    truncated: bool = False
    source_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


# Search / ask ----------------------------------------------------------------


@dataclass
class SearchRequest:
    """A retrieval query."""

    query: str
    mode: SearchMode = "hybrid"
    types: Optional[List[str]] = None
    limit: int = 20


@dataclass
class SearchResult:
    """A stored item as returned by search. ``score`` is set only for semantic hits."""

    id: str
    title: Optional[str]
    description: Optional[str]
    content_type: str
    tags: List[str]
    source_url: Optional[str]
    created_at: datetime
    score: Optional[float] = None

    @classmethod
    def from_item(cls, item: ContentItem, score: Optional[float] = None) -> "SearchResult":
        return cls(
            id=item.id,
            title=item.title,
            description=item.description,
            content_type=item.content_type,
            tags=list(item.tags),
            source_url=item.source_url,
            created_at=item.created_at,
            score=score,
        )


@dataclass
class SearchResponse:
    """Search results plus their count after filtering."""

    results: List[SearchResult]
    total: int


@dataclass
class AskRequest:
    """A question over the caller's library."""

    query: str
    limit: int = 5
    mode: SearchMode = "hybrid"
    model: Optional[str] = None


@dataclass
class AskSource:
    """A source cited by an answer.

    ``citation_number`` is the 1-indexed position of the source in the list
    sent to the model.
    """

    id: str
    title: Optional[str]
    content_type: str
    source_url: Optional[str]
    citation_number: int


@dataclass
class AskResponse:
    """A cited answer."""

    answer: str
    sources: List[AskSource] = field(default_factory=list)
    total_sources_searched: int = 0


# Capture -------------------------------------------------------------------


@dataclass
class CaptureRequest:
    """Content submitted for capture."""

    content: str
    tags: List[str] = field(default_factory=list)
    summarize: bool = False


@dataclass
class CaptureResponse:
    """Acknowledgement of a capture; enrichment continues in the background."""

    id: str
    status: str = "captured"
    enrichment: str = EnrichmentStatus.PENDING.value
    task_id: Optional[str] = None
    summary_task_id: Optional[str] = None


# Query memory ----------------------------------------------------------------


@dataclass(frozen=True)
class TopResult:
    """Compact reference to an item a query surfaced."""

    id: str
    title: Optional[str]
    content_type: str


@dataclass
class NewQueryMemory:
    """Fields supplied when recording a query."""

    user_id: str
    query: str
    search_mode: str
    endpoint: Literal["search", "ask"]
    top_results: List[TopResult] = field(default_factory=list)
    result_count: int = 0


@dataclass
class QueryMemory:
    """A recorded search or ask query."""

    id: str
    user_id: str
    query: str
    search_mode: str
    endpoint: str
    top_results: List[TopResult]
    result_count: int
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class MemoryPage:
    """A page of recorded queries, newest first, plus the unpaginated count."""

    memories: List[QueryMemory]
    total: int
