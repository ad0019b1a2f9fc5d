"""Shared domain types for the extraction pipeline.

These dataclasses are ephemeral: they are produced and consumed within a
single extraction or synthesis call and never persisted directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class InputKind(str, Enum):
    """Coarse classification of a captured string."""

    URL = "url"
    TEXT = "text"
    IMAGE = "image"


class ContentType(str, Enum):
    """Refined content classification used by the summarize pipeline."""

    TWITTER = "twitter"
    REDDIT = "reddit"
    ARTICLE = "article"
    UNKNOWN = "unknown"
    TEXT = "text"
    IMAGE = "image"
    DOCUMENT = "document"


class AssetKind(str, Enum):
    """Kinds of binary asset the pipeline can process."""

    IMAGE = "image"
    DOCUMENT = "document"


@dataclass(frozen=True)
class AssetInput:
    """A validated binary payload ready for extraction.

    ``media_type`` is the sniffed MIME type and wins over any caller hint.
    """

    kind: AssetKind
    media_type: str
    filename: Optional[str]
    data: bytes
    size_bytes: int


@dataclass(frozen=True)
class ExtractedDocumentText:
    """Normalized, length-bounded text pulled from a document."""

    text: str
    truncated: bool


@dataclass
class ExtractedLinkContent:
    """Result of generic web/article extraction."""

    url: str
    title: Optional[str]
    description: Optional[str]
    site_name: Optional[str]
    content: str
    truncated: bool
    total_characters: int = 0
    word_count: int = 0
    transcript_source: Optional[str] = None
    transcript_characters: Optional[int] = None
    transcript_lines: Optional[int] = None
    is_video_only: bool = False


@dataclass
class ExtractedSource:
    """Uniform output of every extraction strategy."""

    content: str
    title: Optional[str]
    metadata: Dict[str, Any] = field(default_factory=dict)


# Asset classifier outcomes -------------------------------------------------


@dataclass(frozen=True)
class WebsiteTarget:
    """The URL most likely points to an HTML page."""

    url: str


@dataclass(frozen=True)
class AssetTarget:
    """The URL most likely points to a downloadable file."""

    url: str
    reason: str


UrlTarget = Union[WebsiteTarget, AssetTarget]


@dataclass(frozen=True)
class SourceContext:
    """A retrieved item adapted for answer synthesis."""

    id: str
    title: Optional[str]
    content_type: str
    source_url: Optional[str]
    excerpt: str


# Language-model exchange types ---------------------------------------------


@dataclass(frozen=True)
class Attachment:
    """Binary payload handed to the language model alongside a prompt.

    ``data`` is base64-encoded.
    """

    kind: AssetKind
    media_type: str
    data: str
    filename: Optional[str] = None


@dataclass
class GenerateAnswerOptions:
    """Arguments for a single answer-generation call."""

    query: str
    sources: List[SourceContext] = field(default_factory=list)
    max_tokens: int = 1500
    attachments: List[Attachment] = field(default_factory=list)
    model: Optional[str] = None


@dataclass
class GenerateAnswerResult:
    """Raw answer text plus the ids of the sources it cites."""

    answer: str
    sources_used: List[str] = field(default_factory=list)


@dataclass
class EnrichmentResult:
    """AI-generated metadata for a captured item."""

    title: str
    description: str
    tags: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "EnrichmentResult":
        return cls(title="Untitled", description="", tags=[])
