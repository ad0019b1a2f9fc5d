"""Core utilities for Scrapbook."""

from .deadline import Deadline, ensure_deadline
from .errors import (
    DeadlineExceeded,
    EmptyExtractedText,
    InvalidInput,
    LooksLikeWebsite,
    ModelResponseUnparseable,
    NotConfigured,
    NotFound,
    ScrapbookError,
    SizeLimitExceeded,
    UnsupportedDocumentType,
    UnsupportedMediaType,
    UpstreamFetchFailed,
    UpstreamNotConfigured,
)
from .models import (
    AssetInput,
    AssetKind,
    AssetTarget,
    ContentType,
    ExtractedDocumentText,
    ExtractedLinkContent,
    ExtractedSource,
    InputKind,
    SourceContext,
    WebsiteTarget,
)
from .result import ParseFailure, Parsed, parse_json_object
from .synthesis import AnswerSynthesizer, build_source_block, extract_cited_ids

__all__ = [
    "Deadline",
    "ensure_deadline",
    # Errors
    "ScrapbookError",
    "InvalidInput",
    "NotFound",
    "UnsupportedMediaType",
    "UnsupportedDocumentType",
    "LooksLikeWebsite",
    "SizeLimitExceeded",
    "UpstreamNotConfigured",
    "NotConfigured",
    "UpstreamFetchFailed",
    "DeadlineExceeded",
    "EmptyExtractedText",
    "ModelResponseUnparseable",
    # Models
    "AssetInput",
    "AssetKind",
    "AssetTarget",
    "WebsiteTarget",
    "ContentType",
    "InputKind",
    "ExtractedDocumentText",
    "ExtractedLinkContent",
    "ExtractedSource",
    "SourceContext",
    # Parsing
    "Parsed",
    "ParseFailure",
    "parse_json_object",
    # Synthesis
    "AnswerSynthesizer",
    "build_source_block",
    "extract_cited_ids",
]
