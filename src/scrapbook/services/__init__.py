"""Service layer for Scrapbook business logic.

Services take their collaborators (repositories, language model, extraction
capabilities) as constructor arguments; the API wires them together.
"""

from .ask_service import AskService
from .config_service import ConfigService
from .content_service import ContentService
from .enrichment_service import EnrichmentService, parse_enrichment
from .llm_provider import LanguageModel, OllamaProvider
from .memory_service import MemoryService
from .models import (
    AskRequest,
    AskResponse,
    AskSource,
    CaptureRequest,
    CaptureResponse,
    ContentItem,
    MemoryPage,
    QueryMemory,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SummarizeFileResult,
    SummarizeOptions,
    SummarizeResult,
    TopResult,
    UploadedFile,
)
from .repositories import (
    ContentRepository,
    EmbeddingRepository,
    InMemoryContentRepository,
    InMemoryEmbeddingRepository,
    InMemoryMemoryRepository,
    MemoryRepository,
)
from .search_service import SearchService
from .summarize_service import SummarizeService, detect_content_type
from .task_runner import TaskInfo, TaskRunner, TaskStatus

__all__ = [
    "AskService",
    "ConfigService",
    "ContentService",
    "EnrichmentService",
    "parse_enrichment",
    "LanguageModel",
    "OllamaProvider",
    "MemoryService",
    "ContentRepository",
    "EmbeddingRepository",
    "InMemoryContentRepository",
    "InMemoryEmbeddingRepository",
    "InMemoryMemoryRepository",
    "MemoryRepository",
    "SearchService",
    "SummarizeService",
    "detect_content_type",
    "TaskInfo",
    "TaskRunner",
    "TaskStatus",
    "AskRequest",
    "AskResponse",
    "AskSource",
    "CaptureRequest",
    "CaptureResponse",
    "ContentItem",
    "MemoryPage",
    "QueryMemory",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SummarizeFileResult",
    "SummarizeOptions",
    "SummarizeResult",
    "TopResult",
    "UploadedFile",
]
