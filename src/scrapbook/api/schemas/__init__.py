"""Pydantic schemas for API request/response models."""

from .ask import AskRequest, AskResponse, AskSourceItem
from .capture import CaptureRequest, CaptureResponse, ItemResponse
from .common import ErrorResponse, HealthResponse
from .memory import MemoryResponse, QueryMemoryItem, TopResultItem
from .search import SearchRequest, SearchResponse, SearchResultItem
from .summarize import (
    ServiceStatus,
    SummarizeFileResponse,
    SummarizeRequest,
    SummarizeResponse,
    SummarizeStatusResponse,
)
from .task import TaskListResponse, TaskResponse

__all__ = [
    "AskRequest",
    "AskResponse",
    "AskSourceItem",
    "CaptureRequest",
    "CaptureResponse",
    "ItemResponse",
    "ErrorResponse",
    "HealthResponse",
    "MemoryResponse",
    "QueryMemoryItem",
    "SearchRequest",
    "SearchResponse",
    "SearchResultItem",
    "ServiceStatus",
    "SummarizeFileResponse",
    "SummarizeRequest",
    "SummarizeResponse",
    "SummarizeStatusResponse",
    "TaskListResponse",
    "TaskResponse",
    "TopResultItem",
]
