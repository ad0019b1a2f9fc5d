"""Schemas for background enrichment and summarization jobs."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from scrapbook.services.task_runner import TaskInfo


class TaskResponse(BaseModel):
    """State of one background job."""

    task_id: str
    task_type: str
    status: Literal["pending", "running", "completed", "error"]
    created_at: str
    updated_at: str
    progress: int = Field(ge=0, le=100)
    stage: str = ""
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_info(cls, info: TaskInfo) -> "TaskResponse":
        return cls(
            task_id=info.task_id,
            task_type=info.task_type,
            status=info.status.value,
            created_at=info.created_at,
            updated_at=info.updated_at,
            progress=info.progress,
            stage=info.stage,
            result=info.result,
            error=info.error,
            metadata=info.metadata,
        )


class TaskListResponse(BaseModel):
    """Jobs, newest first."""

    tasks: List[TaskResponse]
