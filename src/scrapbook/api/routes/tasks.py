"""Background job status endpoints."""

from typing import Optional

from fastapi import APIRouter, HTTPException

from scrapbook.api.deps import OwnerDep, TaskRunnerDep
from scrapbook.api.schemas import TaskListResponse, TaskResponse
from scrapbook.services.task_runner import TaskStatus

router = APIRouter()


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, task_runner: TaskRunnerDep, owner: OwnerDep) -> TaskResponse:
    """Get the status of one of the caller's background jobs."""
    info = task_runner.get_task(task_id)
    if info is None or info.metadata.get("owner", owner) != owner:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskResponse.from_info(info)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    task_runner: TaskRunnerDep,
    owner: OwnerDep,
    task_type: Optional[str] = None,
    status: Optional[str] = None,
) -> TaskListResponse:
    """List the caller's background jobs, optionally filtered by type and status."""
    status_enum = None
    if status is not None:
        try:
            status_enum = TaskStatus(status)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
    tasks = [
        t
        for t in task_runner.list_tasks(task_type=task_type, status=status_enum)
        if t.metadata.get("owner", owner) == owner
    ]
    return TaskListResponse(tasks=[TaskResponse.from_info(t) for t in tasks])
