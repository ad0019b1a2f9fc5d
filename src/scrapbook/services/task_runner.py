"""Async task runner for background jobs.

Jobs (enrichment after capture, summarization of captured URLs) are queued
and run one at a time by a worker loop. Coroutine functions are awaited on the
event loop; plain callables run in a thread pool. Callers that need the
outcome can ``await runner.wait(task_id)``.
"""

import asyncio
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class TaskStatus(str, Enum):
    """Status of a background task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class TaskInfo:
    """Observable state of a background task."""

    task_id: str
    task_type: str
    status: TaskStatus
    created_at: str
    updated_at: str
    progress: int = 0
    stage: str = ""
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def done(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.ERROR)

    def touch(self) -> None:
        self.updated_at = _now()

    def report(self, stage: str, current: int, total: int) -> None:
        """Progress callback handed to the job."""
        self.stage = stage
        self.progress = min(current * 100 // total, 100) if total else 0
        self.touch()


@dataclass
class _Job:
    fn: Callable
    on_complete: Optional[Callable]
    finished: asyncio.Event = field(default_factory=asyncio.Event)


def _as_result(value: Any) -> Optional[Dict[str, Any]]:
    if value is None or isinstance(value, dict):
        return value
    return {"success": value}


class TaskRunner:
    """Serial background job queue with in-memory task state.

    Each job receives ``progress_callback(stage, current, total)`` and may
    return a dict (stored as the task result) or any other value (stored as
    ``{"success": value}``).
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskInfo] = {}
        self._jobs: Dict[str, _Job] = {}
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._executor = ThreadPoolExecutor(max_workers=1)
        self._worker_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    async def start(self) -> None:
        """Start the worker loop (no-op if already running)."""
        if self.running:
            return
        self._worker_task = asyncio.create_task(self._worker_loop())
        logger.info("TaskRunner started")

    async def stop(self) -> None:
        """Cancel the worker and shut down the executor."""
        worker, self._worker_task = self._worker_task, None
        if worker is not None:
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
        self._executor.shutdown(wait=False)
        logger.info("TaskRunner stopped")

    async def submit(
        self,
        task_type: str,
        fn: Callable,
        *,
        on_complete: Optional[Callable] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Queue ``fn`` and return the new task id.

        Args:
            task_type: Label for the kind of work (e.g. "enrich").
            fn: Callable or coroutine function taking the progress callback.
            on_complete: Called with the TaskInfo once the task has finished,
                whether it succeeded or not. May be sync or async.
            metadata: Stored on the TaskInfo as-is.
        """
        created = _now()
        info = TaskInfo(
            task_id=str(uuid.uuid4()),
            task_type=task_type,
            status=TaskStatus.PENDING,
            created_at=created,
            updated_at=created,
            metadata=dict(metadata or {}),
        )
        self._tasks[info.task_id] = info
        self._jobs[info.task_id] = _Job(fn=fn, on_complete=on_complete)
        await self._queue.put(info.task_id)
        logger.info("Task %s (%s) submitted", info.task_id, task_type)
        return info.task_id

    def get_task(self, task_id: str) -> Optional[TaskInfo]:
        return self._tasks.get(task_id)

    def list_tasks(
        self,
        task_type: Optional[str] = None,
        status: Optional[TaskStatus] = None,
    ) -> List[TaskInfo]:
        """Tasks matching the given type and status, newest first."""
        return sorted(
            (
                t
                for t in self._tasks.values()
                if (task_type is None or t.task_type == task_type)
                and (status is None or t.status == status)
            ),
            key=lambda t: t.created_at,
            reverse=True,
        )

    async def wait(self, task_id: str, timeout: Optional[float] = None) -> TaskInfo:
        """Block until the task has completed or failed.

        Raises:
            KeyError: Unknown task id.
            asyncio.TimeoutError: The task did not finish within ``timeout``.
        """
        info = self._tasks.get(task_id)
        if info is None:
            raise KeyError(task_id)
        job = self._jobs.get(task_id)
        if job is not None and not info.done:
            await asyncio.wait_for(job.finished.wait(), timeout)
        return info

    async def _call(self, fn: Callable, progress: ProgressCallback) -> Any:
        if asyncio.iscoroutinefunction(fn):
            return await fn(progress)
        loop = asyncio.get_running_loop()
        value = await loop.run_in_executor(self._executor, fn, progress)
        if asyncio.iscoroutine(value):
            value = await value
        return value

    async def _execute(self, info: TaskInfo, job: _Job) -> None:
        info.status = TaskStatus.RUNNING
        info.touch()
        try:
            info.result = _as_result(await self._call(job.fn, info.report))
        except Exception as exc:
            info.status = TaskStatus.ERROR
            info.error = str(exc)
            logger.error("Task %s failed: %s", info.task_id, exc)
        else:
            info.status = TaskStatus.COMPLETED
            info.progress = 100
            logger.info("Task %s completed", info.task_id)
        info.touch()

        if job.on_complete is not None:
            try:
                outcome = job.on_complete(info)
                if asyncio.iscoroutine(outcome):
                    await outcome
            except Exception as exc:
                logger.error("on_complete callback for task %s failed: %s", info.task_id, exc)

    async def _worker_loop(self) -> None:
        while True:
            task_id = await self._queue.get()
            job = self._jobs.get(task_id)
            if job is None:
                continue
            try:
                await self._execute(self._tasks[task_id], job)
            finally:
                job.finished.set()
                self._jobs.pop(task_id, None)
