"""Question answering over the caller's library."""

from dataclasses import asdict

from fastapi import APIRouter

from scrapbook.api.deps import AskServiceDep, MemoryServiceDep, OwnerDep, TaskRunnerDep
from scrapbook.api.schemas import AskRequest, AskResponse
from scrapbook.services import models

router = APIRouter()


@router.post("/ask", response_model=AskResponse)
async def ask(
    body: AskRequest,
    owner: OwnerDep,
    ask_service: AskServiceDep,
    memory_service: MemoryServiceDep,
    task_runner: TaskRunnerDep,
) -> AskResponse:
    """Answer a question with citations to the caller's stored items."""
    response = await ask_service.ask(
        owner,
        models.AskRequest(query=body.query, limit=body.limit, mode=body.mode, model=body.model),
    )
    await task_runner.submit(
        "record_memory",
        memory_service.record_job(
            owner,
            body.query,
            body.mode,
            "ask",
            [models.TopResult(s.id, s.title, s.content_type) for s in response.sources],
            response.total_sources_searched,
        ),
        metadata={"owner": owner, "endpoint": "ask"},
    )
    return AskResponse(**asdict(response))
