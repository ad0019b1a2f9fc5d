"""Library search endpoint."""

from dataclasses import asdict

from fastapi import APIRouter

from scrapbook.api.deps import MemoryServiceDep, OwnerDep, SearchServiceDep, TaskRunnerDep
from scrapbook.api.schemas import SearchRequest, SearchResponse, SearchResultItem
from scrapbook.services import models

router = APIRouter()


@router.post("/search", response_model=SearchResponse)
async def search(
    body: SearchRequest,
    owner: OwnerDep,
    search_service: SearchServiceDep,
    memory_service: MemoryServiceDep,
    task_runner: TaskRunnerDep,
) -> SearchResponse:
    """Search the caller's library in keyword, semantic, or hybrid mode.

    The query is recorded to the caller's memory in the background.
    """
    response = await search_service.search(
        owner,
        models.SearchRequest(
            query=body.query, mode=body.mode, types=body.types, limit=body.limit
        ),
    )
    await task_runner.submit(
        "record_memory",
        memory_service.record_job(
            owner,
            body.query,
            body.mode,
            "search",
            [models.TopResult(r.id, r.title, r.content_type) for r in response.results],
            response.total,
        ),
        metadata={"owner": owner, "endpoint": "search"},
    )
    return SearchResponse(
        results=[SearchResultItem(**asdict(r)) for r in response.results],
        total=response.total,
    )
