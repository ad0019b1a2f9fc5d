"""Query memory endpoint."""

from dataclasses import asdict
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Query

from scrapbook.api.deps import MemoryServiceDep, OwnerDep
from scrapbook.api.schemas import MemoryResponse, QueryMemoryItem
from scrapbook.core.constants import MEMORY_DEFAULT_LIMIT, MEMORY_MAX_LIMIT

router = APIRouter()


@router.get("/memory", response_model=MemoryResponse)
async def get_memory(
    owner: OwnerDep,
    memory_service: MemoryServiceDep,
    limit: Annotated[int, Query(ge=1, le=MEMORY_MAX_LIMIT)] = MEMORY_DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
    since: Optional[datetime] = None,
) -> MemoryResponse:
    """List the caller's recent search and ask queries, newest first."""
    page = await memory_service.get_memory(owner, limit=limit, offset=offset, since=since)
    return MemoryResponse(
        memories=[QueryMemoryItem(**asdict(m)) for m in page.memories],
        total=page.total,
    )
