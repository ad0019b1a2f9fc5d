"""Query memory: a per-owner log of search and ask queries.

Recording happens in the background after a search or ask response has been
built, so a failing store never affects the caller's request.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from scrapbook.core.constants import (
    MEMORY_DEFAULT_LIMIT,
    MEMORY_MAX_LIMIT,
    MEMORY_TOP_RESULTS,
)
from scrapbook.core.errors import InvalidInput
from scrapbook.services.models import MemoryPage, NewQueryMemory, QueryMemory, TopResult
from scrapbook.services.repositories import MemoryRepository

logger = logging.getLogger(__name__)


class MemoryService:
    """Records queries and lists them back, newest first."""

    def __init__(self, memory_repository: MemoryRepository):
        self.memory_repository = memory_repository

    async def record_query(
        self,
        owner: str,
        query: str,
        search_mode: str,
        endpoint: str,
        top_results: Sequence[TopResult],
        result_count: int,
    ) -> Optional[QueryMemory]:
        """Store one query with at most ``MEMORY_TOP_RESULTS`` of its results.

        Returns None, after logging, if the repository fails.
        """
        try:
            return await self.memory_repository.record(
                NewQueryMemory(
                    user_id=owner,
                    query=query,
                    search_mode=search_mode,
                    endpoint=endpoint,
                    top_results=list(top_results)[:MEMORY_TOP_RESULTS],
                    result_count=result_count,
                )
            )
        except Exception as e:
            logger.error(f"Failed to record {endpoint} query for {owner}: {e}")
            return None

    def record_job(
        self,
        owner: str,
        query: str,
        search_mode: str,
        endpoint: str,
        top_results: List[TopResult],
        result_count: int,
    ):
        """Build a TaskRunner job that records the query."""

        async def _record(progress_callback):
            progress_callback("recording", 0, 1)
            memory = await self.record_query(
                owner, query, search_mode, endpoint, top_results, result_count
            )
            progress_callback("done", 1, 1)
            return {"recorded": memory is not None}

        return _record

    async def get_memory(
        self,
        owner: str,
        limit: int = MEMORY_DEFAULT_LIMIT,
        offset: int = 0,
        since: Optional[datetime] = None,
    ) -> MemoryPage:
        """List the owner's recorded queries.

        A ``since`` without a timezone is taken as UTC.

        Raises:
            InvalidInput: ``limit`` outside 1..MEMORY_MAX_LIMIT or negative ``offset``.
        """
        if not 1 <= limit <= MEMORY_MAX_LIMIT:
            raise InvalidInput(f"limit must be between 1 and {MEMORY_MAX_LIMIT}")
        if offset < 0:
            raise InvalidInput("offset must not be negative")
        if since is not None and since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)

        memories, total = await self.memory_repository.get_recent(
            owner, limit=limit, offset=offset, since=since
        )
        return MemoryPage(memories=memories, total=total)
