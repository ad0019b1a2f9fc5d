"""Retrieval over a user's library in keyword, semantic, or hybrid mode."""

import asyncio
import logging
from typing import List, Optional

from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.errors import InvalidInput
from scrapbook.services.models import SearchRequest, SearchResponse, SearchResult

logger = logging.getLogger(__name__)

SEARCH_MODES = ("keyword", "semantic", "hybrid")
EMBED_TIMEOUT = 60


def merge_results(
    semantic: List[SearchResult], keyword: List[SearchResult], limit: int
) -> List[SearchResult]:
    """Semantic hits first, then keyword hits not already seen, capped at ``limit``."""
    seen = set()
    merged: List[SearchResult] = []
    for result in [*semantic, *keyword]:
        if result.id in seen:
            continue
        seen.add(result.id)
        merged.append(result)
    return merged[:limit]


class SearchService:
    """Service for searching stored content items."""

    def __init__(self, content_repository, embedding_repository, llm):
        self.content_repository = content_repository
        self.embedding_repository = embedding_repository
        self.llm = llm

    async def search(
        self,
        owner: str,
        request: SearchRequest,
        deadline: Optional[Deadline] = None,
    ) -> SearchResponse:
        """Search the owner's items.

        Args:
            owner: Caller identity; only their items are searched.
            request: Query, mode, optional content-type filter and limit.
            deadline: Request deadline.

        Returns:
            SearchResponse with ``total`` equal to the number of results
            after the type filter.
        """
        if request.mode not in SEARCH_MODES:
            raise InvalidInput(f"Unknown search mode: {request.mode}")
        deadline = ensure_deadline(deadline)

        if request.mode == "keyword":
            results = await self.keyword_search(owner, request.query, request.limit)
        elif request.mode == "semantic":
            results = await self.semantic_search(owner, request.query, request.limit, deadline)
        else:
            results = await self.hybrid_search(owner, request.query, request.limit, deadline)

        if request.types:
            wanted = set(request.types)
            results = [r for r in results if r.content_type in wanted]

        return SearchResponse(results=results, total=len(results))

    async def keyword_search(self, owner: str, query: str, limit: int) -> List[SearchResult]:
        items = await self.content_repository.keyword_search(owner, query, limit)
        return [SearchResult.from_item(item) for item in items]

    async def semantic_search(
        self,
        owner: str,
        query: str,
        limit: int,
        deadline: Optional[Deadline] = None,
    ) -> List[SearchResult]:
        """Nearest items by embedding, in similarity order, with scores."""
        deadline = ensure_deadline(deadline)
        deadline.check("query embedding")
        embedding = await asyncio.wait_for(
            self.llm.embed(query), timeout=deadline.timeout(EMBED_TIMEOUT)
        )

        similar = await self.embedding_repository.search_similar(embedding, owner, limit)
        if not similar:
            return []

        # One batched lookup for every candidate
        items = await self.content_repository.find_by_ids([s.id for s in similar], owner)
        items_by_id = {item.id: item for item in items}

        return [
            SearchResult.from_item(items_by_id[s.id], score=s.similarity)
            for s in similar
            if s.id in items_by_id
        ]

    async def hybrid_search(
        self,
        owner: str,
        query: str,
        limit: int,
        deadline: Optional[Deadline] = None,
    ) -> List[SearchResult]:
        """Keyword and semantic search in parallel; a semantic failure degrades to keyword only."""
        keyword_results, semantic_results = await asyncio.gather(
            self.keyword_search(owner, query, limit),
            self.semantic_search(owner, query, limit, deadline),
            return_exceptions=True,
        )
        if isinstance(keyword_results, BaseException):
            raise keyword_results
        if isinstance(semantic_results, BaseException):
            logger.warning(f"Semantic search failed, using keyword results only: {semantic_results}")
            semantic_results = []

        return merge_results(semantic_results, keyword_results, limit)
