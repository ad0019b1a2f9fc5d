"""Question answering over a user's library."""

import logging
from typing import Optional

from scrapbook.core.constants import ASK_MAX_TOKENS, NO_RESULTS_ANSWER
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.models import SourceContext
from scrapbook.core.synthesis import AnswerSynthesizer, truncate_excerpt
from scrapbook.services.models import AskRequest, AskResponse, AskSource, SearchRequest

logger = logging.getLogger(__name__)


class AskService:
    """Retrieves relevant items and synthesizes a cited answer from them."""

    def __init__(self, search_service, content_repository, synthesizer: AnswerSynthesizer):
        self.search_service = search_service
        self.content_repository = content_repository
        self.synthesizer = synthesizer

    async def ask(
        self,
        owner: str,
        request: AskRequest,
        deadline: Optional[Deadline] = None,
    ) -> AskResponse:
        """Answer ``request.query`` from the owner's items.

        Sources are numbered in retrieval order; the returned ``sources`` are
        the cited ones, sorted by citation number.
        """
        deadline = ensure_deadline(deadline)
        search = await self.search_service.search(
            owner,
            SearchRequest(query=request.query, mode=request.mode, limit=request.limit),
            deadline,
        )

        if not search.results:
            return AskResponse(answer=NO_RESULTS_ANSWER, sources=[], total_sources_searched=0)

        ids = [r.id for r in search.results]
        items = await self.content_repository.find_by_ids(ids, owner)
        items_by_id = {item.id: item for item in items}

        contexts = [
            SourceContext(
                id=item.id,
                title=item.title,
                content_type=item.content_type,
                source_url=item.source_url,
                excerpt=truncate_excerpt(item.raw_content),
            )
            for item in (items_by_id.get(i) for i in ids)
            if item is not None
        ]

        deadline.check("answer generation")
        result = await self.synthesizer.answer(
            request.query, contexts, max_tokens=ASK_MAX_TOKENS, model=request.model
        )

        position = {ctx.id: n for n, ctx in enumerate(contexts, start=1)}
        sources = sorted(
            (
                AskSource(
                    id=item.id,
                    title=item.title,
                    content_type=item.content_type,
                    source_url=item.source_url,
                    citation_number=position[item.id],
                )
                for item in (items_by_id[i] for i in result.sources_used)
            ),
            key=lambda s: s.citation_number,
        )

        return AskResponse(
            answer=result.answer,
            sources=sources,
            total_sources_searched=search.total,
        )
