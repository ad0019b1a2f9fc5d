"""Citation-grounded answer synthesis over retrieved excerpts.

Sources are numbered in the order the caller provides them (normally the
retrieval rank). The model is asked to cite them inline as ``[N]``; those
markers are then mapped back to source ids.
"""

import logging
import re
from typing import List, Optional, Sequence

from scrapbook.core.constants import ASK_EXCERPT_CHARS, ASK_MAX_TOKENS, NO_RESULTS_ANSWER
from scrapbook.core.models import (
    GenerateAnswerOptions,
    GenerateAnswerResult,
    SourceContext,
)

logger = logging.getLogger(__name__)

SOURCE_SEPARATOR = "\n\n---\n\n"

_CITATION_PATTERN = re.compile(r"\[(\d+)\]")
_SENTENCE_ENDINGS = (". ", ".\n", "! ", "? ")


def truncate_excerpt(content: str, max_length: int = ASK_EXCERPT_CHARS) -> str:
    """Cut ``content`` to ``max_length`` characters, preferring a sentence end.

    A sentence boundary is used only if it lies past half of the bound;
    otherwise the text is hard-cut and marked with ``...``.
    """
    if len(content) <= max_length:
        return content

    truncated = content[:max_length]
    last_sentence_end = max(truncated.rfind(ending) for ending in _SENTENCE_ENDINGS)
    if last_sentence_end > max_length * 0.5:
        return truncated[: last_sentence_end + 1]

    return truncated + "..."


def build_source_block(sources: Sequence[SourceContext]) -> str:
    """Render sources as numbered ``[N] Title (url)`` entries."""
    parts = []
    for index, source in enumerate(sources, start=1):
        url_info = f" ({source.source_url})" if source.source_url else ""
        parts.append(f"[{index}] {source.title or 'Untitled'}{url_info}\n{source.excerpt}")
    return SOURCE_SEPARATOR.join(parts)


def build_answer_prompt(query: str, sources: Sequence[SourceContext]) -> str:
    """Compose the grounded-answer prompt for ``query``."""
    return (
        "You are a helpful assistant that answers questions based on the user's "
        "saved content.\n"
        "Use ONLY the provided sources to answer. If the sources don't contain "
        "relevant information, say so.\n\n"
        f"Sources:\n{build_source_block(sources)}\n\n"
        f"Question: {query}\n\n"
        "Instructions:\n"
        "- Answer using only information from the sources above\n"
        "- Use inline numbered citations like [1], [2] to reference sources\n"
        "- Format your response in markdown\n"
        "- Do NOT include a sources list at the end - just use inline citations\n"
        "- If sources don't contain relevant info, acknowledge this\n\n"
        "Answer:"
    )


def extract_citation_numbers(answer: str, source_count: int) -> List[int]:
    """Distinct in-range ``[n]`` markers found in ``answer``, ascending."""
    numbers = {int(match) for match in _CITATION_PATTERN.findall(answer)}
    return sorted(n for n in numbers if 1 <= n <= source_count)


def extract_cited_ids(answer: str, sources: Sequence[SourceContext]) -> List[str]:
    """Map the citation markers in ``answer`` back to source ids.

    Args:
        answer: Raw model output.
        sources: Sources in the order they were numbered for the model.

    Returns:
        Source ids in ascending citation-number order, without duplicates.
        Out-of-range numbers are ignored.
    """
    return [
        sources[n - 1].id for n in extract_citation_numbers(answer, len(sources))
    ]


class AnswerSynthesizer:
    """Produces an answer and its cited sources from retrieved excerpts."""

    def __init__(self, llm):
        self.llm = llm

    async def answer(
        self,
        query: str,
        sources: Sequence[SourceContext],
        max_tokens: int = ASK_MAX_TOKENS,
        model: Optional[str] = None,
    ) -> GenerateAnswerResult:
        """Answer ``query`` from ``sources``.

        With no sources the model is not called and a canned answer is
        returned.
        """
        if not sources:
            return GenerateAnswerResult(answer=NO_RESULTS_ANSWER, sources_used=[])

        result = await self.llm.generate_answer(
            GenerateAnswerOptions(
                query=query,
                sources=list(sources),
                max_tokens=max_tokens,
                model=model,
            )
        )
        sources_used = extract_cited_ids(result.answer, sources)
        logger.info(
            "Synthesized answer citing %d of %d sources",
            len(sources_used),
            len(sources),
        )
        return GenerateAnswerResult(answer=result.answer, sources_used=sources_used)
