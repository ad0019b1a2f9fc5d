"""Background enrichment: title, description, tags and embedding for an item."""

import logging
import re
from typing import Any, List, Optional, Sequence

from scrapbook.core.constants import ENRICHMENT_INPUT_CHARS
from scrapbook.core.models import EnrichmentResult
from scrapbook.core.result import ParseFailure, parse_json_object
from scrapbook.services.models import ContentItem, ContentUpdate, EnrichmentStatus

logger = logging.getLogger(__name__)

MAX_TAGS = 5

_TAG_SEPARATORS = re.compile(r"[\s_]+")
_TAG_INVALID = re.compile(r"[^a-z0-9\-]")

ENRICHMENT_PROMPT = """Analyze this {content_type} content and provide metadata.

Content: {content}
{existing_tags_section}

Respond with a JSON object containing:
- title: A concise title (max 60 characters)
- description: A short paragraph of notes about this content - what it is, why it might be interesting or useful, and any key takeaways (2-4 sentences)
- tags: Up to 5 relevant tags (lowercase, no spaces, use hyphens for multi-word tags)

Tag guidelines:
- For music content: Always include the primary genre, and for electronic music the specific subgenre (e.g. "deep-house", "minimal-techno", "drum-and-bass")
- Reuse existing tags from the user's library when they apply
- Use consistent naming: prefer "article" over "news", "tutorial" over "guide"

Respond ONLY with valid JSON, no other text."""


def build_enrichment_prompt(
    content: str, content_type: str, existing_tags: Optional[Sequence[str]] = None
) -> str:
    """Prompt asking the model for title/description/tags as JSON."""
    existing_tags_section = ""
    if existing_tags:
        existing_tags_section = (
            f"\nExisting tags in the user's library: {', '.join(existing_tags)}\n"
            "Prefer reusing these tags when relevant for consistency."
        )
    return ENRICHMENT_PROMPT.format(
        content_type=content_type,
        content=content[:ENRICHMENT_INPUT_CHARS],
        existing_tags_section=existing_tags_section,
    )


def normalize_tag(tag: Any) -> str:
    """Lowercase, hyphenate whitespace/underscores, drop anything else odd."""
    if not isinstance(tag, str):
        return ""
    tag = _TAG_SEPARATORS.sub("-", tag.strip().lower())
    tag = _TAG_INVALID.sub("", tag)
    return re.sub(r"-{2,}", "-", tag).strip("-")


def normalize_tags(tags: Any) -> List[str]:
    if not isinstance(tags, list):
        return []
    result: List[str] = []
    for tag in tags:
        normalized = normalize_tag(tag)
        if normalized and normalized not in result:
            result.append(normalized)
        if len(result) == MAX_TAGS:
            break
    return result


def parse_enrichment(text: str) -> EnrichmentResult:
    """Parse model output into an EnrichmentResult.

    Never raises: unparseable output yields ``EnrichmentResult.empty()`` and
    missing or mistyped fields fall back to their defaults.
    """
    parsed = parse_json_object(text or "")
    if isinstance(parsed, ParseFailure):
        logger.warning(f"Unparseable enrichment output: {parsed.reason}")
        return EnrichmentResult.empty()

    data = parsed.value
    title = data.get("title")
    description = data.get("description")
    return EnrichmentResult(
        title=title.strip() if isinstance(title, str) and title.strip() else "Untitled",
        description=description.strip() if isinstance(description, str) else "",
        tags=normalize_tags(data.get("tags")),
    )


class EnrichmentService:
    """Generates metadata and embeddings for captured items.

    Failures are logged and recorded on the item as ``failed``; nothing is
    raised to the caller.
    """

    def __init__(self, content_repository, embedding_repository, llm):
        self.content_repository = content_repository
        self.embedding_repository = embedding_repository
        self.llm = llm

    async def enrich(self, item: ContentItem) -> bool:
        """Enrich ``item``. Returns True on success."""
        try:
            existing_tags = await self.content_repository.get_all_tags(item.user_id)
            enriched = await self.llm.enrich(
                item.raw_content, item.content_type, existing_tags=existing_tags
            )

            await self.content_repository.update(
                item.id,
                item.user_id,
                ContentUpdate(
                    title=enriched.title,
                    description=enriched.description,
                    tags=enriched.tags,
                    enrichment_status=EnrichmentStatus.COMPLETED,
                ),
            )

            text_for_embedding = "\n".join(
                part for part in (enriched.title, enriched.description, item.raw_content) if part
            )
            embedding = await self.llm.embed(text_for_embedding)
            await self.embedding_repository.store(item.id, embedding)

            logger.info(f"Enrichment completed for item {item.id}")
            return True
        except Exception as e:
            logger.error(f"Enrichment failed for item {item.id}: {e}")
            try:
                await self.content_repository.update(
                    item.id,
                    item.user_id,
                    ContentUpdate(enrichment_status=EnrichmentStatus.FAILED),
                )
            except Exception as update_error:
                logger.error(f"Failed to update status for item {item.id}: {update_error}")
            return False
