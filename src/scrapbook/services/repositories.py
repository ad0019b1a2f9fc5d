"""Repository interfaces and in-memory implementations.

Storage and indexing are collaborator concerns: services depend only on the
``ContentRepository``, ``EmbeddingRepository`` and ``MemoryRepository``
protocols. The in-memory classes let the API run standalone and give tests a
realistic store.
"""

import asyncio
import logging
import math
import re
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from scrapbook.services.models import (
    ContentItem,
    ContentUpdate,
    NewContentItem,
    NewQueryMemory,
    QueryMemory,
    SimilarityResult,
)

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+", re.UNICODE)


class ContentRepository(Protocol):
    """Persistence for captured content items, scoped by owner."""

    async def create(self, item: NewContentItem) -> ContentItem: ...

    async def find_by_id(self, item_id: str, owner: str) -> Optional[ContentItem]: ...

    async def find_by_ids(self, ids: Sequence[str], owner: str) -> List[ContentItem]: ...

    async def keyword_search(self, owner: str, query: str, limit: int) -> List[ContentItem]: ...

    async def update(self, item_id: str, owner: str, update: ContentUpdate) -> ContentItem: ...

    async def get_all_tags(self, owner: str) -> List[str]: ...


class EmbeddingRepository(Protocol):
    """Vector index over item embeddings."""

    async def store(self, item_id: str, embedding: List[float]) -> None: ...

    async def search_similar(
        self, embedding: List[float], owner: str, limit: int
    ) -> List[SimilarityResult]: ...


class MemoryRepository(Protocol):
    """Log of the queries each owner has run."""

    async def record(self, memory: NewQueryMemory) -> QueryMemory: ...

    async def get_recent(
        self,
        owner: str,
        limit: int,
        offset: int = 0,
        since: Optional[datetime] = None,
    ) -> Tuple[List[QueryMemory], int]: ...


def tokenize(text: str) -> List[str]:
    """Lowercased word tokens."""
    return [t.lower() for t in _WORD_RE.findall(text or "")]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 if either has zero norm."""
    if len(a) != len(b):
        raise ValueError(f"Embedding dimension mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryContentRepository:
    """Dict-backed content store.

    Keyword search ranks items by how many distinct query terms appear in
    the title, description, tags, or raw content (newest first on ties).
    """

    def __init__(self) -> None:
        self._items: Dict[str, ContentItem] = {}
        self._lock = asyncio.Lock()

    async def create(self, item: NewContentItem) -> ContentItem:
        now = datetime.now(timezone.utc)
        created = ContentItem(
            id=str(uuid.uuid4()),
            user_id=item.user_id,
            content_type=item.content_type,
            raw_content=item.raw_content,
            source_url=item.source_url,
            source_domain=item.source_domain,
            image_path=item.image_path,
            tags=list(item.tags),
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._items[created.id] = created
        logger.debug("Created content item %s for %s", created.id, item.user_id)
        return created

    async def find_by_id(self, item_id: str, owner: str) -> Optional[ContentItem]:
        item = self._items.get(item_id)
        if item is None or item.user_id != owner:
            return None
        return item

    async def find_by_ids(self, ids: Sequence[str], owner: str) -> List[ContentItem]:
        if not ids:
            return []
        wanted = set(ids)
        return [
            item
            for item in self._items.values()
            if item.id in wanted and item.user_id == owner
        ]

    async def keyword_search(self, owner: str, query: str, limit: int) -> List[ContentItem]:
        terms = set(tokenize(query))
        if not terms:
            return []

        scored = []
        for item in self._items.values():
            if item.user_id != owner:
                continue
            haystack = " ".join(
                [
                    item.title or "",
                    item.description or "",
                    " ".join(item.tags),
                    item.raw_content,
                ]
            )
            hits = len(terms & set(tokenize(haystack)))
            if hits:
                scored.append((hits, item.created_at, item))

        scored.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
        return [item for _, _, item in scored[:limit]]

    async def update(self, item_id: str, owner: str, update: ContentUpdate) -> ContentItem:
        async with self._lock:
            item = await self.find_by_id(item_id, owner)
            if item is None:
                raise KeyError(item_id)
            changes = {k: v for k, v in vars(update).items() if v is not None}
            updated = replace(item, **changes, updated_at=datetime.now(timezone.utc))
            self._items[item_id] = updated
        return updated

    async def get_all_tags(self, owner: str) -> List[str]:
        tags = set()
        for item in self._items.values():
            if item.user_id == owner:
                tags.update(item.tags)
        return sorted(tags)


class InMemoryEmbeddingRepository:
    """Brute-force cosine-similarity index.

    Needs the content repository to know which items belong to an owner.
    """

    def __init__(self, content_repository: InMemoryContentRepository):
        self._content = content_repository
        self._vectors: Dict[str, List[float]] = {}

    async def store(self, item_id: str, embedding: List[float]) -> None:
        self._vectors[item_id] = list(embedding)

    async def search_similar(
        self, embedding: List[float], owner: str, limit: int
    ) -> List[SimilarityResult]:
        owned = await self._content.find_by_ids(list(self._vectors), owner)
        results = [
            SimilarityResult(id=item.id, similarity=cosine_similarity(embedding, self._vectors[item.id]))
            for item in owned
        ]
        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:limit]


class InMemoryMemoryRepository:
    """List-backed query log.

    ``get_recent`` returns the page and the number of matching records
    before pagination. Records with equal timestamps come back in reverse
    insertion order.
    """

    def __init__(self) -> None:
        self._memories: List[QueryMemory] = []

    async def record(self, memory: NewQueryMemory) -> QueryMemory:
        created = QueryMemory(
            id=str(uuid.uuid4()),
            user_id=memory.user_id,
            query=memory.query,
            search_mode=memory.search_mode,
            endpoint=memory.endpoint,
            top_results=list(memory.top_results),
            result_count=memory.result_count,
        )
        self._memories.append(created)
        return created

    async def get_recent(
        self,
        owner: str,
        limit: int,
        offset: int = 0,
        since: Optional[datetime] = None,
    ) -> Tuple[List[QueryMemory], int]:
        matching = [
            m
            for m in reversed(self._memories)
            if m.user_id == owner and (since is None or m.created_at >= since)
        ]
        matching.sort(key=lambda m: m.created_at, reverse=True)
        return matching[offset:offset + limit], len(matching)
