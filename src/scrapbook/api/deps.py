"""Dependency injection for FastAPI routes.

Provides singleton capability handles and services, plus the per-request
caller identity.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header

from scrapbook.core.synthesis import AnswerSynthesizer
from scrapbook.extraction.handlers import ArticleHandler, ContentHandlerRegistry
from scrapbook.extraction.link_preview import LinkPreviewClient
from scrapbook.extraction.reddit_handler import RedditHandler
from scrapbook.extraction.twitter_handler import TwitterHandler
from scrapbook.services import (
    AskService,
    ConfigService,
    ContentService,
    EnrichmentService,
    InMemoryContentRepository,
    InMemoryEmbeddingRepository,
    InMemoryMemoryRepository,
    MemoryService,
    OllamaProvider,
    SearchService,
    SummarizeService,
    TaskRunner,
)

DEFAULT_OWNER = "local"


@lru_cache
def get_config_service() -> ConfigService:
    """Get the singleton ConfigService instance."""
    return ConfigService()


@lru_cache
def get_llm() -> OllamaProvider:
    """Get the singleton language-model provider."""
    config = get_config_service().load()
    return OllamaProvider(
        base_url=config.ollama.base_url,
        model=config.llm.default_model,
        temperature=config.llm.default_temperature,
        context_window=config.llm.default_context_window,
        request_timeout=float(config.ollama.timeout),
        embedding_model=config.embedding.model,
        embedding_device=config.embedding.device,
        embed_batch_size=config.embedding.batch_size,
    )


@lru_cache
def get_link_preview() -> LinkPreviewClient:
    """Get the singleton link-preview client."""
    config = get_config_service().load()
    return LinkPreviewClient(max_characters=config.extraction.max_link_content_chars)


@lru_cache
def get_article_handler() -> ArticleHandler:
    """Get the generic article handler."""
    return ArticleHandler(get_link_preview())


@lru_cache
def get_handler_registry() -> ContentHandlerRegistry:
    """Get the registry of source-specific handlers.

    The article handler is not registered; SummarizeService uses it when
    no platform handler matches.
    """
    config = get_config_service().load()
    registry = ContentHandlerRegistry()
    registry.register(
        TwitterHandler(
            auth_token=config.twitter.auth_token,
            ct0=config.twitter.ct0,
            sweetistics_api_key=config.twitter.sweetistics_api_key,
            bird_command=config.twitter.bird_path,
            timeout=config.twitter.timeout,
        )
    )
    registry.register(
        RedditHandler(
            client_id=config.reddit.client_id,
            client_secret=config.reddit.client_secret,
            username=config.reddit.username,
            password=config.reddit.password,
            user_agent=config.reddit.user_agent,
            timeout=config.reddit.timeout,
        )
    )
    return registry


@lru_cache
def get_content_repository() -> InMemoryContentRepository:
    """Get the singleton content repository."""
    return InMemoryContentRepository()


@lru_cache
def get_embedding_repository() -> InMemoryEmbeddingRepository:
    """Get the singleton embedding repository."""
    return InMemoryEmbeddingRepository(get_content_repository())


@lru_cache
def get_summarize_service() -> SummarizeService:
    """Get the singleton SummarizeService instance."""
    config = get_config_service().load()
    return SummarizeService(
        get_llm(),
        get_handler_registry(),
        get_article_handler(),
        max_upload_bytes=config.extraction.max_upload_bytes,
        uvx_command=config.markitdown.uvx_path,
        markitdown_timeout=config.markitdown.timeout,
        request_deadline=config.extraction.request_deadline_seconds,
    )


@lru_cache
def get_search_service() -> SearchService:
    """Get the singleton SearchService instance."""
    return SearchService(get_content_repository(), get_embedding_repository(), get_llm())


@lru_cache
def get_ask_service() -> AskService:
    """Get the singleton AskService instance."""
    return AskService(
        get_search_service(),
        get_content_repository(),
        AnswerSynthesizer(get_llm()),
    )


@lru_cache
def get_enrichment_service() -> EnrichmentService:
    """Get the singleton EnrichmentService instance."""
    return EnrichmentService(get_content_repository(), get_embedding_repository(), get_llm())


@lru_cache
def get_memory_repository() -> InMemoryMemoryRepository:
    """Get the singleton query memory repository."""
    return InMemoryMemoryRepository()


@lru_cache
def get_memory_service() -> MemoryService:
    """Get the singleton MemoryService instance."""
    return MemoryService(get_memory_repository())


def get_content_service() -> ContentService:
    """Get a ContentService bound to the running TaskRunner."""
    return ContentService(
        get_content_repository(),
        get_enrichment_service(),
        get_link_preview(),
        get_task_runner(),
        summarize_service=get_summarize_service(),
    )


# TaskRunner singleton - needs async start()/stop() lifecycle
_task_runner: TaskRunner | None = None


def get_task_runner() -> TaskRunner:
    """Get the singleton TaskRunner instance."""
    global _task_runner
    if _task_runner is None:
        _task_runner = TaskRunner()
    return _task_runner


def get_owner(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Caller identity from the ``X-User-Id`` header."""
    return (x_user_id or "").strip() or DEFAULT_OWNER


def clear_caches() -> None:
    """Drop every cached singleton (used on shutdown and in tests)."""
    for provider in (
        get_config_service,
        get_llm,
        get_link_preview,
        get_article_handler,
        get_handler_registry,
        get_content_repository,
        get_embedding_repository,
        get_summarize_service,
        get_search_service,
        get_ask_service,
        get_enrichment_service,
        get_memory_repository,
        get_memory_service,
    ):
        provider.cache_clear()


# Type aliases for FastAPI dependency injection
SummarizeServiceDep = Annotated[SummarizeService, Depends(get_summarize_service)]
SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]
AskServiceDep = Annotated[AskService, Depends(get_ask_service)]
ContentServiceDep = Annotated[ContentService, Depends(get_content_service)]
MemoryServiceDep = Annotated[MemoryService, Depends(get_memory_service)]
TaskRunnerDep = Annotated[TaskRunner, Depends(get_task_runner)]
OwnerDep = Annotated[str, Depends(get_owner)]
