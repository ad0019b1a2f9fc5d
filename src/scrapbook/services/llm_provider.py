"""Language-model capability backed by Ollama and a local HuggingFace embedder.

Services only depend on the ``LanguageModel`` protocol; ``OllamaProvider`` is
the implementation wired up by the API.
"""

import base64
import logging
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from llama_index.core.base.llms.types import ChatMessage, ImageBlock, TextBlock
from llama_index.embeddings.huggingface import HuggingFaceEmbedding
from llama_index.llms.ollama import Ollama

from scrapbook.core.constants import (
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_BASE_URL,
    EMBEDDING_INPUT_CHARS,
)
from scrapbook.core.errors import ModelResponseUnparseable, UpstreamFetchFailed
from scrapbook.core.models import (
    AssetKind,
    Attachment,
    EnrichmentResult,
    GenerateAnswerOptions,
    GenerateAnswerResult,
)
from scrapbook.core.synthesis import build_answer_prompt, extract_cited_ids
from scrapbook.services.enrichment_service import build_enrichment_prompt, parse_enrichment

logger = logging.getLogger(__name__)

ENRICHMENT_MAX_TOKENS = 500


class LanguageModel(Protocol):
    """What the services need from a language model."""

    async def embed(self, text: str) -> List[float]: ...

    async def enrich(
        self,
        content: str,
        content_type: str,
        existing_tags: Optional[Sequence[str]] = None,
        model: Optional[str] = None,
    ) -> EnrichmentResult: ...

    async def generate_answer(self, options: GenerateAnswerOptions) -> GenerateAnswerResult: ...

    async def complete(
        self,
        prompt: str,
        max_tokens: int,
        attachments: Optional[Sequence[Attachment]] = None,
        model: Optional[str] = None,
    ) -> str: ...


def attachment_text(attachment: Attachment) -> Optional[str]:
    """Decoded text of a textual document attachment, else None."""
    if attachment.kind != AssetKind.DOCUMENT or not attachment.media_type.startswith("text/"):
        return None
    return base64.b64decode(attachment.data).decode("utf-8", errors="replace")


class OllamaProvider:
    """LanguageModel implementation using llama-index's Ollama and HuggingFace wrappers.

    LLM handles are cached per (model, max_tokens, json_mode); the embedder is
    loaded lazily on first use.
    """

    name = "ollama"

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_BASE_URL,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.3,
        context_window: int = 8192,
        request_timeout: float = 300.0,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
        embedding_device: str = "cpu",
        embed_batch_size: int = 16,
    ):
        self.base_url = base_url
        self.model = model
        self.temperature = temperature
        self.context_window = context_window
        self.request_timeout = request_timeout
        self.embedding_model = embedding_model
        self.embedding_device = embedding_device
        self.embed_batch_size = embed_batch_size
        self._llms: Dict[Tuple[str, int, bool], Ollama] = {}
        self._embedder: Optional[HuggingFaceEmbedding] = None

    def _get_llm(self, model: Optional[str], max_tokens: int, json_mode: bool = False) -> Ollama:
        key = (model or self.model, max_tokens, json_mode)
        if key not in self._llms:
            self._llms[key] = Ollama(
                model=key[0],
                base_url=self.base_url,
                request_timeout=self.request_timeout,
                temperature=self.temperature,
                context_window=self.context_window,
                json_mode=json_mode,
                additional_kwargs={
                    "num_ctx": self.context_window,
                    "num_predict": max_tokens,
                },
            )
        return self._llms[key]

    def _get_embedder(self) -> HuggingFaceEmbedding:
        if self._embedder is None:
            logger.info(f"Loading embedder {self.embedding_model} on: {self.embedding_device}")
            self._embedder = HuggingFaceEmbedding(
                model_name=self.embedding_model,
                device=self.embedding_device,
                model_kwargs={"trust_remote_code": True},
                embed_batch_size=self.embed_batch_size,
            )
        return self._embedder

    async def embed(self, text: str) -> List[float]:
        """Embedding vector for ``text`` (cut to the embedding input cap)."""
        embedder = self._get_embedder()
        return await embedder.aget_text_embedding(text[:EMBEDDING_INPUT_CHARS])

    async def complete(
        self,
        prompt: str,
        max_tokens: int,
        attachments: Optional[Sequence[Attachment]] = None,
        model: Optional[str] = None,
        json_mode: bool = False,
    ) -> str:
        """Run one completion.

        Image attachments are sent as image blocks in a chat message; textual
        document attachments are appended to the prompt. Other document
        attachments are skipped.

        Raises:
            UpstreamFetchFailed: The Ollama request failed.
        """
        llm = self._get_llm(model, max_tokens, json_mode)
        images: List[ImageBlock] = []
        for attachment in attachments or []:
            if attachment.kind == AssetKind.IMAGE:
                images.append(
                    ImageBlock(
                        image=attachment.data.encode("ascii"),
                        image_mimetype=attachment.media_type,
                    )
                )
                continue
            text = attachment_text(attachment)
            if text is None:
                logger.warning(
                    f"Skipping unsupported attachment {attachment.filename or attachment.media_type}"
                )
                continue
            prompt = f"{prompt}\n\n--- Attached document: {attachment.filename or 'document'} ---\n{text}"

        try:
            if images:
                message = ChatMessage(role="user", blocks=[TextBlock(text=prompt), *images])
                response = await llm.achat([message])
                return (response.message.content or "").strip()
            completion = await llm.acomplete(prompt)
            return completion.text.strip()
        except Exception as e:
            logger.error(f"Ollama request failed ({llm.model}): {e}")
            raise UpstreamFetchFailed(f"Language model request failed: {e}") from e

    async def enrich(
        self,
        content: str,
        content_type: str,
        existing_tags: Optional[Sequence[str]] = None,
        model: Optional[str] = None,
    ) -> EnrichmentResult:
        """Title, description and tags for ``content``; malformed output degrades to defaults."""
        prompt = build_enrichment_prompt(content, content_type, existing_tags)
        text = await self.complete(
            prompt, max_tokens=ENRICHMENT_MAX_TOKENS, model=model, json_mode=True
        )
        return parse_enrichment(text)

    async def generate_answer(self, options: GenerateAnswerOptions) -> GenerateAnswerResult:
        """Answer ``options.query``, citing ``options.sources`` when given.

        With no sources the query is sent as-is, which is how summaries are
        generated.
        """
        prompt = (
            build_answer_prompt(options.query, options.sources)
            if options.sources
            else options.query
        )
        answer = await self.complete(
            prompt,
            max_tokens=options.max_tokens,
            attachments=options.attachments,
            model=options.model,
        )
        if not answer:
            raise ModelResponseUnparseable("Language model returned an empty response")
        return GenerateAnswerResult(
            answer=answer,
            sources_used=extract_cited_ids(answer, options.sources),
        )
