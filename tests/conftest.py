"""
Pytest configuration and shared fixtures.
"""

import io
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest

from scrapbook.core.models import EnrichmentResult, GenerateAnswerResult
from scrapbook.core.synthesis import extract_cited_ids
from scrapbook.services.repositories import (
    InMemoryContentRepository,
    InMemoryEmbeddingRepository,
    tokenize,
)

# ============================================================================
# HTTP Fixtures
# ============================================================================


def _make_response(
    status: int = 200,
    headers: Optional[Dict[str, str]] = None,
    body: bytes = b"",
    text: Optional[str] = None,
    json_data: Any = None,
    url: str = "https://example.com/",
):
    """Build a mock aiohttp response."""
    response = Mock()
    response.status = status
    response.headers = dict(headers or {})
    response.url = url
    response.read = AsyncMock(return_value=body)
    response.text = AsyncMock(
        return_value=text if text is not None else body.decode("utf-8", errors="replace")
    )
    response.json = AsyncMock(return_value=json_data)

    async def _read_prefix(n: int = -1) -> bytes:
        return body if n < 0 else body[:n]

    async def _chunks(size: int):
        for start in range(0, len(body), size):
            yield body[start:start + size]

    response.content = Mock()
    response.content.read = AsyncMock(side_effect=_read_prefix)
    response.content.iter_chunked = Mock(side_effect=_chunks)
    return response


def _context_manager(response) -> Mock:
    mock_cm = Mock()
    mock_cm.__aenter__ = AsyncMock(return_value=response)
    mock_cm.__aexit__ = AsyncMock(return_value=None)
    return mock_cm


class FakeSession:
    """Stand-in for ``aiohttp.ClientSession`` with canned outcomes per method.

    Each outcome is a response, an exception to raise, a list consumed in
    order, or a callable ``(url, kwargs) -> outcome``. A method with no
    outcome raises a connection error.
    """

    def __init__(self, get=None, head=None, request=None):
        self._routes = {"GET": get, "HEAD": head, "REQUEST": request}
        self.calls: List[tuple] = []

    def _respond(self, method: str, url: str, kwargs: Dict[str, Any]):
        self.calls.append((method, url, kwargs))
        outcome = self._routes[method]
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        elif callable(outcome) and not isinstance(outcome, (Mock, BaseException)):
            outcome = outcome(url, kwargs)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            raise aiohttp.ClientConnectionError(f"no canned {method} response for {url}")
        return _context_manager(outcome)

    def get(self, url, **kwargs):
        return self._respond("GET", url, kwargs)

    def head(self, url, **kwargs):
        return self._respond("HEAD", url, kwargs)

    def request(self, method, url, **kwargs):
        return self._respond("REQUEST", url, {**kwargs, "method": method})

    def methods(self) -> List[str]:
        return [method for method, _, _ in self.calls]

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


@pytest.fixture
def make_response():
    """Factory fixture for mock aiohttp responses."""
    return _make_response


@pytest.fixture
def make_session():
    """Factory fixture for ``FakeSession`` instances."""
    return FakeSession


# ============================================================================
# Language Model Fixtures
# ============================================================================

EMBEDDING_DIM = 32


def bag_of_words_embedding(text: str) -> List[float]:
    """Deterministic toy embedding: token counts hashed into a fixed vector."""
    vector = [0.0] * EMBEDDING_DIM
    for token in tokenize(text):
        vector[sum(map(ord, token)) % EMBEDDING_DIM] += 1.0
    return vector


class FakeLLM:
    """In-process LanguageModel with scripted answers and call recording."""

    def __init__(
        self,
        answer: str = "A concise summary.",
        enrichment: Optional[EnrichmentResult] = None,
    ):
        self.answer = answer
        self.enrichment = enrichment or EnrichmentResult(
            title="Captured item", description="Notes about it.", tags=["reading"]
        )
        self.embed = AsyncMock(side_effect=bag_of_words_embedding)
        self.enrich = AsyncMock(side_effect=self._enrich)
        self.generate_answer = AsyncMock(side_effect=self._generate_answer)
        self.complete = AsyncMock(side_effect=self._complete)

    async def _enrich(self, content, content_type, existing_tags=None, model=None):
        return self.enrichment

    async def _generate_answer(self, options):
        return GenerateAnswerResult(
            answer=self.answer,
            sources_used=extract_cited_ids(self.answer, options.sources),
        )

    async def _complete(self, prompt, max_tokens, attachments=None, model=None):
        return self.answer

    @property
    def last_options(self):
        """Options passed to the most recent ``generate_answer`` call."""
        return self.generate_answer.call_args.args[0]


@pytest.fixture
def fake_llm():
    """A FakeLLM answering with a fixed summary."""
    return FakeLLM()


@pytest.fixture
def make_llm():
    """Factory fixture for FakeLLMs with a scripted answer."""
    return FakeLLM


# ============================================================================
# Repository Fixtures
# ============================================================================


@pytest.fixture
def content_repo():
    """Empty in-memory content repository."""
    return InMemoryContentRepository()


@pytest.fixture
def embedding_repo(content_repo):
    """Embedding index bound to ``content_repo``."""
    return InMemoryEmbeddingRepository(content_repo)


# ============================================================================
# Test Data Generators
# ============================================================================


@pytest.fixture
def pdf_bytes():
    """Factory fixture for single-page PDFs."""

    def _create_pdf(content: str = "Test PDF Content") -> bytes:
        import pymupdf as fitz

        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((50, 72), content)
        data = doc.tobytes()
        doc.close()
        return data

    return _create_pdf


@pytest.fixture
def docx_bytes():
    """Factory fixture for Word documents with one paragraph per line."""

    def _create_docx(*paragraphs: str) -> bytes:
        from docx import Document

        document = Document()
        for paragraph in paragraphs or ("Test document",):
            document.add_paragraph(paragraph)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    return _create_docx


PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
    b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture
def png_bytes():
    """A valid 1x1 PNG."""
    return PNG_BYTES
