"""Core constants for Scrapbook.

This module defines shared constants used across the application to ensure
consistency and avoid hardcoded values in multiple locations.
"""

# Default Ollama configuration
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
"""Default base URL for Ollama API server."""

DEFAULT_MODEL = "llama3.1:8b"
"""Default model for summaries, answers and enrichment."""

DEFAULT_EMBEDDING_MODEL = "BAAI/bge-m3"
"""Default HuggingFace embedding model."""

# Size limits
MAX_UPLOAD_BYTES = 25 * 1024 * 1024
"""Largest asset (upload or download) accepted, in bytes."""

MAX_EXTRACTED_TEXT_CHARS = 20_000
"""Hard cap on extracted document text, shared by every format."""

MAX_LINK_CONTENT_CHARS = 20_000
"""Cap applied by the link-preview extractor to page text."""

EXTRACTED_PREVIEW_CHARS = 1_000
"""Length of the ``extracted_content`` preview returned by summarize calls."""

ASK_EXCERPT_CHARS = 1_500
"""Per-source excerpt bound used when building answer context."""

ASK_MAX_TOKENS = 1_500
"""Token budget for cited answers."""

ENRICHMENT_INPUT_CHARS = 3_000
"""How much of an item's text is sent to the model for enrichment."""

EMBEDDING_INPUT_CHARS = 8_000
"""How much text is embedded per item."""

# Network timeouts (seconds)
CLASSIFY_PROBE_TIMEOUT = 5
"""Timeout for each HEAD / ranged GET probe of the asset classifier."""

CLASSIFY_SNIFF_BYTES = 2048
"""Number of leading bytes requested by the ranged GET probe."""

ASSET_DOWNLOAD_TIMEOUT = 60
"""Timeout for downloading a remote asset."""

DOWNLOAD_CHUNK_BYTES = 64 * 1024
"""Chunk size used when streaming asset downloads."""

ARTICLE_FETCH_TIMEOUT = 15
"""Timeout for generic article fetches."""

SOCIAL_FETCH_TIMEOUT = 30
"""Timeout for social-platform fetches (bird CLI, Reddit API)."""

MARKITDOWN_TIMEOUT = 60
"""Timeout for the external markitdown conversion process."""

# Social content shaping
REDDIT_COMMENT_LIMIT = 5
"""Number of Reddit comments folded into the extracted text."""

REDDIT_COMMENT_MAX_CHARS = 500
"""Per-comment body cap before an ellipsis is appended."""

NO_RESULTS_ANSWER = (
    "I couldn't find any relevant content in your library to answer this question."
)
"""Canned answer returned when retrieval yields no candidates."""

# Query memory
MEMORY_TOP_RESULTS = 5
"""Number of results kept with each recorded query."""

MEMORY_DEFAULT_LIMIT = 20
"""Default page size for the query memory listing."""

MEMORY_MAX_LIMIT = 100
"""Largest page size accepted by the query memory listing."""
