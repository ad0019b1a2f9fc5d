"""Error types for the extraction, retrieval and synthesis pipeline.

Every error carries the HTTP status the API layer reports for it, so routes
never need to translate exceptions by hand.
"""

from typing import Optional


class ScrapbookError(Exception):
    """Base class for all pipeline errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidInput(ScrapbookError):
    """Raised for malformed URLs, unsupported protocols and bad requests."""

    status_code = 400
    code = "INVALID_INPUT"


class NotFound(ScrapbookError):
    """Raised when a requested item does not exist for the caller."""

    status_code = 404
    code = "NOT_FOUND"


class UnsupportedMediaType(ScrapbookError):
    """Raised for archives and unknown binary formats."""

    status_code = 415
    code = "UNSUPPORTED_MEDIA_TYPE"

    def __init__(self, message: str, media_type: Optional[str] = None):
        super().__init__(message)
        self.media_type = media_type


class UnsupportedDocumentType(UnsupportedMediaType):
    """Raised by the document extractor for media types it cannot parse."""

    code = "UNSUPPORTED_DOCUMENT_TYPE"


class LooksLikeWebsite(UnsupportedMediaType):
    """Raised when an asset download turns out to be an HTML page.

    The orchestrator catches this and retries the URL as an article.
    """

    code = "LOOKS_LIKE_WEBSITE"


class SizeLimitExceeded(ScrapbookError):
    """Raised when an asset exceeds the configured byte cap."""

    status_code = 413
    code = "SIZE_LIMIT_EXCEEDED"

    def __init__(self, message: str, size_bytes: Optional[int] = None, limit: int = 0):
        super().__init__(message)
        self.size_bytes = size_bytes
        self.limit = limit


class UpstreamNotConfigured(ScrapbookError):
    """Raised when a third-party source has no credentials configured."""

    status_code = 503
    code = "UPSTREAM_NOT_CONFIGURED"


NotConfigured = UpstreamNotConfigured


class UpstreamFetchFailed(ScrapbookError):
    """Raised for network or API errors from a third-party source."""

    status_code = 502
    code = "UPSTREAM_FETCH_FAILED"


class DeadlineExceeded(UpstreamFetchFailed):
    """Raised when a request's deadline runs out before a step starts."""

    status_code = 504
    code = "DEADLINE_EXCEEDED"


class EmptyExtractedText(ScrapbookError):
    """Raised when extraction succeeded but produced no usable text."""

    status_code = 422
    code = "EMPTY_EXTRACTED_TEXT"


class ModelResponseUnparseable(ScrapbookError):
    """Raised when language-model output is not valid structured data."""

    status_code = 502
    code = "MODEL_RESPONSE_UNPARSEABLE"
