"""Extraction strategies: classify inputs and turn them into clean text."""

from .asset_classifier import classify_url
from .assets import asset_from_bytes, download_asset, load_asset_from_path
from .document_text import extract_document_text, extract_text_with_preprocessing
from .handlers import ArticleHandler, ContentHandler, ContentHandlerRegistry
from .link_preview import LinkPreviewClient
from .reddit_handler import RedditHandler
from .twitter_handler import TwitterHandler

__all__ = [
    "classify_url",
    "asset_from_bytes",
    "download_asset",
    "load_asset_from_path",
    "extract_document_text",
    "extract_text_with_preprocessing",
    "ArticleHandler",
    "ContentHandler",
    "ContentHandlerRegistry",
    "LinkPreviewClient",
    "RedditHandler",
    "TwitterHandler",
]
