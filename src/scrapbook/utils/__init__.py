"""Utility modules for Scrapbook."""

from .web import BROWSER_HEADERS, clean_html_for_content, strip_boilerplate

__all__ = [
    "BROWSER_HEADERS",
    "clean_html_for_content",
    "strip_boilerplate",
]
