"""Shared HTTP headers and HTML cleaning for page extraction."""

from bs4 import BeautifulSoup, Tag

# Browser-like headers to bypass bot detection
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}

# Elements that never carry article text.
BOILERPLATE_SELECTOR = 'script, style, nav, footer, header, aside, [role="navigation"]'

NOISE_CLASSES = (
    "advertisement",
    "ads",
    "social",
    "share",
    "cookie",
    "modal",
    "popup",
    "sidebar",
    "navigation",
    "menu",
    "related",
    "recommendations",
)

NOISE_IDS = ("sidebar", "footer", "header", "nav", "menu", "cookie", "modal")


def strip_boilerplate(soup: BeautifulSoup | Tag) -> BeautifulSoup | Tag:
    """Remove scripts, styles and page chrome (nav, header, footer, aside)."""
    for tag in soup.select(BOILERPLATE_SELECTOR):
        tag.decompose()
    return soup


def clean_html_for_content(soup: BeautifulSoup | Tag) -> BeautifulSoup | Tag:
    """
    Aggressively clean HTML to extract main content.

    Removes visual-only elements, forms, ads, cookie banners and other noise
    left over after ``strip_boilerplate``.

    Args:
        soup: BeautifulSoup object

    Returns:
        Cleaned BeautifulSoup object
    """
    # 1. Remove visual-only and interactive elements
    for tag in soup.find_all(["iframe", "img", "svg", "noscript", "form", "button"]):
        tag.decompose()

    # 2. Remove common noise classes
    for cls in NOISE_CLASSES:
        for tag in soup.find_all(class_=lambda x: x and cls in x.lower()):
            tag.decompose()

    # 3. Remove by common noise IDs
    for noise_id in NOISE_IDS:
        for tag in soup.find_all(id=lambda x: x and noise_id in x.lower()):
            tag.decompose()

    return soup
