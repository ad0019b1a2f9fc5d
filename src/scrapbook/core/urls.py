"""URL parsing, normalization and coarse input classification."""

import re
from typing import Iterable
from urllib.parse import SplitResult, urlsplit

from scrapbook.core.models import InputKind
from scrapbook.core.result import ParseFailure, Parsed, ParseResult

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")
_SCHEME_PREFIX_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_BASE64_PREFIX_RE = re.compile(r"^[A-Za-z0-9+/=]+$")
_TRAILING_PUNCT = set(")].,;:'\">}”’»")
_LEADING_PUNCT = set("('\"<{[]“‘«")
_PAIRS = {")": "(", "]": "[", "}": "{"}

WEB_SCHEMES = ("http", "https")


def normalize_url_input(raw: str) -> str:
    """Undo common shell copy/paste damage in pasted URLs.

    Removes backslashes before ``?``, ``&`` and ``=`` and percent-encoded
    backslashes sitting right before those separators.
    """
    value = re.sub(r"\\([?&=])", r"\1", raw)
    return re.sub(r"%5c(?=[?&=])", "", value, flags=re.IGNORECASE)


def _has_unbalanced_closing(value: str, close: str) -> bool:
    return value.count(close) > value.count(_PAIRS[close])


def trim_likely_url_punctuation(raw: str) -> str:
    """Strip quotes/brackets/punctuation that cling to URLs pasted from prose."""
    value = raw.strip()
    while value and value[-1] in _TRAILING_PUNCT:
        last = value[-1]
        if last in _PAIRS and not _has_unbalanced_closing(value, last):
            break
        value = value[:-1]
    while value and value[0] in _LEADING_PUNCT:
        value = value[1:]
    return value


def clean_url(raw: str) -> str:
    """Apply both paste normalization and punctuation trimming."""
    return trim_likely_url_punctuation(normalize_url_input(raw))


def parse_absolute_url(raw: str) -> ParseResult[SplitResult]:
    """Parse ``raw`` as an absolute URL.

    Web URLs (http/https) must include a host; other schemes only need a
    non-empty remainder after the colon.
    """
    if not raw or not raw.strip():
        return ParseFailure("empty input")
    if any(ch.isspace() for ch in raw.strip()):
        return ParseFailure("URL contains whitespace")

    try:
        parts = urlsplit(raw.strip())
    except ValueError as e:
        return ParseFailure(str(e))

    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return ParseFailure("missing scheme")

    scheme = parts.scheme.lower()
    if scheme in WEB_SCHEMES:
        try:
            hostname = parts.hostname
        except ValueError as e:
            return ParseFailure(str(e))
        if not hostname:
            return ParseFailure("missing host")
    elif not (parts.netloc or parts.path or parts.query):
        return ParseFailure("empty URL body")

    return Parsed(parts)


def parse_web_url(raw: str) -> ParseResult[SplitResult]:
    """Parse ``raw`` as an http(s) URL."""
    result = parse_absolute_url(raw)
    if isinstance(result, ParseFailure):
        return result
    if result.value.scheme.lower() not in WEB_SCHEMES:
        return ParseFailure(f"unsupported protocol: {result.value.scheme}")
    return result


def normalized_host(url: str) -> str:
    """Lowercased hostname with any leading ``www.`` removed ('' if invalid)."""
    result = parse_absolute_url(url)
    if isinstance(result, ParseFailure):
        return ""
    try:
        host = (result.value.hostname or "").lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def host_matches(url: str, hosts: Iterable[str]) -> bool:
    """True if the normalized host of ``url`` is in ``hosts``."""
    host = normalized_host(url)
    return bool(host) and host in set(hosts)


def looks_like_url(value: str) -> bool:
    """True if ``value`` is shaped like an absolute URL, valid or not.

    That is a scheme prefix followed either by ``//`` or by a single
    whitespace-free token, so prose such as ``note: buy milk`` is not a URL.
    """
    candidate = value.strip()
    match = _SCHEME_PREFIX_RE.match(candidate)
    if not match:
        return False
    rest = candidate[match.end():]
    if rest.startswith("//"):
        return True
    return bool(rest) and not any(ch.isspace() for ch in candidate)


def detect_input_kind(value: str) -> InputKind:
    """Classify a captured string as url, image data, or plain text.

    Malformed URL-shaped strings are kept as text.
    """
    candidate = clean_url(value)
    if looks_like_url(candidate) and isinstance(parse_absolute_url(candidate), Parsed):
        return InputKind.URL

    if value.startswith("data:image/") or (
        len(value) > 100 and _BASE64_PREFIX_RE.match(value[:100])
    ):
        return InputKind.IMAGE

    return InputKind.TEXT
