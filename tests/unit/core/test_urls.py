"""Unit tests for URL cleaning, parsing and input classification."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from scrapbook.core.models import InputKind
from scrapbook.core.result import ParseFailure, Parsed
from scrapbook.core.urls import (
    clean_url,
    detect_input_kind,
    host_matches,
    looks_like_url,
    normalize_url_input,
    normalized_host,
    parse_absolute_url,
    parse_web_url,
    trim_likely_url_punctuation,
)


@pytest.mark.unit
class TestNormalizeUrlInput:
    """Tests for shell paste repair."""

    def test_removes_escaped_separators(self):
        assert (
            normalize_url_input(r"https://example.com/page\?a\=1\&b=2")
            == "https://example.com/page?a=1&b=2"
        )

    def test_removes_encoded_backslash_before_separator(self):
        assert (
            normalize_url_input("https://example.com/page%5C?a=1")
            == "https://example.com/page?a=1"
        )

    def test_leaves_other_backslashes(self):
        assert normalize_url_input(r"C:\path") == r"C:\path"


@pytest.mark.unit
class TestTrimPunctuation:
    """Tests for trimming prose punctuation around URLs."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("https://example.com/a.", "https://example.com/a"),
            ("https://example.com/a),", "https://example.com/a"),
            ('"https://example.com/a",', "https://example.com/a"),
            ("<https://example.com/a>", "https://example.com/a"),
            ("  https://example.com/a;  ", "https://example.com/a"),
        ],
    )
    def test_trims(self, raw, expected):
        assert trim_likely_url_punctuation(raw) == expected

    def test_keeps_balanced_closing_paren(self):
        url = "https://en.wikipedia.org/wiki/Python_(programming_language)"
        assert trim_likely_url_punctuation(url) == url

    def test_clean_url_combines_both_steps(self):
        assert clean_url(r'"https://example.com/x\?q\=1".') == "https://example.com/x?q=1"


@pytest.mark.unit
class TestParseUrl:
    """Tests for absolute and web URL parsing."""

    def test_parses_https(self):
        result = parse_absolute_url("https://example.com/path")
        assert isinstance(result, Parsed)
        assert result.value.hostname == "example.com"

    @pytest.mark.parametrize(
        "raw", ["", "   ", "example.com/path", "https://", "http:///path", "https://exa mple.com"]
    )
    def test_rejects_invalid(self, raw):
        assert isinstance(parse_absolute_url(raw), ParseFailure)

    def test_non_web_scheme_needs_body(self):
        assert isinstance(parse_absolute_url("mailto:someone@example.com"), Parsed)
        assert isinstance(parse_absolute_url("mailto:"), ParseFailure)

    def test_web_url_rejects_other_protocols(self):
        result = parse_web_url("ftp://example.com/file.txt")
        assert isinstance(result, ParseFailure)
        assert "unsupported protocol" in result.reason

    def test_failure_is_not_ok(self):
        assert parse_web_url("nope").ok is False
        assert parse_web_url("https://example.com").ok is True


@pytest.mark.unit
class TestHosts:
    """Tests for host normalization."""

    def test_strips_www_and_lowercases(self):
        assert normalized_host("https://WWW.Example.COM/a") == "example.com"

    def test_invalid_url_gives_empty_host(self):
        assert normalized_host("not a url") == ""

    def test_host_matches(self):
        assert host_matches("https://www.reddit.com/r/python", {"reddit.com"})
        assert not host_matches("https://notreddit.com/r/python", {"reddit.com"})
        assert not host_matches("garbage", {"reddit.com"})


@pytest.mark.unit
class TestDetectInputKind:
    """Tests for coarse classification of captured strings."""

    def test_url(self):
        assert detect_input_kind("https://example.com/article") == InputKind.URL

    def test_url_with_surrounding_punctuation(self):
        assert detect_input_kind("<https://example.com/article>.") == InputKind.URL

    def test_data_url(self):
        assert detect_input_kind("data:image/png;base64,iVBORw0KGgo=") == InputKind.URL

    def test_base64_blob_is_image(self):
        assert detect_input_kind("A" * 120) == InputKind.IMAGE

    def test_plain_text(self):
        assert detect_input_kind("Remember to read about asyncio") == InputKind.TEXT

    def test_prose_with_colon_is_text(self):
        assert detect_input_kind("note: buy milk") == InputKind.TEXT

    def test_non_web_scheme_is_url(self):
        assert detect_input_kind("mailto:someone@example.com") == InputKind.URL

    @pytest.mark.parametrize("value", ["https://", "https://[::1", "https://exa mple.com/x"])
    def test_malformed_url_is_text(self, value):
        assert detect_input_kind(value) == InputKind.TEXT

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("https://example.com", True),
            ("https://exa mple.com/x", True),
            ("http://", True),
            ("mailto:someone@example.com", True),
            ("note: buy milk", False),
            ("note:", False),
            ("12:30", False),
            ("plain words", False),
        ],
    )
    def test_looks_like_url(self, value, expected):
        assert looks_like_url(value) is expected

    def test_sentences_are_text(self):
        @given(st.lists(st.sampled_from(["alpha", "beta", "gamma", "delta"]), min_size=2))
        def check(words):
            assert detect_input_kind(" ".join(words)) == InputKind.TEXT

        check()
