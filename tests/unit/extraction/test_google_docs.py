"""Unit tests for Google Docs export."""

import pytest

from scrapbook.core.constants import DOWNLOAD_CHUNK_BYTES
from scrapbook.core.errors import InvalidInput, SizeLimitExceeded, UpstreamFetchFailed
from scrapbook.extraction.assets import DOCX
from scrapbook.extraction.google_docs import (
    download_google_doc,
    export_url,
    extract_google_doc_id,
    is_google_doc_url,
)

DOC_URL = "https://docs.google.com/document/d/1AbC_d-9/edit?usp=sharing"


@pytest.mark.unit
class TestGoogleDocUrls:
    """Tests for Google Docs URL recognition."""

    def test_is_google_doc_url(self):
        assert is_google_doc_url(DOC_URL)
        assert not is_google_doc_url("https://docs.google.com/spreadsheets/d/xyz/edit")
        assert not is_google_doc_url("https://example.com/document/d/xyz")
        assert not is_google_doc_url("not a url")

    def test_doc_id_and_export_url(self):
        assert extract_google_doc_id(DOC_URL) == "1AbC_d-9"
        assert export_url("1AbC_d-9") == (
            "https://docs.google.com/document/d/1AbC_d-9/export?format=docx"
        )


@pytest.mark.unit
class TestDownloadGoogleDoc:
    """Tests for download_google_doc."""

    @pytest.mark.asyncio
    async def test_exports_docx(self, make_response, make_session, docx_bytes):
        data = docx_bytes("Meeting notes")
        session = make_session(
            get=make_response(
                headers={
                    "Content-Type": DOCX,
                    "Content-Disposition": 'attachment; filename="Notes.docx"',
                },
                body=data,
            )
        )
        asset = await download_google_doc(DOC_URL, session)
        assert asset.media_type == DOCX
        assert asset.filename == "Notes.docx"
        assert session.calls[0][1] == export_url("1AbC_d-9")

    @pytest.mark.asyncio
    async def test_default_filename(self, make_response, make_session, docx_bytes):
        session = make_session(get=make_response(body=docx_bytes("x")))
        asset = await download_google_doc(DOC_URL, session)
        assert asset.filename == "google-doc-1AbC_d-9.docx"

    @pytest.mark.asyncio
    async def test_private_doc_returns_html(self, make_response, make_session):
        session = make_session(
            get=make_response(headers={"Content-Type": "text/html; charset=utf-8"})
        )
        with pytest.raises(UpstreamFetchFailed, match="public"):
            await download_google_doc(DOC_URL, session)

    @pytest.mark.asyncio
    async def test_http_error(self, make_response, make_session):
        session = make_session(get=make_response(status=404))
        with pytest.raises(UpstreamFetchFailed, match="404"):
            await download_google_doc(DOC_URL, session)

    @pytest.mark.asyncio
    async def test_declared_size_over_limit(self, make_response, make_session):
        session = make_session(get=make_response(headers={"Content-Length": "999999"}))
        with pytest.raises(SizeLimitExceeded):
            await download_google_doc(DOC_URL, session, max_bytes=1000)

    @pytest.mark.asyncio
    async def test_undeclared_oversized_export(self, make_response, make_session):
        response = make_response(body=b"PK\x03\x04" + b"\0" * (DOWNLOAD_CHUNK_BYTES * 3))
        session = make_session(get=response)

        with pytest.raises(SizeLimitExceeded, match="Google Doc too large") as exc_info:
            await download_google_doc(DOC_URL, session, max_bytes=DOWNLOAD_CHUNK_BYTES)

        assert exc_info.value.size_bytes == DOWNLOAD_CHUNK_BYTES * 2
        response.read.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_doc_id(self, make_session):
        with pytest.raises(InvalidInput):
            await download_google_doc("https://docs.google.com/document/d/", make_session())
