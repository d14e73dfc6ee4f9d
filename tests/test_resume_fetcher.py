"""Tests for resume URL discovery and download."""
from __future__ import annotations

import asyncio
import base64

import httpx
import pytest

from app.utils.resume_fetcher import (
    DATA_URI_PREFIX, extract_pdf_urls, fetch_first_resume, fetch_pdf,
)
from tests.conftest import make_pdf

PDF = make_pdf()


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _fetch(handler, url):
    async def go():
        async with _client(handler) as client:
            return await fetch_pdf(client, url, timeout=1.0)
    return asyncio.run(go())


# ── URL discovery ─────────────────────────────────────────────────────────────

def test_extract_from_plain_string() -> None:
    assert extract_pdf_urls("https://cdn.example.com/cv.pdf") == ["https://cdn.example.com/cv.pdf"]
    assert extract_pdf_urls("https://cdn.example.com/cv.docx") == []


def test_extract_from_nested_json_dedupes_in_order() -> None:
    value = {
        "files": [
            {"url": "https://a.example.com/one.pdf"},
            {"meta": {"signed": "https://b.example.com/two.pdf"}},
        ],
        "copy": "https://a.example.com/one.pdf",
    }
    assert extract_pdf_urls(value) == [
        "https://a.example.com/one.pdf",
        "https://b.example.com/two.pdf",
    ]


def test_extract_finds_data_uri() -> None:
    uri = DATA_URI_PREFIX + base64.b64encode(PDF).decode()
    assert extract_pdf_urls({"resume": uri}) == [uri]


def test_extract_stops_at_max_depth() -> None:
    value = {"a": {"b": {"c": "https://deep.example.com/cv.pdf"}}}
    assert extract_pdf_urls(value, max_depth=3) == ["https://deep.example.com/cv.pdf"]
    assert extract_pdf_urls(value, max_depth=2) == []


def test_extract_ignores_other_types() -> None:
    assert extract_pdf_urls(None) == []
    assert extract_pdf_urls(42) == []


# ── Download ──────────────────────────────────────────────────────────────────

def test_fetch_pdf_success() -> None:
    assert _fetch(lambda r: httpx.Response(200, content=PDF), "https://x.example.com/cv.pdf") == PDF


def test_fetch_pdf_non_success_status() -> None:
    assert _fetch(lambda r: httpx.Response(403), "https://x.example.com/cv.pdf") is None


def test_fetch_pdf_timeout() -> None:
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    assert _fetch(handler, "https://x.example.com/cv.pdf") is None


@pytest.mark.parametrize("url", ["https://[::1/cv.pdf", "https://xn--/cv.pdf"])
def test_fetch_pdf_unparseable_url(url) -> None:
    assert _fetch(lambda r: httpx.Response(200, content=PDF), url) is None


def test_fetch_pdf_rejects_non_pdf_bytes() -> None:
    html = b"<html>login required</html>"
    assert _fetch(lambda r: httpx.Response(200, content=html), "https://x.example.com/cv.pdf") is None


def test_fetch_pdf_decodes_data_uri() -> None:
    uri = DATA_URI_PREFIX + base64.b64encode(PDF).decode()
    assert _fetch(lambda r: httpx.Response(500), uri) == PDF


def test_fetch_pdf_malformed_base64() -> None:
    assert _fetch(lambda r: httpx.Response(500), DATA_URI_PREFIX + "not*base64!") is None


def test_fetch_pdf_unsupported_scheme() -> None:
    assert _fetch(lambda r: httpx.Response(200, content=PDF), "ftp://x.example.com/cv.pdf") is None


def test_first_resume_skips_failures() -> None:
    def handler(request):
        if request.url.path == "/broken.pdf":
            return httpx.Response(404)
        return httpx.Response(200, content=PDF)

    cv = ["https://x.example.com/broken.pdf", "https://x.example.com/good.pdf"]

    async def go():
        async with _client(handler) as client:
            return await fetch_first_resume(client, cv)

    assert asyncio.run(go()) == PDF


def test_first_resume_without_reference() -> None:
    async def go():
        async with _client(lambda r: httpx.Response(200, content=PDF)) as client:
            return await fetch_first_resume(client, None)

    assert asyncio.run(go()) is None
