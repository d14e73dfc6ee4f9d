"""Tests for job description PDF text extraction."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from app.core.config import Settings
from app.utils.pdf_text import TextExtractionError, extract_pdf_text, extract_text_locally
from tests.conftest import make_pdf

JOB_PDF = make_pdf(text="Senior React developer with Node.js experience")


def _extract(data: bytes, handler, **settings) -> str:
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await extract_pdf_text(data, client, Settings(**settings))
    return asyncio.run(go())


def test_local_extraction_reads_text_layer() -> None:
    assert "React developer" in extract_text_locally(JOB_PDF)


def test_local_extraction_rejects_garbage() -> None:
    with pytest.raises(TextExtractionError):
        extract_text_locally(b"definitely not a pdf")


def test_pdfco_used_when_configured() -> None:
    seen = []

    def handler(request):
        seen.append(request.url.path)
        if request.url.path.endswith("/file/upload"):
            return httpx.Response(200, json={"url": "https://pdf.example.com/uploaded.pdf"})
        if request.url.path.endswith("/pdf/convert/to/text"):
            return httpx.Response(200, json={"url": "https://pdf.example.com/out.txt"})
        return httpx.Response(200, text="Job: Data engineer with Spark and Airflow")

    text = _extract(JOB_PDF, handler, PDFCO_API_KEY="key")
    assert text == "Job: Data engineer with Spark and Airflow"
    assert seen == ["/v1/file/upload", "/v1/pdf/convert/to/text", "/out.txt"]


def test_pdfco_failure_falls_back_to_local() -> None:
    text = _extract(JOB_PDF, lambda r: httpx.Response(500), PDFCO_API_KEY="key")
    assert "React developer" in text


def test_no_pdfco_key_skips_remote() -> None:
    calls = []
    text = _extract(JOB_PDF, lambda r: calls.append(r) or httpx.Response(500), PDFCO_API_KEY="")
    assert calls == []
    assert "Node.js" in text
