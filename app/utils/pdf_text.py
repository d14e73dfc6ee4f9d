"""
Job description PDF → text.

Extraction order:
  1. PDF.co conversion API  — when PDFCO_API_KEY is configured
  2. pdfminer.six           — text-layer PDFs
  3. PyPDF2                 — alternative text-layer parser

Scanned/image-only PDFs are not supported locally; PDF.co handles those when
configured.
"""
import io
import logging

import httpx
from fastapi.concurrency import run_in_threadpool

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Minimum characters considered "successfully extracted"
_MIN_TEXT_LENGTH = 20


class TextExtractionError(RuntimeError):
    """Raised when no method could extract readable text from the file."""


async def extract_pdf_text(data: bytes, client: httpx.AsyncClient, settings: Settings) -> str:
    if settings.PDFCO_API_KEY:
        try:
            text = await pdfco_extract_text(data, client, settings)
            if _has_enough_text(text):
                logger.debug("PDF extracted via PDF.co")
                return text
            logger.warning("PDF.co returned <%d chars, trying local extraction", _MIN_TEXT_LENGTH)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning(f"PDF.co extraction failed, trying local extraction: {e}")

    return await run_in_threadpool(extract_text_locally, data)


async def pdfco_extract_text(data: bytes, client: httpx.AsyncClient, settings: Settings) -> str:
    """Upload → convert/to/text → download, per the PDF.co REST API."""
    base = settings.PDFCO_BASE_URL.rstrip("/")
    headers = {"x-api-key": settings.PDFCO_API_KEY}

    upload = await client.post(
        f"{base}/file/upload",
        headers=headers,
        files={"file": ("job_description.pdf", data, "application/pdf")},
    )
    upload.raise_for_status()
    uploaded_url = upload.json().get("url")
    if not uploaded_url:
        raise ValueError("No upload URL received")

    convert = await client.post(
        f"{base}/pdf/convert/to/text",
        headers=headers,
        json={"url": uploaded_url, "async": False},
    )
    convert.raise_for_status()
    text_url = convert.json().get("url")
    if not text_url:
        raise ValueError("No text URL received")

    text = await client.get(text_url)
    text.raise_for_status()
    return text.text


def extract_text_locally(data: bytes) -> str:
    text = _pdf_pdfminer(data)
    if _has_enough_text(text):
        logger.debug("PDF extracted via pdfminer")
        return text

    text = _pdf_pypdf2(data)
    if _has_enough_text(text):
        logger.debug("PDF extracted via PyPDF2")
        return text

    raise TextExtractionError(
        "Could not extract readable text from the PDF. "
        "Both pdfminer and PyPDF2 returned empty or near-empty output."
    )


def _pdf_pdfminer(data: bytes) -> str:
    try:
        from pdfminer.high_level import extract_text as _extract
        return _extract(io.BytesIO(data)) or ""
    except Exception as e:
        logger.debug(f"pdfminer failed: {e}")
        return ""


def _pdf_pypdf2(data: bytes) -> str:
    try:
        import PyPDF2
        reader = PyPDF2.PdfReader(io.BytesIO(data))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except Exception as e:
        logger.debug(f"PyPDF2 failed: {e}")
        return ""


def _has_enough_text(text: str) -> bool:
    return bool(text) and len(text.strip()) >= _MIN_TEXT_LENGTH
