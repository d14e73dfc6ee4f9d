"""
Resume PDF lookup and download.

The CV/Resume column may hold a URL, a base64 data URI, or a JSON object
(e.g. storage metadata) with such strings nested inside. `extract_pdf_urls`
walks that value up to a fixed depth; `fetch_pdf` downloads or decodes one
reference and only returns bytes that start with the PDF signature.
"""
import base64
import binascii
import logging
import re
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF"
DATA_URI_PREFIX = "data:application/pdf;base64,"

_PDF_REF = re.compile(r"(https?://\S+\.pdf)|(data:application/pdf;base64,\S+)")


def extract_pdf_urls(value: Any, max_depth: int = 8) -> list[str]:
    """Distinct PDF URLs / data URIs found in `value`, in first-seen order."""
    found: dict[str, None] = {}
    _visit(value, 0, max_depth, found)
    return list(found)


def _visit(value: Any, depth: int, max_depth: int, found: dict[str, None]) -> None:
    if isinstance(value, str):
        for m in _PDF_REF.finditer(value):
            found.setdefault(m.group(0), None)
        return
    if not isinstance(value, (dict, list, tuple)):
        return
    if depth >= max_depth:
        logger.debug("Resume scan stopped at depth %d", depth)
        return
    children = value.values() if isinstance(value, dict) else value
    for child in children:
        _visit(child, depth + 1, max_depth, found)


async def fetch_pdf(client: httpx.AsyncClient, url: str, timeout: float = 10.0) -> Optional[bytes]:
    """PDF bytes for `url`, or None on any failure. Never raises."""
    if url.startswith(DATA_URI_PREFIX):
        try:
            data = base64.b64decode(url[len(DATA_URI_PREFIX):], validate=True)
        except (binascii.Error, ValueError) as e:
            logger.warning(f"Malformed base64 resume data: {e}")
            return None
    elif url.startswith(("http://", "https://")):
        try:
            r = await client.get(url, timeout=timeout, follow_redirects=True)
        # InvalidURL and IDNA errors (ValueError) are not HTTPError subclasses
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning(f"Error fetching PDF from {url[:80]}: {e!r}")
            return None
        if not r.is_success:
            logger.warning(f"Failed to fetch PDF from {url}: {r.status_code}")
            return None
        data = r.content
    else:
        logger.warning(f"Unsupported PDF URL format: {url[:80]}")
        return None

    if data[:4] != PDF_SIGNATURE:
        logger.warning(f"Resume at {url[:80]} is not a PDF (bad signature)")
        return None
    return data


async def fetch_first_resume(
    client: httpx.AsyncClient,
    cv_resume: Any,
    timeout: float = 10.0,
    max_depth: int = 8,
) -> Optional[bytes]:
    if not cv_resume:
        return None
    for url in extract_pdf_urls(cv_resume, max_depth=max_depth):
        data = await fetch_pdf(client, url, timeout=timeout)
        if data is not None:
            return data
    return None
