"""
Best-effort delivery of match results to the automation webhook.

Scheduled as a FastAPI background task after the response is sent; the
outcome is only logged and never affects the original request.
"""
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


async def deliver_results(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    retries: int = 0,
    timeout: float = 15.0,
) -> bool:
    """POST `payload` to `url`; up to `retries` extra attempts. Never raises."""
    if not url:
        logger.debug("Webhook URL not configured, skipping delivery")
        return False

    attempts = max(retries, 0) + 1
    for attempt in range(1, attempts + 1):
        try:
            r = await client.post(url, json=payload, timeout=timeout)
        except httpx.HTTPError as e:
            logger.error("Webhook delivery attempt %d/%d failed: %r", attempt, attempts, e)
            continue
        if r.is_success:
            logger.info("Webhook delivered to %s (status %d)", url, r.status_code)
            return True
        logger.error(
            "Webhook delivery attempt %d/%d rejected: status %d", attempt, attempts, r.status_code
        )

    logger.error("Webhook delivery to %s gave up after %d attempt(s)", url, attempts)
    return False
