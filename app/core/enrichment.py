"""
Batch AI enrichment with de-duplication and a bounded in-memory cache.

For N inputs at most one upstream call is made per distinct input: inputs are
keyed by a canonical serialization, cached results are reused, the remaining
unique inputs are fanned out concurrently, and results are scattered back to
every original position. A failing call is replaced by that item's fallback
and never aborts the batch.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from app.core.ai import (
    AIClient, analyze_feedback, classify_feedback_keywords,
    summarize_skills, fallback_skill_summary,
)
from app.core.feedback import Feedback

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedCache:
    """
    LRU map of canonical input → generated text.

    Once an insert pushes the size past `capacity`, only the most recently
    used `capacity // 2` entries are kept.
    """

    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 2:
            raise ValueError("capacity must be at least 2")
        self.capacity = capacity
        self._data: "OrderedDict[str, str]" = OrderedDict()

    def get(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        if value is not None:
            self._data.move_to_end(key)
        return value

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._data.move_to_end(key)
        if len(self._data) > self.capacity:
            keep = list(self._data.items())[-(self.capacity // 2):]
            self._data.clear()
            self._data.update(keep)
            logger.debug("Cache trimmed to %d entries", len(self._data))

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def keys(self) -> list[str]:
        return list(self._data.keys())


class BatchEnricher(Generic[T]):
    def __init__(
        self,
        produce: Callable[[T], Awaitable[str]],
        key: Callable[[T], str],
        fallback: Callable[[T], str],
        cache: BoundedCache,
        name: str = "enrichment",
    ) -> None:
        self._produce = produce
        self._key = key
        self._fallback = fallback
        self._cache = cache
        self.name = name

    async def enrich(self, items: list[T]) -> list[str]:
        start = time.time()
        unique: dict[str, T] = {}
        keys = []
        for item in items:
            k = self._key(item)
            keys.append(k)
            unique.setdefault(k, item)

        results: dict[str, str] = {}
        pending: list[str] = []
        for k in unique:
            cached = self._cache.get(k)
            if cached is not None:
                results[k] = cached
            else:
                pending.append(k)

        outputs = await asyncio.gather(*(self._run(k, unique[k]) for k in pending))
        results.update(zip(pending, outputs))

        logger.info(
            "%s: %d items, %d unique, %d cached, %d upstream calls in %.0f ms",
            self.name, len(items), len(unique), len(unique) - len(pending),
            len(pending), (time.time() - start) * 1000,
        )
        return [results[k] for k in keys]

    async def _run(self, key: str, item: T) -> str:
        try:
            value = await self._produce(item)
        except Exception as e:
            logger.warning(f"{self.name} call failed, using fallback: {e}")
            return self._fallback(item)
        self._cache.set(key, value)
        return value


# ── Production enrichers ──────────────────────────────────────────────────────

def skills_key(skills: list[str]) -> str:
    return ",".join(sorted(skills))


def feedback_key(feedback: Optional[Feedback]) -> str:
    return feedback.canonical() if feedback is not None else "null"


def feedback_enricher(ai: AIClient, cache: BoundedCache) -> BatchEnricher[Optional[Feedback]]:
    async def produce(feedback: Optional[Feedback]) -> str:
        return await analyze_feedback(ai, feedback)

    return BatchEnricher(produce, feedback_key, classify_feedback_keywords, cache, name="feedback analysis")


def skill_summary_enricher(ai: AIClient, cache: BoundedCache) -> BatchEnricher[list[str]]:
    async def produce(skills: list[str]) -> str:
        return await summarize_skills(ai, skills)

    return BatchEnricher(produce, skills_key, fallback_skill_summary, cache, name="skill summary")
