"""Tests for the Supabase candidate store, against an in-memory client."""
from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from app.core.config import Settings
from app.core.storage import CANDIDATE_COLUMNS, CandidateStore, CandidateStoreError


class FakeSupabase:
    """Mimics the table().select().range().execute() builder chain."""

    def __init__(self, rows=None, fail=False):
        self.rows = rows or []
        self.fail = fail
        self.ranges = []
        self.inserted = []
        self.columns = None
        self.table_name = None
        self._range = (0, 0)

    def table(self, name):
        self.table_name = name
        return self

    def select(self, columns):
        self.columns = columns
        return self

    def range(self, start, end):
        self._range = (start, end)
        self.ranges.append((start, end))
        return self

    def insert(self, rows):
        self.inserted.extend(rows)
        return self

    def execute(self):
        if self.fail:
            raise ConnectionError("network unreachable")
        start, end = self._range
        return SimpleNamespace(data=self.rows[start:end + 1])


def _settings(**overrides) -> Settings:
    values = dict(
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-role",
        CANDIDATE_PAGE_SIZE=2,
    )
    values.update(overrides)
    return Settings(**values)


def _store(client, **overrides) -> CandidateStore:
    store = CandidateStore(_settings(**overrides))
    store._client = client
    return store


def _rows(n):
    return [
        {
            "id": i,
            "candidate_name": f"Candidate {i}",
            "skills": "Python, SQL",
            "Email": f"c{i}@example.com",
            "CV/Resume": f"https://files.example.com/{i}.pdf",
        }
        for i in range(n)
    ]


def test_fetch_pages_until_short_page() -> None:
    client = FakeSupabase(_rows(5))
    candidates = asyncio.run(_store(client).fetch_candidates())
    assert [c.candidate_name for c in candidates] == [f"Candidate {i}" for i in range(5)]
    assert client.ranges == [(0, 1), (2, 3), (4, 5)]
    assert client.table_name == "interviews"
    assert client.columns == CANDIDATE_COLUMNS


def test_fetch_maps_aliased_columns() -> None:
    [candidate] = asyncio.run(_store(FakeSupabase(_rows(1))).fetch_candidates())
    assert candidate.email == "c0@example.com"
    assert candidate.cv_resume == "https://files.example.com/0.pdf"


def test_fetch_flattens_json_text_columns() -> None:
    row = {
        "id": 7,
        "candidate_name": "Nour",
        "skills": ["Python", "SQL"],
        "transcript": [
            {"role": "assistant", "content": "Why data?"},
            {"role": "user", "content": "I like numbers."},
        ],
    }
    [candidate] = asyncio.run(_store(FakeSupabase([row])).fetch_candidates())
    assert candidate.skills == "Python, SQL"
    assert candidate.transcript == "assistant: Why data?\nuser: I like numbers."


def test_unusable_row_raises_store_error() -> None:
    rows = [{"id": {"nested": 1}, "candidate_name": "Bad", "skills": "SQL"}]
    with pytest.raises(CandidateStoreError):
        asyncio.run(_store(FakeSupabase(rows)).fetch_candidates())


def test_exact_multiple_of_page_size_requests_one_empty_page() -> None:
    client = FakeSupabase(_rows(4))
    assert len(asyncio.run(_store(client).fetch_candidates())) == 4
    assert client.ranges == [(0, 1), (2, 3), (4, 5)]


def test_unconfigured_store_returns_nothing() -> None:
    client = FakeSupabase(_rows(3))
    store = _store(client, SUPABASE_URL="", SUPABASE_SERVICE_ROLE_KEY="")
    assert store.is_configured is False
    assert asyncio.run(store.fetch_candidates()) == []
    assert client.ranges == []


def test_query_failure_raises_store_error() -> None:
    with pytest.raises(CandidateStoreError):
        asyncio.run(_store(FakeSupabase(fail=True)).fetch_candidates())


def test_save_incoming_email() -> None:
    client = FakeSupabase()
    asyncio.run(_store(client).save_incoming_email("hr@example.com"))
    assert client.table_name == "incoming_emails"
    [row] = client.inserted
    assert row["email"] == "hr@example.com"
    assert row["received_at"]


def test_save_email_unconfigured_raises() -> None:
    store = _store(FakeSupabase(), SUPABASE_URL="")
    with pytest.raises(CandidateStoreError):
        asyncio.run(store.save_incoming_email("hr@example.com"))
