"""Shared fakes and fixtures.

Real collaborators (model, Supabase, remote PDF hosts) are replaced by small
in-memory fakes; outbound HTTP goes through ``httpx.MockTransport``.
"""
from __future__ import annotations

import io
from typing import Callable, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.api.routes import get_services
from app.core.enrichment import BoundedCache
from app.core.pipeline import Services
from app.core.storage import CandidateStoreError
from app.main import app
from app.models.schemas import Candidate


class FakeAI:
    """Stands in for AIClient; records prompts and answers deterministically."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[str] = []
        self.configured = True

    async def complete(self, prompt: str, temperature: float = 0.2) -> str:
        self.calls.append(prompt)
        if self.fail:
            raise RuntimeError("model unavailable")
        if "interview feedback" in prompt:
            return "✅ Suitable based on feedback - solid interview."
        return "Strong engineer with a broad skill set."


class FakeChain:
    """Stands in for the LangChain skill extraction runnable."""

    def __init__(self, answer: str = "", error: Optional[Exception] = None) -> None:
        self.answer = answer
        self.error = error
        self.inputs: list[dict] = []

    async def ainvoke(self, payload: dict) -> str:
        self.inputs.append(payload)
        if self.error is not None:
            raise self.error
        return self.answer


class FakeStore:
    def __init__(self, candidates: Optional[list[Candidate]] = None, error: bool = False) -> None:
        self.candidates = candidates or []
        self.error = error
        self.emails: list[str] = []
        self.is_configured = True

    async def fetch_candidates(self, page_size: int | None = None) -> list[Candidate]:
        if self.error:
            raise CandidateStoreError("connection refused")
        return list(self.candidates)

    async def save_incoming_email(self, email: str) -> None:
        if self.error:
            raise CandidateStoreError("insert failed")
        self.emails.append(email)


def make_pdf(pages: int = 1, text: str = "Resume") -> bytes:
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4)
    for i in range(pages):
        pdf.drawString(72, 720, f"{text} page {i + 1}")
        pdf.showPage()
    pdf.save()
    return buf.getvalue()


def make_services(
    store: Optional[FakeStore] = None,
    ai: Optional[FakeAI] = None,
    chain: Optional[FakeChain] = None,
    handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
) -> Services:
    handler = handler or (lambda request: httpx.Response(404))
    return Services(
        ai=ai or FakeAI(),
        store=store or FakeStore(),
        http=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        feedback_cache=BoundedCache(100),
        summary_cache=BoundedCache(100),
        skill_chain=chain or FakeChain("react, node.js"),
    )


@pytest.fixture
def sample_candidates() -> list[Candidate]:
    return [
        Candidate.model_validate({
            "id": 1,
            "candidate_name": "Sara Ali",
            "skills": "React, Node.js, SQL",
            "feedback": {"communication": "Clear and concise", "technical": "Strong"},
            "transcript": "assistant: Tell me about React. user: I built dashboards.",
            "Email": "sara@example.com",
            "CV/Resume": "https://files.example.com/sara.pdf",
        }),
        Candidate.model_validate({
            "id": 2,
            "candidate_name": "Omar Khan",
            "skills": "Node.js, Docker",
            "feedback": "Good attitude, limited React exposure",
            "transcript": "",
            "Email": "omar@example.com",
        }),
        Candidate.model_validate({
            "id": 3,
            "candidate_name": "Lina Haddad",
            "skills": "Figma, Sketch",
            "feedback": None,
        }),
    ]


@pytest.fixture
def api():
    """Returns a factory: services → TestClient with those services injected."""
    def _client(services: Services) -> TestClient:
        app.dependency_overrides[get_services] = lambda: services
        return TestClient(app, raise_server_exceptions=False)

    yield _client
    app.dependency_overrides.clear()
