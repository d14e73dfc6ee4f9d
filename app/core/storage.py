"""
Storage layer — candidate interviews live in Supabase (PostgREST).

Reads:
  - interviews: paginated select of the columns the matcher needs
Writes:
  - incoming_emails: one row per address submitted by the email collector

The supabase client is synchronous; calls are pushed to the thread pool.
"""
import logging
from datetime import datetime, timezone

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from app.core.config import Settings
from app.models.schemas import Candidate

logger = logging.getLogger(__name__)

CANDIDATE_COLUMNS = 'id, candidate_name, skills, feedback, transcript, Email, "CV/Resume"'


class CandidateStoreError(RuntimeError):
    """Raised when the database cannot be queried."""


class CandidateStore:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.SUPABASE_URL and self._settings.SUPABASE_SERVICE_ROLE_KEY)

    def _get_client(self):
        if self._client is None:
            from supabase import create_client
            self._client = create_client(
                self._settings.SUPABASE_URL,
                self._settings.SUPABASE_SERVICE_ROLE_KEY,
            )
        return self._client

    # ── Candidates ────────────────────────────────────────────────────────────

    async def fetch_candidates(self, page_size: int | None = None) -> list[Candidate]:
        if not self.is_configured:
            logger.error("Supabase not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")
            return []
        size = page_size or self._settings.CANDIDATE_PAGE_SIZE
        rows = await run_in_threadpool(self._fetch_all_rows, size)
        logger.info("Fetched %d candidate rows", len(rows))
        try:
            return [Candidate.model_validate(r) for r in rows]
        except ValidationError as e:
            raise CandidateStoreError(f"Unexpected candidate row shape: {e}") from e

    def _fetch_all_rows(self, page_size: int) -> list[dict]:
        table = self._settings.SUPABASE_CANDIDATES_TABLE
        rows: list[dict] = []
        offset = 0
        while True:
            try:
                r = (
                    self._get_client()
                    .table(table)
                    .select(CANDIDATE_COLUMNS)
                    .range(offset, offset + page_size - 1)
                    .execute()
                )
            except Exception as e:
                raise CandidateStoreError(f"Failed to fetch candidates from '{table}': {e}") from e

            page = r.data or []
            rows.extend(page)
            if len(page) < page_size:
                break
            offset += page_size
        return rows

    # ── Incoming emails ───────────────────────────────────────────────────────

    async def save_incoming_email(self, email: str) -> None:
        if not self.is_configured:
            raise CandidateStoreError("Database not configured")
        row = {
            "email": email,
            "received_at": datetime.now(timezone.utc).isoformat(),
        }
        await run_in_threadpool(self._insert_email, row)

    def _insert_email(self, row: dict) -> None:
        table = self._settings.SUPABASE_EMAILS_TABLE
        try:
            self._get_client().table(table).insert([row]).execute()
        except Exception as e:
            raise CandidateStoreError(f"Failed to save email to '{table}': {e}") from e
