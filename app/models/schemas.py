"""
Pydantic schemas — candidate rows, API requests and responses.
"""
import json
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Domain models ─────────────────────────────────────────────────────────────

class Candidate(BaseModel):
    """One row of the interviews table. Column names are kept as aliases."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Union[str, int, None] = None
    candidate_name: Optional[str] = None
    skills: Optional[str] = None                 # raw comma-separated list
    feedback: Any = None                         # JSON object or plain string
    transcript: Optional[str] = None
    email: Optional[str] = Field(None, alias="Email")
    cv_resume: Any = Field(None, alias="CV/Resume")  # URL, data URI or JSON

    @field_validator("candidate_name", "skills", "transcript", "email", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        """jsonb columns may hold arrays/objects; flatten them to text."""
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, list):
            if value and all(isinstance(v, dict) and "content" in v for v in value):
                # chat transcript: [{"role": ..., "content": ...}, ...]
                return "\n".join(f"{v.get('role', 'user')}: {v['content']}" for v in value)
            if all(isinstance(v, str) for v in value):
                return ", ".join(value)
        if isinstance(value, (list, dict)):
            return json.dumps(value, ensure_ascii=False)
        return str(value)


# ── Requests ──────────────────────────────────────────────────────────────────

class MatchRequest(BaseModel):
    job_description: str = ""
    extra_notes: str = ""
    include_resumes: bool = True
    per_candidate: bool = False


class EmailCollectRequest(BaseModel):
    email: str = ""


# ── Result models ─────────────────────────────────────────────────────────────

class ProcessedCandidate(BaseModel):
    candidate_name: str
    match_count: int
    matched_skills: list[str] = Field(default_factory=list)
    summary: str = ""
    feedback_review: str = ""
    transcript: str = ""
    feedback: Optional[dict[str, str]] = None
    email: str = ""
    cv_resume: Any = None
    has_resume_pdf: bool = False


class CandidatePDF(BaseModel):
    candidate_name: str
    pdf_base64: str


class MatchResponse(BaseModel):
    candidates: list[ProcessedCandidate]
    extracted_skills: list[str]
    pdf_base64: Optional[str] = None
    candidate_pdfs: Optional[list[CandidatePDF]] = None


class WebhookResponse(BaseModel):
    success: bool = True
    candidates: list[ProcessedCandidate]
    pdf_base64: str
    extracted_skills: list[str]
    processed_at: str
    total_candidates_found: int
    matching_candidates_count: int
    top_candidates_returned: int
