"""
FastAPI routes for the candidate matcher.
"""
import base64
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.core.config import Settings, get_settings
from app.core.enrichment import feedback_enricher
from app.core.feedback import normalize_feedback
from app.core.pipeline import PipelineError, PipelineResult, Services, run_match
from app.core.report import render_candidate_pdf, render_report
from app.core.skills import extract_skills
from app.core.storage import CandidateStoreError
from app.core.webhook import deliver_results
from app.models.schemas import (
    CandidatePDF, EmailCollectRequest, MatchRequest, MatchResponse, WebhookResponse,
)
from app.utils.pdf_text import TextExtractionError, extract_pdf_text

logger = logging.getLogger(__name__)
router = APIRouter()

TEST_DESCRIPTION = (
    "We are looking for a React developer with TypeScript experience and knowledge of Node.js"
)

TEST_FEEDBACK = {
    "raw": (
        "The candidate demonstrates excellent technical skills with strong problem-solving "
        "abilities. They communicate clearly and show high confidence throughout the interview. "
        "Overall, this is an outstanding candidate who would be a valuable addition to our team."
    ),
    "confidence": "The candidate presents themselves with a high level of confidence.",
    "motivation": "The candidate conveys genuine enthusiasm for the role and company mission.",
    "communication": "The candidate communicates exceptionally clearly and concisely.",
    "final_assessment": (
        "The candidate presents as an outstanding individual with excellent technical skills "
        "and a positive, professional attitude. They are highly suitable for the role."
    ),
}


def get_services(request: Request) -> Services:
    return request.app.state.services


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


async def _run_pipeline(
    services: Services,
    settings: Settings,
    job_description: str,
    extra_notes: str,
    include_resumes: bool,
) -> PipelineResult:
    try:
        return await run_match(services, settings, job_description, extra_notes, include_resumes)
    except PipelineError as e:
        raise HTTPException(e.status_code, str(e))
    except CandidateStoreError as e:
        logger.error("Candidate fetch failed: %s", e)
        raise HTTPException(500, "Failed to fetch candidates from database")


# ── Matching ──────────────────────────────────────────────────────────────────

@router.post(
    "/match",
    response_model=MatchResponse,
    response_model_exclude_none=True,
    tags=["Matching"],
)
async def match(
    body: MatchRequest,
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """
    **Core endpoint** — job description → ranked, enriched candidates + PDF report.

    - `include_resumes` — merge each candidate's resume PDF into the report
    - `per_candidate` — return one PDF per candidate (`candidate_pdfs`)
      instead of a combined `pdf_base64`
    """
    if not body.job_description.strip():
        raise HTTPException(400, "job_description is required")

    result = await _run_pipeline(
        services, settings, body.job_description, body.extra_notes, body.include_resumes,
    )

    if body.per_candidate:
        pdfs = [
            CandidatePDF(
                candidate_name=c.candidate_name,
                pdf_base64=_b64(await run_in_threadpool(render_candidate_pdf, c, i, settings)),
            )
            for i, c in enumerate(result.report_candidates, start=1)
        ]
        return MatchResponse(
            candidates=result.candidates,
            extracted_skills=result.job_skills,
            candidate_pdfs=pdfs,
        )

    pdf = await run_in_threadpool(render_report, result.report_candidates, settings)
    return MatchResponse(
        candidates=result.candidates,
        extracted_skills=result.job_skills,
        pdf_base64=_b64(pdf),
    )


@router.post("/webhook", response_model=WebhookResponse, tags=["Matching"])
async def webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """
    Entry point for the automation workflow. Accepts JSON
    (`job_description`, `extra_notes`) or multipart with a job description PDF
    in `file`. The result is also POSTed to WEBHOOK_URL in the background.
    Resume PDFs are not merged into this report.
    """
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type:
        form = await request.form()
        file = form.get("file")
        if not isinstance(file, StarletteUploadFile):
            raise HTTPException(400, "No PDF file provided")
        try:
            job_description = await extract_pdf_text(await file.read(), services.http, settings)
        except TextExtractionError as e:
            logger.warning("Webhook PDF extraction failed: %s", e)
            raise HTTPException(400, "Failed to extract text from PDF")
        extra_notes = form.get("extra_notes") or ""
        if not isinstance(extra_notes, str):
            extra_notes = ""
    else:
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(400, "Request body must be JSON or multipart/form-data")
        if not isinstance(body, dict):
            raise HTTPException(400, "Request body must be a JSON object")
        job_description = str(body.get("job_description") or "")
        extra_notes = str(body.get("extra_notes") or "")
        if not job_description.strip():
            raise HTTPException(400, "job_description is required")

    result = await _run_pipeline(services, settings, job_description, extra_notes, include_resumes=False)

    logger.info("Generating PDF report for webhook (no resume PDFs included)...")
    pdf = await run_in_threadpool(render_report, result.report_candidates, settings)

    response = WebhookResponse(
        candidates=result.candidates,
        pdf_base64=_b64(pdf),
        extracted_skills=result.job_skills,
        processed_at=datetime.now(timezone.utc).isoformat(),
        total_candidates_found=result.total_candidates,
        matching_candidates_count=len(result.matches),
        top_candidates_returned=len(result.candidates),
    )
    background_tasks.add_task(
        deliver_results,
        services.http,
        settings.WEBHOOK_URL,
        response.model_dump(mode="json"),
        settings.WEBHOOK_RETRIES,
        settings.WEBHOOK_TIMEOUT_SECONDS,
    )
    return response


# ── PDFs ──────────────────────────────────────────────────────────────────────

@router.post("/extract-pdf", tags=["PDF"])
async def extract_pdf(
    file: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """Job description PDF → plain text (used by the UI before /match)."""
    if file is None:
        raise HTTPException(400, "No file provided")
    if file.content_type != "application/pdf":
        raise HTTPException(400, "Only PDF files are supported")

    try:
        text = await extract_pdf_text(await file.read(), services.http, settings)
    except TextExtractionError as e:
        logger.warning("PDF extraction failed: %s", e)
        raise HTTPException(500, "Failed to extract text from PDF")
    return {"text": text}


@router.get("/proxy-pdf", tags=["PDF"])
async def proxy_pdf(
    url: Optional[str] = Query(None, description="PDF URL (e.g. a signed storage URL)"),
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """Serve a remote resume PDF from this origin so the browser can embed it."""
    if not url:
        raise HTTPException(400, "PDF URL is required")

    try:
        r = await services.http.get(
            url, timeout=settings.RESUME_FETCH_TIMEOUT_SECONDS, follow_redirects=True,
        )
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.error("PDF proxy error for %s: %r", url, e)
        raise HTTPException(500, "Failed to fetch PDF")

    if not r.is_success:
        return JSONResponse({"error": "Failed to fetch PDF"}, status_code=r.status_code)

    return Response(
        content=r.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": "inline",
            "Cache-Control": "public, max-age=3600",
        },
    )


# ── Email collector ───────────────────────────────────────────────────────────

@router.post("/email-collector", tags=["Email"])
async def email_collector(
    body: EmailCollectRequest,
    services: Services = Depends(get_services),
):
    email = body.email.strip()
    if not email:
        raise HTTPException(400, "Email is required")
    if not services.store.is_configured:
        raise HTTPException(500, "Database not configured")

    try:
        await services.store.save_incoming_email(email)
    except CandidateStoreError as e:
        logger.error("Email collector: %s", e)
        raise HTTPException(500, "Failed to save email to database")
    return {"success": True}


# ── Health & diagnostics ──────────────────────────────────────────────────────

@router.get("/health", tags=["System"])
async def health(settings: Settings = Depends(get_settings)):
    env_check = {
        "supabase_url": bool(settings.SUPABASE_URL),
        "supabase_key": bool(settings.SUPABASE_SERVICE_ROLE_KEY),
        "ai_key": bool(settings.OPENAI_API_KEY),
        "pdfco_key": bool(settings.PDFCO_API_KEY),
    }
    missing = [k for k, ok in env_check.items() if not ok]
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": env_check,
        "missing_variables": missing,
        "message": (
            f"Missing environment variables: {', '.join(missing)}"
            if missing else "All required environment variables are set"
        ),
    }


@router.get("/test-ai", tags=["System"])
async def test_ai(
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """Run skill extraction on a fixed job description."""
    skills = await extract_skills(TEST_DESCRIPTION, chain=services.skill_chain, settings=settings)
    return {
        "success": True,
        "skills": skills,
        "message": "AI integration is working correctly",
    }


@router.post("/test-feedback", tags=["System"])
async def test_feedback(services: Services = Depends(get_services)):
    """Run feedback analysis on a fixed, strongly positive feedback record."""
    enricher = feedback_enricher(services.ai, services.feedback_cache)
    [analysis] = await enricher.enrich([normalize_feedback(TEST_FEEDBACK)])
    return {
        "success": True,
        "feedback_analysis": analysis,
        "test_feedback": TEST_FEEDBACK,
    }


@router.post("/test-webhook", tags=["System"])
async def test_webhook(request: Request):
    """Echo endpoint for wiring up the automation workflow."""
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Request body must be JSON")
    logger.info("Test webhook received: %s", body)
    return {
        "success": True,
        "message": "Test webhook received successfully",
        "received_data": body,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
