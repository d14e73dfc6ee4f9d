"""
Match pipeline shared by the /match and /webhook routes:

  extract skills → fetch candidates → match → top K
  → feedback analysis + skill summaries + resume downloads (concurrently)
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from app.core.ai import AIClient
from app.core.config import Settings
from app.core.enrichment import BoundedCache, feedback_enricher, skill_summary_enricher
from app.core.feedback import normalize_feedback
from app.core.matching import MatchedCandidate, match_candidates
from app.core.report import ReportCandidate
from app.core.skills import extract_skills
from app.core.storage import CandidateStore
from app.models.schemas import ProcessedCandidate
from app.utils.resume_fetcher import fetch_first_resume

logger = logging.getLogger(__name__)


class PipelineError(RuntimeError):
    status_code = 400


class NoSkillsError(PipelineError):
    status_code = 400


class NoCandidatesError(PipelineError):
    status_code = 404


class NoMatchesError(PipelineError):
    status_code = 404


@dataclass
class Services:
    """Process-wide collaborators, created once in the app lifespan."""
    ai: AIClient
    store: CandidateStore
    http: httpx.AsyncClient
    feedback_cache: BoundedCache
    summary_cache: BoundedCache
    skill_chain: Any = None     # runnable override for skill extraction


@dataclass
class PipelineResult:
    job_skills: list[str]
    total_candidates: int
    matches: list[MatchedCandidate]
    candidates: list[ProcessedCandidate] = field(default_factory=list)
    report_candidates: list[ReportCandidate] = field(default_factory=list)


async def run_match(
    services: Services,
    settings: Settings,
    job_description: str,
    extra_notes: str = "",
    include_resumes: bool = True,
) -> PipelineResult:
    job_skills = await extract_skills(
        f"{job_description}\n\n{extra_notes}", chain=services.skill_chain, settings=settings,
    )
    if not job_skills:
        raise NoSkillsError("No skills could be extracted from the job description")
    logger.info("Extracted %d job skills", len(job_skills))

    all_candidates = await services.store.fetch_candidates()
    if not all_candidates:
        raise NoCandidatesError("No candidates found in database")

    matches = match_candidates(job_skills, all_candidates, settings.specific_terms)
    if not matches:
        raise NoMatchesError("No matching candidates found")

    top = matches[:settings.TOP_K_RESULTS]
    feedbacks = [normalize_feedback(m.feedback) for m in top]
    skill_lists = [m.all_skills for m in top]

    logger.info("Processing %d candidates with batch optimization...", len(top))
    analyses, summaries, resumes = await asyncio.gather(
        feedback_enricher(services.ai, services.feedback_cache).enrich(feedbacks),
        skill_summary_enricher(services.ai, services.summary_cache).enrich(skill_lists),
        _fetch_resumes(services.http, settings, top) if include_resumes else _no_resumes(top),
    )

    result = PipelineResult(
        job_skills=job_skills,
        total_candidates=len(all_candidates),
        matches=matches,
    )
    for m, feedback, analysis, summary, resume in zip(top, feedbacks, analyses, summaries, resumes):
        result.candidates.append(ProcessedCandidate(
            candidate_name=m.candidate_name,
            match_count=m.match_count,
            matched_skills=m.matched_skills,
            summary=summary,
            feedback_review=analysis,
            transcript=m.transcript,
            feedback=feedback.as_mapping() if feedback is not None else None,
            email=m.email,
            cv_resume=m.cv_resume,
            has_resume_pdf=resume is not None,
        ))
        result.report_candidates.append(ReportCandidate(
            candidate_name=m.candidate_name,
            match_count=m.match_count,
            matched_skills=m.matched_skills,
            summary=summary,
            feedback_review=analysis,
            transcript=m.transcript,
            feedback=feedback,
            email=m.email,
            resume_pdf=resume,
        ))
    return result


async def _fetch_resumes(
    client: httpx.AsyncClient, settings: Settings, top: list[MatchedCandidate]
) -> list[Optional[bytes]]:
    return await asyncio.gather(*(
        fetch_first_resume(
            client, m.cv_resume,
            timeout=settings.RESUME_FETCH_TIMEOUT_SECONDS,
            max_depth=settings.RESUME_SCAN_MAX_DEPTH,
        )
        for m in top
    ))


async def _no_resumes(top: list[MatchedCandidate]) -> list[Optional[bytes]]:
    return [None] * len(top)
