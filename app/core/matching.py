"""
Skill matching between extracted job skills and candidate skill strings.

A job skill matches a candidate skill when, in order:
  1. both are equal (trimmed, lower-cased);
  2. the job skill is one whitespace-delimited word of the candidate skill
     ("qiwa" ↔ "qiwa system");
  3. the job skill occurs as a whole word anywhere in the candidate skill
     ("node.js" ↔ "node.js/express").

Skills listed as specific terms only use rules 1 and 2, so "qiwa" never
matches "qiwa-portal" or "myqiwa".
"""
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from app.models.schemas import Candidate


@dataclass
class MatchedCandidate:
    candidate_name: str
    match_count: int
    matched_skills: list[str]
    all_skills: list[str] = field(default_factory=list)
    feedback: Any = None
    transcript: str = ""
    email: str = ""
    cv_resume: Any = None


def split_skills(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [s.strip().lower() for s in raw.split(",") if s.strip()]


def skill_matches(job_skill: str, candidate_skill: str, specific_terms: Iterable[str] = ()) -> bool:
    if candidate_skill == job_skill:
        return True
    if job_skill in candidate_skill.split():
        return True
    if job_skill in specific_terms:
        return False
    return re.search(rf"(?<!\w){re.escape(job_skill)}(?!\w)", candidate_skill) is not None


def match_candidates(
    job_skills: Iterable[str],
    candidates: list[Candidate],
    specific_terms: Iterable[str] = (),
) -> list[MatchedCandidate]:
    """Candidates with at least one matched job skill, most matches first."""
    job_set = {s.strip().lower() for s in job_skills if s and s.strip()}
    terms = frozenset(t.lower() for t in specific_terms)
    matches: list[MatchedCandidate] = []

    for candidate in candidates:
        skills = split_skills(candidate.skills)
        matched = sorted(
            js for js in job_set
            if any(skill_matches(js, cs, terms) for cs in skills)
        )
        if not matched:
            continue

        matches.append(MatchedCandidate(
            candidate_name=candidate.candidate_name or "Unnamed",
            match_count=len(matched),
            matched_skills=matched,
            all_skills=skills,
            feedback=candidate.feedback,
            transcript=candidate.transcript or "",
            email=candidate.email or "",
            cv_resume=candidate.cv_resume,
        ))

    # sorted() is stable: ties keep store order
    return sorted(matches, key=lambda m: -m.match_count)
