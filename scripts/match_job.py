"""
Run the matching pipeline for a job description file and save the PDF report.

Usage:
    python scripts/match_job.py path/to/job.txt --out report.pdf
    python scripts/match_job.py path/to/job.pdf --notes "Riyadh based" --no-resumes
"""
import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Root project -> sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dotenv import load_dotenv
load_dotenv()

import httpx

from app.core.ai import AIClient
from app.core.config import get_settings
from app.core.enrichment import BoundedCache
from app.core.pipeline import PipelineError, Services, run_match
from app.core.report import render_report
from app.core.storage import CandidateStore, CandidateStoreError
from app.utils.pdf_text import TextExtractionError, extract_pdf_text


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    path = Path(args.file)

    async with httpx.AsyncClient(timeout=30.0) as http:
        if path.suffix.lower() == ".pdf":
            print(f"[INFO] Extracting text from {path}...", file=sys.stderr)
            try:
                description = await extract_pdf_text(path.read_bytes(), http, settings)
            except TextExtractionError as e:
                print(f"[ERROR] Text extraction failed: {e}", file=sys.stderr)
                return 1
        else:
            description = path.read_text(encoding="utf-8", errors="replace")

        services = Services(
            ai=AIClient(settings),
            store=CandidateStore(settings),
            http=http,
            feedback_cache=BoundedCache(settings.AI_CACHE_CAPACITY),
            summary_cache=BoundedCache(settings.AI_CACHE_CAPACITY),
        )
        try:
            result = await run_match(
                services, settings, description, args.notes, include_resumes=not args.no_resumes,
            )
        except (PipelineError, CandidateStoreError) as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return 1

    pdf = render_report(result.report_candidates, settings)
    Path(args.out).write_bytes(pdf)
    print(f"[INFO] Report written to {args.out} ({len(pdf)} bytes)", file=sys.stderr)

    print("\n[RESULT]")
    print(json.dumps(
        {
            "extracted_skills": result.job_skills,
            "candidates": [
                {
                    "candidate_name": c.candidate_name,
                    "match_count": c.match_count,
                    "matched_skills": c.matched_skills,
                    "feedback_review": c.feedback_review,
                }
                for c in result.candidates
            ],
        },
        indent=2,
        ensure_ascii=False,
    ))
    return 0


def main():
    parser = argparse.ArgumentParser(description="Match candidates to a job description")
    parser.add_argument("file", help="Path to the job description (TXT or PDF)")
    parser.add_argument("--notes", default="", help="Extra notes appended to the description")
    parser.add_argument("--out", default="candidate_report.pdf", help="Where to write the PDF report")
    parser.add_argument("--no-resumes", action="store_true", help="Do not merge resume PDFs")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"[ERROR] File not found: {args.file}", file=sys.stderr)
        sys.exit(1)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
