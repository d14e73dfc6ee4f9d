"""
Candidate Matcher — FastAPI application.
"""
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.ai import AIClient
from app.core.config import get_settings
from app.core.enrichment import BoundedCache
from app.core.pipeline import Services
from app.core.storage import CandidateStore
from app.api.routes import router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ───────────────────────────────────────────────────────────────
    http = httpx.AsyncClient(timeout=30.0)
    app.state.services = Services(
        ai=AIClient(settings),
        store=CandidateStore(settings),
        http=http,
        feedback_cache=BoundedCache(settings.AI_CACHE_CAPACITY),
        summary_cache=BoundedCache(settings.AI_CACHE_CAPACITY),
    )
    if not app.state.services.store.is_configured:
        logger.warning("Supabase is not configured; candidate queries will return nothing.")
    if not app.state.services.ai.configured:
        logger.warning("OPENAI_API_KEY not set; AI calls will use keyword fallbacks.")
    logger.info("Candidate Matcher started ✓")

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────────
    await http.aclose()
    logger.info("HTTP client closed.")


app = FastAPI(
    title="Candidate Matcher",
    description="""
## Candidate Matcher — job description → ranked candidates → PDF report

| Step | Description |
|------|-------------|
| **Skills** | LLM extracts skills from the job description (keyword fallback) |
| **Match** | Exact / whole-word skill matching against Supabase interviews |
| **Enrich** | Skill summaries + feedback verdicts, de-duplicated and cached |
| **Report** | PDF with one section per candidate, resumes merged in |
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error shape: {"error": ...} ───────────────────────────────────────────────

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse({"error": f"{field}: {message}" if field else message}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"error": "Internal server error", "details": str(exc)},
        status_code=500,
    )


app.include_router(router, prefix="/api")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.APP_HOST, port=settings.APP_PORT, reload=True)
