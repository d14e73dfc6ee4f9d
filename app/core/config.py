"""
Application configuration — loaded from environment variables / .env file.
"""
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # LLM — any OpenAI-compatible endpoint (defaults to Gemini's)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gemini-2.0-flash-001"
    OPENAI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"

    # Supabase (candidate interviews)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    SUPABASE_CANDIDATES_TABLE: str = "interviews"
    SUPABASE_EMAILS_TABLE: str = "incoming_emails"
    CANDIDATE_PAGE_SIZE: int = 1000

    # PDF.co — job description PDF → text. Local extraction when unset.
    PDFCO_API_KEY: str = ""
    PDFCO_BASE_URL: str = "https://api.pdf.co/v1"

    # Matching
    TOP_K_RESULTS: int = 10
    # Proper-noun skills that only match exactly or as a whole word
    SPECIFIC_TERMS: str = "qiwa,gosi,ajeer,muqeem,absher,tamkeen"
    AI_CACHE_CAPACITY: int = 1000

    # Resumes
    RESUME_FETCH_TIMEOUT_SECONDS: float = 10.0
    RESUME_SCAN_MAX_DEPTH: int = 8

    # Report
    REPORT_WRAP_COLUMNS: int = 100
    REPORT_MAX_FIELD_CHARS: int = 1500
    RTL_FONT_PATH: str = "./fonts/Amiri-Regular.ttf"

    # Outbound automation webhook
    WEBHOOK_URL: str = ""
    WEBHOOK_RETRIES: int = 0
    WEBHOOK_TIMEOUT_SECONDS: float = 15.0

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def specific_terms(self) -> frozenset[str]:
        return frozenset(
            t.strip().lower() for t in self.SPECIFIC_TERMS.split(",") if t.strip()
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
