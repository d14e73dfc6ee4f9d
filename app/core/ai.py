"""
AI analyses over an OpenAI-compatible chat completions endpoint.

  summarize_skills   — 2-3 sentence profile summary of a candidate's skills
  analyze_feedback   — suitability verdict (✅ / ⚠️ / ❌) from interview feedback

Each analysis has a deterministic fallback used by the batch enricher when the
model call fails.
"""
import logging
from typing import Optional

from app.core.config import Settings
from app.core.feedback import Feedback

logger = logging.getLogger(__name__)


class AIUnavailableError(RuntimeError):
    """Raised when the model cannot be called or returns nothing usable."""


class AIClient:
    """Thin async wrapper around openai.AsyncOpenAI, created lazily."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.OPENAI_API_KEY
        self._model = settings.OPENAI_MODEL
        self._base_url = settings.OPENAI_BASE_URL
        self._client = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self):
        if self._client is None:
            import openai
            self._client = openai.AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
            )
        return self._client

    async def complete(self, prompt: str, temperature: float = 0.2) -> str:
        if not self._api_key:
            raise AIUnavailableError("OPENAI_API_KEY is not configured")

        resp = await self._get_client().chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        text = (resp.choices[0].message.content or "").strip()
        if not text:
            raise AIUnavailableError("Model returned an empty completion")
        return text


# ── Skill summary ─────────────────────────────────────────────────────────────

SUMMARY_PROMPT = """
You are an expert career consultant and HR professional. Create a comprehensive skill summary for a candidate.

Instructions:
- Analyze the skill list thoroughly
- Identify the candidate's primary strengths and expertise areas
- Highlight any unique or specialized skills
- Consider the overall skill level and breadth
- Write 2-3 detailed sentences that capture the candidate's professional profile
- Be specific about their technical capabilities and experience level

Skills: {skills}

Provide a detailed skill summary:"""


async def summarize_skills(ai: AIClient, skills: list[str]) -> str:
    return await ai.complete(SUMMARY_PROMPT.format(skills=", ".join(skills)), temperature=0.4)


def fallback_skill_summary(skills: list[str]) -> str:
    rest = len(skills) - 5
    extra = f"{rest} other areas" if rest > 0 else "various domains"
    return (
        f"Experienced professional with comprehensive skills in {', '.join(skills[:5])} "
        f"and additional expertise in {extra}."
    )


# ── Feedback analysis ─────────────────────────────────────────────────────────

FEEDBACK_PROMPT = """
You're an expert evaluating interview feedback quality.

Here is candidate interview feedback:
\"\"\"{feedback}\"\"\"
Does this feedback suggest any of the following?
- Poor technical skills
- Negative attitude
- Lack of communication
- Not a strong candidate
Answer with one of the following and explain why:
- ✅ Suitable based on feedback
- ⚠️ Warning: Some concerns found
- ❌ Not suitable based on feedback"""

NO_FEEDBACK = "⚠️ Warning: Some concerns found - No feedback data available."

SUITABLE = (
    "✅ Suitable based on feedback - Strong positive indicators across multiple assessment "
    "categories including technical skills, communication, and professional attitude."
)
NOT_SUITABLE = (
    "❌ Not suitable based on feedback - Multiple concerning indicators across various "
    "assessment areas including technical limitations, communication issues, and "
    "professional concerns."
)
MIXED = (
    "⚠️ Warning: Some concerns found - Mixed feedback with both positive and negative "
    "aspects that need to be addressed before considering the candidate suitable for the role."
)

_POSITIVE = (
    "excellent", "outstanding", "exceptional", "strong", "highly suitable",
    "demonstrates strong", "excellent technical", "clear communication",
    "high confidence", "positive attitude",
)
_NEGATIVE = (
    "poor", "limited", "struggles", "weak", "concerns", "problems", "difficulty",
    "lack of", "not suitable", "significant concerns", "poor technical",
    "communication problems",
)


async def analyze_feedback(ai: AIClient, feedback: Optional[Feedback]) -> str:
    if feedback is None:
        return NO_FEEDBACK
    text = feedback.prompt_text()
    logger.debug("Feedback text length: %d", len(text))
    return await ai.complete(FEEDBACK_PROMPT.format(feedback=text), temperature=0.3)


def classify_feedback_keywords(feedback: Optional[Feedback]) -> str:
    """Keyword heuristic used when the model is unavailable."""
    if feedback is None:
        return NO_FEEDBACK
    text = feedback.canonical().lower()
    positive = sum(1 for k in _POSITIVE if k in text)
    negative = sum(1 for k in _NEGATIVE if k in text)

    if positive > negative and positive >= 3:
        return SUITABLE
    if negative > positive and negative >= 3:
        return NOT_SUITABLE
    return MIXED
