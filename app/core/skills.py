"""
Skill extraction from a job description.

LangChain + OpenAI-compatible model → comma-separated skill list.
Any failure (no API key, network, empty answer) falls back to scanning the
description for a static list of common skills.
"""
import logging
import re
from typing import Optional

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

COMMON_SKILLS = [
    "javascript", "react", "typescript", "node.js", "python", "java", "sql", "html", "css",
    "angular", "vue.js", "next.js", "express.js", "mongodb", "postgresql", "mysql", "aws",
    "docker", "kubernetes", "git", "agile", "scrum", "jira", "figma", "adobe creative suite",
    "machine learning", "ai", "data science", "statistics", "excel", "powerpoint", "word",
    "communication", "leadership", "teamwork", "problem solving", "analytical thinking",
    "project management", "customer service", "sales", "marketing", "design", "ux/ui",
]

_SYSTEM_PROMPT = """\
You are an expert HR professional and technical recruiter. Your task is to extract ALL relevant skills from the job description.

Instructions:
- Extract ALL technical skills, soft skills, tools, platforms, frameworks, libraries, programming languages, methodologies, certifications, etc.
- Include both explicit skills mentioned and implicit skills that would be required
- Include synonyms, abbreviations, and related terms (e.g., AI/artificial intelligence, ML/machine learning, JS/JavaScript)
- Consider industry-specific skills and domain knowledge
- Return a comprehensive, comma-separated list with no duplicates and nothing else"""


def build_skill_chain(settings: Optional[Settings] = None):
    from langchain_openai import ChatOpenAI
    from langchain_core.output_parsers import StrOutputParser
    from langchain_core.prompts import ChatPromptTemplate

    settings = settings or get_settings()
    llm = ChatOpenAI(
        model=settings.OPENAI_MODEL,
        temperature=0.2,
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
    )
    prompt = ChatPromptTemplate.from_messages([
        ("system", _SYSTEM_PROMPT),
        ("human", 'Job description:\n"""{description}"""\n\nExtract ALL skills:'),
    ])
    return prompt | llm | StrOutputParser()


async def extract_skills(description: str, chain=None, settings: Optional[Settings] = None) -> list[str]:
    """
    Return lower-cased, de-duplicated job skills.

    `chain` is any runnable with `ainvoke({"description": ...}) -> str`;
    built from settings when omitted.
    """
    try:
        if chain is None:
            settings = settings or get_settings()
            if not settings.OPENAI_API_KEY:
                raise RuntimeError("OPENAI_API_KEY is not configured")
            chain = build_skill_chain(settings)
        text = await chain.ainvoke({"description": description})
        skills = parse_skill_list(text)
        if not skills:
            raise ValueError("model returned no skills")
        return skills
    except Exception as e:
        logger.warning(f"Skill extraction via LLM failed, using keyword fallback: {e}")
        return fallback_skills(description)


def parse_skill_list(text: str) -> list[str]:
    seen: dict[str, None] = {}
    for part in (text or "").split(","):
        skill = part.strip().lower()
        if skill:
            seen.setdefault(skill, None)
    return list(seen)


def fallback_skills(description: str) -> list[str]:
    lowered = (description or "").lower()
    return [s for s in COMMON_SKILLS if re.search(rf"(?<!\w){re.escape(s)}(?!\w)", lowered)]
