"""
PDF report rendering.

Each candidate gets a formatted section (reportlab platypus). When the
candidate's own resume PDF was fetched, a separator page with their name and
the resume pages follow the section (PyPDF2). Fields written in Arabic script
are set right-aligned in a TTF font that carries those glyphs.
"""
import io
import logging
import re
import textwrap
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from app.core.config import Settings, get_settings
from app.core.feedback import Feedback

logger = logging.getLogger(__name__)

REPORT_TITLE = "Candidate Matching Report"
TRUNCATION_MARKER = "... (truncated)"

_RTL_RANGES = re.compile(
    r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]"
)


@dataclass
class ReportCandidate:
    candidate_name: str
    match_count: int
    matched_skills: list[str] = field(default_factory=list)
    summary: str = ""
    feedback_review: str = ""
    transcript: str = ""
    feedback: Optional[Feedback] = None
    email: str = ""
    resume_pdf: Optional[bytes] = None


# ── Text helpers ──────────────────────────────────────────────────────────────

def contains_rtl(text: str) -> bool:
    return bool(text) and _RTL_RANGES.search(text) is not None


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def wrap_text(text: str, width: int) -> str:
    return "\n".join(
        textwrap.fill(line, width=width) if line.strip() else ""
        for line in text.split("\n")
    )


def format_transcript(transcript: str) -> str:
    """Speaker tags → Question:/Answer:, one turn per line."""
    if not transcript:
        return "Not available"
    text = re.sub(r"assistant:\s*", "Question: ", transcript, flags=re.IGNORECASE)
    text = re.sub(r"user:\s*", "Answer: ", text, flags=re.IGNORECASE)
    turns = re.split(r"(?=Question:|Answer:|Interviewer:|Candidate:)", text)
    return "\n".join(t.strip() for t in turns if t.strip())


# ── Styles ────────────────────────────────────────────────────────────────────

@lru_cache()
def _rtl_font_name(font_path: str) -> str:
    if Path(font_path).is_file():
        pdfmetrics.registerFont(TTFont("RTLFont", font_path))
        return "RTLFont"
    logger.warning("RTL font not found at %s; Arabic text falls back to Helvetica", font_path)
    return "Helvetica"


@lru_cache()
def _styles(font_path: str) -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = ParagraphStyle("Body", parent=base["Normal"], fontSize=10, leading=14, spaceAfter=4)
    return {
        "title": ParagraphStyle("ReportTitle", parent=base["Title"], fontSize=18),
        "name": ParagraphStyle("CandidateName", parent=base["Heading1"], fontSize=14),
        "section": ParagraphStyle("SectionTitle", parent=base["Heading3"], fontSize=12, spaceBefore=10),
        "body": body,
        "rtl": ParagraphStyle("BodyRTL", parent=body, fontName=_rtl_font_name(font_path), alignment=TA_RIGHT),
        "email": ParagraphStyle("Email", parent=body, textColor=colors.HexColor("#0066cc")),
    }


def _paragraph(text: str, styles: dict[str, ParagraphStyle], settings: Settings, style: str = "body") -> Paragraph:
    text = wrap_text(truncate_text(text, settings.REPORT_MAX_FIELD_CHARS), settings.REPORT_WRAP_COLUMNS)
    if contains_rtl(text):
        style = "rtl"
    return Paragraph(escape(text).replace("\n", "<br/>"), styles[style])


# ── Rendering ─────────────────────────────────────────────────────────────────

def _section_story(
    c: ReportCandidate, index: int, styles: dict, settings: Settings, with_title: bool
) -> list:
    def para(text: str, style: str = "body") -> Paragraph:
        return _paragraph(text, styles, settings, style)

    story = []
    if with_title:
        story += [Paragraph(REPORT_TITLE, styles["title"]), Spacer(1, 6 * mm)]

    story.append(para(f"Candidate {index}: {c.candidate_name}", "name"))
    if c.email:
        story.append(Paragraph(escape(c.email), styles["email"]))

    story.append(Paragraph("Match Score", styles["section"]))
    story.append(para(f"Matched {c.match_count} skills"))

    story.append(Paragraph("Matched Skills", styles["section"]))
    for skill in c.matched_skills:
        story.append(para(f"• {skill}"))

    story.append(Paragraph("Summary", styles["section"]))
    story.append(para(c.summary or "No summary available"))

    story.append(Paragraph("Feedback Analysis", styles["section"]))
    story.append(para(c.feedback_review or "No analysis available"))

    story.append(Paragraph("Feedback", styles["section"]))
    if c.feedback is None:
        story.append(para("No feedback available"))
    else:
        for line in c.feedback.display_lines():
            story.append(para(line))

    story.append(Paragraph("Interview Transcript", styles["section"]))
    story.append(para(format_transcript(c.transcript)))
    return story


def _build_section(c: ReportCandidate, index: int, settings: Settings, with_title: bool) -> bytes:
    styles = _styles(settings.RTL_FONT_PATH)
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=A4,
        leftMargin=15 * mm, rightMargin=15 * mm, topMargin=15 * mm, bottomMargin=15 * mm,
        title=REPORT_TITLE,
    )
    doc.build(_section_story(c, index, styles, settings, with_title))
    return buf.getvalue()


def _separator_page(candidate_name: str, settings: Settings) -> bytes:
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4)
    width, height = A4
    font = _rtl_font_name(settings.RTL_FONT_PATH) if contains_rtl(candidate_name) else "Helvetica-Bold"
    pdf.setFont(font, 20)
    pdf.drawCentredString(width / 2, height / 2 + 12, candidate_name)
    pdf.setFont("Helvetica", 12)
    pdf.drawCentredString(width / 2, height / 2 - 12, "Resume / CV")
    pdf.showPage()
    pdf.save()
    return buf.getvalue()


def _append(writer: PdfWriter, data: bytes) -> None:
    for page in PdfReader(io.BytesIO(data)).pages:
        writer.add_page(page)


def _append_resume(writer: PdfWriter, c: ReportCandidate, settings: Settings) -> None:
    if not c.resume_pdf:
        return
    try:
        pages = list(PdfReader(io.BytesIO(c.resume_pdf)).pages)
    except Exception as e:
        logger.warning(f"Could not merge resume for {c.candidate_name}: {e}")
        return
    _append(writer, _separator_page(c.candidate_name, settings))
    for page in pages:
        writer.add_page(page)


def _write(writer: PdfWriter) -> bytes:
    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


def render_report(candidates: list[ReportCandidate], settings: Optional[Settings] = None) -> bytes:
    """Combined report: every candidate section followed by its resume."""
    settings = settings or get_settings()
    writer = PdfWriter()
    if not candidates:
        _append(writer, _build_section(ReportCandidate("No candidates", 0), 0, settings, with_title=True))
    for i, c in enumerate(candidates, start=1):
        _append(writer, _build_section(c, i, settings, with_title=(i == 1)))
        _append_resume(writer, c, settings)
    pdf = _write(writer)
    logger.info("Report generated: %d candidates, %d bytes", len(candidates), len(pdf))
    return pdf


def render_candidate_pdf(
    candidate: ReportCandidate, index: int = 1, settings: Optional[Settings] = None
) -> bytes:
    settings = settings or get_settings()
    writer = PdfWriter()
    _append(writer, _build_section(candidate, index, settings, with_title=True))
    _append_resume(writer, candidate, settings)
    return _write(writer)
