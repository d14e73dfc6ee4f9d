"""
Interview feedback normalization.

The feedback column holds either a JSON object (one entry per assessment area)
or free text. Both are normalized into one of two variants:

  RawFeedback(text)            — free text, equivalent to {"raw": text}
  StructuredFeedback(fields)   — mapping of assessment area → text

`canonical()` gives a stable string used as the enrichment cache key, so a
plain string and the object {"raw": <same string>} share one entry.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass(frozen=True)
class RawFeedback:
    text: str

    def as_mapping(self) -> dict[str, str]:
        return {"raw": self.text}

    def canonical(self) -> str:
        return _canonical(self.as_mapping())

    def prompt_text(self) -> str:
        return self.text

    def display_lines(self) -> list[str]:
        return [self.text]


@dataclass(frozen=True)
class StructuredFeedback:
    fields: dict[str, str] = field(default_factory=dict)

    def as_mapping(self) -> dict[str, str]:
        return dict(self.fields)

    def canonical(self) -> str:
        return _canonical(self.fields)

    def prompt_text(self) -> str:
        raw = self.fields.get("raw")
        if raw:
            return raw
        return "\n\n".join(
            f"{key.replace('_', ' ').upper()}: {value}" for key, value in self.fields.items()
        )

    def display_lines(self) -> list[str]:
        return [f"{_title(key)}: {value}" for key, value in self.fields.items()]


Feedback = Union[RawFeedback, StructuredFeedback]


def normalize_feedback(value: Any) -> Optional[Feedback]:
    """Map a database feedback value onto a Feedback variant (None when empty)."""
    if value is None:
        return None
    if isinstance(value, dict):
        if not value:
            return None
        return StructuredFeedback({str(k): _stringify(v) for k, v in value.items()})
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = json.loads(text)
        except ValueError:
            return RawFeedback(text)
        if isinstance(parsed, dict):
            return normalize_feedback(parsed)
        return RawFeedback(text)
    return RawFeedback(_stringify(value))


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False)


def _canonical(mapping: dict[str, str]) -> str:
    return json.dumps(mapping, sort_keys=True, ensure_ascii=False)


def _title(key: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), key.replace("_", " "))
