"""Filter for transcription artifacts produced on silence or noise."""

from __future__ import annotations

import re
from typing import Iterable, Pattern

HALLUCINATION_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"^\s*$"),
    re.compile(r"^[\s\W_]+$"),
    re.compile(r"^thank you\.?$", re.IGNORECASE),
    re.compile(r"^thanks\.?$", re.IGNORECASE),
    re.compile(r"^you$", re.IGNORECASE),
    re.compile(r"^bye\.?$", re.IGNORECASE),
    re.compile(r"^okay\.?$", re.IGNORECASE),
    re.compile(r"^תודה\.?$"),
)


def is_hallucination(text: str | None, patterns: Iterable[Pattern[str]] = HALLUCINATION_PATTERNS) -> bool:
    trimmed = (text or "").strip()
    return any(pattern.match(trimmed) for pattern in patterns)


def clean_transcript(text: str | None) -> str:
    """Return the trimmed transcript, or ``""`` when it is a known artifact."""
    trimmed = (text or "").strip()
    if is_hallucination(trimmed):
        return ""
    return trimmed


__all__ = ["HALLUCINATION_PATTERNS", "clean_transcript", "is_hallucination"]
