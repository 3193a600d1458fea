"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()


class FakeCapability:
    """Deterministic stand-in for the transcription/translation service.

    Audio payloads are looked up in ``transcripts``; unknown audio is treated
    as silence. Translation honours the glossary for exact matches and
    otherwise wraps the text as ``EN(<text>)``.
    """

    name = "fake"

    def __init__(self, transcripts: dict[bytes, str] | None = None) -> None:
        self.transcripts = dict(transcripts or {})
        self.transcribe_calls: list[tuple[bytes, str, str]] = []
        self.translate_calls: list[tuple[str, dict, str | None]] = []
        self.translation_override: str | None = None

    async def transcribe(self, audio: bytes, filename: str, language: str) -> str:
        self.transcribe_calls.append((audio, filename, language))
        return self.transcripts.get(audio, "")

    async def translate(self, text: str, glossary, prior_context):
        self.translate_calls.append((text, dict(glossary), prior_context))
        if self.translation_override is not None:
            return self.translation_override
        if text in glossary:
            return glossary[text]
        return f"EN({text})"


@pytest.fixture()
def fake_capability() -> FakeCapability:
    return FakeCapability(
        {
            b"speech-shalom": "שלום",
            b"speech-one": "אחד",
            b"speech-two": "שתיים",
            b"noise-thanks": "Thank you.",
            b"noise-dots": "...",
        }
    )
