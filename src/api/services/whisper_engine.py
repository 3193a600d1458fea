"""Lazy local Whisper (faster-whisper) transcriber."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from typing import Iterable

from ..errors import CapabilityError
from ..settings import APISettings

LOGGER = logging.getLogger("livecaption.whisper")


class WhisperEngine:
    """Loads a faster-whisper model on first use and transcribes whole segments."""

    name = "faster-whisper"

    def __init__(self, settings: APISettings) -> None:
        self.settings = settings
        self._lock = threading.Lock()
        self._model = None

    def _load_model(self):
        if self._model is None:
            with self._lock:
                if self._model is None:
                    from faster_whisper import WhisperModel

                    try:
                        self._model = WhisperModel(
                            self.settings.whisper_model,
                            device=self.settings.whisper_device,
                            compute_type=self.settings.whisper_compute_type,
                        )
                    except Exception as exc:  # pragma: no cover - hardware/env dep
                        LOGGER.error(
                            "Failed to load Whisper model '%s': %s",
                            self.settings.whisper_model,
                            exc,
                        )
                        raise CapabilityError(f"Whisper model unavailable: {exc}") from exc
                    LOGGER.info("Loaded Whisper model '%s' on %s", self.settings.whisper_model, self.settings.whisper_device)
        return self._model

    def transcribe_bytes(self, audio: bytes, language: str | None = None) -> str:
        model = self._load_model()
        segments, _info = model.transcribe(
            io.BytesIO(audio), language=language, beam_size=5, vad_filter=True
        )
        return _join_segments(segments)

    async def transcribe(self, audio: bytes, filename: str, language: str) -> str:
        return await asyncio.to_thread(self.transcribe_bytes, audio, language)


def _join_segments(segments: Iterable) -> str:
    pieces = [segment.text.strip() for segment in segments]
    return " ".join(piece for piece in pieces if piece).strip()
