"""Transcription + translation capability.

The orchestrator only sees :class:`SpeechCapability`; the concrete backends
(OpenAI for both operations, or local faster-whisper for transcription) are
chosen from settings and injected per request, so tests can substitute a fake.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Mapping, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from ..errors import CapabilityError
from ..metrics import CAPABILITY_LATENCY
from ..settings import APISettings
from .whisper_engine import WhisperEngine

LOGGER = logging.getLogger("livecaption.capability")

LANGUAGE_NAMES: Dict[str, str] = {
    "ar": "Arabic",
    "de": "German",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "he": "Hebrew",
    "ru": "Russian",
}


class Transcriber(Protocol):
    name: str

    async def transcribe(self, audio: bytes, filename: str, language: str) -> str: ...


class Translator(Protocol):
    name: str

    async def translate(
        self, text: str, glossary: Mapping[str, str], prior_context: Optional[str]
    ) -> str: ...


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code.lower(), code)


def _mime_type(filename: str) -> str:
    suffix = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return {
        "flac": "audio/flac",
        "mp3": "audio/mpeg",
        "ogg": "audio/ogg",
        "wav": "audio/wav",
        "m4a": "audio/mp4",
    }.get(suffix, "audio/webm")


class OpenAITranscriber:
    def __init__(self, client: AsyncOpenAI, model: str) -> None:
        self.client = client
        self.model = model
        self.name = f"openai:{model}"

    async def transcribe(self, audio: bytes, filename: str, language: str) -> str:
        transcript = await self.client.audio.transcriptions.create(
            model=self.model,
            file=(filename, audio, _mime_type(filename)),
            language=language,
            response_format="text",
        )
        if isinstance(transcript, str):
            return transcript
        return getattr(transcript, "text", "") or ""


class OpenAITranslator:
    """Chat-completion translator that treats the glossary as hard directives."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        *,
        source_language: str,
        target_language: str,
        temperature: float = 0.4,
        max_tokens: int = 2000,
    ) -> None:
        self.client = client
        self.model = model
        self.source_language = source_language
        self.target_language = target_language
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.name = f"openai:{model}"

    def system_prompt(self, glossary: Mapping[str, str]) -> str:
        source = language_name(self.source_language)
        target = language_name(self.target_language)
        prompt = (
            f"You are a live interpreter translating {source} speech into {target} "
            "for captions at a live event.\n"
            "Convey the speaker's meaning in fluent, natural "
            f"{target} rather than a word-for-word rendering. The input is "
            "transcribed speech: drop filler words and false starts, keep the "
            "speaker's tone, and leave a sentence unfinished if the speaker was "
            "cut off.\n"
            f"Output only the {target} translation, with no notes or quotes."
        )
        if glossary:
            terms = "\n".join(f'- "{src}" -> "{dst}"' for src, dst in glossary.items())
            prompt += f"\n\nGlossary (always use these translations):\n{terms}"
        return prompt

    def user_prompt(self, text: str, prior_context: Optional[str]) -> str:
        source = language_name(self.source_language)
        target = language_name(self.target_language)
        context = f'Previous context: "{prior_context}"\n' if prior_context else ""
        return f"{context}Translate this {source} speech to natural {target}:\n\n{text}"

    async def translate(
        self, text: str, glossary: Mapping[str, str], prior_context: Optional[str]
    ) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": self.system_prompt(glossary)},
                {"role": "user", "content": self.user_prompt(text, prior_context)},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class SpeechCapability:
    """Facade with the two capability methods used by the orchestrator."""

    def __init__(self, transcriber: Transcriber, translator: Translator) -> None:
        self.transcriber = transcriber
        self.translator = translator

    @property
    def name(self) -> str:
        return f"{self.transcriber.name}+{self.translator.name}"

    async def transcribe(self, audio: bytes, filename: str, language: str) -> str:
        start = time.perf_counter()
        try:
            return await self.transcriber.transcribe(audio, filename, language)
        except CapabilityError:
            raise
        except (OpenAIError, RuntimeError, ValueError, OSError) as exc:
            LOGGER.error("Transcription failed (%s): %s", self.transcriber.name, exc)
            raise CapabilityError(f"Transcription failed: {exc}") from exc
        finally:
            CAPABILITY_LATENCY.labels(operation="transcribe").observe(time.perf_counter() - start)

    async def translate(
        self, text: str, glossary: Mapping[str, str], prior_context: Optional[str]
    ) -> str:
        start = time.perf_counter()
        try:
            return await self.translator.translate(text, glossary, prior_context)
        except CapabilityError:
            raise
        except (OpenAIError, RuntimeError, ValueError, OSError) as exc:
            LOGGER.error("Translation failed (%s): %s", self.translator.name, exc)
            raise CapabilityError(f"Translation failed: {exc}") from exc
        finally:
            CAPABILITY_LATENCY.labels(operation="translate").observe(time.perf_counter() - start)


def build_capability(settings: APISettings) -> SpeechCapability:
    if not settings.openai_api_key:
        raise CapabilityError("OPENAI_API_KEY is missing")
    client = AsyncOpenAI(api_key=settings.openai_api_key)
    translator = OpenAITranslator(
        client,
        settings.openai_translate_model,
        source_language=settings.source_language,
        target_language=settings.target_language,
        temperature=settings.translate_temperature,
        max_tokens=settings.translate_max_tokens,
    )
    if settings.transcribe_backend == "local":
        transcriber: Transcriber = WhisperEngine(settings)
    elif settings.transcribe_backend == "openai":
        transcriber = OpenAITranscriber(client, settings.openai_transcribe_model)
    else:
        raise ValueError(f"Unknown TRANSCRIBE_BACKEND: {settings.transcribe_backend}")
    LOGGER.info("Capability ready: %s -> %s", transcriber.name, translator.name)
    return SpeechCapability(transcriber, translator)
