"""API settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class APISettings(BaseModel):
    app_name: str = Field(default=os.getenv("APP_NAME", "LiveCaption API"))
    version: str = Field(default="1.0.0")
    data_dir: str = Field(default=os.getenv("DATA_DIR", "data"))
    store_backend: str = Field(default=os.getenv("STORE_BACKEND", "json"))
    store_path: str = Field(default=os.getenv("STORE_PATH", "data/livecaption.jsonl"))
    source_language: str = Field(default=os.getenv("SOURCE_LANGUAGE", "he"))
    target_language: str = Field(default=os.getenv("TARGET_LANGUAGE", "en"))
    context_chars: int = Field(default=int(os.getenv("CONTEXT_CHARS", "100")))
    max_events_listed: int = Field(default=int(os.getenv("MAX_EVENTS_LISTED", "50")))
    transcribe_backend: str = Field(default=os.getenv("TRANSCRIBE_BACKEND", "openai"))
    openai_api_key: str | None = Field(default=os.getenv("OPENAI_API_KEY"))
    openai_transcribe_model: str = Field(
        default=os.getenv("OPENAI_TRANSCRIBE_MODEL", "whisper-1")
    )
    openai_translate_model: str = Field(
        default=os.getenv("OPENAI_TRANSLATE_MODEL", "gpt-4o-mini")
    )
    translate_temperature: float = Field(
        default=float(os.getenv("TRANSLATE_TEMPERATURE", "0.4"))
    )
    translate_max_tokens: int = Field(default=int(os.getenv("TRANSLATE_MAX_TOKENS", "2000")))
    whisper_model: str = Field(default=os.getenv("WHISPER_MODEL", "small"))
    whisper_device: str = Field(default=os.getenv("WHISPER_DEVICE", "cpu"))
    whisper_compute_type: str = Field(
        default=os.getenv("WHISPER_COMPUTE_TYPE", "int8")
    )
    redis_url: str | None = Field(default=os.getenv("REDIS_URL"))
    redis_stream: str = Field(default=os.getenv("REDIS_STREAM", "livecaption:chunks"))
    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))
    log_dir: str = Field(default=os.getenv("LOG_DIR", "logs"))
    log_to_file: bool = Field(default=_env_bool("LOG_TO_FILE", "true"))


@lru_cache()
def get_settings() -> APISettings:
    return APISettings()
