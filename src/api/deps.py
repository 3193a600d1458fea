"""FastAPI dependency providers."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from src.stt_core.document_store import InMemoryDocumentStore, open_store
from src.stt_core.redis_io import RedisPublisher

from .services.capability import SpeechCapability, build_capability
from .services.event_service import EventService
from .services.orchestrator import TranscriptionOrchestrator
from .settings import APISettings, get_settings


@lru_cache(maxsize=8)
def _store_for(backend: str, path: str) -> InMemoryDocumentStore:
    return open_store(backend, path)


@lru_cache(maxsize=8)
def _capability_for(settings_json: str) -> SpeechCapability:
    return build_capability(APISettings.model_validate_json(settings_json))


@lru_cache(maxsize=8)
def _publisher_for(url: str, stream: str) -> RedisPublisher:
    return RedisPublisher(url, stream)


def reset_dependency_caches() -> None:
    _store_for.cache_clear()
    _capability_for.cache_clear()
    _publisher_for.cache_clear()


def get_store(settings: APISettings = Depends(get_settings)) -> InMemoryDocumentStore:
    return _store_for(settings.store_backend, settings.store_path)


def get_capability(settings: APISettings = Depends(get_settings)) -> SpeechCapability:
    return _capability_for(settings.model_dump_json())


def get_publisher(settings: APISettings = Depends(get_settings)) -> Optional[RedisPublisher]:
    if not settings.redis_url:
        return None
    return _publisher_for(settings.redis_url, settings.redis_stream)


def get_event_service(
    settings: APISettings = Depends(get_settings),
    store: InMemoryDocumentStore = Depends(get_store),
) -> EventService:
    return EventService(store, list_limit=settings.max_events_listed)


def get_orchestrator(
    settings: APISettings = Depends(get_settings),
    store: InMemoryDocumentStore = Depends(get_store),
    capability: SpeechCapability = Depends(get_capability),
    publisher: Optional[RedisPublisher] = Depends(get_publisher),
) -> TranscriptionOrchestrator:
    return TranscriptionOrchestrator(settings, store, capability, publisher)
