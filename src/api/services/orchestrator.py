"""Turn one uploaded audio segment into a persisted bilingual chunk."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from src.stt_core.document_store import InMemoryDocumentStore
from src.stt_core.redis_io import RedisPublisher

from ..errors import CapabilityError, InputError, NotFound
from ..metrics import CHUNK_COUNTER
from ..schemas import Chunk
from ..settings import APISettings
from .capability import SpeechCapability
from .context import ContextContinuity
from .hallucination import clean_transcript

LOGGER = logging.getLogger("livecaption.orchestrator")


class TranscriptionOrchestrator:
    """Transcribe, translate and store a single segment.

    Requests are independent of each other: the only shared state is the
    document store, and each chunk is written under its own deterministic id,
    so concurrent requests for neighbouring indices never conflict and a
    retried request simply overwrites the same document.
    """

    def __init__(
        self,
        settings: APISettings,
        store: InMemoryDocumentStore,
        capability: SpeechCapability,
        publisher: Optional[RedisPublisher] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.capability = capability
        self.context = ContextContinuity(store, settings.context_chars)
        self._publisher = publisher

    async def process_segment(
        self,
        event_id: str,
        chunk_index: int,
        audio: bytes,
        start_ms: int = 0,
        end_ms: int = 0,
        filename: str | None = None,
    ) -> Optional[Chunk]:
        """Return the stored chunk, or ``None`` when the segment carried no speech."""

        self._validate(event_id, chunk_index, audio, start_ms, end_ms)
        event = self.store.get_event(event_id)
        if event is None:
            raise NotFound(f"Event not found: {event_id}")
        glossary = dict(event.glossary)
        prior_context = self.context.trailing_context(event_id, chunk_index)

        try:
            raw_source = await self.capability.transcribe(
                audio, filename or f"chunk_{chunk_index}.webm", self.settings.source_language
            )
            source_text = clean_transcript(raw_source)
            if not source_text:
                return self._degenerate(event_id, chunk_index, "no speech")

            target_text = (
                await self.capability.translate(source_text, glossary, prior_context)
            ).strip()
        except CapabilityError:
            CHUNK_COUNTER.labels(outcome="error").inc()
            raise
        if not target_text:
            return self._degenerate(event_id, chunk_index, "empty translation")

        chunk = Chunk(
            id=Chunk.make_id(event_id, chunk_index),
            event_id=event_id,
            chunk_index=chunk_index,
            source_text=source_text,
            target_text=target_text,
            start_time=start_ms,
            end_time=end_ms,
            created_at=int(time.time() * 1000),
        )
        await asyncio.to_thread(self.store.put_chunk, chunk)
        CHUNK_COUNTER.labels(outcome="persisted").inc()
        LOGGER.info(
            "Stored %s#%d (%d-%d ms, context=%s)",
            event_id,
            chunk_index,
            start_ms,
            end_ms,
            "yes" if prior_context else "no",
        )
        await self._publish(chunk)
        return chunk

    def _validate(
        self, event_id: str, chunk_index: int, audio: bytes, start_ms: int, end_ms: int
    ) -> None:
        if not event_id:
            raise InputError("eventId is required")
        if chunk_index < 0:
            raise InputError("chunkIndex must be a non-negative integer")
        if not audio:
            raise InputError("audio payload is empty")
        if end_ms < start_ms:
            raise InputError("endTime must not be earlier than startTime")

    def _degenerate(self, event_id: str, chunk_index: int, reason: str) -> None:
        CHUNK_COUNTER.labels(outcome="degenerate").inc()
        LOGGER.info("Dropped %s#%d: %s", event_id, chunk_index, reason)
        return None

    async def _publish(self, chunk: Chunk) -> None:
        if not self._publisher:
            return
        try:
            await self._publisher.publish(chunk.model_dump(by_alias=True, mode="json"))
        except Exception as exc:
            LOGGER.warning("Redis publish failed for %s: %s", chunk.id, exc)
