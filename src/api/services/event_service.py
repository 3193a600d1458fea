"""Event lifecycle: creation, listing, status and glossary transitions."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Dict, List, Optional

from src.stt_core.document_store import InMemoryDocumentStore

from ..errors import InputError, NotFound
from ..schemas import Chunk, Event, EventStatus, EventWithChunks, GlossaryMode

LOGGER = logging.getLogger("livecaption.events")


def _now_ms() -> int:
    return int(time.time() * 1000)


class EventService:
    def __init__(self, store: InMemoryDocumentStore, *, list_limit: int = 50) -> None:
        self.store = store
        self.list_limit = list_limit

    def create_event(self, name: str, glossary: Optional[Dict[str, str]] = None) -> Event:
        name = (name or "").strip()
        if not name:
            raise InputError("Event name is required")
        event = Event(
            id=uuid.uuid4().hex,
            name=name,
            status=EventStatus.IDLE,
            glossary=_clean_glossary(glossary or {}),
            created_at=_now_ms(),
        )
        self.store.save_event(event)
        LOGGER.info("Created event %s (%s)", event.id, event.name)
        return event

    def list_events(self) -> List[Event]:
        return self.store.list_events(self.list_limit)

    def get_event(self, event_id: str) -> Event:
        event = self.store.get_event(event_id)
        if event is None:
            raise NotFound(f"Event not found: {event_id}")
        return event

    def get_event_with_chunks(self, event_id: str) -> EventWithChunks:
        event = self.get_event(event_id)
        chunks = self.store.list_chunks(event_id)
        return EventWithChunks(**event.model_dump(), chunks=chunks)

    def list_chunks(self, event_id: str, after: int = -1) -> List[Chunk]:
        return self.store.list_chunks(event_id, after)

    def update_event(
        self,
        event_id: str,
        status: Optional[EventStatus] = None,
        glossary: Optional[Dict[str, str]] = None,
        glossary_mode: GlossaryMode = GlossaryMode.REPLACE,
    ) -> Event:
        event = self.get_event(event_id)
        changes: Dict[str, object] = {}
        if status is not None:
            changes["status"] = status
            if status is EventStatus.LIVE:
                changes["started_at"] = _now_ms()
            elif status is EventStatus.ENDED:
                changes["ended_at"] = _now_ms()
            elif status is EventStatus.IDLE:
                self._warn_on_reset(event)
        if glossary is not None:
            cleaned = _clean_glossary(glossary)
            if glossary_mode is GlossaryMode.MERGE:
                cleaned = {**event.glossary, **cleaned}
            changes["glossary"] = cleaned
        if not changes:
            return event
        updated = event.model_copy(update=changes)
        self.store.save_event(updated)
        LOGGER.info("Event %s updated: %s", event_id, ", ".join(sorted(changes)))
        return updated

    def _warn_on_reset(self, event: Event) -> None:
        existing = self.store.count_chunks(event.id)
        if existing:
            # history is kept; restarted sessions continue after the last index
            LOGGER.warning(
                "Event %s reset to idle with %d stored chunk(s); history is kept",
                event.id,
                existing,
            )


def _clean_glossary(glossary: Dict[str, str]) -> Dict[str, str]:
    cleaned: Dict[str, str] = {}
    for source, target in glossary.items():
        source = str(source).strip()
        target = str(target).strip()
        if source and target:
            cleaned[source] = target
    return cleaned
