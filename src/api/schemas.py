"""Pydantic schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EventStatus(str, Enum):
    IDLE = "idle"
    LIVE = "live"
    ENDED = "ended"


class GlossaryMode(str, Enum):
    REPLACE = "replace"
    MERGE = "merge"


class Event(CamelModel):
    id: str
    name: str
    status: EventStatus = EventStatus.IDLE
    glossary: Dict[str, str] = Field(default_factory=dict)
    created_at: int = Field(alias="createdAt")
    started_at: Optional[int] = Field(default=None, alias="startedAt")
    ended_at: Optional[int] = Field(default=None, alias="endedAt")


class Chunk(CamelModel):
    """Persisted bilingual record for one accepted audio segment."""

    id: str
    event_id: str = Field(alias="eventId")
    chunk_index: int = Field(alias="chunkIndex", ge=0)
    source_text: str = Field(alias="sourceText")
    target_text: str = Field(alias="targetText")
    start_time: int = Field(default=0, alias="startTime")
    end_time: int = Field(default=0, alias="endTime")
    created_at: int = Field(alias="createdAt")

    @staticmethod
    def make_id(event_id: str, chunk_index: int) -> str:
        return f"{event_id}_{chunk_index}"


class EventWithChunks(Event):
    chunks: List[Chunk] = Field(default_factory=list)


class CreateEventRequest(CamelModel):
    name: str = ""
    glossary: Dict[str, str] = Field(default_factory=dict)


class UpdateEventRequest(CamelModel):
    status: Optional[EventStatus] = None
    glossary: Optional[Dict[str, str]] = None
    glossary_mode: GlossaryMode = Field(default=GlossaryMode.REPLACE, alias="glossaryMode")


class ProcessChunkResponse(CamelModel):
    success: bool = True
    data: Optional[Chunk] = None
    error: Optional[str] = None


class ChunkListResponse(CamelModel):
    success: bool = True
    data: List[Chunk] = Field(default_factory=list)


class EventResponse(CamelModel):
    success: bool = True
    data: Event


class EventDetailResponse(CamelModel):
    success: bool = True
    data: EventWithChunks


class EventListResponse(CamelModel):
    success: bool = True
    data: List[Event] = Field(default_factory=list)


class HealthResponse(BaseModel):
    ok: bool
    store: str
    capability: str
    redis: str
    timestamp: datetime
