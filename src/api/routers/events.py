"""Event administration and chunk polling endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..deps import get_event_service
from ..schemas import (
    ChunkListResponse,
    CreateEventRequest,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    UpdateEventRequest,
)
from ..services.event_service import EventService

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=EventListResponse)
async def list_events(service: EventService = Depends(get_event_service)):
    return EventListResponse(data=service.list_events())


@router.post("", response_model=EventResponse)
async def create_event(
    body: CreateEventRequest,
    service: EventService = Depends(get_event_service),
):
    return EventResponse(data=service.create_event(body.name, body.glossary))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, service: EventService = Depends(get_event_service)):
    return EventResponse(data=service.get_event(event_id))


@router.get("/{event_id}/detail", response_model=EventDetailResponse)
async def get_event_detail(event_id: str, service: EventService = Depends(get_event_service)):
    return EventDetailResponse(data=service.get_event_with_chunks(event_id))


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    body: UpdateEventRequest,
    service: EventService = Depends(get_event_service),
):
    event = service.update_event(
        event_id,
        status=body.status,
        glossary=body.glossary,
        glossary_mode=body.glossary_mode,
    )
    return EventResponse(data=event)


@router.get("/{event_id}/chunks", response_model=ChunkListResponse)
async def list_chunks(
    event_id: str,
    after: int = Query(-1),
    service: EventService = Depends(get_event_service),
):
    return ChunkListResponse(data=service.list_chunks(event_id, after))
