"""Segment upload endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..deps import get_orchestrator
from ..schemas import ProcessChunkResponse
from ..services.orchestrator import TranscriptionOrchestrator

router = APIRouter(prefix="/api", tags=["transcribe"])


@router.post("/transcribe", response_model=ProcessChunkResponse)
async def transcribe_segment(
    audio: UploadFile = File(...),
    event_id: str = Form(..., alias="eventId"),
    chunk_index: int = Form(..., alias="chunkIndex"),
    start_time: int = Form(0, alias="startTime"),
    end_time: int = Form(0, alias="endTime"),
    orchestrator: TranscriptionOrchestrator = Depends(get_orchestrator),
):
    payload = await audio.read()
    chunk = await orchestrator.process_segment(
        event_id,
        chunk_index,
        payload,
        start_ms=start_time,
        end_ms=end_time,
        filename=audio.filename,
    )
    return ProcessChunkResponse(success=True, data=chunk)
