"""Health endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from src.stt_core.document_store import InMemoryDocumentStore
from src.stt_core.redis_io import RedisPublisher

from ..deps import get_publisher, get_store
from ..schemas import HealthResponse
from ..settings import APISettings, get_settings

LOGGER = logging.getLogger("livecaption.health")

router = APIRouter(tags=["health"])


@router.get("/healthz", response_model=HealthResponse)
async def healthz(
    settings: APISettings = Depends(get_settings),
    store: InMemoryDocumentStore = Depends(get_store),
    publisher: Optional[RedisPublisher] = Depends(get_publisher),
):
    store_state = "ok" if store.ping() else "error"
    capability_state = "ok" if settings.openai_api_key else "missing-key"
    redis_state = "skip"
    if publisher is not None:
        try:
            redis_state = "ok" if await publisher.ping() else "error"
        except Exception as exc:
            LOGGER.warning("Redis ping failed: %s", exc)
            redis_state = "error"
    return HealthResponse(
        ok=store_state == "ok" and redis_state != "error",
        store=f"{store.backend}:{store_state}",
        capability=capability_state,
        redis=redis_state,
        timestamp=datetime.now(timezone.utc),
    )
