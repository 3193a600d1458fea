"""Redis stream publisher for persisted chunks."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from redis import asyncio as aioredis

LOGGER = logging.getLogger("livecaption.redis")


class RedisPublisher:
    """Appends each persisted chunk to a Redis stream, one entry per chunk.

    Subscribers read the stream in insertion order and re-sort on
    ``chunkIndex``; entries are never edited after ``XADD``.
    """

    def __init__(self, url: str, stream: str, *, maxlen: int = 10_000) -> None:
        self.url = url
        self.stream = stream
        self.maxlen = maxlen
        self._client = aioredis.from_url(url, decode_responses=True)

    async def publish(self, payload: Dict[str, Any]) -> str:
        fields = {
            "event_id": str(payload.get("eventId", "")),
            "chunk_index": str(payload.get("chunkIndex", "")),
            "payload": json.dumps(payload, ensure_ascii=False),
        }
        entry_id = await self._client.xadd(self.stream, fields, maxlen=self.maxlen, approximate=True)
        LOGGER.debug("Published chunk %s to %s as %s", fields["chunk_index"], self.stream, entry_id)
        return entry_id

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()
