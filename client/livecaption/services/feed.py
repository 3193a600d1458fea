"""Incremental, index-ordered caption feed for one event."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from ..config import CONFIG
from .logger import LogBuffer
from .network import ApiClient, ApiError

ChunksCallback = Callable[[List[Dict[str, Any]]], None]


class ChunkFeed:
    """Polls for chunks newer than the highest index seen so far.

    ``chunks`` only ever grows: new chunks are appended in ascending
    ``chunkIndex`` order and anything at or below the cursor is ignored, so
    a skipped index is never waited for or backfilled.
    """

    def __init__(
        self,
        client: ApiClient,
        event_id: str,
        logger: LogBuffer,
        *,
        poll_interval: float = CONFIG.poll_interval,
    ) -> None:
        self.client = client
        self.event_id = event_id
        self.logger = logger
        self.poll_interval = poll_interval
        self.chunks: List[Dict[str, Any]] = []
        self.cursor = -1
        self.status: Optional[str] = None
        self._stop = asyncio.Event()

    async def poll_once(self) -> List[Dict[str, Any]]:
        fetched = await self.client.fetch_chunks(self.event_id, after=self.cursor)
        return self.extend(fetched)

    def extend(self, fetched: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        fresh = sorted(
            (chunk for chunk in fetched if int(chunk["chunkIndex"]) > self.cursor),
            key=lambda chunk: int(chunk["chunkIndex"]),
        )
        accepted: List[Dict[str, Any]] = []
        for chunk in fresh:
            index = int(chunk["chunkIndex"])
            if index <= self.cursor:
                continue
            self.chunks.append(chunk)
            accepted.append(chunk)
            self.cursor = index
        return accepted

    async def refresh_status(self) -> Optional[str]:
        event = await self.client.get_event(self.event_id)
        self.status = event.get("status") if event else None
        return self.status

    async def follow(self, on_chunks: Optional[ChunksCallback] = None) -> List[Dict[str, Any]]:
        """Poll while the event is live; a single fetch otherwise.

        Transient errors are logged and the next poll resumes from the same
        cursor. Returns the full local sequence when following ends.
        """
        self._stop.clear()
        while not self._stop.is_set():
            try:
                status = await self.refresh_status()
                fresh = await self.poll_once()
            except ApiError as exc:
                if exc.status_code == 404:
                    self.logger.add(f"Event {self.event_id} not found", logging.ERROR)
                    raise
                self.logger.add(f"Poll failed: {exc}", logging.WARNING)
            else:
                if fresh and on_chunks:
                    on_chunks(fresh)
                if status != "live":
                    break
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
        return list(self.chunks)

    def stop(self) -> None:
        self._stop.set()
