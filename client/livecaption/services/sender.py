"""Fire-and-forget uploads of encoded segments."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Set

from ..audio.types import EncodedSegment, UploadState, UploadStatus
from .logger import LogBuffer
from .network import ApiClient, ApiError

StatusCallback = Callable[[UploadStatus], None]


class ChunkSender:
    """Uploads every segment as its own task.

    Segments are never awaited in order and never retried: a failed upload is
    reported once through ``on_status`` and the segment is dropped. Uploads
    cancelled by :meth:`cancel_all` report ``CANCELLED``, which callers must
    not treat as an error.
    """

    def __init__(
        self,
        client: ApiClient,
        logger: LogBuffer,
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        self.client = client
        self.logger = logger
        self.on_status = on_status
        self._tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(self, segment: EncodedSegment, event_id: str) -> asyncio.Task:
        task = asyncio.create_task(self._upload(segment, event_id), name=f"upload-{segment.index}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> int:
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self.logger.add(f"Cancelled {len(pending)} in-flight upload(s)")
        return len(pending)

    async def _upload(self, segment: EncodedSegment, event_id: str) -> UploadStatus:
        self.logger.add(f"Sending chunk {segment.index} ({segment.size} bytes)...", logging.DEBUG)
        try:
            chunk = await self.client.upload_segment(segment, event_id)
        except asyncio.CancelledError:
            self._report(UploadStatus(segment.index, UploadState.CANCELLED))
            raise
        except ApiError as exc:
            self.logger.add(f"Chunk {segment.index} failed: {exc}", logging.WARNING)
            status = UploadStatus(segment.index, UploadState.FAILED, error=str(exc))
        else:
            if chunk:
                self.logger.add(f"Chunk {segment.index} sent")
                status = UploadStatus(segment.index, UploadState.SENT, chunk=chunk)
            else:
                self.logger.add(f"Chunk {segment.index} had no speech", logging.DEBUG)
                status = UploadStatus(segment.index, UploadState.EMPTY)
        self._report(status)
        return status

    def _report(self, status: UploadStatus) -> None:
        if not self.on_status:
            return
        try:
            self.on_status(status)
        except Exception as exc:  # pragma: no cover
            self.logger.add(f"Status callback failed for chunk {status.index}: {exc}", logging.ERROR)
