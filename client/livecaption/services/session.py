"""Recording session: owns the capture device, the segment loop and the sender."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from ..audio.source import AudioSource, MicrophoneError
from ..audio.transcoder import ChunkTranscoder
from ..config import CONFIG
from .logger import LogBuffer
from .sender import ChunkSender

SourceFactory = Callable[[], AudioSource]


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


class RecordingSession:
    """Two-state machine around one capture device.

    ``start`` is the only IDLE -> RECORDING transition and ``stop`` the only
    way back. ``stop`` waits for the capture thread to return from the
    source, then closes the device and cancels every in-flight upload before
    the session reports IDLE again; calling ``start`` while recording runs a
    full ``stop`` first.
    """

    def __init__(
        self,
        source_factory: SourceFactory,
        sender: ChunkSender,
        logger: LogBuffer,
        *,
        segment_seconds: float = CONFIG.segment_seconds,
        min_segment_bytes: int = CONFIG.min_segment_bytes,
        on_error: Optional[Callable[[str], None]] = None,
        stop_timeout: float = 5.0,
    ) -> None:
        self.source_factory = source_factory
        self.sender = sender
        self.logger = logger
        self.segment_seconds = segment_seconds
        self.min_segment_bytes = min_segment_bytes
        self.on_error = on_error
        self.stop_timeout = stop_timeout
        self.state = SessionState.IDLE
        self.event_id: Optional[str] = None
        self._source: Optional[AudioSource] = None
        self._transcoder: Optional[ChunkTranscoder] = None
        self._loop_task: Optional[asyncio.Task] = None

    @property
    def is_recording(self) -> bool:
        return self.state is SessionState.RECORDING

    @property
    def next_index(self) -> Optional[int]:
        return self._transcoder.next_index if self._transcoder else None

    async def start(self, event_id: str, first_index: int = 0) -> None:
        if self.is_recording:
            self.logger.add("Session already recording; stopping it first", logging.WARNING)
            await self.stop()
        try:
            source = self.source_factory()
        except MicrophoneError as exc:
            self._fail(str(exc))
            raise
        self._source = source
        self._transcoder = ChunkTranscoder(
            source,
            segment_seconds=self.segment_seconds,
            min_segment_bytes=self.min_segment_bytes,
            first_index=first_index,
            logger=self.logger,
        )
        self.event_id = event_id
        self.state = SessionState.RECORDING
        self._loop_task = asyncio.create_task(self._run(event_id, self._transcoder), name="capture-loop")
        self.logger.add(f"Recording started for event {event_id} at chunk {first_index}")

    async def stop(self) -> None:
        if not self.is_recording:
            return
        source, self._source = self._source, None
        task, self._loop_task = self._loop_task, None
        if source is not None:
            source.request_stop()
        if task is not None and not task.done():
            # the reader thread must leave source.read before the device is closed
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=self.stop_timeout)
            except asyncio.TimeoutError:
                self.logger.add("Capture thread did not stop in time", logging.ERROR)
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        if source is not None:
            source.close()
        await self.sender.cancel_all()
        self.state = SessionState.IDLE
        self.logger.add("Recording stopped")

    async def wait(self) -> None:
        """Block until the capture loop ends (device closed or source exhausted)."""
        if self._loop_task is not None:
            await asyncio.gather(self._loop_task, return_exceptions=True)

    async def _run(self, event_id: str, transcoder: ChunkTranscoder) -> None:
        iterator = iter(transcoder)
        while True:
            try:
                segment = await asyncio.to_thread(next, iterator, None)
            except MicrophoneError as exc:
                self._fail(str(exc))
                break
            if segment is None:
                break
            self.sender.submit(segment, event_id)
        self.logger.add("Capture ended", logging.DEBUG)

    def _fail(self, message: str) -> None:
        self.logger.add(f"Capture error: {message}", logging.ERROR)
        if self.on_error:
            self.on_error(message)
