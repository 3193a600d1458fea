"""Operator/viewer client wiring: settings, API client, session and feed."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .audio.source import AudioSource, FileSource, MicrophoneSource
from .audio.types import UploadState, UploadStatus
from .config import CONFIG
from .services.feed import ChunkFeed
from .services.logger import LogBuffer
from .services.network import ApiClient
from .services.sender import ChunkSender
from .services.session import RecordingSession
from .store.caption_store import CaptionStore
from .store.settings_store import SettingsStore

Printer = Callable[[str], None]


class LiveCaptionApp:
    def __init__(
        self,
        base_dir: Path | None = None,
        *,
        api_client: Optional[ApiClient] = None,
        printer: Printer = print,
    ) -> None:
        self.base_dir = Path(base_dir or Path.home() / ".livecaption")
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.settings_store = SettingsStore(self.base_dir / CONFIG.settings_file)
        self.logger = LogBuffer(CONFIG.log_history)
        self.api_client = api_client or ApiClient(self.settings_store)
        self.printer = printer
        self.failed_chunks: List[int] = []

    def configure(self, **changes: Any) -> None:
        values = {key: value for key, value in changes.items() if value is not None}
        if values:
            self.settings_store.update(**values)
            self.logger.add("Settings saved: " + ", ".join(sorted(values)))

    async def create_event(self, name: str, glossary: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        event = await self.api_client.create_event(name, glossary)
        self.logger.add(f"Created event {event['id']}")
        return event

    async def set_status(self, event_id: str, status: str) -> Dict[str, Any]:
        event = await self.api_client.update_event(event_id, status=status)
        self.logger.add(f"Event {event_id} is now {event['status']}")
        return event

    async def resume_index(self, event_id: str) -> int:
        """Index to record from: one past the highest chunk already stored."""
        event = await self.api_client.get_event_detail(event_id)
        indices = [int(chunk["chunkIndex"]) for chunk in event.get("chunks") or []]
        return max(indices) + 1 if indices else 0

    def build_session(self, source_factory: Callable[[], AudioSource]) -> RecordingSession:
        settings = self.settings_store.get()
        sender = ChunkSender(self.api_client, self.logger, on_status=self._on_upload_status)
        return RecordingSession(
            source_factory,
            sender,
            self.logger,
            segment_seconds=settings.segment_seconds,
            min_segment_bytes=settings.min_segment_bytes,
            on_error=lambda message: self.printer(f"! {message}"),
        )

    def microphone_factory(self) -> Callable[[], AudioSource]:
        settings = self.settings_store.get()
        device: str | int | None = settings.device or None
        if isinstance(device, str) and device.isdigit():
            device = int(device)
        return lambda: MicrophoneSource(settings.sample_rate, CONFIG.channels, device).open()

    async def record(self, event_id: str, audio_file: Optional[Path] = None) -> None:
        """Set the event live and stream segments until interrupted.

        With ``audio_file`` the file is replayed instead of the microphone and
        recording ends once it is exhausted and every upload has finished.
        """
        factory = (lambda: FileSource(audio_file)) if audio_file else self.microphone_factory()
        session = self.build_session(factory)
        first_index = await self.resume_index(event_id)
        await self.set_status(event_id, "live")
        try:
            await session.start(event_id, first_index=first_index)
            await session.wait()
            await session.sender.drain()
        finally:
            await session.stop()
            await self.set_status(event_id, "ended")

    async def follow(self, event_id: str, srt_path: Optional[Path] = None) -> List[Dict[str, Any]]:
        captions = CaptionStore(srt_path) if srt_path else None
        feed = ChunkFeed(
            self.api_client,
            event_id,
            self.logger,
            poll_interval=self.settings_store.get().poll_interval,
        )

        def render(chunks: List[Dict[str, Any]]) -> None:
            for chunk in chunks:
                self.printer(f"[{chunk['chunkIndex']}] {chunk['targetText']}")
            if captions:
                captions.append(chunks)

        return await feed.follow(render)

    def _on_upload_status(self, status: UploadStatus) -> None:
        if status.state is UploadState.FAILED:
            self.failed_chunks.append(status.index)
            self.printer(f"! chunk {status.index} lost: {status.error}")
        elif status.state is UploadState.SENT and status.chunk:
            self.printer(f"[{status.index}] {status.chunk.get('sourceText', '')}")

    async def close(self) -> None:
        await self.api_client.close()
        logging.getLogger("livecaption.client").debug("Client closed")
