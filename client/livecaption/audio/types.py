"""Dataclasses shared across the capture and upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(slots=True, frozen=True)
class EncodedSegment:
    """One self-contained audio file cut from the live capture."""

    index: int
    data: bytes
    start_ms: int
    end_ms: int
    mime_type: str = "audio/flac"

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def filename(self) -> str:
        suffix = "flac" if self.mime_type == "audio/flac" else "wav"
        return f"chunk_{self.index}.{suffix}"


class UploadState(str, Enum):
    SENT = "sent"
    EMPTY = "empty"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class UploadStatus:
    """Outcome of a single segment upload, reported to the status callback."""

    index: int
    state: UploadState
    chunk: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.state is UploadState.FAILED
