"""Capture handles that feed PCM blocks to the transcoder."""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Optional, Protocol

import numpy as np
import soundfile as sf


class MicrophoneError(RuntimeError):
    """The capture device could not be acquired or stopped delivering audio."""


class AudioSource(Protocol):
    sample_rate: int

    def read(self, frames: int) -> Optional[np.ndarray]: ...

    def request_stop(self) -> None: ...

    def close(self) -> None: ...


def _to_mono(data: np.ndarray) -> np.ndarray:
    if data.ndim == 1:
        return data
    return data[:, 0]


class MicrophoneSource:
    """Live input stream owned by exactly one recording session.

    PortAudio hands blocks to a callback that queues them and ``read`` only
    touches the queue, so the stream is never read and closed concurrently.
    """

    def __init__(
        self,
        sample_rate: int = 16_000,
        channels: int = 1,
        device: str | int | None = None,
        *,
        poll_timeout: float = 0.1,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self.poll_timeout = poll_timeout
        self._stream = None
        self._blocks: "queue.Queue[np.ndarray]" = queue.Queue()
        self._carry = np.zeros(0, dtype=np.int16)
        self._stop = threading.Event()

    def open(self) -> "MicrophoneSource":
        if self._stream is not None:
            return self
        self._stop.clear()
        try:
            import sounddevice as sd

            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                callback=self._on_block,
            )
            stream.start()
        except Exception as exc:
            raise MicrophoneError(f"Microphone unavailable: {exc}") from exc
        self._stream = stream
        return self

    def _on_block(self, indata, frames, time_info, status) -> None:
        if not self._stop.is_set():
            self._blocks.put(_to_mono(np.array(indata, dtype=np.int16)))

    def read(self, frames: int) -> Optional[np.ndarray]:
        """Collect ``frames`` samples, or return ``None`` once a stop is requested."""
        if self._stream is None:
            return None
        pieces = [self._carry]
        collected = len(self._carry)
        while collected < frames:
            if self._stop.is_set():
                return None
            try:
                block = self._blocks.get(timeout=self.poll_timeout)
            except queue.Empty:
                continue
            pieces.append(block)
            collected += len(block)
        pcm = np.concatenate(pieces)
        self._carry = pcm[frames:]
        return pcm[:frames]

    def request_stop(self) -> None:
        self._stop.set()

    def close(self) -> None:
        self._stop.set()
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()
        self._blocks = queue.Queue()
        self._carry = np.zeros(0, dtype=np.int16)


class FileSource:
    """Replays an audio file as if it were a live capture."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        try:
            self._file: Optional[sf.SoundFile] = sf.SoundFile(str(self.path))
        except (RuntimeError, OSError) as exc:
            raise MicrophoneError(f"Cannot open {self.path}: {exc}") from exc
        self.sample_rate = self._file.samplerate
        self._stopped = False

    def read(self, frames: int) -> Optional[np.ndarray]:
        if self._file is None or self._stopped:
            return None
        data = self._file.read(frames, dtype="int16")
        if data.size == 0:
            return None
        return _to_mono(data)

    def request_stop(self) -> None:
        self._stopped = True

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
