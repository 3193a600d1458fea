"""Cut a continuous capture into independently decodable segments."""

from __future__ import annotations

import io
import logging
from typing import Iterator, Optional

import numpy as np
import soundfile as sf

from ..config import CONFIG
from ..services.logger import LogBuffer
from .source import AudioSource
from .types import EncodedSegment


class ChunkTranscoder:
    """Lazily yields one FLAC-encoded :class:`EncodedSegment` per interval.

    Each segment is a complete FLAC file, so the server can decode it without
    any state from earlier segments. The index advances for every captured
    interval, including the ones suppressed for being too small, which leaves
    a gap the server and feeds tolerate.
    """

    def __init__(
        self,
        source: AudioSource,
        *,
        segment_seconds: float = CONFIG.segment_seconds,
        min_segment_bytes: int = CONFIG.min_segment_bytes,
        first_index: int = 0,
        logger: Optional[LogBuffer] = None,
    ) -> None:
        if not CONFIG.min_segment_seconds <= segment_seconds <= CONFIG.max_segment_seconds:
            raise ValueError(
                f"segment_seconds must be between {CONFIG.min_segment_seconds} "
                f"and {CONFIG.max_segment_seconds}, got {segment_seconds}"
            )
        if first_index < 0:
            raise ValueError("first_index must be non-negative")
        self.source = source
        self.segment_seconds = segment_seconds
        self.min_segment_bytes = max(0, int(min_segment_bytes))
        self.sample_rate = source.sample_rate
        self.logger = logger
        self._next_index = first_index
        self._samples_emitted = 0
        self._iterator: Optional[Iterator[EncodedSegment]] = None

    @property
    def frames_per_segment(self) -> int:
        return int(round(self.sample_rate * self.segment_seconds))

    @property
    def next_index(self) -> int:
        return self._next_index

    def __iter__(self) -> Iterator[EncodedSegment]:
        if self._iterator is None:
            self._iterator = self._generate()
        return self._iterator

    def _generate(self) -> Iterator[EncodedSegment]:
        while True:
            pcm = self.source.read(self.frames_per_segment)
            if pcm is None or pcm.size == 0:
                return
            index = self._next_index
            self._next_index += 1
            start_ms = self._samples_to_ms(self._samples_emitted)
            self._samples_emitted += len(pcm)
            end_ms = self._samples_to_ms(self._samples_emitted)
            data = self.encode(pcm)
            if len(data) < self.min_segment_bytes:
                self._log(f"Segment {index} below {self.min_segment_bytes} bytes; skipped", logging.DEBUG)
                continue
            yield EncodedSegment(index=index, data=data, start_ms=start_ms, end_ms=end_ms)

    def encode(self, pcm: np.ndarray) -> bytes:
        buffer = io.BytesIO()
        sf.write(buffer, pcm.astype(np.int16, copy=False), self.sample_rate, format="FLAC", subtype="PCM_16")
        return buffer.getvalue()

    def _samples_to_ms(self, samples: int) -> int:
        return int(samples * 1000 / self.sample_rate)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        if self.logger:
            self.logger.add(message, level)
