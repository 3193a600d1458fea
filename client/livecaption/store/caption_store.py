"""Append-only bilingual caption archive in SubRip (SRT) format."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable


class CaptionStore:
    """Write each received chunk as one subtitle cue.

    Cue timestamps are the chunk offsets relative to the event start; the cue
    text carries the target-language line, followed by the source line when
    ``include_source`` is set.
    """

    def __init__(self, path: Path, *, include_source: bool = True) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.include_source = include_source
        self._counter_path = self.path.with_suffix(self.path.suffix + ".idx")

    def append(self, chunks: Iterable[Dict[str, Any]]) -> int:
        chunks = list(chunks)
        if not chunks:
            return 0
        start_index = self._reserve_index(len(chunks))
        lines: list[str] = []
        for offset, chunk in enumerate(chunks):
            start_ts = self._format_timestamp(chunk.get("startTime", 0))
            end_ts = self._format_timestamp(chunk.get("endTime", 0))
            lines.extend([str(start_index + offset), f"{start_ts} --> {end_ts}"])
            lines.append(str(chunk.get("targetText", "")).strip())
            if self.include_source:
                lines.append(str(chunk.get("sourceText", "")).strip())
            lines.append("")
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write("\n".join(lines) + "\n")
        return len(chunks)

    def _reserve_index(self, count: int) -> int:
        current = 0
        if self._counter_path.exists():
            try:
                current = int(self._counter_path.read_text().strip() or "0")
            except ValueError:
                current = 0
        start = current + 1
        self._counter_path.write_text(str(current + count), encoding="utf-8")
        return start

    @staticmethod
    def _format_timestamp(offset_ms: Any) -> str:
        try:
            total = max(0, int(offset_ms))
        except (TypeError, ValueError):
            total = 0
        hours, rem = divmod(total, 3_600_000)
        minutes, rem = divmod(rem, 60_000)
        seconds, millis = divmod(rem, 1000)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


__all__ = ["CaptionStore"]
