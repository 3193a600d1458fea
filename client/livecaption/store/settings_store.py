"""Persistent client settings (server URL and capture cadence)."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

from ..config import CONFIG


@dataclass(slots=True)
class AppSettings:
    server_url: str = ""
    segment_seconds: int = CONFIG.segment_seconds
    min_segment_bytes: int = CONFIG.min_segment_bytes
    poll_interval: float = CONFIG.poll_interval
    sample_rate: int = CONFIG.sample_rate
    device: str = ""


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, float):
        value = float(value)
    elif isinstance(default, int):
        value = int(value)
    else:
        value = str(value or "")
    if name == "server_url":
        return value.strip().rstrip("/")
    if name == "segment_seconds":
        return min(max(value, CONFIG.min_segment_seconds), CONFIG.max_segment_seconds)
    if name in ("min_segment_bytes", "poll_interval", "sample_rate") and value <= 0:
        return default
    return value


class SettingsStore:
    """JSON-backed settings; out-of-range values are clamped on every write."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._settings = self._load()

    def _load(self) -> AppSettings:
        settings = AppSettings()
        if not self.path.exists():
            return settings
        try:
            raw: Dict[str, Any] = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return settings
        self._apply(settings, raw)
        return settings

    @staticmethod
    def _apply(settings: AppSettings, values: Dict[str, Any]) -> None:
        defaults = AppSettings()
        for field in fields(AppSettings):
            if field.name not in values:
                continue
            default = getattr(defaults, field.name)
            try:
                value = _coerce(field.name, values[field.name], default)
            except (TypeError, ValueError):
                value = default
            setattr(settings, field.name, value)

    def get(self) -> AppSettings:
        return self._settings

    def update(self, **kwargs: Any) -> AppSettings:
        self._apply(self._settings, kwargs)
        self._persist()
        return self._settings

    def _persist(self) -> None:
        self.path.write_text(json.dumps(asdict(self._settings), indent=2), encoding="utf-8")
