"""Static defaults for the LiveCaption client."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ClientConfig:
    segment_seconds: int = 5
    min_segment_seconds: int = 3
    max_segment_seconds: int = 15
    min_segment_bytes: int = 1000
    sample_rate: int = 16_000
    channels: int = 1
    poll_interval: float = 2.0
    request_timeout: float = 30.0
    settings_file: str = "settings.json"
    log_history: int = 200


CONFIG = ClientConfig()
