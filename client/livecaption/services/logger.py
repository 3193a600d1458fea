"""Bounded in-memory log of client status lines."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import List

LOGGER = logging.getLogger("livecaption.client")


class LogBuffer:
    """Keeps the latest status lines for the operator surface.

    Every line is also forwarded to the ``livecaption.client`` logger.
    """

    def __init__(self, max_lines: int = 200) -> None:
        self._lines: deque[str] = deque(maxlen=max(1, max_lines))
        self._lock = threading.Lock()

    def add(self, message: str, level: int = logging.INFO) -> None:
        LOGGER.log(level, message)
        stamp = datetime.now().strftime("%H:%M:%S")
        with self._lock:
            self._lines.append(f"[{stamp}] {message}")

    def get(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()
