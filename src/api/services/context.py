"""Trailing-text context from the previous chunk of an event."""

from __future__ import annotations

import logging
from typing import Optional

from src.stt_core.document_store import InMemoryDocumentStore

LOGGER = logging.getLogger("livecaption.context")


class ContextContinuity:
    """Hands the translator the tail of the preceding chunk's source text.

    Only the chunk at ``chunk_index - 1`` is consulted. When it was never
    persisted (degenerate segment, lost upload, still in flight) no context is
    returned and translation proceeds without it.
    """

    def __init__(self, store: InMemoryDocumentStore, max_chars: int = 100) -> None:
        self.store = store
        self.max_chars = max(0, int(max_chars))

    def trailing_context(self, event_id: str, chunk_index: int) -> Optional[str]:
        if chunk_index <= 0 or self.max_chars == 0:
            return None
        previous = self.store.get_chunk(event_id, chunk_index - 1)
        if previous is None:
            LOGGER.debug("No predecessor for %s#%d; translating without context", event_id, chunk_index)
            return None
        tail = previous.source_text[-self.max_chars :]
        return tail or None
