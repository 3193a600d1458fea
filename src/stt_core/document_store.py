"""Document store for events and their chunks.

Events live in one collection; chunks live in a per-event sub-collection keyed
by chunk id, so a retried write for the same ``(event_id, chunk_index)``
overwrites rather than appends.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.api.schemas import Chunk, Event

LOGGER = logging.getLogger("livecaption.store")

Record = Tuple[str, Dict[str, Any]]


class InMemoryDocumentStore:
    """Process-local store, used for tests and single-worker deployments."""

    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: Dict[str, Dict[str, Any]] = {}
        self._chunks: Dict[str, Dict[str, Dict[str, Any]]] = {}

    # events -----------------------------------------------------------------
    def save_event(self, event: Event) -> Event:
        self._write("event", event.model_dump(by_alias=True, mode="json"))
        return event

    def get_event(self, event_id: str) -> Optional[Event]:
        with self._lock:
            raw = self._events.get(event_id)
        return Event.model_validate(raw) if raw is not None else None

    def list_events(self, limit: int = 50) -> List[Event]:
        with self._lock:
            raw_events = list(self._events.values())
        raw_events.sort(key=lambda item: item["createdAt"], reverse=True)
        return [Event.model_validate(raw) for raw in raw_events[:limit]]

    # chunks -----------------------------------------------------------------
    def put_chunk(self, chunk: Chunk) -> Chunk:
        self._write("chunk", chunk.model_dump(by_alias=True, mode="json"))
        return chunk

    def get_chunk(self, event_id: str, chunk_index: int) -> Optional[Chunk]:
        with self._lock:
            raw = self._chunks.get(event_id, {}).get(Chunk.make_id(event_id, chunk_index))
        return Chunk.model_validate(raw) if raw is not None else None

    def list_chunks(self, event_id: str, after: int = -1) -> List[Chunk]:
        with self._lock:
            raw_chunks = [
                raw for raw in self._chunks.get(event_id, {}).values() if raw["chunkIndex"] > after
            ]
        raw_chunks.sort(key=lambda item: item["chunkIndex"])
        return [Chunk.model_validate(raw) for raw in raw_chunks]

    def count_chunks(self, event_id: str) -> int:
        with self._lock:
            return len(self._chunks.get(event_id, {}))

    def ping(self) -> bool:
        return True

    # internals --------------------------------------------------------------
    def _write(self, kind: str, doc: Dict[str, Any]) -> None:
        with self._lock:
            self._record(kind, doc)
            self._apply(kind, doc)

    def _apply(self, kind: str, doc: Dict[str, Any]) -> None:
        if kind == "event":
            self._events[doc["id"]] = doc
            self._chunks.setdefault(doc["id"], {})
        elif kind == "chunk":
            self._chunks.setdefault(doc["eventId"], {})[doc["id"]] = doc
        else:
            raise ValueError(f"Unknown record kind: {kind}")

    def _records(self) -> Iterable[Record]:
        for doc in self._events.values():
            yield "event", doc
        for bucket in self._chunks.values():
            for doc in bucket.values():
                yield "chunk", doc

    def _record(self, kind: str, doc: Dict[str, Any]) -> None:
        """Durability hook; runs with the lock held, before memory changes."""


class JsonDocumentStore(InMemoryDocumentStore):
    """Append-only JSON-lines journal replayed on start.

    Every write appends one line, so a write costs the same however many
    chunks the event already has. Later lines win over earlier ones with the
    same id; :meth:`compact` rewrites the file with only the live documents.
    """

    backend = "json"

    def __init__(self, path: Path | str, *, compact_ratio: float = 2.0) -> None:
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.compact_ratio = compact_ratio
        lines = self._load()
        live = sum(1 for _ in self._records())
        if lines > max(live * compact_ratio, live + 100):
            self.compact()

    def _load(self) -> int:
        if not self.path.exists():
            return 0
        lines = 0
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                for number, line in enumerate(handle, start=1):
                    if not line.strip():
                        continue
                    lines += 1
                    try:
                        entry = json.loads(line)
                        self._apply(entry["kind"], entry["doc"])
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                        LOGGER.warning("Skipping unreadable record %s:%d (%s)", self.path, number, exc)
        except OSError as exc:
            LOGGER.error("Could not read store %s: %s", self.path, exc)
            raise
        return lines

    def _record(self, kind: str, doc: Dict[str, Any]) -> None:
        line = json.dumps({"kind": kind, "doc": doc}, ensure_ascii=False) + "\n"
        with self.path.open("a", encoding="utf-8") as handle:
            offset = handle.tell()
            try:
                handle.write(line)
                handle.flush()
            except OSError:
                handle.truncate(offset)
                raise

    def compact(self) -> None:
        """Rewrite the journal atomically with one line per live document."""
        with self._lock:
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                for kind, doc in self._records():
                    handle.write(json.dumps({"kind": kind, "doc": doc}, ensure_ascii=False) + "\n")
            os.replace(tmp_path, self.path)
        LOGGER.info("Compacted store %s", self.path)

    def ping(self) -> bool:
        return self.path.parent.exists() and os.access(self.path.parent, os.W_OK)


def open_store(backend: str, path: str | None = None) -> InMemoryDocumentStore:
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "json":
        if not path:
            raise ValueError("STORE_PATH is required for the json store backend")
        return JsonDocumentStore(path)
    raise ValueError(f"Unknown store backend: {backend}")


__all__ = ["InMemoryDocumentStore", "JsonDocumentStore", "open_store"]
