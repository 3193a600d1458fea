"""Async HTTP client for the caption API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from ..audio.types import EncodedSegment
from ..config import CONFIG
from ..store.settings_store import SettingsStore


class ApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiClient:
    def __init__(
        self,
        settings: SettingsStore,
        *,
        timeout: float = CONFIG.request_timeout,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings_store = settings
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _url(self, path: str) -> str:
        base = self.settings_store.get().server_url.rstrip("/")
        if not base:
            raise ApiError("Server URL missing")
        return f"{base}{path}"

    async def _request(self, method: str, path: str, what: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, self._url(path), **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(f"{what} failed: {exc}") from exc
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400:
            detail = body.get("error") if isinstance(body, dict) else None
            raise ApiError(f"{what} failed: {detail or resp.status_code}", resp.status_code)
        if not isinstance(body, dict):
            raise ApiError(f"{what} failed: invalid response")
        if not body.get("success", False):
            raise ApiError(f"{what} failed: {body.get('error') or 'unknown error'}", resp.status_code)
        return body.get("data")

    async def test_connection(self) -> bool:
        try:
            resp = await self._client.get(self._url("/healthz"))
        except httpx.HTTPError as exc:
            raise ApiError(str(exc)) from exc
        return resp.status_code == 200

    async def upload_segment(self, segment: EncodedSegment, event_id: str) -> Optional[Dict[str, Any]]:
        """Send one segment; returns the stored chunk, or None for a silent segment."""
        payload = {
            "eventId": event_id,
            "chunkIndex": str(segment.index),
            "startTime": str(segment.start_ms),
            "endTime": str(segment.end_ms),
        }
        files = {"audio": (segment.filename, segment.data, segment.mime_type)}
        return await self._request(
            "POST", "/api/transcribe", f"Upload of chunk {segment.index}", data=payload, files=files
        )

    async def fetch_chunks(self, event_id: str, after: int = -1) -> List[Dict[str, Any]]:
        data = await self._request(
            "GET", f"/api/events/{event_id}/chunks", "Chunk poll", params={"after": after}
        )
        return list(data or [])

    async def get_event(self, event_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/events/{event_id}", "Event lookup")

    async def get_event_detail(self, event_id: str) -> Dict[str, Any]:
        """Event plus every stored chunk; for one-off reads, not polling."""
        return await self._request("GET", f"/api/events/{event_id}/detail", "Event detail")

    async def list_events(self) -> List[Dict[str, Any]]:
        return list(await self._request("GET", "/api/events", "Event listing") or [])

    async def create_event(self, name: str, glossary: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return await self._request(
            "POST", "/api/events", "Event creation", json={"name": name, "glossary": glossary or {}}
        )

    async def update_event(
        self,
        event_id: str,
        *,
        status: Optional[str] = None,
        glossary: Optional[Dict[str, str]] = None,
        merge_glossary: bool = False,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if status:
            body["status"] = status
        if glossary is not None:
            body["glossary"] = glossary
            body["glossaryMode"] = "merge" if merge_glossary else "replace"
        return await self._request("PATCH", f"/api/events/{event_id}", "Event update", json=body)

    async def close(self) -> None:
        await self._client.aclose()
