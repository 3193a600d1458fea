import asyncio
import re

import httpx

from client.livecaption.audio.types import EncodedSegment, UploadState
from client.livecaption.services.logger import LogBuffer
from client.livecaption.services.network import ApiClient
from client.livecaption.services.sender import ChunkSender
from client.livecaption.store.settings_store import SettingsStore


def _index_of(request: httpx.Request) -> int:
    match = re.search(rb'name="chunkIndex"\r\n\r\n(\d+)', request.content)
    assert match
    return int(match.group(1))


def _segment(index: int) -> EncodedSegment:
    return EncodedSegment(index=index, data=b"audio", start_ms=index * 5000, end_ms=(index + 1) * 5000)


def make_sender(tmp_path, handler, statuses):
    settings = SettingsStore(tmp_path / "settings.json")
    settings.update(server_url="https://api.example.com")
    client = ApiClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    return ChunkSender(client, LogBuffer(), on_status=statuses.append)


def test_sent_and_empty_statuses(tmp_path):
    statuses = []

    def handler(request):
        index = _index_of(request)
        data = {"chunkIndex": index, "sourceText": "s", "targetText": "t"} if index == 0 else None
        return httpx.Response(200, json={"success": True, "data": data})

    sender = make_sender(tmp_path, handler, statuses)

    async def scenario():
        sender.submit(_segment(0), "evt")
        sender.submit(_segment(1), "evt")
        await sender.drain()

    asyncio.run(scenario())
    by_index = {status.index: status for status in statuses}
    assert by_index[0].state is UploadState.SENT
    assert by_index[0].chunk["targetText"] == "t"
    assert by_index[1].state is UploadState.EMPTY
    assert sender.in_flight == 0


def test_failed_upload_is_reported_once_and_not_retried(tmp_path):
    statuses = []
    calls = []

    def handler(request):
        calls.append(_index_of(request))
        return httpx.Response(500, json={"success": False, "error": "boom"})

    sender = make_sender(tmp_path, handler, statuses)

    async def scenario():
        sender.submit(_segment(4), "evt")
        await sender.drain()

    asyncio.run(scenario())
    assert calls == [4]
    assert len(statuses) == 1
    assert statuses[0].state is UploadState.FAILED
    assert statuses[0].is_error
    assert "boom" in statuses[0].error


def test_uploads_run_concurrently_and_may_finish_out_of_order(tmp_path):
    statuses = []

    async def handler(request):
        index = _index_of(request)
        await asyncio.sleep(0.2 if index == 0 else 0.01)
        return httpx.Response(200, json={"success": True, "data": {"chunkIndex": index}})

    sender = make_sender(tmp_path, handler, statuses)

    async def scenario():
        sender.submit(_segment(0), "evt")
        sender.submit(_segment(1), "evt")
        assert sender.in_flight == 2
        await sender.drain()

    asyncio.run(scenario())
    assert [status.index for status in statuses] == [1, 0]


def test_cancel_all_reports_cancelled_not_failed(tmp_path):
    statuses = []
    started = []

    async def handler(request):
        started.append(_index_of(request))
        await asyncio.sleep(30)
        return httpx.Response(200, json={"success": True, "data": None})

    sender = make_sender(tmp_path, handler, statuses)

    async def scenario():
        sender.submit(_segment(0), "evt")
        sender.submit(_segment(1), "evt")
        while len(started) < 2:
            await asyncio.sleep(0.01)
        cancelled = await sender.cancel_all()
        return cancelled

    assert asyncio.run(scenario()) == 2
    assert sorted(status.index for status in statuses) == [0, 1]
    assert all(status.state is UploadState.CANCELLED for status in statuses)
    assert not any(status.is_error for status in statuses)
    assert sender.in_flight == 0
