import asyncio

import httpx
import pytest

from client.livecaption.services.feed import ChunkFeed
from client.livecaption.services.logger import LogBuffer
from client.livecaption.services.network import ApiClient, ApiError
from client.livecaption.store.settings_store import SettingsStore


def _chunk(index: int) -> dict:
    return {"chunkIndex": index, "sourceText": f"src{index}", "targetText": f"tgt{index}"}


class FakeServer:
    """Serves scripted chunk batches and event statuses."""

    def __init__(self, batches, statuses=("ended",)):
        self.batches = list(batches)
        self.statuses = list(statuses)
        self.afters = []
        self.status_calls = 0

    def __call__(self, request):
        if request.url.path.endswith("/chunks"):
            self.afters.append(int(request.url.params["after"]))
            data = [_chunk(i) for i in self.batches.pop(0)] if self.batches else []
            return httpx.Response(200, json={"success": True, "data": data})
        self.status_calls += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return httpx.Response(200, json={"success": True, "data": {"id": "evt", "status": status}})


def make_feed(tmp_path, server, poll_interval=0.01):
    settings = SettingsStore(tmp_path / "settings.json")
    settings.update(server_url="https://api.example.com")
    client = ApiClient(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(server)))
    return ChunkFeed(client, "evt", LogBuffer(), poll_interval=poll_interval)


def test_gaps_are_tolerated_not_backfilled(tmp_path):
    server = FakeServer([[0, 1], [3, 4], [2]])
    feed = make_feed(tmp_path, server)

    async def scenario():
        await feed.poll_once()
        await feed.poll_once()
        await feed.poll_once()

    asyncio.run(scenario())
    assert [c["chunkIndex"] for c in feed.chunks] == [0, 1, 3, 4]
    assert feed.cursor == 4
    assert server.afters == [-1, 1, 4]


def test_batches_are_sorted_and_duplicates_ignored(tmp_path):
    feed = make_feed(tmp_path, FakeServer([]))
    assert [c["chunkIndex"] for c in feed.extend([_chunk(5), _chunk(3), _chunk(5)])] == [3, 5]
    assert feed.extend([_chunk(4), _chunk(1)]) == []
    assert [c["chunkIndex"] for c in feed.chunks] == [3, 5]


def test_ended_event_is_fetched_once(tmp_path):
    server = FakeServer([[0, 1, 2]], statuses=["ended"])
    feed = make_feed(tmp_path, server)
    received = []
    result = asyncio.run(feed.follow(received.extend))
    assert [c["chunkIndex"] for c in result] == [0, 1, 2]
    assert [c["chunkIndex"] for c in received] == [0, 1, 2]
    assert server.afters == [-1]


def test_live_event_polls_until_it_ends(tmp_path):
    server = FakeServer([[0], [], [1, 3]], statuses=["live", "live", "ended"])
    feed = make_feed(tmp_path, server)
    batches = []
    result = asyncio.run(feed.follow(batches.append))
    assert [c["chunkIndex"] for c in result] == [0, 1, 3]
    assert server.afters == [-1, 0, 0]
    assert [[c["chunkIndex"] for c in batch] for batch in batches] == [[0], [1, 3]]
    assert feed.status == "ended"


def test_stop_ends_a_live_follow(tmp_path):
    server = FakeServer([], statuses=["live"])
    feed = make_feed(tmp_path, server, poll_interval=5)

    async def scenario():
        task = asyncio.create_task(feed.follow())
        await asyncio.sleep(0.05)
        feed.stop()
        return await asyncio.wait_for(task, timeout=1)

    assert asyncio.run(scenario()) == []
    assert server.status_calls == 1


def test_transient_errors_keep_polling(tmp_path):
    calls = {"n": 0}

    def handler(request):
        if request.url.path.endswith("/chunks"):
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(500, json={"success": False, "error": "busy"})
            return httpx.Response(200, json={"success": True, "data": [_chunk(0)]})
        return httpx.Response(200, json={"success": True, "data": {"id": "evt", "status": "live" if calls["n"] < 2 else "ended"}})

    feed = make_feed(tmp_path, handler)
    result = asyncio.run(feed.follow())
    assert [c["chunkIndex"] for c in result] == [0]
    assert any("Poll failed" in line for line in feed.logger.get())


def test_unknown_event_stops_following(tmp_path):
    def handler(request):
        return httpx.Response(404, json={"success": False, "error": "Event not found: evt"})

    feed = make_feed(tmp_path, handler)
    with pytest.raises(ApiError):
        asyncio.run(feed.follow())


def test_status_lookups_while_live_carry_no_chunk_history(tmp_path):
    history = [_chunk(i) for i in range(500)]
    paths = []
    lookups = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path.endswith("/chunks"):
            after = int(request.url.params["after"])
            data = [chunk for chunk in history if chunk["chunkIndex"] > after]
            return httpx.Response(200, json={"success": True, "data": data})
        status = "live" if len(lookups) < 3 else "ended"
        event = {"id": "evt", "status": status}
        lookups.append(event)
        return httpx.Response(200, json={"success": True, "data": event})

    feed = make_feed(tmp_path, handler)
    result = asyncio.run(feed.follow())

    assert len(result) == 500
    assert len(lookups) == 4
    assert all("chunks" not in event for event in lookups)
    assert "/api/events/evt" in paths
    assert not any(path.endswith("/detail") for path in paths)
