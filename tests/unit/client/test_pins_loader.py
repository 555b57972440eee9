"""Unit tests for PinsLoader against a fake pins API."""

from datetime import UTC, datetime, timedelta

import httpx
import pytest
import respx

from pinsync.client.cache import ChunkCache, ChunkDescriptor
from pinsync.client.loader import PinsLoader, VersionChurnError

BASE_URL = "http://pins.test"
V1 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakePinsApi:
    """Serves GET /api/pins from in-memory snapshots the way the server slices them."""

    def __init__(self) -> None:
        self.snapshots: dict[str, tuple[datetime, list[dict]]] = {}
        self.current: str | None = None
        self.requests: list[dict[str, str]] = []

    def publish(self, url: str, count: int, version: datetime) -> None:
        self.snapshots[url] = (version, [{"id": f"{url}-{i}"} for i in range(count)])
        self.current = url

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        self.requests.append(params)
        url = self.current if params.get("fresh") == "true" else params.get("url", self.current)
        if url not in self.snapshots:
            return httpx.Response(404, json={"error": "Snapshot not found", "code": "NOT_FOUND"})

        version, data = self.snapshots[url]
        offset, limit = int(params["offset"]), int(params["limit"])
        return httpx.Response(
            200,
            json={
                "version": version.isoformat(),
                "url": url,
                "data": data[offset : offset + limit],
                "total": len(data),
                "offset": offset,
                "limit": limit,
                "isFallback": False,
            },
        )


@pytest.fixture
def api() -> FakePinsApi:
    api = FakePinsApi()
    api.publish("snap-1", 5, V1)
    return api


class TestLoadAll:
    @pytest.mark.asyncio
    @respx.mock
    async def test_pages_through_one_version(self, api: FakePinsApi):
        respx.get(f"{BASE_URL}/api/pins").mock(side_effect=api)

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            loader = PinsLoader(client, limit=2)
            records = await loader.load_all()

        assert [r["id"] for r in records] == [f"snap-1-{i}" for i in range(5)]
        assert [r["offset"] for r in api.requests] == ["0", "2", "4"]
        assert "url" not in api.requests[0]
        assert {r["url"] for r in api.requests[1:]} == {"snap-1"}
        assert loader.total == 5
        assert loader.has_more is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_data_type_and_fresh_are_sent(self, api: FakePinsApi):
        respx.get(f"{BASE_URL}/api/pins").mock(side_effect=api)

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            await PinsLoader(client, limit=10, data_type="outage-area").load_next(fresh=True)

        assert api.requests[0]["dataType"] == "outage-area"
        assert api.requests[0]["fresh"] == "true"

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_snapshot(self, api: FakePinsApi):
        api.publish("empty", 0, V1 + timedelta(minutes=1))
        respx.get(f"{BASE_URL}/api/pins").mock(side_effect=api)

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            assert await PinsLoader(client, limit=2).load_all() == []


class TestVersionChange:
    @pytest.mark.asyncio
    @respx.mock
    async def test_restarts_when_pinned_snapshot_disappears(self, api: FakePinsApi):
        respx.get(f"{BASE_URL}/api/pins").mock(side_effect=api)

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            loader = PinsLoader(client, limit=2)
            await loader.load_next()

            # Pruned and replaced between pages
            del api.snapshots["snap-1"]
            api.publish("snap-2", 3, V1 + timedelta(minutes=5))
            records = await loader.load_all()

        assert [r["id"] for r in records] == ["snap-2-0", "snap-2-1", "snap-2-2"]
        assert loader.restarts == 1
        assert loader.url == "snap-2"

    @pytest.mark.asyncio
    @respx.mock
    async def test_restarts_when_server_reports_another_version(self, api: FakePinsApi):
        newer = V1 + timedelta(minutes=5)
        respx.get(f"{BASE_URL}/api/pins").mock(side_effect=api)

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            loader = PinsLoader(client, limit=2)
            await loader.load_next()

            # Same reference now answers with a different version
            api.snapshots["snap-1"] = (newer, [{"id": "n-0"}, {"id": "n-1"}])
            records = await loader.load_all()

        assert records == [{"id": "n-0"}, {"id": "n-1"}]
        assert loader.restarts == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_gives_up_after_too_many_restarts(self):
        versions = iter(V1 + timedelta(seconds=i) for i in range(100))

        def churning(request: httpx.Request) -> httpx.Response:
            offset = int(request.url.params["offset"])
            return httpx.Response(
                200,
                json={
                    "version": next(versions).isoformat(),
                    "url": "snap",
                    "data": [{"id": "x"}] if offset == 0 else [{"id": "y"}],
                    "total": 10,
                    "offset": offset,
                    "limit": 1,
                },
            )

        respx.get(f"{BASE_URL}/api/pins").mock(side_effect=churning)

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            with pytest.raises(VersionChurnError):
                await PinsLoader(client, limit=1, max_restarts=2).load_all()


class TestCache:
    @pytest.mark.asyncio
    @respx.mock
    async def test_cached_chunk_is_served_without_request(self, api: FakePinsApi):
        route = respx.get(f"{BASE_URL}/api/pins").mock(side_effect=api)
        cache = ChunkCache()
        cache.put_chunk(
            ChunkDescriptor(version=V1, url="snap-1", data=[{"id": "cached"}], total=1, offset=0, limit=2)
        )

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            records = await PinsLoader(client, cache=cache, limit=2).load_all()

        assert records == [{"id": "cached"}]
        assert route.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_fresh_bypasses_cache(self, api: FakePinsApi):
        respx.get(f"{BASE_URL}/api/pins").mock(side_effect=api)
        cache = ChunkCache()
        cache.put_chunk(
            ChunkDescriptor(version=V1, url="old", data=[{"id": "cached"}], total=1, offset=0, limit=2)
        )

        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            chunk = await PinsLoader(client, cache=cache, limit=2).load_next(fresh=True)

        assert chunk.url == "snap-1"
        assert cache.url == "snap-1"
