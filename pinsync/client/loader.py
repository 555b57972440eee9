"""PinsLoader - sequential paging over the pins API."""

import logging
from typing import Any

import httpx

from pinsync.client.cache import ChunkCache, ChunkDescriptor
from pinsync.domain.feature.model.value import DataType

logger = logging.getLogger(__name__)

PINS_PATH = "/api/pins"


class VersionChurnError(Exception):
    """The snapshot changed more often than the loader is willing to restart."""


class PinsLoader:
    """Accumulates pages of one snapshot version in order.

    The first page resolves the current snapshot; later pages pass its url so
    the server keeps slicing the same version. If the server reports a
    different version anyway (or the snapshot is gone), everything loaded so
    far is discarded and paging restarts at offset 0.

    Example:
        async with httpx.AsyncClient(base_url="http://localhost:8000") as client:
            loader = PinsLoader(client, cache=ChunkCache())
            records = await loader.load_all()
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: ChunkCache | None = None,
        limit: int = 1000,
        data_type: DataType | str | None = None,
        max_restarts: int = 3,
    ) -> None:
        self._client = client
        self._cache = cache if cache is not None else ChunkCache()
        self._limit = limit
        self._data_type = DataType(data_type) if data_type else None
        self._max_restarts = max_restarts
        self.reset()

    def reset(self) -> None:
        self._records: list[dict[str, Any]] = []
        self._current: ChunkDescriptor | None = None
        self._exhausted = False
        self.restarts = 0

    @property
    def records(self) -> list[dict[str, Any]]:
        return list(self._records)

    @property
    def total(self) -> int | None:
        return self._current.total if self._current else None

    @property
    def url(self) -> str | None:
        return self._current.url if self._current else None

    @property
    def is_fallback(self) -> bool:
        return bool(self._current and self._current.is_fallback)

    @property
    def has_more(self) -> bool:
        if self._current is None:
            return True
        return not self._exhausted and len(self._records) < self._current.total

    async def load_next(self, fresh: bool = False) -> ChunkDescriptor:
        """Load the next page, restarting from offset 0 when the version changes."""
        while True:
            offset = len(self._records)
            chunk = self._from_cache(offset) if not fresh else None
            if chunk is None:
                chunk = await self._fetch(offset, fresh=fresh)

            if chunk is not None and (self._current is None or not _different_version(chunk, self._current)):
                break
            self._restart(chunk)
            fresh = False

        self._cache.put_chunk(chunk)
        self._current = chunk
        self._records.extend(chunk.data)
        if not chunk.data:
            self._exhausted = True
        return chunk

    async def load_all(self, fresh: bool = False) -> list[dict[str, Any]]:
        """Page through the whole snapshot and return its records."""
        await self.load_next(fresh=fresh)
        while self.has_more:
            await self.load_next()
        logger.info("Loaded %d records of %s", len(self._records), self.url)
        return self.records

    def _from_cache(self, offset: int) -> ChunkDescriptor | None:
        chunk = self._cache.get_chunk(offset, self._limit)
        if chunk is None or (self._current is not None and chunk.url != self._current.url):
            return None
        return chunk

    async def _fetch(self, offset: int, fresh: bool = False) -> ChunkDescriptor | None:
        params: dict[str, Any] = {"offset": offset, "limit": self._limit}
        if self._current is not None:
            params["url"] = self._current.url
        if fresh:
            params["fresh"] = "true"
        if self._data_type is not None:
            params["dataType"] = str(self._data_type)

        response = await self._client.get(PINS_PATH, params=params)
        if response.status_code == 404 and self._current is not None:
            # Snapshot pruned between pages
            return None
        response.raise_for_status()
        return ChunkDescriptor.model_validate(response.json())

    def _restart(self, chunk: ChunkDescriptor | None) -> None:
        self.restarts += 1
        if self.restarts > self._max_restarts:
            raise VersionChurnError(f"Snapshot changed {self.restarts} times while paging")

        logger.info(
            "Snapshot changed while paging (%s -> %s); restarting at offset 0",
            self._current.url if self._current else None,
            chunk.url if chunk else "gone",
        )
        self._records = []
        self._current = None
        self._exhausted = False
        self._cache.clear()


def _different_version(a: ChunkDescriptor, b: ChunkDescriptor) -> bool:
    return (a.version, a.url) != (b.version, b.url)
