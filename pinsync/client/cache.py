"""Client-side chunk cache keyed by snapshot version."""

import logging
from datetime import datetime
from typing import Any

from pydantic import Field

from pinsync.domain.shared.model.value import WireModel

logger = logging.getLogger(__name__)


class ChunkDescriptor(WireModel):
    """One page as returned by GET /api/pins."""

    version: datetime
    url: str
    data: list[dict[str, Any]]
    total: int
    offset: int
    limit: int
    is_fallback: bool = Field(default=False, alias="isFallback")

    @property
    def key(self) -> tuple[int, int]:
        return self.offset, self.limit


class ChunkCache:
    """Chunks of a single snapshot version.

    The cache tracks the newest (version, url) pair it has seen. Storing a
    chunk of a newer pair drops every chunk of the previous one first; a
    chunk older than the tracked version is rejected. Chunks of different
    versions are therefore never held together.
    """

    def __init__(self) -> None:
        self._chunks: dict[tuple[int, int], ChunkDescriptor] = {}
        self._version: datetime | None = None
        self._url: str | None = None
        self._total: int | None = None

    @property
    def version(self) -> datetime | None:
        return self._version

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def total(self) -> int | None:
        return self._total

    def is_stale(self, chunk: ChunkDescriptor) -> bool:
        """Whether chunk belongs to a version other than the tracked one."""
        return self._version is not None and (chunk.version, chunk.url) != (self._version, self._url)

    def get_chunk(self, offset: int, limit: int) -> ChunkDescriptor | None:
        return self._chunks.get((offset, limit))

    def put_chunk(self, chunk: ChunkDescriptor) -> bool:
        """Store chunk, invalidating older versions.

        Returns:
            False if chunk was rejected as older than the tracked version.
        """
        if self._version is not None and chunk.version < self._version:
            logger.debug("Rejecting chunk of old version %s (have %s)", chunk.version, self._version)
            return False

        if self.is_stale(chunk):
            logger.info("Snapshot version changed to %s; clearing %d cached chunks", chunk.version, len(self))
            self.clear()

        self._version = chunk.version
        self._url = chunk.url
        self._total = chunk.total
        self._chunks[chunk.key] = chunk
        return True

    def chunks(self) -> list[ChunkDescriptor]:
        """Cached chunks ordered by offset."""
        return sorted(self._chunks.values(), key=lambda c: c.offset)

    def clear(self) -> None:
        self._chunks.clear()
        self._version = None
        self._url = None
        self._total = None

    def __len__(self) -> int:
        return len(self._chunks)
