import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pinsync.domain.shared.error import NotFoundError, StorageUnavailableError
from pinsync.domain.snapshot.model.value import Access, BlobInfo
from pinsync.domain.snapshot.port.blob_store import BlobStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class _Blob:
    pathname: str
    body: bytes
    access: Access
    uploaded_at: datetime


class InMemoryBlobStore(BlobStore):
    """Process-local BlobStore for development and tests.

    URLs look like ``mock://blob/<counter>-<pathname>``.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._blobs: dict[str, _Blob] = {}
        self._counter = 0
        self._clock = clock

    async def put(self, pathname: str, body: bytes, access: Access = Access.PUBLIC) -> str:
        if any(blob.pathname == pathname for blob in self._blobs.values()):
            raise StorageUnavailableError(f"Blob already exists: {pathname}")

        self._counter += 1
        url = f"mock://blob/{self._counter}-{pathname}"
        self._blobs[url] = _Blob(pathname, bytes(body), Access(access), self._clock())
        logger.debug("Stored mock blob %s (%d bytes)", url, len(body))
        return url

    async def get(self, url: str) -> dict[str, Any]:
        blob = self._blobs.get(url)
        if blob is None:
            raise NotFoundError(f"Blob not found: {url}")
        return json.loads(blob.body)

    async def delete(self, url: str) -> None:
        self._blobs.pop(url, None)

    async def list(self, prefix: str = "") -> list[BlobInfo]:
        return [
            BlobInfo(url=url, pathname=blob.pathname, size=len(blob.body), uploaded_at=blob.uploaded_at)
            for url, blob in self._blobs.items()
            if blob.pathname.startswith(prefix)
        ]

    def __len__(self) -> int:
        return len(self._blobs)
