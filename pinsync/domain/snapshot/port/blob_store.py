"""Port for durable blob storage."""

from abc import abstractmethod
from typing import Any, Protocol

from pinsync.domain.shared.port import Port
from pinsync.domain.snapshot.model.value import Access, BlobInfo


class BlobStore(Port, Protocol):
    """Append-mostly object storage addressed by URL.

    put() never overwrites: a name that already exists is an error.
    """

    @abstractmethod
    async def put(self, pathname: str, body: bytes, access: Access = Access.PUBLIC) -> str:
        """Store body under pathname and return its URL."""
        ...

    @abstractmethod
    async def get(self, url: str) -> dict[str, Any]:
        """Return the parsed JSON body at url. Raises NotFoundError if absent."""
        ...

    @abstractmethod
    async def delete(self, url: str) -> None:
        """Delete the blob at url. Succeeds if it is already absent."""
        ...

    @abstractmethod
    async def list(self, prefix: str = "") -> list[BlobInfo]:
        """List blobs whose pathname starts with prefix."""
        ...
