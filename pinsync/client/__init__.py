"""HTTP client side of the pins API: chunk cache and sequential loader."""

from pinsync.client.cache import ChunkCache, ChunkDescriptor
from pinsync.client.loader import PinsLoader, VersionChurnError

__all__ = ["ChunkCache", "ChunkDescriptor", "PinsLoader", "VersionChurnError"]
