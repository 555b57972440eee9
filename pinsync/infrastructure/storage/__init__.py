from pinsync.infrastructure.storage.di import (
    InMemoryStorageProvider,
    LocalStorageProvider,
    StorageProvider,
)
from pinsync.infrastructure.storage.local import LocalBlobStore
from pinsync.infrastructure.storage.memory import InMemoryBlobStore
from pinsync.infrastructure.storage.watermark import InMemoryWatermarkStore, LocalWatermarkStore

__all__ = [
    "InMemoryBlobStore",
    "InMemoryStorageProvider",
    "InMemoryWatermarkStore",
    "LocalBlobStore",
    "LocalStorageProvider",
    "LocalWatermarkStore",
    "StorageProvider",
]
