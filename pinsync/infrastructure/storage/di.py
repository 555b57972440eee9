"""DI providers for blob and watermark storage.

Each StorageProvider subclass serves one value of storage.backend.
"""

from dishka import provide

from pinsync.config import Config
from pinsync.domain.snapshot.port.blob_store import BlobStore
from pinsync.domain.sync.port.watermark import WatermarkStore
from pinsync.infrastructure.storage.local import LocalBlobStore
from pinsync.infrastructure.storage.memory import InMemoryBlobStore
from pinsync.infrastructure.storage.watermark import InMemoryWatermarkStore, LocalWatermarkStore
from pinsync.util.di.base import Provider
from pinsync.util.di.scope import Scope


class StorageProvider(Provider):
    pass


class LocalStorageProvider(StorageProvider):
    __backend__ = "local"

    @provide(scope=Scope.APP)
    def get_blob_store(self, config: Config) -> BlobStore:
        return LocalBlobStore(config.storage.base_path, config.storage.public_base_url)

    @provide(scope=Scope.APP)
    def get_watermark_store(self, config: Config) -> WatermarkStore:
        return LocalWatermarkStore(config.storage.base_path)


class InMemoryStorageProvider(StorageProvider):
    __backend__ = "memory"

    @provide(scope=Scope.APP)
    def get_blob_store(self) -> BlobStore:
        return InMemoryBlobStore()

    @provide(scope=Scope.APP)
    def get_watermark_store(self) -> WatermarkStore:
        return InMemoryWatermarkStore()
