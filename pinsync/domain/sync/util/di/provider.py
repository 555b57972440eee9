from dishka import provide

from pinsync.config import Config
from pinsync.domain.feature.port.data_source import DataSource
from pinsync.domain.feature.service.processor import RecordProcessor
from pinsync.domain.pagination.service.paginator import ChunkPaginator
from pinsync.domain.snapshot.port.blob_store import BlobStore
from pinsync.domain.snapshot.service.snapshot import SnapshotStore
from pinsync.domain.sync.port.watermark import WatermarkStore
from pinsync.domain.sync.service.coordinator import SyncCoordinator
from pinsync.domain.sync.service.single_flight import SingleFlight
from pinsync.util.di.base import Provider
from pinsync.util.di.scope import Scope


class SyncProvider(Provider):
    """Sync pipeline services.

    All APP-scoped: the snapshot store tracks the last version per data type
    and the single-flight cache must be shared by every request.
    """

    @provide(scope=Scope.APP)
    def get_single_flight(self, config: Config) -> SingleFlight:
        return SingleFlight(ttl=config.sync.cache_ttl_seconds)

    @provide(scope=Scope.APP)
    def get_snapshot_store(self, blobs: BlobStore) -> SnapshotStore:
        return SnapshotStore(blobs=blobs)

    @provide(scope=Scope.APP)
    def get_record_processor(self) -> RecordProcessor:
        return RecordProcessor()

    @provide(scope=Scope.APP)
    def get_sync_coordinator(
        self,
        data_source: DataSource,
        processor: RecordProcessor,
        snapshots: SnapshotStore,
        watermarks: WatermarkStore,
        cache: SingleFlight,
    ) -> SyncCoordinator:
        return SyncCoordinator(
            data_source=data_source,
            processor=processor,
            snapshots=snapshots,
            watermarks=watermarks,
            cache=cache,
        )

    @provide(scope=Scope.APP)
    def get_chunk_paginator(
        self,
        snapshots: SnapshotStore,
        coordinator: SyncCoordinator,
        config: Config,
    ) -> ChunkPaginator:
        return ChunkPaginator(
            snapshots=snapshots,
            coordinator=coordinator,
            default_limit=config.pagination.default_limit,
            max_limit=config.pagination.max_limit,
            default_data_type=config.pagination.default_data_type,
        )
