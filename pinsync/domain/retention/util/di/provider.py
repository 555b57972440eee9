from dishka import provide

from pinsync.config import Config
from pinsync.domain.retention.service.monitor import RetentionMonitor
from pinsync.domain.snapshot.port.blob_store import BlobStore
from pinsync.domain.snapshot.service.snapshot import SnapshotStore
from pinsync.util.di.base import Provider
from pinsync.util.di.scope import Scope


class RetentionProvider(Provider):
    @provide(scope=Scope.APP)
    def get_retention_monitor(
        self,
        blobs: BlobStore,
        snapshots: SnapshotStore,
        config: Config,
    ) -> RetentionMonitor:
        return RetentionMonitor(
            blobs=blobs,
            snapshots=snapshots,
            capacity_bytes=config.storage.capacity_bytes,
            threshold_percent=config.retention.threshold_percent,
        )
