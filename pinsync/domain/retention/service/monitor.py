"""RetentionMonitor - keeps blob storage below a usage threshold."""

import asyncio
import logging
from dataclasses import field

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.retention.model.value import (
    CleanupReport,
    RetentionResult,
    RetentionState,
    StorageUsage,
)
from pinsync.domain.shared.error import RetentionEnforcementError
from pinsync.domain.shared.service import Service
from pinsync.domain.snapshot.model.value import SnapshotInfo
from pinsync.domain.snapshot.port.blob_store import BlobStore
from pinsync.domain.snapshot.service.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY_BYTES = 100 * 1024 * 1024


def usage_of(used: int, total: int) -> StorageUsage:
    percentage = round(used / total * 100) if total > 0 else 100
    return StorageUsage(total=total, used=used, percentage_used=percentage)


class RetentionMonitor(Service):
    """Measures storage usage and prunes old snapshots above the threshold.

    Snapshots are deleted oldest first (by version) until usage is at or
    below ``threshold_percent``. The newest snapshot of each data type is
    never deleted, so usage may stay above the threshold when nothing else
    is left to prune. A failed deletion is recorded and skipped.

    Pruning only deletes immutable snapshots that are no longer the newest,
    so it runs independently of syncs in flight.
    """

    blobs: BlobStore
    snapshots: SnapshotStore
    capacity_bytes: int = DEFAULT_CAPACITY_BYTES
    threshold_percent: int = 70
    _state: RetentionState = field(default=RetentionState.IDLE, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def state(self) -> RetentionState:
        return self._state

    async def check_usage(self) -> StorageUsage:
        used = sum(blob.size for blob in await self.blobs.list())
        return usage_of(used, self.capacity_bytes)

    def above_threshold(self, usage: StorageUsage) -> bool:
        return usage.percentage_used > self.threshold_percent

    async def enforce_retention(self) -> RetentionResult:
        """Delete the oldest unprotected snapshots until usage is within the threshold."""
        used = (await self.check_usage()).used
        snapshots = await self.snapshots.list_snapshots()
        protected = _newest_per_type(snapshots)

        deleted: list[str] = []
        errors: list[str] = []
        for snapshot in snapshots:
            if not self._over(used):
                break
            if snapshot.reference in protected:
                continue
            try:
                await self.snapshots.delete(snapshot.reference)
            except Exception as e:
                error = RetentionEnforcementError(snapshot.reference, str(e))
                logger.error(error.message)
                errors.append(error.message)
                continue
            deleted.append(snapshot.reference)
            used -= snapshot.size

        usage = await self.check_usage()
        if self.above_threshold(usage):
            logger.warning(
                "Storage still at %d%% after pruning %d snapshots (threshold %d%%)",
                usage.percentage_used,
                len(deleted),
                self.threshold_percent,
            )
        return RetentionResult(deleted=deleted, errors=errors, usage=usage)

    async def run_cleanup(self) -> CleanupReport:
        """Check usage and prune when above the threshold."""
        async with self._lock:
            with self.span("run_cleanup"):
                try:
                    self._state = RetentionState.CHECKING
                    before = await self.check_usage()
                    logger.info("Storage usage: %d%% (%d/%d bytes)", before.percentage_used, before.used, before.total)

                    if not self.above_threshold(before):
                        return CleanupReport(before_cleanup=before, after_cleanup=before)

                    self._state = RetentionState.PRUNING
                    result = await self.enforce_retention()
                finally:
                    self._state = RetentionState.IDLE

        logger.info(
            "Cleanup pruned %d snapshots: %d%% -> %d%%",
            result.deleted_count,
            before.percentage_used,
            result.usage.percentage_used,
        )
        return CleanupReport(
            success=not result.errors,
            before_cleanup=before,
            after_cleanup=result.usage,
            pruned=True,
            deleted=result.deleted_count,
            errors=result.errors,
        )

    def _over(self, used: int) -> bool:
        return used * 100 > self.threshold_percent * self.capacity_bytes


def _newest_per_type(snapshots: list[SnapshotInfo]) -> set[str]:
    newest: dict[DataType, SnapshotInfo] = {}
    for snapshot in snapshots:
        newest[snapshot.data_type] = snapshot
    return {s.reference for s in newest.values()}
