"""SyncCoordinator - the de-duplicated fetch, process, persist pipeline."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.feature.port.data_source import DataSource
from pinsync.domain.feature.service.processor import RecordProcessor
from pinsync.domain.shared.error import SnapshotNotFoundError, ValidationError
from pinsync.domain.shared.service import Service
from pinsync.domain.snapshot.service.snapshot import SnapshotStore
from pinsync.domain.sync.model.value import Watermark
from pinsync.domain.sync.port.watermark import WatermarkStore
from pinsync.domain.sync.service.single_flight import SingleFlight

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def cache_key(data_type: DataType | str) -> str:
    return f"sync-{DataType(data_type)}"


class SyncCoordinator(Service):
    """Runs at most one sync per data type at a time and shares its result.

    A sync reads the watermark, fetches the delta since it, merges the delta
    onto the snapshot the watermark points at, writes a new snapshot and only
    then advances the watermark. Fallback data is written as a standalone
    snapshot and never moves the watermark.
    """

    data_source: DataSource
    processor: RecordProcessor
    snapshots: SnapshotStore
    watermarks: WatermarkStore
    cache: SingleFlight
    clock: Callable[[], datetime] = _utc_now

    async def sync_if_needed(self, data_type: DataType | str, force: bool = False) -> str:
        """Return the reference of the current snapshot for data_type, syncing if needed.

        Args:
            data_type: An upstream data type.
            force: Discard a completed cached result and sync again. A sync
                already in flight is joined rather than duplicated.

        Raises:
            ValidationError: data_type is not pulled from upstream.
            CacheKeyFailure: The sync failed; ``cause`` holds the original error.
        """
        data_type = _upstream_type(data_type)
        return await self.cache.run(cache_key(data_type), lambda: self._sync(data_type), refresh=force)

    async def _sync(self, data_type: DataType) -> str:
        started_at = self.clock()

        with self.span("sync", data_type=str(data_type)):
            watermark = await self.watermarks.get(data_type)
            previous = await self._previous_records(data_type, watermark)
            since = watermark.last_sync_date if previous is not None else None

            batch = await self.data_source.fetch(data_type, since)
            delta = self.processor.process(batch)
            # Merging also collapses ids repeated across upstream pages (last copy wins)
            if batch.is_fallback:
                records = self.processor.merge([], delta)
                reference = await self.snapshots.write(records, data_type, is_fallback=True)
                logger.warning("Wrote fallback snapshot for %s; watermark unchanged", data_type)
                return reference

            records = self.processor.merge(previous or [], delta)
            reference = await self.snapshots.write(records, data_type)

            if watermark is not None and watermark.last_sync_date > started_at:
                logger.warning(
                    "Not moving %s watermark back from %s to %s",
                    data_type,
                    watermark.last_sync_date.isoformat(),
                    started_at.isoformat(),
                )
            else:
                await self.watermarks.save(data_type, Watermark(last_sync_date=started_at, reference=reference))

        logger.info(
            "Synced %s: %d changed, %d total (%s)",
            data_type,
            len(delta),
            len(records),
            "delta" if since is not None else "full",
        )
        return reference

    async def _previous_records(self, data_type: DataType, watermark: Watermark | None) -> list[dict] | None:
        """Records of the snapshot the watermark points at, or None when a full fetch is needed."""
        if watermark is None:
            return None

        reference = watermark.reference
        if reference is None:
            latest = await self.snapshots.latest(data_type)
            reference = latest.reference if latest else None
        if reference is None:
            logger.warning("Watermark for %s has no snapshot; doing a full fetch", data_type)
            return None

        try:
            document = await self.snapshots.read(reference)
        except SnapshotNotFoundError:
            logger.warning("Snapshot %s behind the %s watermark is gone; doing a full fetch", reference, data_type)
            return None

        if document.is_fallback:
            logger.warning("Snapshot %s holds fallback data; doing a full fetch", reference)
            return None
        return document.data


def _upstream_type(data_type: DataType | str) -> DataType:
    try:
        data_type = DataType(data_type)
    except ValueError:
        raise ValidationError(f"Unknown data type: {data_type}", field="dataType") from None
    if not data_type.upstream:
        raise ValidationError(f"{data_type} is not synced from upstream", field="dataType")
    return data_type
