"""Unit tests for RetentionMonitor."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.retention.model.value import RetentionState
from pinsync.domain.retention.service.monitor import RetentionMonitor, usage_of
from pinsync.domain.snapshot.service.snapshot import SnapshotStore
from pinsync.infrastructure.storage.memory import InMemoryBlobStore

T0 = datetime(2026, 1, 1, tzinfo=UTC)


class Clock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def snapshots(blobs: InMemoryBlobStore) -> SnapshotStore:
    return SnapshotStore(blobs=blobs, clock=Clock())


async def write_snapshots(snapshots: SnapshotStore, data_type: DataType, count: int) -> list[str]:
    records = [{"id": str(i), "name": "x" * 50} for i in range(20)]
    return [await snapshots.write(records, data_type) for _ in range(count)]


async def monitor_at(blobs: InMemoryBlobStore, snapshots: SnapshotStore, percent: float) -> RetentionMonitor:
    """Monitor whose capacity puts current usage at roughly ``percent``."""
    used = sum(b.size for b in await blobs.list())
    return RetentionMonitor(blobs=blobs, snapshots=snapshots, capacity_bytes=int(used * 100 / percent))


class TestUsage:
    def test_percentage_is_rounded(self):
        assert usage_of(used=704, total=1000).percentage_used == 70
        assert usage_of(used=706, total=1000).percentage_used == 71

    def test_zero_capacity_reports_full(self):
        assert usage_of(used=0, total=0).percentage_used == 100

    @pytest.mark.asyncio
    async def test_check_usage_sums_blob_sizes(self, blobs: InMemoryBlobStore, snapshots: SnapshotStore):
        await write_snapshots(snapshots, DataType.LUMINAIRE, 2)
        monitor = RetentionMonitor(blobs=blobs, snapshots=snapshots, capacity_bytes=10_000_000)

        usage = await monitor.check_usage()

        assert usage.used == sum(b.size for b in await blobs.list())
        assert usage.model_dump(by_alias=True).keys() == {"total", "used", "percentageUsed"}


class TestCleanup:
    @pytest.mark.asyncio
    async def test_below_threshold_does_nothing(self, blobs: InMemoryBlobStore, snapshots: SnapshotStore):
        await write_snapshots(snapshots, DataType.LUMINAIRE, 4)
        monitor = await monitor_at(blobs, snapshots, 40)

        report = await monitor.run_cleanup()

        assert report.success is True
        assert report.pruned is False
        assert report.deleted == 0
        assert report.before_cleanup == report.after_cleanup
        assert len(blobs) == 4

    @pytest.mark.asyncio
    async def test_above_threshold_prunes_oldest_first(self, blobs: InMemoryBlobStore, snapshots: SnapshotStore):
        refs = await write_snapshots(snapshots, DataType.LUMINAIRE, 4)
        monitor = await monitor_at(blobs, snapshots, 75)

        report = await monitor.run_cleanup()

        assert report.pruned is True
        assert report.deleted == 1
        assert report.before_cleanup.percentage_used == 75
        assert report.after_cleanup.percentage_used <= 70
        remaining = [s.reference for s in await snapshots.list_snapshots()]
        assert remaining == refs[1:]

    @pytest.mark.asyncio
    async def test_newest_snapshot_per_type_is_kept(self, blobs: InMemoryBlobStore, snapshots: SnapshotStore):
        luminaire = await write_snapshots(snapshots, DataType.LUMINAIRE, 3)
        area = await write_snapshots(snapshots, DataType.OUTAGE_AREA, 1)
        monitor = await monitor_at(blobs, snapshots, 400)

        report = await monitor.run_cleanup()

        remaining = {s.reference for s in await snapshots.list_snapshots()}
        assert remaining == {luminaire[-1], area[-1]}
        assert report.deleted == 2
        assert report.after_cleanup.percentage_used > 70

    @pytest.mark.asyncio
    async def test_failed_deletion_is_reported_and_skipped(self, blobs: InMemoryBlobStore, snapshots: SnapshotStore):
        refs = await write_snapshots(snapshots, DataType.LUMINAIRE, 4)
        monitor = await monitor_at(blobs, snapshots, 150)
        real_delete = snapshots.delete

        async def flaky_delete(reference: str) -> None:
            if reference == refs[0]:
                raise OSError("permission denied")
            await real_delete(reference)

        with patch.object(snapshots, "delete", side_effect=flaky_delete):
            report = await monitor.run_cleanup()

        assert report.success is False
        assert len(report.errors) == 1
        assert refs[0] in report.errors[0]
        assert report.deleted == 2
        assert [s.reference for s in await snapshots.list_snapshots()] == [refs[0], refs[3]]

    @pytest.mark.asyncio
    async def test_state_returns_to_idle(self, blobs: InMemoryBlobStore, snapshots: SnapshotStore):
        await write_snapshots(snapshots, DataType.LUMINAIRE, 2)
        monitor = await monitor_at(blobs, snapshots, 90)

        assert monitor.state == RetentionState.IDLE
        await monitor.run_cleanup()
        assert monitor.state == RetentionState.IDLE
