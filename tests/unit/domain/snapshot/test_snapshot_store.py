"""Unit tests for SnapshotStore."""

from datetime import UTC, datetime, timedelta

import pytest

from pinsync.domain.feature.model.value import DataType, Geometry, ProcessedRecord
from pinsync.domain.shared.error import SnapshotNotFoundError, ValidationError
from pinsync.domain.snapshot.model.value import Access
from pinsync.domain.snapshot.service.snapshot import SnapshotStore
from pinsync.infrastructure.storage.memory import InMemoryBlobStore

FIXED = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

RECORDS = [
    {
        "name": "Luminaire 1",
        "status": "active",
        "id": "1",
        "geometry": {"type": "Point", "coordinates": [-0.12, 51.5]},
    },
    {
        "name": "Luminaire 2",
        "status": "outage",
        "id": "2",
        "geometry": {"type": "Point", "coordinates": [-0.11, 51.6]},
    },
]


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def store(blobs: InMemoryBlobStore) -> SnapshotStore:
    return SnapshotStore(blobs=blobs, clock=lambda: FIXED)


class TestWriteRead:
    @pytest.mark.asyncio
    async def test_round_trip_preserves_records(self, store: SnapshotStore):
        reference = await store.write(RECORDS, DataType.LUMINAIRE)

        document = await store.read(reference)

        assert document.data == RECORDS
        assert document.data_type == DataType.LUMINAIRE
        assert document.access == Access.PUBLIC
        assert document.is_fallback is False
        assert document.version == FIXED

    @pytest.mark.asyncio
    async def test_round_trip_empty_snapshot(self, store: SnapshotStore):
        reference = await store.write([], DataType.OUTAGE_POINT)

        document = await store.read(reference)

        assert document.data == []
        assert document.total == 0

    @pytest.mark.asyncio
    async def test_processed_records_are_serialized_flat(self, store: SnapshotStore):
        record = ProcessedRecord(id="5", geometry=Geometry(coordinates=(1.0, 2.0)), wattage=150)

        document = await store.read(await store.write([record], DataType.LUMINAIRE))

        assert document.data == [{"wattage": 150, "id": "5", "geometry": {"type": "Point", "coordinates": [1.0, 2.0]}}]

    @pytest.mark.asyncio
    async def test_persisted_body_uses_camel_case_keys(self, store: SnapshotStore, blobs: InMemoryBlobStore):
        reference = await store.write(RECORDS, DataType.LUMINAIRE, access="private", is_fallback=True)

        body = await blobs.get(reference)

        assert set(body) == {"data", "lastUpdated", "dataType", "access", "isFallback"}
        assert body["dataType"] == "luminaire"
        assert body["access"] == "private"
        assert body["isFallback"] is True

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_rejected(self, store: SnapshotStore, blobs: InMemoryBlobStore):
        records = [*RECORDS, {**RECORDS[1], "status": "active"}]

        with pytest.raises(ValidationError, match="Duplicate record ids in snapshot: 2") as exc_info:
            await store.write(records, DataType.PINS)

        assert exc_info.value.field == "data"
        assert await blobs.list() == []

    @pytest.mark.asyncio
    async def test_each_write_creates_a_new_blob(self, store: SnapshotStore, blobs: InMemoryBlobStore):
        first = await store.write(RECORDS, DataType.LUMINAIRE)
        second = await store.write(RECORDS[:1], DataType.LUMINAIRE)

        assert first != second
        assert len(blobs) == 2
        assert (await store.read(first)).data == RECORDS

    @pytest.mark.asyncio
    async def test_versions_strictly_increase_when_clock_stands_still(self, store: SnapshotStore):
        first = await store.read(await store.write(RECORDS, DataType.LUMINAIRE))
        second = await store.read(await store.write(RECORDS, DataType.LUMINAIRE))

        assert second.version > first.version

    @pytest.mark.asyncio
    async def test_new_store_continues_after_persisted_version(self, blobs: InMemoryBlobStore):
        earlier = SnapshotStore(blobs=blobs, clock=lambda: FIXED)
        await earlier.write(RECORDS, DataType.LUMINAIRE)

        # Clock skew: the restarted process thinks it is a day earlier
        restarted = SnapshotStore(blobs=blobs, clock=lambda: FIXED - timedelta(days=1))
        document = await restarted.read(await restarted.write(RECORDS, DataType.LUMINAIRE))

        assert document.version > FIXED

    @pytest.mark.asyncio
    async def test_read_unknown_reference_raises(self, store: SnapshotStore):
        with pytest.raises(SnapshotNotFoundError) as exc_info:
            await store.read("mock://blob/99-snapshots/luminaire-1-000001.json")

        assert exc_info.value.reference == "mock://blob/99-snapshots/luminaire-1-000001.json"


class TestDeleteAndList:
    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, store: SnapshotStore):
        reference = await store.write(RECORDS, DataType.LUMINAIRE)

        await store.delete(reference)
        await store.delete(reference)

        with pytest.raises(SnapshotNotFoundError):
            await store.read(reference)

    @pytest.mark.asyncio
    async def test_list_snapshots_oldest_first(self, blobs: InMemoryBlobStore):
        times = iter([FIXED + timedelta(minutes=m) for m in (0, 1, 2)])
        store = SnapshotStore(blobs=blobs, clock=lambda: next(times))
        refs = [
            await store.write(RECORDS, DataType.LUMINAIRE),
            await store.write(RECORDS, DataType.OUTAGE_AREA),
            await store.write(RECORDS, DataType.LUMINAIRE),
        ]

        snapshots = await store.list_snapshots()

        assert [s.reference for s in snapshots] == refs
        assert [s.data_type for s in snapshots] == [DataType.LUMINAIRE, DataType.OUTAGE_AREA, DataType.LUMINAIRE]
        assert all(s.size > 0 for s in snapshots)

    @pytest.mark.asyncio
    async def test_list_snapshots_filters_by_data_type(self, store: SnapshotStore):
        await store.write(RECORDS, DataType.OUTAGE_AREA)
        luminaire = await store.write(RECORDS, DataType.LUMINAIRE)

        snapshots = await store.list_snapshots(DataType.LUMINAIRE)

        assert [s.reference for s in snapshots] == [luminaire]

    @pytest.mark.asyncio
    async def test_outage_types_do_not_shadow_each_other(self, store: SnapshotStore):
        area = await store.write(RECORDS, DataType.OUTAGE_AREA)
        point = await store.write(RECORDS, DataType.OUTAGE_POINT)

        assert (await store.latest(DataType.OUTAGE_AREA)).reference == area
        assert (await store.latest(DataType.OUTAGE_POINT)).reference == point

    @pytest.mark.asyncio
    async def test_latest_is_none_without_snapshots(self, store: SnapshotStore):
        assert await store.latest(DataType.PINS) is None

    @pytest.mark.asyncio
    async def test_foreign_blobs_are_ignored(self, store: SnapshotStore, blobs: InMemoryBlobStore):
        await blobs.put("uploads/readme.json", b"{}")
        await store.write(RECORDS, DataType.PINS)

        snapshots = await store.list_snapshots()

        assert [s.data_type for s in snapshots] == [DataType.PINS]
