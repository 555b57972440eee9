"""Unit tests for the watermark stores."""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.sync.model.value import Watermark
from pinsync.infrastructure.storage.watermark import InMemoryWatermarkStore, LocalWatermarkStore

T1 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestLocalWatermarkStore:
    @pytest.mark.asyncio
    async def test_missing_watermark_is_none(self, tmp_path: Path):
        assert await LocalWatermarkStore(str(tmp_path)).get(DataType.LUMINAIRE) is None

    @pytest.mark.asyncio
    async def test_save_and_reload(self, tmp_path: Path):
        watermark = Watermark(last_sync_date=T1, reference="file:///data/blobs/snapshots/luminaire.json")
        await LocalWatermarkStore(str(tmp_path)).save(DataType.LUMINAIRE, watermark)

        reloaded = await LocalWatermarkStore(str(tmp_path)).get(DataType.LUMINAIRE)

        assert reloaded == watermark

    @pytest.mark.asyncio
    async def test_file_uses_camel_case(self, tmp_path: Path):
        store = LocalWatermarkStore(str(tmp_path))

        await store.save(DataType.OUTAGE_AREA, Watermark(last_sync_date=T1))

        body = json.loads((tmp_path / "sync-state" / "outage-area.json").read_text())
        assert body == {"lastSyncDate": "2026-03-01T12:00:00Z"}

    @pytest.mark.asyncio
    async def test_corrupt_file_reads_as_missing(self, tmp_path: Path):
        store = LocalWatermarkStore(str(tmp_path))
        (tmp_path / "sync-state" / "luminaire.json").write_text("{\"lastSyncDate\": 12")

        assert await store.get(DataType.LUMINAIRE) is None

    @pytest.mark.asyncio
    async def test_data_types_are_independent(self, tmp_path: Path):
        store = LocalWatermarkStore(str(tmp_path))

        await store.save(DataType.LUMINAIRE, Watermark(last_sync_date=T1))

        assert await store.get(DataType.OUTAGE_POINT) is None


class TestInMemoryWatermarkStore:
    @pytest.mark.asyncio
    async def test_last_save_wins(self):
        store = InMemoryWatermarkStore()
        later = Watermark(last_sync_date=T1.replace(hour=13))

        await store.save(DataType.LUMINAIRE, Watermark(last_sync_date=T1))
        await store.save("luminaire", later)

        assert await store.get(DataType.LUMINAIRE) == later
