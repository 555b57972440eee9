"""Deterministic synthetic feature source, used when the upstream is unavailable."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pinsync.domain.feature.model.value import (
    DataType,
    LuminaireAttributes,
    OutageAreaAttributes,
    OutagePointAttributes,
    RawGeometry,
    UpstreamBatch,
    UpstreamRecord,
)
from pinsync.domain.feature.port.data_source import DataSource
from pinsync.domain.shared.error import ValidationError

logger = logging.getLogger(__name__)

# Central London
_ORIGIN_X = -0.1278
_ORIGIN_Y = 51.5074

_STATUSES = ("reported", "investigating", "repairing", "resolved")
_CAUSES = ("equipment_failure", "weather", "accident", "maintenance")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SyntheticDataSource(DataSource):
    """Fixed set of features per data type. Every batch is flagged ``is_fallback``.

    Records and coordinates are identical on every call; only timestamps
    follow the injected clock.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock

    async def fetch(self, data_type: DataType, since: datetime | None = None) -> UpstreamBatch:
        data_type = DataType(data_type)
        now = self._clock()

        if data_type == DataType.LUMINAIRE:
            records, geometry_type = self._luminaires(now), "esriGeometryPoint"
        elif data_type == DataType.OUTAGE_AREA:
            records, geometry_type = self._outage_areas(now), "esriGeometryPolygon"
        elif data_type == DataType.OUTAGE_POINT:
            records, geometry_type = self._outage_points(now), "esriGeometryPoint"
        else:
            raise ValidationError(f"No synthetic data for {data_type}", field="dataType")

        logger.info("Serving %d synthetic %s records", len(records), data_type)
        return UpstreamBatch(
            data_type=data_type,
            records=records,
            geometry_type=geometry_type,
            since=since,
            is_fallback=True,
        )

    @staticmethod
    def _luminaires(now: datetime) -> list[UpstreamRecord]:
        return [
            UpstreamRecord(
                attributes=LuminaireAttributes(
                    OBJECTID=i + 1,
                    GlobalID=f"lum-{i + 1}",
                    name=f"Luminaire {i + 1}",
                    status="active" if i % 2 == 0 else "inactive",
                    type="streetlight",
                    wattage=150 + i * 10,
                    last_updated=now.isoformat(),
                ).model_dump(exclude_none=True),
                geometry=RawGeometry(x=_ORIGIN_X + i * 0.01, y=_ORIGIN_Y + i * 0.01),
            )
            for i in range(5)
        ]

    @staticmethod
    def _outage_areas(now: datetime) -> list[UpstreamRecord]:
        return [
            UpstreamRecord(
                attributes=OutageAreaAttributes(
                    OBJECTID=i + 1,
                    GlobalID=f"area-{i + 1}",
                    name=f"Outage Area {i + 1}",
                    customers_affected=(i + 1) * 25,
                    status=_STATUSES[i % 4],
                    cause=_CAUSES[i % 4],
                    last_modified=now.isoformat(),
                ).model_dump(exclude_none=True),
                geometry=RawGeometry(x=_ORIGIN_X - i * 0.02, y=_ORIGIN_Y + i * 0.02),
            )
            for i in range(3)
        ]

    @staticmethod
    def _outage_points(now: datetime) -> list[UpstreamRecord]:
        return [
            UpstreamRecord(
                attributes=OutagePointAttributes(
                    OBJECTID=i + 1,
                    GlobalID=f"point-{i + 1}",
                    status=_STATUSES[i % 4],
                    cause=_CAUSES[i % 4],
                    reported_at=(now - timedelta(hours=i)).isoformat(),
                    reported_date=now.isoformat(),
                ).model_dump(exclude_none=True),
                geometry=RawGeometry(x=_ORIGIN_X - i * 0.01, y=_ORIGIN_Y - i * 0.01),
            )
            for i in range(4)
        ]
