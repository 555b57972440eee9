"""Feature records: raw upstream shape, per-data-type attribute schemas, processed shape."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pinsync.domain.shared.model.value import ValueObject


class DataType(StrEnum):
    LUMINAIRE = "luminaire"
    OUTAGE_AREA = "outage-area"
    OUTAGE_POINT = "outage-point"
    PINS = "pins"  # Explicitly posted snapshots and the default map view

    @property
    def upstream(self) -> bool:
        """Whether records of this type are pulled from the feature service."""
        return self in UPSTREAM_DATA_TYPES


UPSTREAM_DATA_TYPES = frozenset({DataType.LUMINAIRE, DataType.OUTAGE_AREA, DataType.OUTAGE_POINT})

# Field compared against the watermark in delta queries
DATE_FIELDS: dict[DataType, str] = {
    DataType.LUMINAIRE: "last_updated",
    DataType.OUTAGE_AREA: "last_modified",
    DataType.OUTAGE_POINT: "reported_date",
}

# Identifier attributes in preference order (ESRI services vary in casing)
ID_FIELDS: tuple[str, ...] = ("id", "OBJECTID", "objectid", "GlobalID", "globalid", "g3e_fid")


# =============================================================================
# Attribute schemas (field layout of each upstream layer)
# =============================================================================


class FeatureAttributes(BaseModel):
    """Attributes shared by all ESRI features. Unknown attributes pass through."""

    model_config = ConfigDict(extra="allow")

    OBJECTID: int | str | None = None
    GlobalID: str | None = None


class LuminaireAttributes(FeatureAttributes):
    name: str | None = None
    status: str | None = None  # active | inactive | maintenance | outage
    type: str | None = None
    wattage: float | None = None
    installation_date: str | None = None
    last_updated: str | None = None


class OutageAreaAttributes(FeatureAttributes):
    name: str | None = None
    customers_affected: int | None = None
    status: str | None = None  # reported | investigating | repairing | resolved
    estimated_restoration: str | None = None
    cause: str | None = None
    last_modified: str | None = None


class OutagePointAttributes(FeatureAttributes):
    status: str | None = None
    cause: str | None = None  # equipment_failure | weather | accident | maintenance | unknown
    reported_at: str | None = None
    resolved_at: str | None = None
    reported_date: str | None = None


# =============================================================================
# Upstream shape
# =============================================================================


class RawGeometry(ValueObject):
    x: float
    y: float


class UpstreamRecord(ValueObject):
    """One feature as returned by the feature service. Never persisted."""

    attributes: dict[str, Any]
    geometry: RawGeometry | None = None


class UpstreamBatch(ValueObject):
    """Result of one DataSource.fetch call."""

    data_type: DataType
    records: list[UpstreamRecord] = Field(default_factory=list)
    geometry_type: str | None = None  # e.g. "esriGeometryPoint"
    since: datetime | None = None  # Watermark the query was filtered by (None = full fetch)
    exceeded_transfer_limit: bool = False
    is_fallback: bool = False


# =============================================================================
# Processed shape
# =============================================================================


class Geometry(ValueObject):
    type: str = "Point"
    coordinates: tuple[float, float]


class ProcessedRecord(BaseModel):
    """Flat, storage-ready record: identifier + original attributes + geometry."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    geometry: Geometry

    @property
    def attributes(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def to_document(self) -> dict[str, Any]:
        """Serialize for snapshot storage: attributes first, then id and geometry."""
        return {
            **self.attributes,
            "id": self.id,
            "geometry": {"type": self.geometry.type, "coordinates": list(self.geometry.coordinates)},
        }
