"""RecordProcessor - normalizes upstream features into storage-ready records."""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pinsync.domain.feature.model.value import (
    ID_FIELDS,
    Geometry,
    ProcessedRecord,
    UpstreamBatch,
    UpstreamRecord,
)
from pinsync.domain.shared.error import ValidationError
from pinsync.domain.shared.service import Service

logger = logging.getLogger(__name__)

_ESRI_GEOMETRY_PREFIX = "esriGeometry"


def geometry_kind(geometry_type: str | None) -> str:
    """Map an ESRI geometry type name to a GeoJSON-style kind ("Point" by default)."""
    if not geometry_type:
        return "Point"
    kind = geometry_type.removeprefix(_ESRI_GEOMETRY_PREFIX)
    return kind or "Point"


def record_id(attributes: Mapping[str, Any]) -> str | None:
    """Return the first identifier attribute present, stringified."""
    for field in ID_FIELDS:
        value = attributes.get(field)
        if value is not None and value != "":
            return str(value)
    return None


class RecordProcessor(Service):
    """Pure, total transform from UpstreamRecord to ProcessedRecord.

    Every input record yields exactly one output record. Attributes are not
    assumed to follow a fixed schema: anything unknown passes through as-is.
    Identifier and geometry are validated eagerly.
    """

    def process(self, batch: UpstreamBatch) -> list[ProcessedRecord]:
        kind = geometry_kind(batch.geometry_type)
        return [self.process_record(record, kind) for record in batch.records]

    def process_record(self, record: UpstreamRecord, kind: str = "Point") -> ProcessedRecord:
        identifier = record_id(record.attributes)
        if identifier is None:
            raise ValidationError(
                f"Feature has none of the identifier attributes {', '.join(ID_FIELDS)}",
                field="attributes",
            )
        if record.geometry is None:
            raise ValidationError(f"Feature {identifier} has no geometry", field="geometry")

        attributes = {k: v for k, v in record.attributes.items() if k not in ("id", "geometry")}
        return ProcessedRecord(
            id=identifier,
            geometry=Geometry(type=kind, coordinates=(record.geometry.x, record.geometry.y)),
            **attributes,
        )

    def merge(
        self,
        previous: Sequence[Mapping[str, Any]],
        delta: Iterable[ProcessedRecord],
    ) -> list[dict[str, Any]]:
        """Upsert delta records into a previous snapshot's records by identifier.

        Existing records keep their position; unseen identifiers are appended
        in delta order. The previous sequence is not modified.
        """
        merged: dict[str, dict[str, Any]] = {}
        for item in previous:
            key = str(item.get("id"))
            merged[key] = dict(item)

        replaced = 0
        for record in delta:
            if record.id in merged:
                replaced += 1
            merged[record.id] = record.to_document()

        logger.debug("Merged delta into %d previous records (%d replaced)", len(previous), replaced)
        return list(merged.values())
