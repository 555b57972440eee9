"""Unit tests for RecordProcessor."""

import pytest

from pinsync.domain.feature.model.value import (
    DataType,
    ProcessedRecord,
    RawGeometry,
    UpstreamBatch,
    UpstreamRecord,
)
from pinsync.domain.feature.service.processor import RecordProcessor, geometry_kind, record_id
from pinsync.domain.shared.error import ValidationError


def make_record(object_id: int | None, x: float = -0.1278, y: float = 51.5074, **attributes) -> UpstreamRecord:
    if object_id is not None:
        attributes["OBJECTID"] = object_id
    return UpstreamRecord(attributes=attributes, geometry=RawGeometry(x=x, y=y))


@pytest.fixture
def processor() -> RecordProcessor:
    return RecordProcessor()


class TestProcess:
    def test_one_output_per_input_with_identifier_preserved(self, processor: RecordProcessor):
        batch = UpstreamBatch(
            data_type=DataType.LUMINAIRE,
            records=[make_record(1), make_record(2), make_record(3)],
        )

        processed = processor.process(batch)

        assert [r.id for r in processed] == ["1", "2", "3"]

    def test_coordinates_are_x_then_y(self, processor: RecordProcessor):
        batch = UpstreamBatch(data_type=DataType.LUMINAIRE, records=[make_record(1, x=-0.12, y=51.5)])

        record = processor.process(batch)[0]

        assert record.geometry.coordinates == (-0.12, 51.5)
        assert record.to_document()["geometry"] == {"type": "Point", "coordinates": [-0.12, 51.5]}

    def test_geometry_kind_strips_esri_prefix(self, processor: RecordProcessor):
        batch = UpstreamBatch(
            data_type=DataType.OUTAGE_AREA,
            records=[make_record(1)],
            geometry_type="esriGeometryPolygon",
        )

        assert processor.process(batch)[0].geometry.type == "Polygon"

    def test_unknown_attributes_pass_through(self, processor: RecordProcessor):
        batch = UpstreamBatch(
            data_type=DataType.LUMINAIRE,
            records=[make_record(7, name="Lamp 7", pole_material="steel", wattage=150)],
        )

        document = processor.process(batch)[0].to_document()

        assert document["pole_material"] == "steel"
        assert document["name"] == "Lamp 7"
        assert document["wattage"] == 150
        assert document["OBJECTID"] == 7
        assert document["id"] == "7"

    def test_empty_batch_gives_empty_list(self, processor: RecordProcessor):
        assert processor.process(UpstreamBatch(data_type=DataType.OUTAGE_POINT)) == []

    def test_missing_identifier_raises(self, processor: RecordProcessor):
        batch = UpstreamBatch(data_type=DataType.LUMINAIRE, records=[make_record(None, name="anonymous")])

        with pytest.raises(ValidationError) as exc_info:
            processor.process(batch)

        assert exc_info.value.field == "attributes"

    def test_missing_geometry_raises(self, processor: RecordProcessor):
        record = UpstreamRecord(attributes={"OBJECTID": 1})

        with pytest.raises(ValidationError) as exc_info:
            processor.process_record(record)

        assert exc_info.value.field == "geometry"


class TestIdentifiers:
    def test_globalid_used_when_no_objectid(self):
        assert record_id({"GlobalID": "lum-1"}) == "lum-1"

    def test_objectid_preferred_over_globalid(self):
        assert record_id({"GlobalID": "lum-1", "OBJECTID": 9}) == "9"

    def test_empty_values_are_skipped(self):
        assert record_id({"OBJECTID": "", "globalid": "abc"}) == "abc"

    @pytest.mark.parametrize(
        ("geometry_type", "expected"),
        [(None, "Point"), ("", "Point"), ("esriGeometryPoint", "Point"), ("esriGeometryPolyline", "Polyline")],
    )
    def test_geometry_kind(self, geometry_type, expected):
        assert geometry_kind(geometry_type) == expected


class TestMerge:
    def test_delta_replaces_existing_and_appends_new(self, processor: RecordProcessor):
        previous = [
            {"name": "one", "id": "1", "geometry": {"type": "Point", "coordinates": [0.0, 0.0]}},
            {"name": "two", "id": "2", "geometry": {"type": "Point", "coordinates": [1.0, 1.0]}},
        ]
        delta = processor.process(
            UpstreamBatch(
                data_type=DataType.LUMINAIRE,
                records=[make_record(2, name="two (repaired)"), make_record(3, name="three")],
            )
        )

        merged = processor.merge(previous, delta)

        assert [r["id"] for r in merged] == ["1", "2", "3"]
        assert merged[1]["name"] == "two (repaired)"

    def test_previous_is_not_modified(self, processor: RecordProcessor):
        previous = [{"id": "1", "name": "one"}]
        delta = [ProcessedRecord(id="1", geometry={"coordinates": (0.0, 0.0)}, name="changed")]

        processor.merge(previous, delta)

        assert previous == [{"id": "1", "name": "one"}]

    def test_empty_delta_keeps_previous(self, processor: RecordProcessor):
        previous = [{"id": "1"}, {"id": "2"}]

        assert processor.merge(previous, []) == previous
