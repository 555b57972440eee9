from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from pydantic import Field

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.shared.model.value import ValueObject, WireModel

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class Access(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"


class SnapshotDocument(WireModel):
    """Persisted body of a snapshot blob."""

    data: list[dict[str, Any]]
    last_updated: datetime = Field(alias="lastUpdated")
    data_type: DataType = Field(alias="dataType")
    access: Access = Access.PUBLIC
    is_fallback: bool = Field(default=False, alias="isFallback")

    @property
    def version(self) -> datetime:
        return self.last_updated

    @property
    def total(self) -> int:
        return len(self.data)

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode()


class SnapshotInfo(ValueObject):
    """Listing entry for a persisted snapshot (derived from its blob name)."""

    reference: str
    pathname: str
    data_type: DataType
    last_updated: datetime
    size: int


class BlobInfo(ValueObject):
    url: str
    pathname: str
    size: int
    uploaded_at: datetime


def encode_version(version: datetime) -> int:
    """Microseconds since the epoch; used in blob names so listings sort by version."""
    return (version - EPOCH) // timedelta(microseconds=1)


def decode_version(micros: int) -> datetime:
    return EPOCH + timedelta(microseconds=micros)
