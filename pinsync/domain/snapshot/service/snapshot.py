"""SnapshotStore - immutable, versioned snapshots on top of a BlobStore."""

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import field
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from pinsync.domain.feature.model.value import DataType, ProcessedRecord
from pinsync.domain.shared.error import NotFoundError, SnapshotNotFoundError, ValidationError
from pinsync.domain.shared.service import Service
from pinsync.domain.snapshot.model.value import (
    Access,
    BlobInfo,
    SnapshotDocument,
    SnapshotInfo,
    decode_version,
    encode_version,
)
from pinsync.domain.snapshot.port.blob_store import BlobStore

logger = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "snapshots/"

_ONE_TICK = timedelta(microseconds=1)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_document(record: ProcessedRecord | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(record, ProcessedRecord):
        return record.to_document()
    return dict(record)


def _documents(records: Sequence[ProcessedRecord | Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Serialize records, rejecting a batch in which an id occurs twice."""
    documents = [_as_document(r) for r in records]
    ids = Counter(str(d["id"]) for d in documents if d.get("id") is not None)
    duplicates = sorted(i for i, n in ids.items() if n > 1)
    if duplicates:
        shown = ", ".join(duplicates[:5]) + (", ..." if len(duplicates) > 5 else "")
        raise ValidationError(f"Duplicate record ids in snapshot: {shown}", field="data")
    return documents


def parse_snapshot_name(blob: BlobInfo) -> SnapshotInfo | None:
    """Recover data type and version from a name like snapshots/luminaire-<micros>-<seq>.json."""
    if not blob.pathname.startswith(SNAPSHOT_PREFIX) or not blob.pathname.endswith(".json"):
        return None
    stem = blob.pathname[len(SNAPSHOT_PREFIX) : -len(".json")]
    try:
        data_type, micros, _seq = stem.rsplit("-", 2)
        return SnapshotInfo(
            reference=blob.url,
            pathname=blob.pathname,
            data_type=DataType(data_type),
            last_updated=decode_version(int(micros)),
            size=blob.size,
        )
    except ValueError:
        return None


class SnapshotStore(Service):
    """Writes, reads and deletes snapshots.

    Each write creates a new uniquely named blob; nothing is mutated in place.
    Versions (lastUpdated) are strictly increasing per data type, even when the
    clock does not advance between writes.
    """

    blobs: BlobStore
    clock: Callable[[], datetime] = _utc_now
    _last_versions: dict[DataType, datetime] = field(default_factory=dict, init=False, repr=False)
    _sequence: int = field(default=0, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def write(
        self,
        records: Sequence[ProcessedRecord | Mapping[str, Any]],
        data_type: DataType | str,
        access: Access | str = Access.PUBLIC,
        is_fallback: bool = False,
    ) -> str:
        """Persist records as a new snapshot and return its reference.

        Raises:
            ValidationError: Two records share an id.
        """
        data_type = DataType(data_type)
        access = Access(access)
        documents = _documents(records)

        with self.span("write", data_type=str(data_type), count=len(records)):
            async with self._lock:
                version = await self._next_version(data_type)
                self._sequence += 1
                sequence = self._sequence

            document = SnapshotDocument(
                data=documents,
                last_updated=version,
                data_type=data_type,
                access=access,
                is_fallback=is_fallback,
            )
            pathname = f"{SNAPSHOT_PREFIX}{data_type}-{encode_version(version)}-{sequence:06d}.json"
            reference = await self.blobs.put(pathname, document.to_json(), access)

        logger.info(
            "Wrote snapshot %s (%d records, version=%s%s)",
            reference,
            len(records),
            version.isoformat(),
            ", fallback" if is_fallback else "",
        )
        return reference

    async def read(self, reference: str) -> SnapshotDocument:
        try:
            body = await self.blobs.get(reference)
        except NotFoundError:
            raise SnapshotNotFoundError(reference) from None

        try:
            return SnapshotDocument.model_validate(body)
        except PydanticValidationError as e:
            raise ValidationError(f"Malformed snapshot at {reference}: {e.error_count()} errors") from e

    async def delete(self, reference: str) -> None:
        await self.blobs.delete(reference)
        logger.debug("Deleted snapshot %s", reference)

    async def list_snapshots(self, data_type: DataType | str | None = None) -> list[SnapshotInfo]:
        """List snapshots oldest first, optionally for a single data type."""
        prefix = SNAPSHOT_PREFIX if data_type is None else f"{SNAPSHOT_PREFIX}{DataType(data_type)}-"
        snapshots = []
        for blob in await self.blobs.list(prefix):
            info = parse_snapshot_name(blob)
            if info is None:
                logger.debug("Skipping non-snapshot blob %s", blob.pathname)
                continue
            if data_type is not None and info.data_type != DataType(data_type):
                continue
            snapshots.append(info)
        return sorted(snapshots, key=lambda s: (s.last_updated, s.pathname))

    async def latest(self, data_type: DataType | str) -> SnapshotInfo | None:
        snapshots = await self.list_snapshots(data_type)
        return snapshots[-1] if snapshots else None

    async def _next_version(self, data_type: DataType) -> datetime:
        last = self._last_versions.get(data_type)
        if last is None:
            # First write for this type in this process: continue after what is persisted
            latest = await self.latest(data_type)
            last = latest.last_updated if latest else None

        version = self.clock()
        if last is not None and version <= last:
            version = last + _ONE_TICK
        self._last_versions[data_type] = version
        return version
