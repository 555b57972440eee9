"""ChunkPaginator - serves fixed-size pages of one snapshot version."""

import logging
from datetime import datetime
from typing import Any

from pydantic import Field

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.shared.error import NotFoundError, SnapshotNotFoundError, ValidationError
from pinsync.domain.shared.model.value import WireModel
from pinsync.domain.shared.service import Service
from pinsync.domain.snapshot.service.snapshot import SnapshotStore
from pinsync.domain.sync.service.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)


class Page(WireModel):
    """One chunk of a snapshot plus the version it was cut from."""

    version: datetime
    url: str
    data: list[dict[str, Any]]
    total: int
    offset: int
    limit: int
    is_fallback: bool = Field(default=False, alias="isFallback")

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.data) < self.total


class ChunkPaginator(Service):
    """Slices persisted snapshots so clients never trigger an upstream query per page.

    Given the same reference, offsets 0, limit, 2*limit, ... tile the snapshot
    exactly; offsets past the end yield an empty page.
    """

    snapshots: SnapshotStore
    coordinator: SyncCoordinator
    default_limit: int = 1000
    max_limit: int = 5000
    default_data_type: DataType = DataType.LUMINAIRE

    async def page(
        self,
        reference: str | None = None,
        fresh: bool = False,
        offset: int = 0,
        limit: int | None = None,
        data_type: DataType | str | None = None,
    ) -> Page:
        """Return records[offset:offset+limit] of a snapshot.

        Without a reference (or with fresh=True) the current snapshot for
        data_type is resolved first, forcing a new sync when fresh is set.
        If that resolved snapshot has since been deleted, the sync is redone once.
        """
        if offset < 0:
            raise ValidationError(f"offset must be >= 0, got {offset}", field="offset")
        if limit is None:
            limit = self.default_limit
        if limit < 1:
            raise ValidationError(f"limit must be >= 1, got {limit}", field="limit")
        limit = min(limit, self.max_limit)

        current: DataType | None = None
        if fresh or reference is None:
            current = DataType(data_type or self.default_data_type)
            reference = await self._resolve(current, fresh)

        try:
            document = await self.snapshots.read(reference)
        except SnapshotNotFoundError:
            if current is None or not current.upstream:
                raise
            # The cached sync result was pruned after a newer snapshot of its type was written
            logger.warning("Current %s snapshot %s is gone; syncing again", current, reference)
            reference = await self.coordinator.sync_if_needed(current, force=True)
            document = await self.snapshots.read(reference)

        data = document.data[offset : offset + limit]
        logger.debug("Page %s [%d:%d] of %d", reference, offset, offset + len(data), document.total)

        return Page(
            version=document.version,
            url=reference,
            data=data,
            total=document.total,
            offset=offset,
            limit=limit,
            is_fallback=document.is_fallback,
        )

    async def _resolve(self, data_type: DataType, fresh: bool) -> str:
        if data_type.upstream:
            return await self.coordinator.sync_if_needed(data_type, force=fresh)

        # Posted snapshots are never synced: serve the newest one
        latest = await self.snapshots.latest(data_type)
        if latest is None:
            raise NotFoundError(f"No {data_type} snapshot has been posted")
        return latest.reference
