"""Pins API routes - paginated snapshot reads and snapshot uploads."""

from typing import Any

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.pagination.service.paginator import ChunkPaginator, Page
from pinsync.domain.snapshot.model.value import Access
from pinsync.domain.snapshot.service.snapshot import SnapshotStore

router = APIRouter(
    prefix="/pins",
    tags=["pins"],
    route_class=DishkaRoute,
)


class SavePinsRequest(BaseModel):
    """Request body for uploading a snapshot."""

    model_config = {"populate_by_name": True}

    data: list[dict[str, Any]]
    data_type: DataType = Field(default=DataType.PINS, alias="dataType")
    access: Access = Access.PUBLIC


class SavePinsResponse(BaseModel):
    url: str


@router.get("")
async def get_pins(
    paginator: FromDishka[ChunkPaginator],
    fresh: bool = Query(False, description="Force a new sync before paging"),
    url: str | None = Query(None, description="Snapshot reference from a previous page"),
    offset: int = Query(0, description="Index of the first record"),
    limit: int | None = Query(None, description="Records per page (capped by the server)"),
    data_type: DataType | None = Query(None, alias="dataType", description="Data type to page"),
) -> Page:
    """Return one page of a snapshot.

    Without ``url`` (or with ``fresh``) the current snapshot is resolved first.
    Keep passing the returned ``url`` to page through the same version.
    """
    return await paginator.page(reference=url, fresh=fresh, offset=offset, limit=limit, data_type=data_type)


@router.post("")
async def save_pins(
    body: SavePinsRequest,
    snapshots: FromDishka[SnapshotStore],
) -> SavePinsResponse:
    """Persist the posted records as a new snapshot."""
    url = await snapshots.write(body.data, body.data_type, access=body.access)
    return SavePinsResponse(url=url)
