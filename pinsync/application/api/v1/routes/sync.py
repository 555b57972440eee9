"""Sync API routes."""

from datetime import UTC, datetime

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel, Field

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.sync.service.coordinator import SyncCoordinator

router = APIRouter(
    prefix="/sync",
    tags=["sync"],
    route_class=DishkaRoute,
)


class SyncRequest(BaseModel):
    model_config = {"populate_by_name": True}

    data_type: DataType = Field(alias="dataType")
    force: bool = False


class SyncResponse(BaseModel):
    success: bool = True
    url: str
    timestamp: datetime


@router.post("")
async def sync(
    body: SyncRequest,
    coordinator: FromDishka[SyncCoordinator],
) -> SyncResponse:
    """Sync a data type, joining any sync already running for it."""
    url = await coordinator.sync_if_needed(body.data_type, force=body.force)
    return SyncResponse(url=url, timestamp=datetime.now(UTC))
