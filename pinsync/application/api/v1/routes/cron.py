"""Cron-triggered maintenance routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel

from pinsync.config import Config
from pinsync.domain.retention.model.value import CleanupReport
from pinsync.domain.retention.service.monitor import RetentionMonitor
from pinsync.domain.sync.service.coordinator import SyncCoordinator

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    route_class=DishkaRoute,
)


class RefreshResponse(BaseModel):
    success: bool = True
    url: str


@router.get("/cleanup")
async def cleanup(monitor: FromDishka[RetentionMonitor]) -> CleanupReport:
    """Check storage usage and prune old snapshots when above the threshold."""
    return await monitor.run_cleanup()


@router.get("/refresh-pins")
async def refresh_pins(
    coordinator: FromDishka[SyncCoordinator],
    config: FromDishka[Config],
) -> RefreshResponse:
    """Force a sync of the configured refresh data type."""
    url = await coordinator.sync_if_needed(config.sync.refresh_data_type, force=True)
    return RefreshResponse(url=url)
