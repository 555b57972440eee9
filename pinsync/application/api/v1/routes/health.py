from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel

from pinsync.config import Config

router = APIRouter(tags=["health"], route_class=DishkaRoute)


class HealthResponse(BaseModel):
    status: str
    version: str


@router.get("/health")
async def health(config: FromDishka[Config]) -> HealthResponse:
    return HealthResponse(status="ok", version=config.server.version)
