import logging
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI

from pinsync.application.api.v1.errors import register_error_handlers
from pinsync.application.api.v1.routes import cron, health, pins, sync
from pinsync.application.di import create_container
from pinsync.config import Config, configure_logging
from pinsync.infrastructure.scheduler.pool import SchedulerPool
from pinsync.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
ROUTERS = (health.router, pins.router, sync.router, cron.router)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = app.state.dishka_container
    try:
        async with await container.get(SchedulerPool):
            yield
    finally:
        await container.close()


def create_app(config: Config | None = None) -> FastAPI:
    """Build the pinsync API.

    ``config`` defaults to ``Config()``, i.e. PINSYNC_* env vars and the
    optional PINSYNC_CONFIG_FILE. uvicorn calls this as a factory.
    """
    config = config or Config()  # type: ignore[call-arg]

    configure_logging(config.logging)
    logger.info("Starting %s v%s (%s)", config.server.name, config.server.version, config.server.environment)

    app = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app)

    setup_dishka(create_container(config), app)

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    register_error_handlers(app, include_details=not config.is_production)
    return app
