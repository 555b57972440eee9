"""SchedulerPool - fires Schedule tasks from cron expressions with apscheduler."""

import asyncio
import logging
from collections import Counter
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, NewType

from apscheduler import AsyncScheduler
from apscheduler.triggers.cron import CronTrigger
from dishka import AsyncContainer

from pinsync.domain.shared.schedule import Schedule
from pinsync.util.di.scope import Scope

logger = logging.getLogger(__name__)

# After this many failures in a row a schedule is reported at CRITICAL.
MAX_CONSECUTIVE_FAILURES = 5


@dataclass
class ScheduleConfig:
    schedule_type: type[Schedule]
    cron: str  # Standard 5-field crontab
    id: str
    params: dict[str, Any] = field(default_factory=dict)  # Keyword arguments for Schedule.run


ScheduleConfigs = NewType("ScheduleConfigs", list[ScheduleConfig])


class SchedulerPool:
    """Runs each configured schedule on its cron trigger.

    Every run resolves its Schedule from a fresh ``Scope.UOW`` child of the
    app container. A failing run is logged and counted; it never stops the
    scheduler or the other schedules.

        async with SchedulerPool(container, schedules):
            ...  # schedules fire in the background
    """

    def __init__(self, container: AsyncContainer | None = None, schedules: ScheduleConfigs | None = None) -> None:
        self._container = container
        self._schedules = list(schedules or [])
        self._failures: Counter[str] = Counter()
        self._stack: AsyncExitStack | None = None

    @property
    def schedules(self) -> list[ScheduleConfig]:
        return list(self._schedules)

    def failures(self, schedule_id: str) -> int:
        """Consecutive failed runs of ``schedule_id``; reset by a successful run."""
        return self._failures[schedule_id]

    async def start(self) -> None:
        if self._container is None:
            raise RuntimeError("SchedulerPool has no container to resolve schedules from")

        async with AsyncExitStack() as stack:
            scheduler = await stack.enter_async_context(AsyncScheduler())
            for config in self._schedules:
                await scheduler.add_schedule(
                    self._run_schedule,
                    CronTrigger.from_crontab(config.cron),
                    id=config.id,
                    kwargs={"config": config},
                )
                logger.debug("Registered schedule %s (cron=%s)", config.id, config.cron)
            await scheduler.start_in_background()
            self._stack = stack.pop_all()

        logger.info("SchedulerPool started with %d schedules", len(self._schedules))

    async def stop(self) -> None:
        if self._stack is not None:
            stack, self._stack = self._stack, None
            await stack.aclose()
        logger.info("SchedulerPool stopped")

    async def _run_schedule(self, config: ScheduleConfig) -> None:
        if self._container is None:
            return

        try:
            async with self._container(scope=Scope.UOW) as uow:
                schedule = await uow.get(config.schedule_type)
                await schedule.run(**config.params)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._failures[config.id] += 1
            failures = self._failures[config.id]
            level = logging.CRITICAL if failures >= MAX_CONSECUTIVE_FAILURES else logging.ERROR
            logger.log(level, "Schedule %s failed (%d in a row): %s", config.id, failures, e)
        else:
            del self._failures[config.id]
            logger.debug("Ran schedule %s", config.id)

    async def __aenter__(self) -> "SchedulerPool":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
