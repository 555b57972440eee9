"""Dependency injection provider for scheduled tasks."""

import logging

from dishka import AsyncContainer, provide

from pinsync.config import Config
from pinsync.domain.retention.schedule import CleanupSchedule
from pinsync.domain.sync.schedule import RefreshSchedule
from pinsync.infrastructure.scheduler.pool import ScheduleConfig, ScheduleConfigs, SchedulerPool
from pinsync.util.di.base import Provider
from pinsync.util.di.scope import Scope

logger = logging.getLogger(__name__)


def build_schedule_configs(config: Config) -> ScheduleConfigs:
    """Schedules enabled by config; a None cron disables the task."""
    schedules = []
    if config.retention.cron:
        schedules.append(
            ScheduleConfig(schedule_type=CleanupSchedule, cron=config.retention.cron, id="retention-cleanup")
        )
    if config.sync.refresh_cron:
        schedules.append(
            ScheduleConfig(
                schedule_type=RefreshSchedule,
                cron=config.sync.refresh_cron,
                id="refresh-pins",
                params={"data_type": str(config.sync.refresh_data_type)},
            )
        )
    return ScheduleConfigs(schedules)


class SchedulerProvider(Provider):
    """Schedules are UOW-scoped (fresh per run); the pool is an APP-scoped singleton."""

    cleanup_schedule = provide(CleanupSchedule, scope=Scope.UOW)
    refresh_schedule = provide(RefreshSchedule, scope=Scope.UOW)

    @provide(scope=Scope.APP)
    def get_schedule_configs(self, config: Config) -> ScheduleConfigs:
        return build_schedule_configs(config)

    @provide(scope=Scope.APP)
    def get_scheduler_pool(self, container: AsyncContainer, schedules: ScheduleConfigs) -> SchedulerPool:
        pool = SchedulerPool(container=container, schedules=schedules)
        logger.info(f"SchedulerPool created with {len(pool.schedules)} schedules")
        return pool
