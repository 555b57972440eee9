from pinsync.infrastructure.scheduler.di import SchedulerProvider
from pinsync.infrastructure.scheduler.pool import ScheduleConfig, ScheduleConfigs, SchedulerPool

__all__ = ["ScheduleConfig", "ScheduleConfigs", "SchedulerPool", "SchedulerProvider"]
