from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class Schedule(ABC):
    """A task fired by SchedulerPool on a cron trigger.

    Fields are the task's dependencies and are filled in by dishka for each
    run. The cron expression and ``run`` kwargs come from ScheduleConfig.
    """

    @abstractmethod
    async def run(self, **params: Any) -> None: ...
