"""CleanupSchedule - scheduled storage check that prunes old snapshots."""

import logging
from dataclasses import dataclass
from typing import Any

from pinsync.domain.retention.service.monitor import RetentionMonitor
from pinsync.domain.shared.schedule import Schedule

logger = logging.getLogger(__name__)


@dataclass
class CleanupSchedule(Schedule):
    monitor: RetentionMonitor

    async def run(self, **params: Any) -> None:
        report = await self.monitor.run_cleanup()
        if report.errors:
            logger.warning(f"Scheduled cleanup finished with {len(report.errors)} errors")
