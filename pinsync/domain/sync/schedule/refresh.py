"""RefreshSchedule - periodically forces a sync of the pins view."""

import logging
from dataclasses import dataclass
from typing import Any

from pinsync.domain.shared.schedule import Schedule
from pinsync.domain.sync.service.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)


@dataclass
class RefreshSchedule(Schedule):
    coordinator: SyncCoordinator

    async def run(self, **params: Any) -> None:
        """Params:
        data_type: Data type to refresh (e.g., "luminaire")
        """
        data_type: str = params["data_type"]
        reference = await self.coordinator.sync_if_needed(data_type, force=True)
        logger.info(f"Scheduled refresh of {data_type} wrote {reference}")
