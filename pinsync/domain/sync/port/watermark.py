"""Port for the persisted per-data-type sync watermark."""

from abc import abstractmethod
from typing import Protocol

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.shared.port import Port
from pinsync.domain.sync.model.value import Watermark


class WatermarkStore(Port, Protocol):
    @abstractmethod
    async def get(self, data_type: DataType) -> Watermark | None:
        """Return the watermark, or None if the data type was never synced."""
        ...

    @abstractmethod
    async def save(self, data_type: DataType, watermark: Watermark) -> None:
        """Replace the watermark for a data type."""
        ...
