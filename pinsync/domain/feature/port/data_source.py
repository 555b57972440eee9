"""Port for pulling feature records from an upstream source."""

from abc import abstractmethod
from datetime import datetime
from typing import Protocol

from pinsync.domain.feature.model.value import DataType, UpstreamBatch
from pinsync.domain.shared.port import Port


class DataSource(Port, Protocol):
    """Retrieves records changed since a watermark (or all records when none is given).

    Implementations are pure reads. They raise UpstreamFetchError on transport
    failure and MissingConfigurationError when the data type has no endpoint or
    credentials; neither is retried internally.
    """

    @abstractmethod
    async def fetch(self, data_type: DataType, since: datetime | None = None) -> UpstreamBatch: ...
