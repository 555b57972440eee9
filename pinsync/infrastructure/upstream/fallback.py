"""FallbackDataSource - real upstream first, synthetic data when it cannot be used."""

import logging
from datetime import datetime

from pinsync.domain.feature.model.value import DataType, UpstreamBatch
from pinsync.domain.feature.port.data_source import DataSource
from pinsync.domain.shared.error import MissingConfigurationError, UpstreamFetchError

logger = logging.getLogger(__name__)


class FallbackDataSource(DataSource):
    """Delegates to ``primary`` and substitutes ``fallback`` on failure.

    Missing configuration always falls back. Upstream fetch errors fall back
    only when ``on_error`` is set; otherwise they propagate.
    """

    def __init__(self, primary: DataSource, fallback: DataSource, on_error: bool = False) -> None:
        self._primary = primary
        self._fallback = fallback
        self._on_error = on_error

    async def fetch(self, data_type: DataType, since: datetime | None = None) -> UpstreamBatch:
        try:
            return await self._primary.fetch(data_type, since)
        except MissingConfigurationError as e:
            logger.warning("%s; using synthetic data", e.message)
        except UpstreamFetchError as e:
            if not self._on_error:
                raise
            logger.warning("Upstream %s fetch failed (%s); using synthetic data", data_type, e.message)
        return await self._fallback.fetch(data_type, since)
