import logging
import tempfile
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from pinsync.domain.feature.model.value import DataType
from pinsync.domain.shared.error import StorageUnavailableError
from pinsync.domain.sync.model.value import Watermark
from pinsync.domain.sync.port.watermark import WatermarkStore

logger = logging.getLogger(__name__)


class LocalWatermarkStore(WatermarkStore):
    """One JSON file per data type at ``<base_path>/sync-state/<dataType>.json``."""

    def __init__(self, base_path: str) -> None:
        self.state_dir = Path(base_path) / "sync-state"
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, data_type: DataType) -> Path:
        return self.state_dir / f"{DataType(data_type)}.json"

    async def get(self, data_type: DataType) -> Watermark | None:
        path = self._path(data_type)
        if not path.exists():
            return None
        try:
            return Watermark.model_validate_json(path.read_text())
        except PydanticValidationError as e:
            # An unreadable watermark means the next sync is a full fetch
            logger.error("Ignoring corrupt watermark %s: %s", path, e)
            return None

    async def save(self, data_type: DataType, watermark: Watermark) -> None:
        path = self._path(data_type)

        # Atomic write: write to temp file then rename
        fd, tmp_path = tempfile.mkstemp(dir=self.state_dir)
        try:
            with open(fd, "w") as f:
                f.write(watermark.model_dump_json(by_alias=True, exclude_none=True))
            Path(tmp_path).replace(path)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise StorageUnavailableError(f"Failed to save watermark for {data_type}: {e}") from e

        logger.debug("Watermark for %s set to %s", data_type, watermark.last_sync_date.isoformat())


class InMemoryWatermarkStore(WatermarkStore):
    def __init__(self) -> None:
        self._watermarks: dict[DataType, Watermark] = {}

    async def get(self, data_type: DataType) -> Watermark | None:
        return self._watermarks.get(DataType(data_type))

    async def save(self, data_type: DataType, watermark: Watermark) -> None:
        self._watermarks[DataType(data_type)] = watermark
