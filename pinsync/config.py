import logging
import os
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from pinsync.domain.feature.model.value import DataType

# =============================================================================
# Upstream Configuration
# =============================================================================


class UpstreamConfig(BaseModel):
    """ESRI feature service endpoints (nested in Config, uses env_nested_delimiter).

    Endpoints default to the EIP_* variables used by existing deployments, so
    PINSYNC_UPSTREAM__LUMINAIRE_URL and EIP_LUMINAIRES_URL both work.
    """

    luminaire_url: str = Field(default_factory=lambda: os.environ.get("EIP_LUMINAIRES_URL", ""))
    outage_area_url: str = Field(default_factory=lambda: os.environ.get("EIP_OUTAGE_AREAS_URL", ""))
    outage_point_url: str = Field(default_factory=lambda: os.environ.get("EIP_OUTAGE_POINTS_URL", ""))
    api_key: str = Field(default_factory=lambda: os.environ.get("EIP_GATEWAY_API_KEY", ""))
    page_size: int = Field(default=1000, ge=1)  # resultRecordCount per request
    max_pages: int = Field(default=1000, ge=1)  # Give up on a layer that never stops paging
    order_by: str = "OBJECTID"  # orderByFields, keeps resultOffset pages stable; "" to omit
    timeout: float = 30.0  # Seconds per upstream request
    fallback_on_error: bool = False  # Serve synthetic data when the upstream fails

    def url_for(self, data_type: DataType) -> str:
        return {
            DataType.LUMINAIRE: self.luminaire_url,
            DataType.OUTAGE_AREA: self.outage_area_url,
            DataType.OUTAGE_POINT: self.outage_point_url,
        }.get(data_type, "")


# =============================================================================
# Storage / Sync / Retention Configuration
# =============================================================================


class StorageConfig(BaseModel):
    """Blob storage configuration."""

    backend: Literal["local", "memory"] = "local"
    base_path: str = "./data"  # Snapshots and sync-state live below this directory
    public_base_url: str = ""  # Prefix for blob URLs; empty = file:// URLs
    capacity_bytes: int = Field(default=100 * 1024 * 1024, gt=0)


class SyncConfig(BaseModel):
    cache_ttl_seconds: float | None = 300.0  # None = completed syncs are reused until forced
    refresh_data_type: DataType = DataType.LUMINAIRE
    refresh_cron: str | None = None  # e.g. "*/15 * * * *"; None disables scheduled refresh


class PaginationConfig(BaseModel):
    default_limit: int = Field(default=1000, ge=1)
    max_limit: int = Field(default=5000, ge=1)
    default_data_type: DataType = DataType.LUMINAIRE


class RetentionConfig(BaseModel):
    threshold_percent: int = Field(default=70, ge=0, le=100)
    cron: str | None = "0 0 * * *"  # Daily at midnight; None disables scheduled cleanup


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings read from the YAML file named by PINSYNC_CONFIG_FILE, if it exists."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self.path = os.environ.get("PINSYNC_CONFIG_FILE")
        self.data = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path or not Path(self.path).is_file():
            return {}
        data = yaml.safe_load(Path(self.path).read_text())
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a mapping at the top level")
        return data or {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self.data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {name: value for name, value in self.data.items() if name in self.settings_cls.model_fields}


class Server(BaseModel):
    name: str = "pinsync"
    version: str = "0.1.0"
    description: str = "Versioned snapshot sync and paginated pins API"
    environment: str = "development"  # "production" hides error details


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file: str | None = Field(default_factory=lambda: os.environ.get("PINSYNC_LOG_FILE"))


class Config(BaseSettings):
    server: Server = Server()
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)  # Reads EIP_* when Config is built
    storage: StorageConfig = StorageConfig()
    sync: SyncConfig = SyncConfig()
    pagination: PaginationConfig = PaginationConfig()
    retention: RetentionConfig = RetentionConfig()

    model_config = {
        "env_prefix": "PINSYNC_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # PINSYNC_STORAGE__BASE_PATH -> storage.base_path
    }

    @property
    def is_production(self) -> bool:
        return self.server.environment == "production"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Highest priority first: Config(...) kwargs, env, .env, YAML file, secrets.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


# Libraries that log every request or job run at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "apscheduler", "uvicorn.access")


def configure_logging(config: LoggingConfig) -> None:
    """Install a single root handler (stderr, or PINSYNC_LOG_FILE) for the whole process.

    Safe to call more than once; earlier handlers are replaced.
    """
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(config.level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured: level=%s, file=%s", config.level, config.file)
