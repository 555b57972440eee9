"""DI provider for the upstream feature service."""

from typing import AsyncIterable, NewType

import httpx
from dishka import provide

from pinsync.config import Config
from pinsync.domain.feature.port.data_source import DataSource
from pinsync.infrastructure.upstream.esri import EsriFeatureServiceSource
from pinsync.infrastructure.upstream.fallback import FallbackDataSource
from pinsync.infrastructure.upstream.synthetic import SyntheticDataSource
from pinsync.util.di.base import Provider
from pinsync.util.di.scope import Scope

UpstreamHttpClient = NewType("UpstreamHttpClient", httpx.AsyncClient)


class UpstreamProvider(Provider):
    """Provides the DataSource strategy (ESRI with synthetic fallback)."""

    @provide(scope=Scope.APP)
    async def get_http_client(self, config: Config) -> AsyncIterable[UpstreamHttpClient]:
        async with httpx.AsyncClient(timeout=config.upstream.timeout) as client:
            yield UpstreamHttpClient(client)

    @provide(scope=Scope.APP)
    def get_synthetic_source(self) -> SyntheticDataSource:
        return SyntheticDataSource()

    @provide(scope=Scope.APP)
    def get_data_source(
        self,
        config: Config,
        client: UpstreamHttpClient,
        synthetic: SyntheticDataSource,
    ) -> DataSource:
        return FallbackDataSource(
            primary=EsriFeatureServiceSource(config.upstream, client),
            fallback=synthetic,
            on_error=config.upstream.fallback_on_error,
        )
