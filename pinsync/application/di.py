from dishka import AsyncContainer, from_context, make_async_container
from starlette.requests import Request

from pinsync.config import Config
from pinsync.domain.retention.util.di import RetentionProvider
from pinsync.domain.sync.util.di import SyncProvider
from pinsync.infrastructure.scheduler import SchedulerProvider
from pinsync.infrastructure.storage import StorageProvider
from pinsync.infrastructure.upstream import UpstreamProvider
from pinsync.util.di.base import Provider, get_provider
from pinsync.util.di.scope import Scope


class ContextProvider(Provider):
    """Values passed in as container or scope context."""

    config = from_context(provides=Config, scope=Scope.APP)
    request = from_context(provides=Request, scope=Scope.UOW)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    storage_provider = get_provider(StorageProvider, config.storage.backend)

    return make_async_container(
        ContextProvider(),
        storage_provider(),
        UpstreamProvider(),
        SyncProvider(),
        RetentionProvider(),
        SchedulerProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
