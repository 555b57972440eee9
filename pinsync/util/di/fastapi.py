"""Per-request UOW containers for the FastAPI app."""

from dishka import AsyncContainer
from fastapi import FastAPI
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Send
from starlette.types import Scope as ASGIScope

from pinsync.util.di.scope import Scope


class ContainerMiddleware:
    """Open a Scope.UOW child container around every HTTP request.

    dishka's own starlette middleware enters dishka.Scope.REQUEST, which
    does not exist in pinsync's scope hierarchy.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: ASGIScope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive, send=send)
        async with request.app.state.dishka_container({Request: request}, scope=Scope.UOW) as uow:
            request.state.dishka_container = uow
            await self.app(scope, receive, send)


def setup_dishka(container: AsyncContainer, app: FastAPI) -> None:
    app.add_middleware(ContainerMiddleware)
    app.state.dishka_container = container
