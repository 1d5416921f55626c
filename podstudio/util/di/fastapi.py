"""Per-request dishka containers for FastAPI."""

from dishka import AsyncContainer
from fastapi import FastAPI
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Send
from starlette.types import Scope as ASGIScope

from podstudio.util.di.scope import Scope


class ContainerMiddleware:
    """Open a ``Scope.UOW`` child container around every HTTP request.

    The request itself is put into the container context so providers can
    reach the cookie session.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: ASGIScope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive, send=send)
        root: AsyncContainer = request.app.state.dishka_container
        async with root({Request: request}, scope=Scope.UOW) as uow_container:
            request.state.dishka_container = uow_container
            await self.app(scope, receive, send)


def setup_dishka(container: AsyncContainer, app: FastAPI) -> None:
    app.state.dishka_container = container
    app.add_middleware(ContainerMiddleware)
