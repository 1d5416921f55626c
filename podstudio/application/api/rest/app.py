import asyncio
import logging
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from podstudio.application.api.v1.errors import map_podstudio_error
from podstudio.application.api.v1.routes import auth, health
from podstudio.application.di import create_container
from podstudio.config import Config, configure_logging
from podstudio.domain.shared.error import ConfigurationError, PodstudioError
from podstudio.infrastructure.persistence.migrate import run_migrations
from podstudio.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: Config = app.state.config
    if config.database.auto_migrate:
        # Alembic is synchronous
        await asyncio.to_thread(run_migrations, config.database.url)
    try:
        yield
    finally:
        await app.state.dishka_container.close()


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PodstudioError)
    async def podstudio_error_handler(request: Request, exc: PodstudioError) -> JSONResponse:
        http_exc = map_podstudio_error(exc)
        return JSONResponse(http_exc.detail, status_code=http_exc.status_code, headers=http_exc.headers)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Request %s %s failed", request.method, request.url.path)
        return JSONResponse({"detail": "Internal server error"}, status_code=500)


def _instrument(app: FastAPI, config: Config) -> None:
    # Spans are exported only when LOGFIRE_TOKEN is set
    logfire.configure(
        service_name=config.server.name,
        service_version=config.server.version,
        send_to_logfire="if-token-present",
        console=False,
    )
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app)


def create_app(config: Config | None = None, container: AsyncContainer | None = None) -> FastAPI:
    """Build the API application.

    ``config`` defaults to one read from the environment; ``container``
    defaults to the production provider set for that config.
    """
    config = config or Config()  # type: ignore[call-arg]
    configure_logging(config.logging)
    logger.info("Creating %s v%s", config.server.name, config.server.version)
    if not config.auth.jwt.secret:
        # State tokens, session JWTs and the session cookie are all signed with it
        raise ConfigurationError("auth.jwt.secret must be set (PODSTUDIO_AUTH__JWT__SECRET)")

    api = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )
    api.state.config = config
    _instrument(api, config)

    setup_dishka(container or create_container(config), api)
    # Outermost middleware: request.session is populated before the UOW container opens
    api.add_middleware(
        SessionMiddleware,
        secret_key=config.auth.session_secret,
        session_cookie=config.auth.session_cookie,
        max_age=config.auth.state_ttl_seconds,
        same_site="lax",
        https_only=config.frontend.base_url.startswith("https://"),
    )

    api.include_router(health.router)
    api.include_router(auth.router)
    _install_error_handlers(api)
    return api


app = create_app()
