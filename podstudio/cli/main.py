"""Main CLI application using Cyclopts."""

import sys

import cyclopts
import uvicorn
from alembic.util.exc import CommandError
from pydantic import ValidationError as SettingsError
from sqlalchemy.exc import SQLAlchemyError

from podstudio.cli.console import get_console
from podstudio.config import Config, configure_logging
from podstudio.infrastructure.persistence.migrate import run_migrations

app = cyclopts.App(
    name="podstudio",
    help="podstudio - authentication and session API",
)


def _load_config() -> Config:
    try:
        return Config()  # type: ignore[call-arg]
    except SettingsError as e:
        get_console().error("Invalid configuration", hint=str(e))
        sys.exit(1)


@app.command
def serve(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """Run the API server in the foreground.

    Args:
        host: Host to bind to.
        port: Port to listen on.
        reload: Restart on code changes (development only).
    """
    config = _load_config()
    console = get_console()
    if not config.auth.jwt.secret:
        console.error("auth.jwt.secret is not set", hint="Set PODSTUDIO_AUTH__JWT__SECRET")
        sys.exit(1)
    console.success(f"Serving {config.server.name} v{config.server.version} on http://{host}:{port}")
    if not config.auth.linkedin.client_id:
        console.print("  [yellow]LinkedIn client id not set; login is disabled[/yellow]")

    uvicorn.run(
        "podstudio.application.api.rest.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,  # configure_logging owns logging setup
    )


@app.command
def migrate() -> None:
    """Apply pending database migrations."""
    config = _load_config()
    configure_logging(config.logging)
    console = get_console()

    try:
        run_migrations(config.database.url)
    except (CommandError, SQLAlchemyError) as e:
        console.error("Migration failed", hint=str(e))
        sys.exit(1)

    console.success("Database migrations applied")


if __name__ == "__main__":
    app()
