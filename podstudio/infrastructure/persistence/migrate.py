"""Alembic migration runner.

Alembic is synchronous, so migrations run in a worker thread at startup (or
from the CLI) before any async database work happens.
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

logger = logging.getLogger(__name__)

# Repository root holding alembic.ini and migrations/
PROJECT_ROOT = Path(__file__).resolve().parents[3]

_ASYNC_DRIVERS = ("+aiosqlite", "+asyncpg")
_SQLITE_PREFIX = "sqlite:///"


def to_sync_url(database_url: str) -> str:
    """Strip the async driver from a URL, e.g. ``sqlite+aiosqlite`` to ``sqlite``."""
    url = database_url
    for driver in _ASYNC_DRIVERS:
        url = url.replace(driver, "")
    path = _sqlite_path(url)
    if path and path.startswith("~"):
        url = f"{_SQLITE_PREFIX}{Path(path).expanduser()}"
    return url


def _sqlite_path(url: str) -> str | None:
    if not url.startswith(_SQLITE_PREFIX):
        return None
    return url[len(_SQLITE_PREFIX) :]


def get_alembic_config(database_url: str) -> AlembicConfig:
    config = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", to_sync_url(database_url))
    # Logging is already set up by configure_logging()
    config.attributes["configure_logger"] = False
    return config


def run_migrations(database_url: str) -> None:
    """Upgrade the database to the latest revision."""
    path = _sqlite_path(to_sync_url(database_url))
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    command.upgrade(get_alembic_config(database_url), "head")
    logger.info("Database is at the latest migration")
