"""Async engine and session factory."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from podstudio.config import DatabaseConfig


def _configure_sqlite_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own transaction boundaries so SAVEPOINT works on SQLite.

    Transactions take the write lock at BEGIN, so concurrent writers queue
    on the busy timeout and see each other's committed rows.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # Disable the driver's implicit BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(config: DatabaseConfig) -> AsyncEngine:
    if config.url.startswith("sqlite"):
        engine = create_async_engine(
            config.url,
            echo=config.echo,
            connect_args={"timeout": config.busy_timeout},
        )
        _configure_sqlite_transactions(engine)
        return engine

    return create_async_engine(
        config.url,
        echo=config.echo,
        pool_pre_ping=True,
        pool_timeout=config.pool_timeout,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
