from typing import AsyncIterable

from dishka import Provider, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from podstudio.config import Config
from podstudio.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from podstudio.util.di.scope import Scope


class PersistenceProvider(Provider):
    """Database engine for the app lifetime, one session per request."""

    @provide(scope=Scope.APP)
    async def engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        db_engine = create_db_engine(config.database)
        try:
            yield db_engine
        finally:
            await db_engine.dispose()

    @provide(scope=Scope.APP)
    def sessionmaker(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    @provide(scope=Scope.UOW)
    async def session(
        self, factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterable[AsyncSession]:
        # Work left uncommitted by the repository is flushed when the request ends
        async with factory() as db_session:
            yield db_session
            await db_session.commit()
