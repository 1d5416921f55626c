"""SQL repository implementation for users."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.model.value import UserId
from podstudio.domain.auth.port.repository import UserRepository
from podstudio.domain.shared.error import ConflictError, StorageUnavailableError
from podstudio.infrastructure.persistence.tables import users_table

logger = logging.getLogger(__name__)

_UNAVAILABLE = (OperationalError, InterfaceError, PoolTimeoutError)


def _row_to_user(row: dict[str, Any]) -> User:
    """Convert a database row to a User model."""
    return User(
        id=UserId(UUID(row["id"])),
        external_id=row["external_id"],
        email=row["email"],
        name=row["name"],
        profile_picture_url=row["profile_picture_url"],
        access_token=row["access_token"],
        refresh_token=row["refresh_token"],
        persona=row["persona"],
        vertical=row["vertical"],
        profile_completed=row["profile_completed"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _user_to_dict(user: User) -> dict[str, Any]:
    """Convert a User model to a database row dict."""
    return {
        "id": str(user.id),
        "external_id": user.external_id,
        "email": user.email,
        "name": user.name,
        "profile_picture_url": user.profile_picture_url,
        "access_token": user.access_token,
        "refresh_token": user.refresh_token,
        "persona": user.persona,
        "vertical": user.vertical,
        "profile_completed": user.profile_completed,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class SqlUserRepository(UserRepository):
    """SQLAlchemy Core implementation of UserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: UserId) -> User | None:
        stmt = select(users_table).where(users_table.c.id == str(user_id))
        return await self._fetch_one(stmt)

    async def get_by_external_id(self, external_id: str) -> User | None:
        stmt = select(users_table).where(users_table.c.external_id == external_id)
        return await self._fetch_one(stmt)

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        try:
            async with self.session.begin_nested():
                yield
        except _UNAVAILABLE as e:
            raise StorageUnavailableError(f"User store unavailable: {e}") from e

    async def add(self, user: User) -> None:
        await self._execute(insert(users_table).values(**_user_to_dict(user)))

    async def save(self, user: User) -> None:
        values = _user_to_dict(user)
        # Identity columns are immutable
        for key in ("id", "external_id", "created_at"):
            values.pop(key)
        stmt = update(users_table).where(users_table.c.id == str(user.id)).values(**values)
        await self._execute(stmt)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("User already exists") from e
        except _UNAVAILABLE as e:
            raise StorageUnavailableError(f"User store unavailable: {e}") from e

    async def _fetch_one(self, stmt: Executable) -> User | None:
        result = await self._execute(stmt)
        row = result.mappings().first()
        return _row_to_user(dict(row)) if row else None

    async def _execute(self, stmt: Executable):
        try:
            return await self.session.execute(stmt)
        except IntegrityError as e:
            logger.info("Uniqueness constraint rejected a users write")
            raise ConflictError("User already exists") from e
        except _UNAVAILABLE as e:
            logger.error("User store unavailable: %s", type(e).__name__)
            raise StorageUnavailableError(f"User store unavailable: {e}") from e
