"""Repository port for the auth domain."""

from abc import abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.model.value import UserId
from podstudio.domain.shared.port import Port


class UserRepository(Port, Protocol):
    """Repository for User aggregate persistence.

    Implementations raise ConflictError when a uniqueness constraint
    (external id, email) rejects a write, and StorageUnavailableError for
    connection-level failures.
    """

    @abstractmethod
    async def get(self, user_id: UserId) -> User | None:
        """Get a user by ID."""
        ...

    @abstractmethod
    async def get_by_external_id(self, external_id: str) -> User | None:
        """Get the user linked to an external identity."""
        ...

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[None]:
        """Open a transaction (a savepoint inside the unit of work).

        Everything written inside is rolled back if the block raises.
        """
        ...

    @abstractmethod
    async def add(self, user: User) -> None:
        """Insert a new user."""
        ...

    @abstractmethod
    async def save(self, user: User) -> None:
        """Update an existing user."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Make all writes of the unit of work durable."""
        ...
