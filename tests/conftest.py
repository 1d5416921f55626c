"""Global test fixtures."""

import asyncio
import os
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

# Set secrets before any test modules import Config
# This must happen at module load time, not in a fixture
os.environ.setdefault("PODSTUDIO_AUTH__JWT__SECRET", "test-secret-for-unit-tests-min-32")
os.environ.setdefault("PODSTUDIO_DATABASE__AUTO_MIGRATE", "false")

import pytest  # noqa: E402

from podstudio.domain.auth.model.demographics import DemographicCatalog  # noqa: E402
from podstudio.domain.auth.model.user import User  # noqa: E402
from podstudio.domain.auth.model.value import UserId  # noqa: E402
from podstudio.domain.auth.port.identity_provider import ProviderTokens  # noqa: E402
from podstudio.domain.shared.error import ConflictError, ExternalServiceError  # noqa: E402
from podstudio.infrastructure.auth.catalog import load_catalog  # noqa: E402


class InMemoryUserStore:
    """Shared rows standing in for the users table, with its unique constraints."""

    def __init__(self) -> None:
        self.rows: dict[UserId, User] = {}
        self.commits = 0

    def find(self, external_id: str) -> User | None:
        return next((u for u in self.rows.values() if u.external_id == external_id), None)


class InMemoryUserRepository:
    """UserRepository over an InMemoryUserStore.

    Every call yields to the event loop so concurrent upserts interleave the
    way separate database sessions would.
    """

    def __init__(self, store: InMemoryUserStore) -> None:
        self.store = store
        self._pending: list[UserId] | None = None

    async def get(self, user_id: UserId) -> User | None:
        await asyncio.sleep(0)
        user = self.store.rows.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def get_by_external_id(self, external_id: str) -> User | None:
        await asyncio.sleep(0)
        user = self.store.find(external_id)
        return user.model_copy(deep=True) if user else None

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        self._pending = []
        try:
            yield
        except BaseException:
            for user_id in self._pending:
                self.store.rows.pop(user_id, None)
            raise
        finally:
            self._pending = None

    async def add(self, user: User) -> None:
        await asyncio.sleep(0)
        if self.store.find(user.external_id) is not None:
            raise ConflictError("duplicate external_id")
        if user.email and any(u.email == user.email for u in self.store.rows.values()):
            raise ConflictError("duplicate email")
        self.store.rows[user.id] = user.model_copy(deep=True)
        if self._pending is not None:
            self._pending.append(user.id)

    async def save(self, user: User) -> None:
        await asyncio.sleep(0)
        self.store.rows[user.id] = user.model_copy(deep=True)

    async def commit(self) -> None:
        self.store.commits += 1


class InMemoryLoginStateStore:
    """LoginStateStore backed by a plain dict, like a cookie session."""

    def __init__(self, session: dict | None = None) -> None:
        self.session = session if session is not None else {}

    def remember(self, state) -> None:
        self.session["state"] = state

    def pop(self):
        return self.session.pop("state", None)


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def user_repo(user_store: InMemoryUserStore) -> InMemoryUserRepository:
    return InMemoryUserRepository(user_store)


@pytest.fixture
def login_state_store() -> InMemoryLoginStateStore:
    return InMemoryLoginStateStore()


@pytest.fixture(scope="session")
def catalog() -> DemographicCatalog:
    return load_catalog()


@pytest.fixture
def make_user_repo(user_store: InMemoryUserStore):
    """Factory for extra repositories (separate sessions) over the same store."""
    return lambda: InMemoryUserRepository(user_store)


LINKEDIN_USERINFO = {
    "sub": "li-123",
    "email": "jane@example.com",
    "email_verified": True,
    "name": "Jane Doe",
    "given_name": "Jane",
    "family_name": "Doe",
    "picture": "https://media.example.com/jane.jpg",
}


class FakeIdentityProvider:
    """Scriptable IdentityProvider.

    ``userinfo`` is a queue of responses; an ExternalServiceError entry is
    raised instead of returned. The last entry repeats once the queue drains.
    """

    provider_name = "linkedin"

    def __init__(self, userinfo=None, tokens: ProviderTokens | None = None) -> None:
        self.userinfo = deque(userinfo if userinfo is not None else [LINKEDIN_USERINFO])
        self.tokens = tokens or ProviderTokens(access_token="at-1", refresh_token="rt-1")
        self.exchange_error: ExternalServiceError | None = None
        self.refresh_result: ProviderTokens | ExternalServiceError = ProviderTokens(access_token="at-refreshed")
        self.userinfo_calls: list[str] = []
        self.exchanged: list[tuple[str, str]] = []
        self.refreshed: list[str] = []

    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        return f"https://idp.example.com/authorize?state={state}&redirect_uri={redirect_uri}"

    async def exchange_code(self, code: str, redirect_uri: str) -> ProviderTokens:
        self.exchanged.append((code, redirect_uri))
        if self.exchange_error is not None:
            raise self.exchange_error
        return self.tokens

    async def get_userinfo(self, access_token: str) -> dict:
        self.userinfo_calls.append(access_token)
        response = self.userinfo.popleft() if len(self.userinfo) > 1 else self.userinfo[0]
        if isinstance(response, ExternalServiceError):
            raise response
        return response

    async def refresh_access_token(self, refresh_token: str) -> ProviderTokens:
        self.refreshed.append(refresh_token)
        if isinstance(self.refresh_result, ExternalServiceError):
            raise self.refresh_result
        return self.refresh_result


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()
