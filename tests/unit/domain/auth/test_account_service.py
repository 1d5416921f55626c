"""Unit tests for AccountService upsert and profile edits."""

import asyncio
from contextlib import nullcontext
from unittest.mock import AsyncMock, MagicMock

import pytest

from podstudio.domain.auth.model.demographics import Demographics
from podstudio.domain.auth.model.profile import ProfileClaims
from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.model.value import UserId
from podstudio.domain.auth.port.identity_provider import ProviderTokens
from podstudio.domain.auth.service.account import AccountService
from podstudio.domain.shared.error import (
    ConflictError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)

PROFILE = ProfileClaims(
    subject="li-123",
    email="jane@example.com",
    name="Jane Doe",
    picture="https://media.example.com/jane.jpg",
)
TOKENS = ProviderTokens(access_token="at-1", refresh_token="rt-1")


@pytest.fixture
def service(user_repo, catalog) -> AccountService:
    return AccountService(_user_repo=user_repo, _catalog=catalog)


class TestUpsertCreate:
    @pytest.mark.asyncio
    async def test_creates_user_on_first_login(self, service, user_store):
        user = await service.upsert(PROFILE, TOKENS, Demographics(persona="CTO", vertical="SaaS"))

        assert user.external_id == "li-123"
        assert user.email == "jane@example.com"
        assert user.access_token == "at-1"
        assert user.profile_completed is True
        assert list(user_store.rows) == [user.id]
        assert user_store.commits == 1

    @pytest.mark.asyncio
    async def test_out_of_catalog_labels_are_dropped(self, service):
        user = await service.upsert(PROFILE, TOKENS, Demographics(persona="Astronaut", vertical="SaaS"))

        assert user.persona is None
        assert user.vertical == "SaaS"
        assert user.profile_completed is False

    @pytest.mark.asyncio
    async def test_rejects_profile_without_subject(self, service):
        with pytest.raises(ValidationError):
            await service.upsert(ProfileClaims(email="a@b.co"), TOKENS, Demographics.empty())

    @pytest.mark.asyncio
    async def test_malformed_email_is_validation_error(self, service, user_store):
        profile = PROFILE.model_copy(update={"email": "nope"})

        with pytest.raises(ValidationError):
            await service.upsert(profile, TOKENS, Demographics.empty())

        assert user_store.rows == {}


class TestUpsertUpdate:
    @pytest.mark.asyncio
    async def test_existing_user_keeps_email_and_persona(self, service, user_store):
        first = await service.upsert(PROFILE, TOKENS, Demographics(persona="CFO", vertical="Banking"))

        profile = PROFILE.model_copy(update={"email": None})
        second = await service.upsert(
            profile,
            ProviderTokens(access_token="at-2"),
            Demographics(persona="CTO", vertical="SaaS"),
        )

        assert second.id == first.id
        assert second.email == "jane@example.com"
        assert (second.persona, second.vertical) == ("CFO", "Banking")
        assert second.access_token == "at-2"
        assert second.refresh_token == "rt-1"
        assert len(user_store.rows) == 1

    @pytest.mark.asyncio
    async def test_inference_fills_missing_fields_on_return(self, service):
        await service.upsert(PROFILE, TOKENS, Demographics(persona="CTO"))

        user = await service.upsert(PROFILE, TOKENS, Demographics(persona="CFO", vertical="SaaS"))

        assert (user.persona, user.vertical) == ("CTO", "SaaS")
        assert user.profile_completed is True


class TestConcurrentFirstLogin:
    @pytest.mark.asyncio
    async def test_parallel_upserts_create_one_user(self, make_user_repo, user_store, catalog):
        services = [AccountService(_user_repo=make_user_repo(), _catalog=catalog) for _ in range(8)]

        users = await asyncio.gather(
            *(s.upsert(PROFILE, TOKENS, Demographics.empty()) for s in services)
        )

        assert len(user_store.rows) == 1
        assert len({u.id for u in users}) == 1

    @pytest.mark.asyncio
    async def test_unresolvable_conflict_raises(self, catalog):
        repo = AsyncMock()
        repo.get_by_external_id.return_value = None
        repo.add.side_effect = ConflictError("duplicate email")
        repo.atomic = MagicMock(return_value=nullcontext())
        service = AccountService(_user_repo=repo, _catalog=catalog)

        with pytest.raises(ConflictError):
            await service.upsert(PROFILE, TOKENS, Demographics.empty())

        repo.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, catalog):
        repo = AsyncMock()
        repo.get_by_external_id.side_effect = StorageUnavailableError("down")
        service = AccountService(_user_repo=repo, _catalog=catalog)

        with pytest.raises(StorageUnavailableError):
            await service.upsert(PROFILE, TOKENS, Demographics.empty())


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_sets_persona_and_vertical(self, service):
        user = await service.upsert(PROFILE, TOKENS, Demographics.empty())

        updated = await service.update_profile(user.id, "CMO", "CPG")

        assert (updated.persona, updated.vertical) == ("CMO", "CPG")
        assert updated.profile_completed is True

    @pytest.mark.asyncio
    async def test_rejects_unknown_labels(self, service):
        user = await service.upsert(PROFILE, TOKENS, Demographics.empty())

        with pytest.raises(ValidationError) as exc_info:
            await service.update_profile(user.id, "CMO", "Mining")

        assert exc_info.value.field == "vertical"

    @pytest.mark.asyncio
    async def test_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            await service.update_profile(UserId.generate(), "CMO", "CPG")

    @pytest.mark.asyncio
    async def test_get_user_returns_stored_user(self, service):
        created = await service.upsert(PROFILE, TOKENS, Demographics.empty())

        fetched = await service.get_user(created.id)

        assert isinstance(fetched, User)
        assert fetched.id == created.id
