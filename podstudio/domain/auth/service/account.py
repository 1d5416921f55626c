"""Local account lifecycle: race-safe upsert and profile edits."""

import logging

from podstudio.domain.auth.model.demographics import DemographicCatalog, Demographics
from podstudio.domain.auth.model.profile import ProfileClaims
from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.model.value import UserId
from podstudio.domain.auth.port.identity_provider import ProviderTokens
from podstudio.domain.auth.port.repository import UserRepository
from podstudio.domain.shared.error import ConflictError, NotFoundError, ValidationError
from podstudio.domain.shared.service import Service

logger = logging.getLogger(__name__)


class AccountService(Service):
    """Creates and updates users from provider profiles.

    First logins for the same identity may race. The insert runs in a
    savepoint after a re-check; if a concurrent insert wins the unique
    constraint, the winner's row is re-read and updated instead.
    """

    _user_repo: UserRepository
    _catalog: DemographicCatalog

    async def upsert(
        self,
        profile: ProfileClaims,
        tokens: ProviderTokens,
        demographics: Demographics,
    ) -> User:
        """Find, create or update the user for a provider profile.

        Raises:
            ValidationError: The profile carries a malformed email
            ConflictError: A uniqueness violation that re-reading cannot resolve
            StorageUnavailableError: The user store is unreachable
        """
        if not profile.subject:
            raise ValidationError("Profile has no subject identifier", field="external_id")

        persona = demographics.persona if self._catalog.is_persona(demographics.persona) else None
        vertical = demographics.vertical if self._catalog.is_vertical(demographics.vertical) else None

        user = await self._user_repo.get_by_external_id(profile.subject)
        if user is None:
            user, created = await self._create(profile, tokens, persona, vertical)
            if created:
                logger.info("New user created: %s", user.id)
                await self._user_repo.commit()
                return user

        await self._update(user, profile, tokens, persona, vertical)
        await self._user_repo.commit()
        return user

    async def _create(
        self,
        profile: ProfileClaims,
        tokens: ProviderTokens,
        persona: str | None,
        vertical: str | None,
    ) -> tuple[User, bool]:
        """Insert a new user, or return the row a concurrent login created.

        Returns:
            The user and whether this call inserted it.
        """
        try:
            async with self._user_repo.atomic():
                existing = await self._user_repo.get_by_external_id(profile.subject)
                if existing is not None:
                    return existing, False
                user = User.create(
                    external_id=profile.subject,
                    email=profile.email,
                    name=profile.display_name,
                    profile_picture_url=profile.picture,
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token,
                    persona=persona,
                    vertical=vertical,
                )
                await self._user_repo.add(user)
                return user, True
        except ConflictError:
            logger.info("Insert lost a uniqueness race; re-reading by external id")

        existing = await self._user_repo.get_by_external_id(profile.subject)
        if existing is None:
            raise ConflictError("User could not be created or found after a uniqueness conflict")
        return existing, False

    async def _update(
        self,
        user: User,
        profile: ProfileClaims,
        tokens: ProviderTokens,
        persona: str | None,
        vertical: str | None,
    ) -> None:
        user.refresh_credentials(tokens.access_token, tokens.refresh_token)
        changed = user.apply_profile(profile.email, profile.display_name, profile.picture)
        changed += user.fill_demographics(persona, vertical)
        await self._user_repo.save(user)
        logger.info("User %s updated (%s)", user.id, ", ".join(changed) or "credentials")

    async def get_user(self, user_id: UserId) -> User:
        user = await self._user_repo.get(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    async def update_profile(self, user_id: UserId, persona: str, vertical: str) -> User:
        """Set persona and vertical chosen by the user.

        Raises:
            ValidationError: A label is not in the catalog
            NotFoundError: The user does not exist
        """
        if not self._catalog.is_persona(persona):
            raise ValidationError(f"Unknown persona: {persona!r}", field="persona")
        if not self._catalog.is_vertical(vertical):
            raise ValidationError(f"Unknown vertical: {vertical!r}", field="vertical")

        user = await self.get_user(user_id)
        user.set_demographics(persona, vertical)
        await self._user_repo.save(user)
        await self._user_repo.commit()
        return user

    async def apply_inference(self, user: User, demographics: Demographics) -> list[str]:
        """Fill empty persona/vertical from an inference result."""
        persona = demographics.persona if self._catalog.is_persona(demographics.persona) else None
        vertical = demographics.vertical if self._catalog.is_vertical(demographics.vertical) else None
        changed = user.fill_demographics(persona, vertical)
        await self._user_repo.save(user)
        await self._user_repo.commit()
        return changed
