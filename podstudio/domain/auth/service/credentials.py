"""Provider access token upkeep for stored users."""

import logging

from podstudio.domain.auth.model.profile import ProfileClaims
from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.port.identity_provider import IdentityProvider
from podstudio.domain.auth.port.repository import UserRepository
from podstudio.domain.auth.service.profile import ProfileFetcher, ProfileUnauthorizedError
from podstudio.domain.shared.error import ExternalServiceError, InvalidStateError
from podstudio.domain.shared.service import Service

logger = logging.getLogger(__name__)

REFRESHABLE_STATUSES = frozenset({401, 403})


class CredentialRefresher(Service):
    """Fetches a stored user's profile, refreshing the access token once if rejected."""

    _user_repo: UserRepository
    _profile_fetcher: ProfileFetcher

    async def refresh_credentials(self, provider: IdentityProvider, user: User) -> None:
        """Exchange the stored refresh token for a new access token.

        Raises:
            InvalidStateError: The user has no refresh token
            ExternalServiceError: The provider refused or failed the refresh
        """
        if not user.refresh_token:
            raise InvalidStateError("No refresh token stored for user")

        tokens = await provider.refresh_access_token(user.refresh_token)
        user.refresh_credentials(tokens.access_token, tokens.refresh_token)
        await self._user_repo.save(user)
        await self._user_repo.commit()
        logger.info("Provider access token refreshed for user %s", user.id)

    async def fetch_profile(self, provider: IdentityProvider, user: User) -> ProfileClaims:
        """Fetch the user's provider profile with the stored credentials.

        Raises:
            InvalidStateError: The user has no stored access token
            ExternalServiceError: The profile could not be fetched
        """
        if not user.access_token:
            raise InvalidStateError("User has no provider access token; log in again")

        try:
            return await self._profile_fetcher.fetch_userinfo(provider, user.access_token)
        except ProfileUnauthorizedError as e:
            if e.status_code not in REFRESHABLE_STATUSES or not user.refresh_token:
                raise
            logger.info("Access token rejected (HTTP %s); attempting refresh", e.status_code)

        try:
            await self.refresh_credentials(provider, user)
        except ExternalServiceError as e:
            logger.warning("Provider token refresh failed for user %s: %s", user.id, e.message)
            raise InvalidStateError("Provider session expired; log in again") from e

        return await self._profile_fetcher.fetch_userinfo(provider, user.access_token)
