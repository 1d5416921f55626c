"""Commands editing the signed-in user's persona and vertical."""

import logging
from dataclasses import dataclass

from podstudio.config import Config
from podstudio.domain.auth.model.demographics import Demographics
from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.model.value import CurrentUser
from podstudio.domain.auth.port.inference import DemographicInference
from podstudio.domain.auth.port.provider_registry import ProviderRegistry
from podstudio.domain.auth.service.account import AccountService
from podstudio.domain.auth.service.credentials import CredentialRefresher
from podstudio.domain.auth.service.inference import attempt_inference
from podstudio.domain.shared.command import Command, CommandHandler, Result
from podstudio.domain.shared.error import (
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "linkedin"


async def _load_current(account_service: AccountService, current_user: CurrentUser) -> User:
    # A valid token for a deleted user is treated as unauthenticated
    try:
        return await account_service.get_user(current_user.user_id)
    except NotFoundError as e:
        logger.warning("Session token refers to missing user %s", current_user.user_id)
        raise AuthenticationError("User not found", code="user_not_found") from e


class UpdateProfile(Command):
    persona: str
    vertical: str


class UpdateProfileResult(Result):
    user: User


@dataclass
class UpdateProfileHandler(CommandHandler[UpdateProfile, UpdateProfileResult]):
    """Handler for UpdateProfile command."""

    current_user: CurrentUser
    account_service: AccountService

    async def run(self, cmd: UpdateProfile) -> UpdateProfileResult:
        await _load_current(self.account_service, self.current_user)
        user = await self.account_service.update_profile(
            self.current_user.user_id, cmd.persona, cmd.vertical
        )
        logger.info("Profile updated for user %s", user.id)
        return UpdateProfileResult(user=user)


class ReinferProfile(Command):
    provider: str = DEFAULT_PROVIDER


class ReinferProfileResult(Result):
    user: User
    inferred: Demographics


@dataclass
class ReinferProfileHandler(CommandHandler[ReinferProfile, ReinferProfileResult]):
    """Re-run demographic inference from the user's current provider profile.

    Only empty persona/vertical fields are filled; choices the user made
    are kept.
    """

    config: Config
    current_user: CurrentUser
    account_service: AccountService
    credential_refresher: CredentialRefresher
    provider_registry: ProviderRegistry
    inference: DemographicInference

    async def run(self, cmd: ReinferProfile) -> ReinferProfileResult:
        user = await _load_current(self.account_service, self.current_user)

        identity_provider = self.provider_registry.get(cmd.provider)
        if identity_provider is None:
            raise ConfigurationError(f"Identity provider not configured: {cmd.provider}")

        profile = await self.credential_refresher.fetch_profile(identity_provider, user)

        inferred = await attempt_inference(
            self.inference,
            user.access_token,
            profile.hints(),
            timeout=self.config.inference.timeout_seconds,
        )
        changed = await self.account_service.apply_inference(user, inferred)
        logger.info(
            "Re-inference for user %s: persona=%s vertical=%s (filled: %s)",
            user.id,
            inferred.persona,
            inferred.vertical,
            ", ".join(changed) or "nothing",
        )
        return ReinferProfileResult(user=user, inferred=inferred)
