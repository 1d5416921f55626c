"""Login commands for the OAuth authorization code flow."""

import hmac
import logging
from dataclasses import dataclass

import logfire

from podstudio.config import Config
from podstudio.domain.auth.model.demographics import Demographics
from podstudio.domain.auth.model.login import LoginError, LoginErrorCode, LoginRedirects, LoginStage
from podstudio.domain.auth.model.profile import ProfileClaims
from podstudio.domain.auth.model.state import StatePayload
from podstudio.domain.auth.model.user import User
from podstudio.domain.auth.port.identity_provider import IdentityProvider, ProviderTokens
from podstudio.domain.auth.port.inference import DemographicInference
from podstudio.domain.auth.port.provider_registry import ProviderRegistry
from podstudio.domain.auth.port.session_store import LoginStateStore
from podstudio.domain.auth.service.account import AccountService
from podstudio.domain.auth.service.inference import attempt_inference
from podstudio.domain.auth.service.profile import ProfileFetcher
from podstudio.domain.auth.service.state import StateTokenCodec
from podstudio.domain.auth.service.token import TokenService
from podstudio.domain.shared.command import Command, CommandHandler, Result
from podstudio.domain.shared.error import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class InitiateLogin(Command):
    """Command to start the OAuth login flow."""

    provider: str
    callback_url: str  # OAuth callback URL (where the IdP redirects after auth)
    token: str | None = None  # Existing session token, if the client has one


class InitiateLoginResult(Result):
    """Where to send the user agent next."""

    redirect_url: str
    stage: LoginStage
    reused_session: bool = False


@dataclass
class InitiateLoginHandler(CommandHandler[InitiateLogin, InitiateLoginResult]):
    """Handler for InitiateLogin command."""

    config: Config
    provider_registry: ProviderRegistry
    state_codec: StateTokenCodec
    state_store: LoginStateStore
    token_service: TokenService
    account_service: AccountService
    stage = LoginStage.INIT

    async def run(self, cmd: InitiateLogin) -> InitiateLoginResult:
        identity_provider = self.provider_registry.get(cmd.provider)
        if identity_provider is None:
            raise NotFoundError(f"Unknown identity provider: {cmd.provider}", code="unknown_provider")

        if cmd.token:
            session_token = await self._reuse_session(cmd.token)
            if session_token:
                redirects = LoginRedirects(self.config.frontend.base_url)
                self._advance(LoginStage.TOKEN_ISSUED)
                return InitiateLoginResult(
                    redirect_url=redirects.success(session_token),
                    stage=self.stage,
                    reused_session=True,
                )

        issued = self.state_codec.issue()
        # Fallback channel for when the signed state does not survive the round trip
        self.state_store.remember(issued.payload)

        authorization_url = identity_provider.get_authorization_url(
            state=issued.token,
            redirect_uri=cmd.callback_url,
        )
        self._advance(LoginStage.AWAITING_PROVIDER_REDIRECT)
        logger.info("OAuth login initiated for provider=%s", cmd.provider)
        return InitiateLoginResult(redirect_url=authorization_url, stage=self.stage)

    def _advance(self, stage: LoginStage) -> None:
        self.stage = stage
        logger.debug("Login stage %s", stage.value)

    async def _reuse_session(self, token: str) -> str | None:
        """Mint a fresh session token if the presented one is still good."""
        try:
            user_id = self.token_service.resolve_user_id(token)
            user = await self.account_service.get_user(user_id)
        except AuthenticationError:
            return None
        except NotFoundError:
            logger.info("Session token refers to a missing user; starting a new login")
            return None
        logger.info("Existing session reused for user %s", user.id)
        return self.token_service.create_session_token(user.id)


class CompleteLogin(Command):
    """Parameters of the provider's redirect back to the callback URL."""

    provider: str
    callback_url: str  # Must match the one used in authorization
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None


class CompleteLoginResult(Result):
    """Terminal outcome of a login attempt; always a redirect."""

    redirect_url: str
    stage: LoginStage
    error_code: LoginErrorCode | None = None
    user_id: str | None = None


@dataclass
class CompleteLoginHandler(CommandHandler[CompleteLogin, CompleteLoginResult]):
    """Drives a login attempt from callback to session token.

    Every failure ends in the ERRORED stage with a redirect to the frontend
    error route; nothing raised by collaborators escapes ``run``.
    """

    config: Config
    provider_registry: ProviderRegistry
    state_codec: StateTokenCodec
    state_store: LoginStateStore
    profile_fetcher: ProfileFetcher
    inference: DemographicInference
    account_service: AccountService
    token_service: TokenService
    stage = LoginStage.INIT

    async def run(self, cmd: CompleteLogin) -> CompleteLoginResult:
        redirects = LoginRedirects(self.config.frontend.base_url)
        self._advance(LoginStage.AWAITING_CALLBACK)

        with logfire.span("CompleteLogin", provider=cmd.provider):
            try:
                user = await self._complete(cmd)
                session_token = self.token_service.create_session_token(user.id)
                self._advance(LoginStage.TOKEN_ISSUED)
            except LoginError as e:
                logger.warning(
                    "Login failed at stage %s (%s): %s", self.stage.value, e.login_code.value, e.message
                )
                self._advance(LoginStage.ERRORED)
                return CompleteLoginResult(
                    redirect_url=redirects.error(e.login_code, e.message),
                    stage=self.stage,
                    error_code=e.login_code,
                )
            except Exception:
                logger.exception("Unexpected error completing login at stage %s", self.stage.value)
                self._advance(LoginStage.ERRORED)
                return CompleteLoginResult(
                    redirect_url=redirects.error(
                        LoginErrorCode.ACCOUNT_ERROR, "Authentication failed. Please try again."
                    ),
                    stage=self.stage,
                    error_code=LoginErrorCode.ACCOUNT_ERROR,
                )

            logfire.info("Login completed", user_id=str(user.id))
            return CompleteLoginResult(
                redirect_url=redirects.success(session_token),
                stage=self.stage,
                user_id=str(user.id),
            )

    def _advance(self, stage: LoginStage) -> None:
        self.stage = stage
        logger.debug("Login stage %s", stage.value)

    async def _complete(self, cmd: CompleteLogin) -> User:
        if cmd.error:
            # Still consume the pending state so it cannot be replayed
            self.state_store.pop()
            raise LoginError(
                LoginErrorCode.PROVIDER_DENIED,
                cmd.error_description or f"Authorization failed: {cmd.error}",
            )

        identity_provider = self.provider_registry.get(cmd.provider)
        if identity_provider is None:
            self.state_store.pop()
            raise LoginError(LoginErrorCode.PROVIDER_DENIED, f"Unknown provider: {cmd.provider}")

        self._verify_state(cmd.state)
        self._advance(LoginStage.STATE_VERIFIED)

        if not cmd.code:
            raise LoginError(LoginErrorCode.PROVIDER_DENIED, "Authorization code not provided")

        tokens, profile = await self._fetch_profile(identity_provider, cmd.code, cmd.callback_url)
        self._advance(LoginStage.PROFILE_FETCHED)

        demographics = await self._infer(tokens, profile)
        self._advance(LoginStage.DEMOGRAPHICS_ATTEMPTED)

        user = await self._upsert(profile, tokens, demographics)
        self._advance(LoginStage.USER_UPSERTED)
        return user

    def _verify_state(self, state: str | None) -> None:
        """Accept the signed state, else the session-held nonce.

        The stored state is discarded whatever the outcome.
        """
        stored = self.state_store.pop()

        if not state:
            raise LoginError(LoginErrorCode.SECURITY_CHECK_FAILED, "Missing state parameter")

        verified = self.state_codec.verify(state)
        if isinstance(verified, StatePayload):
            return

        if stored is not None and self._matches_stored(state, stored):
            logger.info("Signed state rejected (%s); session fallback accepted", verified.reason.value)
            return

        raise LoginError(
            LoginErrorCode.SECURITY_CHECK_FAILED,
            f"Security check failed: state {verified.reason.value}. Please try signing in again.",
        )

    def _matches_stored(self, state: str, stored: StatePayload) -> bool:
        if not self.state_codec.is_fresh(stored.issued_at):
            return False
        echoed = self.state_codec.peek_nonce(state) or state
        return hmac.compare_digest(echoed.encode(), stored.nonce.encode())

    async def _fetch_profile(
        self,
        identity_provider: IdentityProvider,
        code: str,
        callback_url: str,
    ) -> tuple[ProviderTokens, ProfileClaims]:
        try:
            tokens = await identity_provider.exchange_code(code, callback_url)
        except ExternalServiceError as e:
            raise LoginError(
                LoginErrorCode.PROFILE_UNAVAILABLE,
                f"Could not complete sign-in with {identity_provider.provider_name}: {e.message}",
            ) from e

        try:
            profile = await self.profile_fetcher.fetch(identity_provider, tokens.access_token, tokens.id_token)
        except ExternalServiceError as e:
            raise LoginError(
                LoginErrorCode.PROFILE_UNAVAILABLE,
                f"Could not retrieve your {identity_provider.provider_name} profile. Please try again.",
            ) from e

        if not profile.subject:
            raise LoginError(LoginErrorCode.PROFILE_UNAVAILABLE, "Profile did not include a user id")
        if not profile.email and self.config.auth.require_email:
            raise LoginError(
                LoginErrorCode.EMAIL_REQUIRED,
                "An email address is required. Please grant email access and try again.",
            )
        if profile.degraded:
            logger.info("Continuing login with identity token claims only")
        return tokens, profile

    async def _infer(self, tokens: ProviderTokens, profile: ProfileClaims) -> Demographics:
        hints = profile.hints()
        if not self.config.inference.enabled or (profile.degraded and hints.is_empty()):
            return Demographics.empty()
        demographics = await attempt_inference(
            self.inference,
            tokens.access_token,
            hints,
            timeout=self.config.inference.timeout_seconds,
        )
        if demographics.persona or demographics.vertical:
            logger.info("Inferred persona=%s vertical=%s", demographics.persona, demographics.vertical)
        return demographics

    async def _upsert(self, profile: ProfileClaims, tokens: ProviderTokens, demographics: Demographics) -> User:
        try:
            return await self.account_service.upsert(profile, tokens, demographics)
        except (ValidationError, ConflictError) as e:
            raise LoginError(LoginErrorCode.ACCOUNT_ERROR, f"Could not save your account: {e.message}") from e
        except StorageUnavailableError as e:
            raise LoginError(
                LoginErrorCode.SERVICE_UNAVAILABLE,
                "The service is temporarily unavailable. Please try again shortly.",
            ) from e
