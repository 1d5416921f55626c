"""DI provider for auth domain."""

import logging

from dishka import Provider, from_context, provide
from starlette.requests import Request

from podstudio.config import Config
from podstudio.domain.auth.command.login import CompleteLoginHandler, InitiateLoginHandler
from podstudio.domain.auth.command.profile import ReinferProfileHandler, UpdateProfileHandler
from podstudio.domain.auth.model.demographics import DemographicCatalog
from podstudio.domain.auth.model.value import CurrentUser
from podstudio.domain.auth.port.repository import UserRepository
from podstudio.domain.auth.service.account import AccountService
from podstudio.domain.auth.service.credentials import CredentialRefresher
from podstudio.domain.auth.service.profile import ProfileFetcher
from podstudio.domain.auth.service.state import StateTokenCodec
from podstudio.domain.auth.service.token import TokenService
from podstudio.domain.shared.error import AuthenticationError
from podstudio.util.di.scope import Scope

logger = logging.getLogger(__name__)


class AuthProvider(Provider):
    """DI provider for auth domain services and handlers."""

    request = from_context(provides=Request, scope=Scope.UOW)

    # Command Handlers
    initiate_login_handler = provide(InitiateLoginHandler, scope=Scope.UOW)
    complete_login_handler = provide(CompleteLoginHandler, scope=Scope.UOW)
    update_profile_handler = provide(UpdateProfileHandler, scope=Scope.UOW)
    reinfer_profile_handler = provide(ReinferProfileHandler, scope=Scope.UOW)

    @provide(scope=Scope.APP)
    def get_token_service(self, config: Config) -> TokenService:
        """Provide TokenService."""
        return TokenService(_config=config.auth.jwt)

    @provide(scope=Scope.APP)
    def get_state_codec(self, config: Config) -> StateTokenCodec:
        return StateTokenCodec(
            _secret=config.auth.session_secret,
            _ttl_seconds=config.auth.state_ttl_seconds,
        )

    @provide(scope=Scope.APP)
    def get_profile_fetcher(self, config: Config) -> ProfileFetcher:
        return ProfileFetcher(
            _max_retries=config.auth.profile.max_retries,
            _retry_delay=config.auth.profile.retry_delay_seconds,
        )

    @provide(scope=Scope.UOW)
    def get_account_service(
        self,
        user_repo: UserRepository,
        catalog: DemographicCatalog,
    ) -> AccountService:
        return AccountService(_user_repo=user_repo, _catalog=catalog)

    @provide(scope=Scope.UOW)
    def get_credential_refresher(
        self,
        user_repo: UserRepository,
        profile_fetcher: ProfileFetcher,
    ) -> CredentialRefresher:
        return CredentialRefresher(_user_repo=user_repo, _profile_fetcher=profile_fetcher)

    @provide(scope=Scope.UOW)
    def get_current_user(
        self,
        request: Request,
        token_service: TokenService,
    ) -> CurrentUser:
        """Extract and validate CurrentUser from JWT in Authorization header.

        Raises:
            AuthenticationError: If token is missing, expired, or invalid
        """
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            raise AuthenticationError("Authorization header required", code="missing_token")

        token = auth_header[7:]  # Remove "Bearer " prefix
        return CurrentUser(user_id=token_service.resolve_user_id(token))
