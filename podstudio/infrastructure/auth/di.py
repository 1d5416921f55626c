"""DI provider for auth infrastructure."""

from typing import AsyncIterable

import httpx
from dishka import Provider, provide
from starlette.requests import Request

from podstudio.config import Config
from podstudio.domain.auth.model.demographics import DemographicCatalog
from podstudio.domain.auth.port.identity_provider import IdentityProvider
from podstudio.domain.auth.port.inference import DemographicInference
from podstudio.domain.auth.port.provider_registry import ProviderRegistry
from podstudio.domain.auth.port.repository import UserRepository
from podstudio.domain.auth.port.session_store import LoginStateStore
from podstudio.domain.auth.service.inference import KeywordDemographicInference
from podstudio.infrastructure.auth.catalog import load_catalog
from podstudio.infrastructure.auth.linkedin import LinkedInIdentityProvider
from podstudio.infrastructure.auth.provider_registry import InMemoryProviderRegistry
from podstudio.infrastructure.auth.session_store import StarletteSessionStateStore
from podstudio.infrastructure.persistence.repository.user import SqlUserRepository
from podstudio.util.di.scope import Scope

# HTTP client timeout configuration (code exchange and refresh)
_HTTP_TIMEOUT = httpx.Timeout(
    connect=5.0,  # Connection timeout
    read=10.0,  # Read timeout
    write=5.0,  # Write timeout
    pool=5.0,  # Pool timeout
)


class AuthInfraProvider(Provider):
    """DI provider for auth infrastructure adapters."""

    user_repo = provide(SqlUserRepository, scope=Scope.UOW, provides=UserRepository)

    @provide(scope=Scope.APP)
    async def get_auth_http_client(self) -> AsyncIterable[httpx.AsyncClient]:
        """Shared HTTP client for auth operations (connection pooling)."""
        async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_provider_registry(
        self, config: Config, http_client: httpx.AsyncClient
    ) -> ProviderRegistry:
        """Provide ProviderRegistry with configured identity providers."""
        providers: dict[str, IdentityProvider] = {}

        # Register LinkedIn if configured
        if config.auth.linkedin.client_id:
            providers["linkedin"] = LinkedInIdentityProvider(
                config=config.auth.linkedin,
                http_client=http_client,
                userinfo_timeout=config.auth.profile.timeout_seconds,
            )

        return InMemoryProviderRegistry(providers)

    @provide(scope=Scope.APP)
    def get_catalog(self, config: Config) -> DemographicCatalog:
        return load_catalog(config.inference.catalog_file)

    @provide(scope=Scope.APP)
    def get_inference(self, catalog: DemographicCatalog) -> DemographicInference:
        return KeywordDemographicInference(_catalog=catalog)

    @provide(scope=Scope.UOW)
    def get_login_state_store(self, request: Request) -> LoginStateStore:
        return StarletteSessionStateStore(request.session)
