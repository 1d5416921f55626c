"""Provider registry implementation."""

from podstudio.domain.auth.port.identity_provider import IdentityProvider
from podstudio.domain.auth.port.provider_registry import ProviderRegistry


class InMemoryProviderRegistry(ProviderRegistry):
    """In-memory provider registry.

    Providers are registered at application startup via DI; a provider
    without client credentials is simply absent.
    """

    def __init__(self, providers: dict[str, IdentityProvider] | None = None) -> None:
        self._providers: dict[str, IdentityProvider] = providers or {}

    def get(self, provider: str) -> IdentityProvider | None:
        """Get an identity provider by name."""
        return self._providers.get(provider)

    def available_providers(self) -> list[str]:
        return list(self._providers)
