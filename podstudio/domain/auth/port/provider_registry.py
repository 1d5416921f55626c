"""Provider registry port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from podstudio.domain.auth.port.identity_provider import IdentityProvider
from podstudio.domain.shared.port import Port


class ProviderRegistry(Port, Protocol):
    """Registry of configured identity providers, keyed by URL name."""

    @abstractmethod
    def get(self, provider: str) -> IdentityProvider | None:
        """Get an identity provider by name (e.g., "linkedin")."""
        ...

    @abstractmethod
    def available_providers(self) -> list[str]:
        """Get list of available provider names."""
        ...

    def is_available(self, provider: str) -> bool:
        return provider in self.available_providers()
