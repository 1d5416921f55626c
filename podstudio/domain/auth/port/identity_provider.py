"""Identity provider port for the auth domain."""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

from podstudio.domain.shared.port import Port


@dataclass(frozen=True)
class ProviderTokens:
    """Credentials returned by a provider's token endpoint."""

    access_token: str
    refresh_token: str | None = None
    id_token: str | None = None  # OIDC identity token, when issued
    expires_in: int | None = None


class IdentityProvider(Port, Protocol):
    """Port for external OAuth/OIDC identity providers.

    Implementations are adapters in infrastructure/ (e.g., LinkedInIdentityProvider).
    All network methods raise ExternalServiceError, with `status_code` set
    when the provider answered with a non-success HTTP status.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique identifier for this provider (e.g., 'linkedin')."""
        ...

    @abstractmethod
    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        """Generate the URL to send the user agent to for authentication.

        Args:
            state: Signed anti-CSRF token, echoed back on the callback
            redirect_uri: Where the provider should redirect after auth
        """
        ...

    @abstractmethod
    async def exchange_code(self, code: str, redirect_uri: str) -> ProviderTokens:
        """Exchange an authorization code for credentials.

        Args:
            code: Authorization code from the provider callback
            redirect_uri: Must match the redirect_uri used in the authorization URL
        """
        ...

    @abstractmethod
    async def get_userinfo(self, access_token: str) -> dict[str, Any]:
        """Fetch the raw userinfo document for an access token (single attempt)."""
        ...

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> ProviderTokens:
        """Obtain a new access token with a refresh token."""
        ...
