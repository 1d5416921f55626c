"""LinkedIn OpenID Connect identity provider adapter."""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from podstudio.config import LinkedInConfig
from podstudio.domain.auth.port.identity_provider import IdentityProvider, ProviderTokens
from podstudio.domain.shared.error import ExternalServiceError

logger = logging.getLogger(__name__)


class LinkedInIdentityProvider(IdentityProvider):
    """IdentityProvider implementation for LinkedIn (OpenID Connect)."""

    def __init__(
        self,
        config: LinkedInConfig,
        http_client: httpx.AsyncClient,
        userinfo_timeout: float = 15.0,
    ) -> None:
        self._config = config
        self._http = http_client
        self._userinfo_timeout = userinfo_timeout

    @property
    def provider_name(self) -> str:
        return "linkedin"

    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        """Generate LinkedIn authorization URL."""
        params = {
            "response_type": "code",
            "client_id": self._config.client_id,
            "redirect_uri": redirect_uri,
            "state": state,
            "scope": " ".join(self._config.scopes),
        }
        return f"{self._config.authorization_url}?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> ProviderTokens:
        """Exchange authorization code for access, refresh and identity tokens."""
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        token_data = await self._token_request(data, "token exchange")
        return self._parse_tokens(token_data)

    async def refresh_access_token(self, refresh_token: str) -> ProviderTokens:
        """Obtain a new access token; the refresh token is kept if not rotated."""
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        token_data = await self._token_request(data, "token refresh")
        tokens = self._parse_tokens(token_data)
        if tokens.refresh_token is None:
            return ProviderTokens(
                access_token=tokens.access_token,
                refresh_token=refresh_token,
                id_token=tokens.id_token,
                expires_in=tokens.expires_in,
            )
        return tokens

    async def get_userinfo(self, access_token: str) -> dict[str, Any]:
        """Fetch the OIDC userinfo document (one attempt)."""
        try:
            response = await self._http.get(
                self._config.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
                timeout=self._userinfo_timeout,
            )
        except httpx.RequestError as e:
            logger.warning("LinkedIn userinfo request failed: %s", type(e).__name__)
            raise ExternalServiceError("Failed to connect to LinkedIn", code="idp_unavailable") from e

        if response.status_code != 200:
            raise ExternalServiceError(
                f"LinkedIn userinfo failed: {response.status_code}",
                code="idp_unavailable",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError(
                "LinkedIn userinfo returned invalid JSON",
                code="idp_unavailable",
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise ExternalServiceError("LinkedIn userinfo returned an unexpected document", code="oauth_error")
        return data

    async def _token_request(self, data: dict[str, str], action: str) -> dict[str, Any]:
        try:
            response = await self._http.post(
                self._config.token_url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as e:
            logger.warning("LinkedIn %s request failed: %s", action, type(e).__name__)
            raise ExternalServiceError("Failed to connect to LinkedIn", code="idp_unavailable") from e

        if response.status_code != 200:
            # The body carries error/error_description only, no credentials
            logger.error(
                "LinkedIn %s failed: status=%d, body=%s",
                action,
                response.status_code,
                response.text,
            )
            raise ExternalServiceError(
                f"LinkedIn {action} failed: {response.status_code}",
                code="idp_unavailable",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(
                f"LinkedIn {action} returned invalid JSON", code="oauth_error"
            ) from e

    @staticmethod
    def _parse_tokens(token_data: dict[str, Any]) -> ProviderTokens:
        access_token = token_data.get("access_token")
        if not access_token:
            raise ExternalServiceError("LinkedIn response missing access_token", code="oauth_error")
        return ProviderTokens(
            access_token=access_token,
            refresh_token=token_data.get("refresh_token"),
            id_token=token_data.get("id_token"),
            expires_in=token_data.get("expires_in"),
        )
