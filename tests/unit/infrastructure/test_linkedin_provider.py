"""Tests for the LinkedIn identity provider adapter."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from podstudio.config import LinkedInConfig
from podstudio.domain.shared.error import ExternalServiceError
from podstudio.infrastructure.auth.linkedin import LinkedInIdentityProvider

CONFIG = LinkedInConfig(client_id="client-1", client_secret="secret-1")
REDIRECT = "https://api.example.com/auth/linkedin/callback"


def make_provider(handler) -> LinkedInIdentityProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LinkedInIdentityProvider(config=CONFIG, http_client=client)


def form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestAuthorizationUrl:
    def test_contains_oidc_parameters(self):
        provider = make_provider(lambda request: httpx.Response(500))

        url = provider.get_authorization_url(state="abc.def", redirect_uri=REDIRECT)

        parsed = urlparse(url)
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == CONFIG.authorization_url
        assert params == {
            "response_type": "code",
            "client_id": "client-1",
            "redirect_uri": REDIRECT,
            "state": "abc.def",
            "scope": "openid profile email",
        }


class TestExchangeCode:
    @pytest.mark.asyncio
    async def test_returns_tokens(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"access_token": "at", "refresh_token": "rt", "id_token": "idt", "expires_in": 3600},
            )

        tokens = await make_provider(handler).exchange_code("code-1", REDIRECT)

        assert (tokens.access_token, tokens.refresh_token, tokens.id_token) == ("at", "rt", "idt")
        assert tokens.expires_in == 3600
        assert str(seen[0].url) == CONFIG.token_url
        assert form(seen[0]) == {
            "grant_type": "authorization_code",
            "code": "code-1",
            "redirect_uri": REDIRECT,
            "client_id": "client-1",
            "client_secret": "secret-1",
        }

    @pytest.mark.asyncio
    async def test_error_status(self):
        provider = make_provider(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(ExternalServiceError) as exc_info:
            await provider.exchange_code("stale", REDIRECT)

        assert exc_info.value.status_code == 400
        assert exc_info.value.is_client_error

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError) as exc_info:
            await make_provider(handler).exchange_code("code-1", REDIRECT)

        assert exc_info.value.status_code is None
        assert exc_info.value.code == "idp_unavailable"

    @pytest.mark.asyncio
    async def test_missing_access_token(self):
        provider = make_provider(lambda request: httpx.Response(200, json={"expires_in": 60}))

        with pytest.raises(ExternalServiceError) as exc_info:
            await provider.exchange_code("code-1", REDIRECT)

        assert exc_info.value.code == "oauth_error"


class TestRefresh:
    @pytest.mark.asyncio
    async def test_keeps_refresh_token_when_not_rotated(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"access_token": "at-2"})

        tokens = await make_provider(handler).refresh_access_token("rt-1")

        assert (tokens.access_token, tokens.refresh_token) == ("at-2", "rt-1")
        assert form(seen[0])["grant_type"] == "refresh_token"


class TestUserinfo:
    @pytest.mark.asyncio
    async def test_sends_bearer_token(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"sub": "li-1", "email": "a@example.com"})

        data = await make_provider(handler).get_userinfo("at-1")

        assert data == {"sub": "li-1", "email": "a@example.com"}
        assert seen[0].headers["Authorization"] == "Bearer at-1"
        assert str(seen[0].url) == CONFIG.userinfo_url

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 500, 503])
    async def test_error_status_is_reported(self, status: int):
        provider = make_provider(lambda request: httpx.Response(status))

        with pytest.raises(ExternalServiceError) as exc_info:
            await provider.get_userinfo("at-1")

        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_timeout_has_no_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ExternalServiceError) as exc_info:
            await make_provider(handler).get_userinfo("at-1")

        assert exc_info.value.status_code is None
        assert not exc_info.value.is_client_error
