"""Provider profile retrieval with retry and identity-token fallback."""

import asyncio
import logging
from typing import Any

import jwt

from podstudio.domain.auth.model.profile import ProfileClaims
from podstudio.domain.auth.port.identity_provider import IdentityProvider
from podstudio.domain.shared.error import ExternalServiceError
from podstudio.domain.shared.service import Service

logger = logging.getLogger(__name__)


class ProfileUnavailableError(ExternalServiceError):
    """Userinfo could not be retrieved and no fallback applied."""


class ProfileUnauthorizedError(ProfileUnavailableError):
    """The provider rejected the access token (4xx); never retried."""


def normalize_claims(data: dict[str, Any]) -> ProfileClaims:
    """Map a userinfo document onto ProfileClaims.

    Handles both the OpenID Connect shape (``sub``, ``email``, ``name``,
    ``picture``) and the older profile API shape (``id``, ``displayName``,
    ``emails[0].value``, ``photos[0].value``).
    """
    subject = data.get("sub") or data.get("id")

    email = data.get("email")
    if not email:
        emails = data.get("emails") or []
        if emails and isinstance(emails[0], dict):
            email = emails[0].get("value")

    picture = data.get("picture")
    if not picture:
        photos = data.get("photos") or []
        if photos and isinstance(photos[0], dict):
            picture = photos[0].get("value")

    return ProfileClaims(
        subject=str(subject) if subject else None,
        email=email or None,
        name=data.get("name") or data.get("displayName") or None,
        given_name=data.get("given_name") or None,
        family_name=data.get("family_name") or None,
        picture=picture or None,
        headline=data.get("headline") or None,
        title=data.get("title") or None,
        company=data.get("company") or None,
        industry=data.get("industry") or None,
    )


def claims_from_id_token(id_token: str) -> ProfileClaims:
    """Read claims from an identity token without verifying its signature.

    The token arrived over the TLS back-channel of the code exchange, so
    only its content is needed. The result is marked degraded.

    Raises:
        jwt.InvalidTokenError: If the token cannot be decoded
    """
    data = jwt.decode(id_token, options={"verify_signature": False})
    claims = normalize_claims(data)
    return claims.model_copy(
        update={"degraded": True, "headline": None, "title": None, "company": None, "industry": None}
    )


class ProfileFetcher(Service):
    """Fetches a normalized provider profile.

    Userinfo is retried on network failures and 5xx responses, sleeping
    ``retry_delay * attempt`` between attempts. A 4xx is final. When all
    attempts fail and the token response carried an identity token, claims
    are recovered from it instead.
    """

    _max_retries: int = 2
    _retry_delay: float = 1.0

    async def fetch_userinfo(self, provider: IdentityProvider, access_token: str) -> ProfileClaims:
        """Fetch userinfo with retries.

        Raises:
            ProfileUnauthorizedError: The provider answered with a 4xx
            ProfileUnavailableError: All attempts failed
        """
        attempts = self._max_retries + 1
        last_error: ExternalServiceError | None = None

        for attempt in range(1, attempts + 1):
            try:
                data = await provider.get_userinfo(access_token)
                return normalize_claims(data)
            except ExternalServiceError as e:
                if e.is_client_error:
                    logger.warning(
                        "Userinfo rejected by %s with HTTP %s; not retrying",
                        provider.provider_name,
                        e.status_code,
                    )
                    raise ProfileUnauthorizedError(e.message, status_code=e.status_code) from e
                last_error = e
                logger.warning(
                    "Userinfo attempt %d/%d for %s failed: %s",
                    attempt,
                    attempts,
                    provider.provider_name,
                    e.message,
                )
                if attempt < attempts:
                    await asyncio.sleep(self._retry_delay * attempt)

        raise ProfileUnavailableError(
            f"Userinfo unavailable after {attempts} attempts",
            status_code=last_error.status_code if last_error else None,
        ) from last_error

    async def fetch(
        self,
        provider: IdentityProvider,
        access_token: str,
        id_token: str | None = None,
    ) -> ProfileClaims:
        """Fetch the profile, falling back to the identity token.

        Raises:
            ProfileUnavailableError: Userinfo failed and no usable identity token exists
        """
        try:
            return await self.fetch_userinfo(provider, access_token)
        except ProfileUnavailableError:
            if not id_token:
                raise
            logger.warning("Userinfo failed for %s; using identity token claims", provider.provider_name)

        try:
            return claims_from_id_token(id_token)
        except jwt.InvalidTokenError as e:
            logger.error("Identity token fallback failed: %s", e)
            raise ProfileUnavailableError("Identity token could not be decoded") from e
