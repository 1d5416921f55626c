"""Token service for session JWT creation and validation."""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt

from podstudio.config import JwtConfig
from podstudio.domain.auth.model.login import LoginErrorCode
from podstudio.domain.auth.model.value import UserId
from podstudio.domain.shared.error import AuthenticationError
from podstudio.domain.shared.service import Service

logger = logging.getLogger(__name__)

SESSION_TOKEN_AUDIENCE = "authenticated"


class TokenService(Service):
    """Mints and checks the bearer session tokens handed to the frontend.

    Session tokens are JWTs (HS256 by default) whose subject is the local
    user id. They are stateless: expiry is the only way they end.
    """

    _config: JwtConfig

    def create_session_token(self, user_id: UserId) -> str:
        now = datetime.now(UTC)
        expires_at = now + timedelta(days=self._config.session_token_expire_days)

        payload = {
            "sub": str(user_id),
            "aud": SESSION_TOKEN_AUDIENCE,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_hex(16),
        }

        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)

    def validate_session_token(self, token: str) -> dict[str, Any]:
        """Validate and decode a session token.

        Raises:
            jwt.InvalidTokenError: If token is invalid or expired
        """
        return jwt.decode(
            token,
            self._config.secret,
            algorithms=[self._config.algorithm],
            audience=SESSION_TOKEN_AUDIENCE,
            options={"require": ["sub", "exp", "iat"]},
        )

    def resolve_user_id(self, token: str) -> UserId:
        """Return the user id a session token was issued for.

        Expired and invalid tokens are logged differently but surface as the
        same AuthenticationError.
        """
        try:
            payload = self.validate_session_token(token)
            return UserId(UUID(payload["sub"]))
        except jwt.ExpiredSignatureError as e:
            logger.info("Session token rejected: expired")
            raise _invalid_token() from e
        except (jwt.InvalidTokenError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Session token rejected: invalid (%s)", type(e).__name__)
            raise _invalid_token() from e

    @property
    def session_token_expire_seconds(self) -> int:
        return self._config.session_token_expire_days * 86400


def _invalid_token() -> AuthenticationError:
    return AuthenticationError(
        "Invalid or expired session token",
        code=LoginErrorCode.INVALID_OR_EXPIRED_TOKEN.value,
    )
