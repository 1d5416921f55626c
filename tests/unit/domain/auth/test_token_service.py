"""Unit tests for TokenService session token creation and validation."""

import json
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt
import pytest

from podstudio.config import JwtConfig
from podstudio.domain.auth.model.value import UserId
from podstudio.domain.auth.service.token import TokenService
from podstudio.domain.shared.error import AuthenticationError

SECRET = "test-secret-key-256-bits-long-xx"


def make_service(secret: str = SECRET) -> TokenService:
    """Create a TokenService with test config."""
    config = JwtConfig(secret=secret, algorithm="HS256", session_token_expire_days=7)
    return TokenService(_config=config)


def _decode(token: str) -> dict:
    return jwt.decode(token, SECRET, algorithms=["HS256"], audience="authenticated")


class TestCreateSessionToken:
    def test_subject_is_user_id(self):
        service = make_service()
        user_id = UserId(uuid4())

        payload = _decode(service.create_session_token(user_id))

        assert payload["sub"] == str(user_id)
        assert payload["aud"] == "authenticated"

    def test_expires_after_seven_days(self):
        service = make_service()

        payload = _decode(service.create_session_token(UserId.generate()))

        assert payload["exp"] - payload["iat"] == 7 * 86400
        assert service.session_token_expire_seconds == 7 * 86400

    def test_each_token_has_unique_jti(self):
        service = make_service()
        user_id = UserId.generate()

        first = _decode(service.create_session_token(user_id))
        second = _decode(service.create_session_token(user_id))

        assert first["jti"] != second["jti"]


class TestResolveUserId:
    def test_round_trips_user_id(self):
        service = make_service()
        user_id = UserId.generate()

        assert service.resolve_user_id(service.create_session_token(user_id)) == user_id

    def test_rejects_token_from_other_secret(self):
        token = make_service("another-secret-key-256-bits-long").create_session_token(UserId.generate())

        with pytest.raises(AuthenticationError) as exc_info:
            make_service().resolve_user_id(token)

        assert exc_info.value.code == "InvalidOrExpiredToken"

    def test_rejects_expired_token(self):
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": str(UserId.generate()),
                "aud": "authenticated",
                "iat": int((now - timedelta(days=8)).timestamp()),
                "exp": int((now - timedelta(days=1)).timestamp()),
            },
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError) as exc_info:
            make_service().resolve_user_id(token)

        assert exc_info.value.code == "InvalidOrExpiredToken"

    def test_rejects_garbage(self):
        with pytest.raises(AuthenticationError):
            make_service().resolve_user_id("not-a-jwt")

    def test_rejects_non_uuid_subject(self):
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": "not-a-uuid",
                "aud": "authenticated",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(hours=1)).timestamp()),
            },
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            make_service().resolve_user_id(token)

    def test_rejects_non_string_subject(self):
        # jwt.encode would reject a non-string sub
        now = datetime.now(UTC)
        claims = {
            "sub": 12345,
            "aud": "authenticated",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        }
        token = jwt.api_jws.encode(json.dumps(claims).encode(), SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError):
            make_service().resolve_user_id(token)

    def test_validate_raises_jwt_errors(self):
        with pytest.raises(jwt.InvalidTokenError):
            make_service().validate_session_token("a.b.c")
