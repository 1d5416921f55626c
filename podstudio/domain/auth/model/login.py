"""Login flow states, failure codes and redirect targets."""

from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import urlencode

from podstudio.domain.shared.error import DomainError


class LoginStage(StrEnum):
    """States of a single login attempt, in order."""

    INIT = "init"
    AWAITING_PROVIDER_REDIRECT = "awaiting_provider_redirect"
    AWAITING_CALLBACK = "awaiting_callback"
    STATE_VERIFIED = "state_verified"
    PROFILE_FETCHED = "profile_fetched"
    DEMOGRAPHICS_ATTEMPTED = "demographics_attempted"
    USER_UPSERTED = "user_upserted"
    TOKEN_ISSUED = "token_issued"
    ERRORED = "errored"


class LoginErrorCode(StrEnum):
    """Machine-readable codes sent to the frontend error route."""

    PROVIDER_DENIED = "ProviderDenied"
    SECURITY_CHECK_FAILED = "SecurityCheckFailed"
    PROFILE_UNAVAILABLE = "ProfileUnavailable"
    EMAIL_REQUIRED = "EmailRequired"
    ACCOUNT_ERROR = "AccountError"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    INVALID_OR_EXPIRED_TOKEN = "InvalidOrExpiredToken"


class LoginError(DomainError):
    """A login attempt ended in the ERRORED state."""

    def __init__(self, code: LoginErrorCode, message: str) -> None:
        super().__init__(message, code=code.value)
        self.login_code = code


@dataclass(frozen=True)
class LoginRedirects:
    """Builds the frontend URLs a login attempt ends on."""

    frontend_url: str

    def success(self, session_token: str) -> str:
        return f"{self.frontend_url}/auth/callback?{urlencode({'token': session_token})}"

    def error(self, code: LoginErrorCode, message: str) -> str:
        params = urlencode({"message": message, "code": code.value})
        return f"{self.frontend_url}/auth/error?{params}"
