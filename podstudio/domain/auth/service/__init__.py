"""Auth domain services."""

from .account import AccountService
from .credentials import CredentialRefresher
from .inference import KeywordDemographicInference, attempt_inference
from .profile import (
    ProfileFetcher,
    ProfileUnauthorizedError,
    ProfileUnavailableError,
    claims_from_id_token,
    normalize_claims,
)
from .state import StateTokenCodec
from .token import TokenService

__all__ = [
    "AccountService",
    "CredentialRefresher",
    "KeywordDemographicInference",
    "ProfileFetcher",
    "ProfileUnauthorizedError",
    "ProfileUnavailableError",
    "StateTokenCodec",
    "TokenService",
    "attempt_inference",
    "claims_from_id_token",
    "normalize_claims",
]
