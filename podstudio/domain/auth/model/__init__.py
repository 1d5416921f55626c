"""Auth domain models."""

from .demographics import DemographicCatalog, DemographicConfidence, Demographics
from .login import LoginError, LoginErrorCode, LoginRedirects, LoginStage
from .profile import ProfileClaims, ProfileHints
from .state import IssuedState, StatePayload, StateRejection, StateRejectionReason
from .user import User
from .value import CurrentUser, UserId

__all__ = [
    "CurrentUser",
    "DemographicCatalog",
    "DemographicConfidence",
    "Demographics",
    "IssuedState",
    "LoginError",
    "LoginErrorCode",
    "LoginRedirects",
    "LoginStage",
    "ProfileClaims",
    "ProfileHints",
    "StatePayload",
    "StateRejection",
    "StateRejectionReason",
    "User",
    "UserId",
]
