"""Auth domain ports."""

from .identity_provider import IdentityProvider, ProviderTokens
from .inference import DemographicInference
from .provider_registry import ProviderRegistry
from .repository import UserRepository
from .session_store import LoginStateStore

__all__ = [
    "DemographicInference",
    "IdentityProvider",
    "LoginStateStore",
    "ProviderRegistry",
    "ProviderTokens",
    "UserRepository",
]
