"""OAuth state token values."""

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class StatePayload:
    """The signed content of a state token: a random nonce and its issue time."""

    nonce: str
    issued_at: int  # Unix seconds


@dataclass(frozen=True)
class IssuedState:
    """A freshly issued state token together with its decoded payload."""

    token: str
    payload: StatePayload


class StateRejectionReason(StrEnum):
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(frozen=True)
class StateRejection:
    """Typed verification failure; verification never raises."""

    reason: StateRejectionReason
