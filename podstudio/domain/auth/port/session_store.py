"""Login state store port."""

from abc import abstractmethod
from typing import Protocol

from podstudio.domain.auth.model.state import StatePayload
from podstudio.domain.shared.port import Port


class LoginStateStore(Port, Protocol):
    """Server-side copy of the pending login's state, keyed by the caller's session.

    Used only as the fallback when the signed state round trip fails.
    """

    @abstractmethod
    def remember(self, state: StatePayload) -> None:
        """Store the state of a login that is being initiated."""
        ...

    @abstractmethod
    def pop(self) -> StatePayload | None:
        """Remove and return the stored state, if any."""
        ...
