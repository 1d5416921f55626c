"""Login state kept in the signed cookie session."""

from typing import Any, MutableMapping

from podstudio.domain.auth.model.state import StatePayload
from podstudio.domain.auth.port.session_store import LoginStateStore

SESSION_KEY = "oauth_state"


class StarletteSessionStateStore(LoginStateStore):
    """Stores the pending login's nonce in ``request.session``.

    The session itself is a signed cookie maintained by Starlette's
    SessionMiddleware.
    """

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self._session = session

    def remember(self, state: StatePayload) -> None:
        self._session[SESSION_KEY] = {"nonce": state.nonce, "iat": state.issued_at}

    def pop(self) -> StatePayload | None:
        data = self._session.pop(SESSION_KEY, None)
        if not isinstance(data, dict):
            return None
        nonce, issued_at = data.get("nonce"), data.get("iat")
        if not isinstance(nonce, str) or not isinstance(issued_at, int):
            return None
        return StatePayload(nonce=nonce, issued_at=issued_at)
