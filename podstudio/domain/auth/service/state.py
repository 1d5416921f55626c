"""Signed OAuth state tokens."""

import hashlib
import hmac
import json
import logging
import secrets
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode

from podstudio.domain.auth.model.state import (
    IssuedState,
    StatePayload,
    StateRejection,
    StateRejectionReason,
)
from podstudio.domain.shared.service import Service

logger = logging.getLogger(__name__)

# State validity period (10 minutes)
STATE_TTL_SECONDS = 600
NONCE_BYTES = 32


def _b64encode(data: bytes) -> str:
    return urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64decode(data: str) -> bytes:
    """Decode unpadded base64url, rejecting non-canonical encodings."""
    if not data:
        raise ValueError("empty segment")
    decoded = urlsafe_b64decode(data + "=" * (-len(data) % 4))
    # Trailing bits and stray characters would otherwise decode to the same bytes
    if _b64encode(decoded) != data:
        raise ValueError("non-canonical base64")
    return decoded


class StateTokenCodec(Service):
    """Issues and verifies self-contained OAuth state tokens.

    A token is ``base64url(payload).base64url(signature)`` where payload is
    ``{"nonce", "iat"}`` and the signature is HMAC-SHA256 over the payload
    bytes. No server-side storage is needed; expiry is the only invalidation.
    """

    _secret: str
    _ttl_seconds: int = STATE_TTL_SECONDS

    def issue(self) -> IssuedState:
        payload = StatePayload(nonce=secrets.token_hex(NONCE_BYTES), issued_at=int(time.time()))
        payload_bytes = json.dumps(
            {"nonce": payload.nonce, "iat": payload.issued_at}, separators=(",", ":")
        ).encode()
        token = f"{_b64encode(payload_bytes)}.{_b64encode(self._sign(payload_bytes))}"
        return IssuedState(token=token, payload=payload)

    def verify(self, token: str) -> StatePayload | StateRejection:
        """Check signature and age of a state token.

        Returns:
            The payload if valid, otherwise a StateRejection. Never raises.
        """
        try:
            payload_b64, signature_b64 = token.split(".")
            payload_bytes = _b64decode(payload_b64)
            signature = _b64decode(signature_b64)
        except (ValueError, AttributeError):
            logger.warning("OAuth state malformed")
            return StateRejection(StateRejectionReason.INVALID)

        if not hmac.compare_digest(signature, self._sign(payload_bytes)):
            logger.warning("OAuth state signature verification failed")
            return StateRejection(StateRejectionReason.INVALID)

        payload = self._parse_payload(payload_bytes)
        if payload is None:
            return StateRejection(StateRejectionReason.INVALID)

        if not self.is_fresh(payload.issued_at):
            logger.warning("OAuth state expired")
            return StateRejection(StateRejectionReason.EXPIRED)

        return payload

    def peek_nonce(self, token: str) -> str | None:
        """Read the nonce without checking the signature.

        Only meaningful when compared against a nonce held server-side.
        """
        try:
            payload_b64 = token.split(".")[0]
            payload = self._parse_payload(_b64decode(payload_b64))
        except (ValueError, AttributeError):
            return None
        return payload.nonce if payload else None

    def is_fresh(self, issued_at: int) -> bool:
        age = time.time() - issued_at
        return 0 <= age <= self._ttl_seconds

    def _sign(self, payload_bytes: bytes) -> bytes:
        return hmac.new(self._secret.encode(), payload_bytes, hashlib.sha256).digest()

    @staticmethod
    def _parse_payload(payload_bytes: bytes) -> StatePayload | None:
        try:
            data = json.loads(payload_bytes)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        nonce, issued_at = data.get("nonce"), data.get("iat")
        if not isinstance(nonce, str) or not nonce:
            return None
        if not isinstance(issued_at, int) or isinstance(issued_at, bool):
            return None
        return StatePayload(nonce=nonce, issued_at=issued_at)
