"""Value objects for the auth domain."""

import re
from dataclasses import dataclass
from uuid import UUID, uuid4

from pydantic import RootModel

from podstudio.domain.shared.error import ValidationError


class UserId(RootModel[UUID]):
    """Unique identifier for a User."""

    @classmethod
    def generate(cls) -> "UserId":
        return cls(uuid4())

    def __str__(self) -> str:
        return str(self.root)

    def __hash__(self) -> int:
        return hash(self.root)


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(email: str) -> str:
    """Return the email unchanged if it looks like an address.

    Raises:
        ValidationError: If the value is not shaped like ``local@domain.tld``.
    """
    if not EMAIL_PATTERN.match(email):
        raise ValidationError(f"Invalid email address: {email!r}", field="email")
    return email


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller extracted from a session token."""

    user_id: UserId
