"""User aggregate for the auth domain."""

from datetime import UTC, datetime

from podstudio.domain.auth.model.value import UserId, validate_email
from podstudio.domain.shared.model import Aggregate

DEFAULT_DISPLAY_NAME = "LinkedIn User"


class User(Aggregate):
    """A local account linked to exactly one external identity.

    Invariants:
    - `id` and `external_id` are immutable after creation
    - a stored email is never replaced by an empty value
    - persona/vertical set by the user are never replaced by inference
    - `profile_completed` is true iff persona and vertical are both set
    """

    id: UserId
    external_id: str
    email: str | None
    name: str
    profile_picture_url: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    persona: str | None = None
    vertical: str | None = None
    profile_completed: bool = False
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def create(
        cls,
        external_id: str,
        email: str | None,
        name: str | None,
        profile_picture_url: str | None = None,
        access_token: str | None = None,
        refresh_token: str | None = None,
        persona: str | None = None,
        vertical: str | None = None,
    ) -> "User":
        """Create a user on first login."""
        if email:
            validate_email(email)
        user = cls(
            id=UserId.generate(),
            external_id=external_id,
            email=email or None,
            name=name or DEFAULT_DISPLAY_NAME,
            profile_picture_url=profile_picture_url or None,
            access_token=access_token,
            refresh_token=refresh_token,
            persona=persona,
            vertical=vertical,
            created_at=datetime.now(UTC),
        )
        user._sync_completion()
        return user

    def refresh_credentials(self, access_token: str, refresh_token: str | None) -> None:
        """Store fresh provider credentials.

        Providers do not always rotate refresh tokens; the stored one is kept
        when none is supplied.
        """
        self.access_token = access_token
        if refresh_token:
            self.refresh_token = refresh_token
        self._touch()

    def apply_profile(
        self,
        email: str | None,
        name: str | None,
        profile_picture_url: str | None,
    ) -> list[str]:
        """Backfill profile fields from the provider.

        Only non-empty values that differ from what is stored are written.

        Returns:
            Names of the fields that changed.
        """
        changed: list[str] = []
        if email and email != self.email:
            self.email = validate_email(email)
            changed.append("email")
        if name and name != self.name:
            self.name = name
            changed.append("name")
        if profile_picture_url and profile_picture_url != self.profile_picture_url:
            self.profile_picture_url = profile_picture_url
            changed.append("profile_picture_url")
        if changed:
            self._touch()
        return changed

    def fill_demographics(self, persona: str | None, vertical: str | None) -> list[str]:
        """Fill persona/vertical from inference, only where currently empty."""
        changed: list[str] = []
        if persona and not self.persona:
            self.persona = persona
            changed.append("persona")
        if vertical and not self.vertical:
            self.vertical = vertical
            changed.append("vertical")
        self._sync_completion()
        if changed:
            self._touch()
        return changed

    def set_demographics(self, persona: str, vertical: str) -> None:
        """Explicitly set persona and vertical (user action)."""
        self.persona = persona
        self.vertical = vertical
        self._sync_completion()
        self._touch()

    def _sync_completion(self) -> None:
        self.profile_completed = self.persona is not None and self.vertical is not None

    def _touch(self) -> None:
        self.updated_at = datetime.now(UTC)
