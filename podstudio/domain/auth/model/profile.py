"""Normalized identity claims returned by a provider."""

from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True)
class ProfileHints:
    """Free-text professional signals used for demographic inference."""

    headline: str | None = None
    title: str | None = None
    company: str | None = None
    industry: str | None = None

    def is_empty(self) -> bool:
        return not any((self.headline, self.title, self.company, self.industry))


class ProfileClaims(BaseModel):
    """Provider profile in one internal shape.

    `degraded` is set when the claims were recovered from an identity token
    instead of the userinfo endpoint; such claims never carry hints.
    """

    subject: str | None = None
    email: str | None = None
    name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None
    headline: str | None = None
    title: str | None = None
    company: str | None = None
    industry: str | None = None
    degraded: bool = False

    @property
    def display_name(self) -> str | None:
        if self.name:
            return self.name
        parts = [p for p in (self.given_name, self.family_name) if p]
        return " ".join(parts) or None

    def hints(self) -> ProfileHints:
        return ProfileHints(
            headline=self.headline,
            title=self.title or self.headline,
            company=self.company,
            industry=self.industry,
        )
