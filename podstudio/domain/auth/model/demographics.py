"""Persona/vertical catalog and inference results."""

from typing import Literal

from pydantic import BaseModel, model_validator
from typing_extensions import Self

Confidence = Literal["high", "low"]


class DemographicCatalog(BaseModel):
    """The persona and vertical label sets with their scoring keywords.

    Label order matters: when two labels score equally the earlier one wins.
    """

    personas: dict[str, list[str]]
    verticals: dict[str, list[str]]
    companies: dict[str, list[str]] = {}  # vertical -> well-known company names

    @model_validator(mode="after")
    def check_company_verticals(self) -> Self:
        unknown = set(self.companies) - set(self.verticals)
        if unknown:
            raise ValueError(f"Company table references unknown verticals: {sorted(unknown)}")
        return self

    def is_persona(self, label: str | None) -> bool:
        return label in self.personas

    def is_vertical(self, label: str | None) -> bool:
        return label in self.verticals


class DemographicConfidence(BaseModel):
    persona: Confidence = "low"
    vertical: Confidence = "low"


class Demographics(BaseModel):
    """Best-effort persona/vertical guess."""

    persona: str | None = None
    vertical: str | None = None
    confidence: DemographicConfidence = DemographicConfidence()

    @classmethod
    def empty(cls) -> "Demographics":
        return cls()
