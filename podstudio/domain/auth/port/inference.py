"""Demographic inference port."""

from abc import abstractmethod
from typing import Protocol

from podstudio.domain.auth.model.demographics import Demographics
from podstudio.domain.auth.model.profile import ProfileHints
from podstudio.domain.shared.port import Port


class DemographicInference(Port, Protocol):
    """Strategy guessing a persona and vertical from profile text.

    Callers treat any exception as "no guess"; see attempt_inference().
    """

    @abstractmethod
    async def infer(self, access_token: str | None, hints: ProfileHints) -> Demographics: ...
