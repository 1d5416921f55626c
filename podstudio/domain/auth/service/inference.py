"""Keyword-based persona/vertical inference."""

import asyncio
import logging
import re
from collections.abc import Iterable

from podstudio.domain.auth.model.demographics import (
    DemographicCatalog,
    DemographicConfidence,
    Demographics,
)
from podstudio.domain.auth.model.profile import ProfileHints
from podstudio.domain.auth.port.inference import DemographicInference
from podstudio.domain.shared.service import Service

logger = logging.getLogger(__name__)

LONG_KEYWORD_LENGTH = 10


def _keyword_weight(keyword: str) -> int:
    # Longer phrases are more specific
    return 2 if len(keyword) > LONG_KEYWORD_LENGTH else 1


def _contains(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword.lower())}\b", text) is not None


def _best_label(text: str, table: dict[str, list[str]]) -> str | None:
    best_label, best_score = None, 0
    for label, keywords in table.items():
        score = sum(_keyword_weight(k) for k in keywords if _contains(text, k))
        # Strict comparison: the first label reaching the maximum wins
        if score > best_score:
            best_label, best_score = label, score
    return best_label


def _join(parts: Iterable[str | None]) -> str:
    return " ".join(p for p in parts if p).lower()


class KeywordDemographicInference(Service):
    """Scores catalog keywords against profile text.

    Vertical is resolved from the company name first, then from keyword
    scores over title, headline, company and industry. Persona uses the
    title and headline only.
    """

    _catalog: DemographicCatalog

    async def infer(self, access_token: str | None, hints: ProfileHints) -> Demographics:
        if hints.is_empty():
            return Demographics.empty()

        role_text = _join((hints.title, hints.headline))
        all_text = _join((hints.title, hints.headline, hints.company, hints.industry))

        persona = _best_label(role_text, self._catalog.personas)

        vertical = self._vertical_from_company(hints.company)
        if vertical is None:
            vertical = _best_label(all_text, self._catalog.verticals)

        return Demographics(
            persona=persona,
            vertical=vertical,
            confidence=DemographicConfidence(
                persona="high" if persona else "low",
                vertical="high" if vertical else "low",
            ),
        )

    def _vertical_from_company(self, company: str | None) -> str | None:
        if not company:
            return None
        company = company.lower()
        for vertical, names in self._catalog.companies.items():
            # Substring match so "Spotify Technology S.A." maps like "Spotify"
            if any(name.lower() in company for name in names):
                return vertical
        return None


async def attempt_inference(
    inference: DemographicInference,
    access_token: str | None,
    hints: ProfileHints,
    timeout: float,
) -> Demographics:
    """Run inference as a best-effort step.

    Any failure or timeout yields empty demographics; a login never fails
    because of inference.
    """
    try:
        return await asyncio.wait_for(inference.infer(access_token, hints), timeout=timeout)
    except TimeoutError:
        logger.warning("Demographic inference timed out after %.1fs", timeout)
    except Exception as e:
        logger.warning("Demographic inference failed: %s", e)
    return Demographics.empty()
