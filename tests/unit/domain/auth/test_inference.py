"""Unit tests for keyword demographic inference."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from podstudio.domain.auth.model.demographics import DemographicCatalog, Demographics
from podstudio.domain.auth.model.profile import ProfileHints
from podstudio.domain.auth.service.inference import KeywordDemographicInference, attempt_inference


@pytest.fixture
def inference(catalog: DemographicCatalog) -> KeywordDemographicInference:
    return KeywordDemographicInference(_catalog=catalog)


class TestKeywordScoring:
    @pytest.mark.asyncio
    async def test_cto_at_saas_company(self, inference: KeywordDemographicInference):
        hints = ProfileHints(headline="CTO | Building cloud software", title="Chief Technology Officer")

        result = await inference.infer(None, hints)

        assert result.persona == "CTO"
        assert result.vertical == "SaaS"
        assert result.confidence.persona == "high"
        assert result.confidence.vertical == "high"

    @pytest.mark.asyncio
    async def test_company_table_wins_over_keywords(self, inference: KeywordDemographicInference):
        # "energy" would score Renewables; the company table says Pharma
        hints = ProfileHints(title="VP Finance", company="Pfizer Inc.", industry="energy")

        result = await inference.infer(None, hints)

        assert result.persona == "CFO"
        assert result.vertical == "Pharma"

    @pytest.mark.asyncio
    async def test_long_keywords_weigh_more(self, inference: KeywordDemographicInference):
        # "supply chain director" (long) outweighs the short "coo"
        hints = ProfileHints(title="Supply Chain Director, former COO")

        result = await inference.infer(None, hints)

        assert result.persona == "VP Supply Chain"

    @pytest.mark.asyncio
    async def test_keywords_match_whole_words_only(self, inference: KeywordDemographicInference):
        # "career" must not count as "car", "scooter" must not count as "coo"
        hints = ProfileHints(headline="Career coach for scooter enthusiasts")

        result = await inference.infer(None, hints)

        assert result == Demographics.empty()

    @pytest.mark.asyncio
    async def test_ties_keep_catalog_order(self):
        catalog = DemographicCatalog(
            personas={"First": ["lead"], "Second": ["lead"]},
            verticals={"A": ["x"]},
        )

        result = await KeywordDemographicInference(_catalog=catalog).infer(None, ProfileHints(title="Lead"))

        assert result.persona == "First"

    @pytest.mark.asyncio
    async def test_no_hints_gives_empty_result(self, inference: KeywordDemographicInference):
        result = await inference.infer("token", ProfileHints())

        assert result.persona is None
        assert result.vertical is None
        assert result.confidence.persona == "low"
        assert result.confidence.vertical == "low"


class TestAttemptInference:
    @pytest.mark.asyncio
    async def test_returns_result(self):
        expected = Demographics(persona="CTO", vertical="SaaS")
        strategy = AsyncMock()
        strategy.infer.return_value = expected

        result = await attempt_inference(strategy, "token", ProfileHints(title="x"), timeout=1.0)

        assert result == expected

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        strategy = AsyncMock()
        strategy.infer.side_effect = RuntimeError("model offline")

        result = await attempt_inference(strategy, "token", ProfileHints(title="x"), timeout=1.0)

        assert result == Demographics.empty()

    @pytest.mark.asyncio
    async def test_timeout_is_swallowed(self):
        class SlowInference:
            async def infer(self, access_token, hints):
                await asyncio.sleep(10)
                return Demographics(persona="CTO")

        result = await attempt_inference(SlowInference(), "token", ProfileHints(title="x"), timeout=0.01)

        assert result == Demographics.empty()


class TestCatalog:
    def test_bundled_catalog_has_ten_labels_each(self, catalog: DemographicCatalog):
        assert len(catalog.personas) == 10
        assert len(catalog.verticals) == 10
        assert catalog.is_persona("General Counsel")
        assert catalog.is_vertical("eCommerce")
        assert not catalog.is_persona("Astronaut")

    def test_company_table_must_reference_known_verticals(self):
        with pytest.raises(ValueError):
            DemographicCatalog(personas={}, verticals={"SaaS": []}, companies={"Mining": ["rio"]})
