"""
Integration test for on-demand verification.

Runs the full pipeline against a mocked network and a real SQLite store:
1. Brønnøysund lookup for 912676951
2. Crawl of the three-page Acme site
3. Extraction and scoring without a text intelligence provider
4. One transactional write plus audit log
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from trustcrawler.core.exceptions import StoreError
from trustcrawler.core.models import (
    CompanyStatus,
    LogStatus,
    RegistryData,
    VerificationType,
    WebsiteStatus,
)
from trustcrawler.jobs.enrich_business import BusinessEnricher
from trustcrawler.orchestrator import VerificationHints, VerificationOrchestrator
from trustcrawler.services.ai.enrichment import TextIntelligenceAdapter
from trustcrawler.services.registry import BrregLookup, RegistryVerifier, ViesLookup

pytestmark = pytest.mark.asyncio

ORG_NUMBER = "912676951"


@pytest.fixture
def orchestrator_for(store, mock_client, make_crawler, site_handler, acme_entity):
    """Orchestrator wired to a mocked Acme site and Brreg API."""

    def build(pages: dict[str, str], record_store=None, settings=None) -> VerificationOrchestrator:
        client = mock_client(site_handler(pages, entities={ORG_NUMBER: acme_entity}))
        verifier = RegistryVerifier()
        verifier.register("NO", BrregLookup(client))
        enricher = BusinessEnricher(make_crawler(client), TextIntelligenceAdapter(None))
        return VerificationOrchestrator(record_store or store, verifier, enricher=enricher, settings=settings)

    return build


class TestVerificationFlow:
    """End-to-end verify_and_store."""

    async def test_verifies_and_stores_acme(self, store, orchestrator_for, acme_site) -> None:
        orchestrator = orchestrator_for(acme_site)

        outcome = await orchestrator.verify_and_store(
            ORG_NUMBER, "no", VerificationHints(website_url="https://acme.no"),
        )

        assert outcome.success
        assert outcome.source == "brreg"
        assert outcome.trust_score >= 30

        record = await store.get(ORG_NUMBER, "NO")
        assert record.id == outcome.business_id
        assert record.legal_name == "ACME RØR AS"
        assert record.domain == "acme.no"
        assert record.website_status == WebsiteStatus.ACTIVE
        assert record.scrape_count == 0
        assert record.trust_score == outcome.trust_score
        assert record.trust_score_breakdown.total == record.trust_score
        assert record.contact_info.emails == ["post@acme.no"]
        assert record.logo_url == "https://acme.no/img/acme-logo.svg"
        assert record.registry_data.vat_number == "NO912676951MVA"

        logs = await store.list_verification_logs(outcome.business_id)
        assert [(e.verification_type, e.status) for e in logs] == [
            (VerificationType.REGISTRY, LogStatus.SUCCESS),
            (VerificationType.AI_QUALITY, LogStatus.PARTIAL),
        ]
        assert logs[1].details["fallback"] == "provider_unavailable"

    async def test_reverification_updates_same_row(self, store, orchestrator_for, acme_site) -> None:
        orchestrator = orchestrator_for(acme_site)
        hints = VerificationHints(website_url="https://acme.no")

        first = await orchestrator.verify_and_store(ORG_NUMBER, "NO", hints)
        second = await orchestrator.verify_and_store(ORG_NUMBER, "NO", hints)

        assert first.business_id == second.business_id
        assert await store.count() == 1
        assert len(await store.list_verification_logs(first.business_id)) == 4

    async def test_unknown_business_is_not_stored(self, store, orchestrator_for, acme_site) -> None:
        outcome = await orchestrator_for(acme_site).verify_and_store("999999999", "NO")

        assert not outcome.success
        assert outcome.error_code == "not_found"
        assert await store.count() == 0

    async def test_without_website_falls_back_to_registry(self, store, orchestrator_for) -> None:
        outcome = await orchestrator_for({}).verify_and_store(ORG_NUMBER, "NO")

        assert outcome.success
        assert outcome.trust_score == 35

        record = await store.get(ORG_NUMBER, "NO")
        assert record.website_status == WebsiteStatus.REGISTRY_FALLBACK
        assert record.domain is None

    async def test_unreachable_website_needs_rescue(self, store, orchestrator_for) -> None:
        outcome = await orchestrator_for({}).verify_and_store(
            ORG_NUMBER, "NO", VerificationHints(website_url="https://acme.no"),
        )

        assert outcome.success
        record = await store.get(ORG_NUMBER, "NO")
        assert record.website_status == WebsiteStatus.NEEDS_RESCUE
        assert record.domain == "acme.no"

    async def test_store_failure_is_reported(self, orchestrator_for, acme_site) -> None:
        broken = AsyncMock()
        broken.get.return_value = None
        broken.save_verification.side_effect = StoreError("database is locked")

        outcome = await orchestrator_for(acme_site, record_store=broken).verify_and_store(ORG_NUMBER, "NO")

        assert not outcome.success
        assert outcome.error_code == "store_error"
        assert outcome.trust_score == 35

    async def test_trusted_registry_data_skips_lookup(self, store, orchestrator_for) -> None:
        known = RegistryData(
            org_nr="123456785",
            legal_name="KJENT AS",
            company_status=CompanyStatus.LIQUIDATION,
            source="import",
        )

        outcome = await orchestrator_for({}).verify_and_store(
            "123456785", "NO", VerificationHints(known_registry_data=known),
        )

        assert outcome.success
        assert outcome.source == "import"
        assert outcome.trust_score == 10
        assert (await store.get("123456785", "NO")).legal_name == "KJENT AS"

    async def test_rescrape_interval_follows_settings(self, store, orchestrator_for, acme_site, settings) -> None:
        orchestrator = orchestrator_for(
            acme_site, settings=settings.model_copy(update={"scheduler_rescrape_days": 3}),
        )

        await orchestrator.verify_and_store(ORG_NUMBER, "NO", VerificationHints(website_url="https://acme.no"))

        record = await store.get(ORG_NUMBER, "NO")
        assert record.next_scrape_at - record.last_scraped_at == timedelta(days=3)

    async def test_invalid_vat_number_is_not_stored(self, store, mock_client) -> None:
        client = mock_client(lambda request: httpx.Response(200, json={"isValid": False, "userError": "INVALID"}))
        verifier = RegistryVerifier()
        verifier.register("DE", ViesLookup(client, country_code="DE"))
        orchestrator = VerificationOrchestrator(store, verifier)

        outcome = await orchestrator.verify_and_store("DE123456789", "DE")

        assert not outcome.success
        assert outcome.error_code == "not_found"
        assert await store.count() == 0
