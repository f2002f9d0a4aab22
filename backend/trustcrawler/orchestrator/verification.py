"""
Verification Orchestrator.

End-to-end verification of one business on demand:
1. Registry lookup (or trusted registry data supplied by the caller)
2. Optional crawl + extraction + text intelligence for a supplied website
3. Trust scoring
4. One transaction: upsert by (org_number, country_code) plus audit log

Every failure is returned as a VerificationOutcome; nothing raises to the
caller. A business the registry does not know is never written.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

import structlog

from trustcrawler.core.config import Settings, settings as default_settings
from trustcrawler.core.exceptions import StoreError
from trustcrawler.core.models import BusinessRecord, NewsSignal, RegistryData, WebsiteStatus
from trustcrawler.db.store import RecordStore
from trustcrawler.jobs.enrich_business import (
    BusinessEnricher,
    SiteAnalysis,
    merge_into_record,
    score_analysis,
    verification_log_entries,
)
from trustcrawler.services.registry.verifier import RegistryVerifier, normalize_country
from trustcrawler.services.trust_engine import TrustEngine
from trustcrawler.services.url_utils import ensure_scheme, host_of

logger = structlog.get_logger()


@dataclass
class VerificationHints:
    """Optional caller-supplied inputs."""
    website_url: str | None = None
    known_registry_data: RegistryData | None = None
    news_signals: list[NewsSignal] = field(default_factory=list)


@dataclass
class VerificationOutcome:
    success: bool
    business_id: UUID | None = None
    trust_score: int | None = None
    source: str | None = None
    error: str | None = None
    error_code: str | None = None  # "not_found" or "store_error"


class VerificationOrchestrator:
    """Registry, website and scoring pipeline for a single business."""

    def __init__(
        self,
        store: RecordStore,
        verifier: RegistryVerifier,
        enricher: BusinessEnricher | None = None,
        engine: TrustEngine | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or default_settings
        self.store = store
        self.verifier = verifier
        self.enricher = enricher
        self.engine = engine or TrustEngine()
        self.rescrape_interval = timedelta(days=settings.scheduler_rescrape_days)
        self.log = logger.bind(component="VerificationOrchestrator")

    async def verify_and_store(
        self,
        org_number: str,
        country_code: str,
        hints: VerificationHints | None = None,
    ) -> VerificationOutcome:
        hints = hints or VerificationHints()
        country = normalize_country(country_code)
        org_number = org_number.strip()
        log = self.log.bind(org_number=org_number, country=country)

        # Step 1: registry
        registry_data = hints.known_registry_data
        if registry_data is None:
            registry_data = await self.verifier.verify(country, org_number)
        if registry_data is None:
            log.info("Business not found in registry")
            return VerificationOutcome(
                success=False,
                error="Business not found in registry",
                error_code="not_found",
            )

        # Step 2: website
        analysis = SiteAnalysis.failed()
        if hints.website_url and self.enricher is not None:
            analysis = await self.enricher.analyze(
                hints.website_url,
                country_code=country,
                company_name=registry_data.legal_name,
                registry_status=registry_data.company_status.value,
            )

        # Step 3: score
        trust = score_analysis(self.engine, registry_data, analysis, hints.news_signals or None)

        # Step 4: persist
        now = datetime.now(UTC)
        try:
            existing = await self.store.get(org_number, country)
            record = existing or BusinessRecord(org_number=org_number, country_code=country)
            if hints.news_signals:
                record = record.model_copy(update={"news_signals": hints.news_signals})
            record = merge_into_record(record, registry_data, analysis, trust, now)
            record = self._apply_website_state(record, hints.website_url, analysis, now)

            business_id = await self.store.save_verification(
                record,
                verification_log_entries(registry_data, analysis, trust),
            )
        except StoreError as e:
            log.error("Failed to store verification", error=e.message)
            return VerificationOutcome(
                success=False,
                trust_score=trust.score,
                source=registry_data.source,
                error=f"Failed to store verification: {e.message}",
                error_code="store_error",
            )

        log.info(
            "Business verified",
            business_id=str(business_id),
            trust_score=trust.score,
            source=registry_data.source,
            website_status=record.website_status.value,
        )
        return VerificationOutcome(
            success=True,
            business_id=business_id,
            trust_score=trust.score,
            source=registry_data.source,
        )

    def _apply_website_state(
        self,
        record: BusinessRecord,
        website_url: str | None,
        analysis: SiteAnalysis,
        now: datetime,
    ) -> BusinessRecord:
        if website_url:
            domain = host_of(ensure_scheme(website_url)) or record.domain
            if analysis.crawl_ok:
                return record.model_copy(update={
                    "domain": domain,
                    "website_status": WebsiteStatus.ACTIVE,
                    "scrape_count": 0,
                    "last_scraped_at": now,
                    "next_scrape_at": now + self.rescrape_interval,
                })
            # The scheduler retries it with the normal attempt cap
            return record.model_copy(update={
                "domain": domain,
                "website_status": WebsiteStatus.NEEDS_RESCUE,
            })

        if not record.domain:
            return record.model_copy(update={"website_status": WebsiteStatus.REGISTRY_FALLBACK})
        return record
