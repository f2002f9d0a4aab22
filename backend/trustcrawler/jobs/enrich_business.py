"""
Business enrichment job.

Per-entity pipeline shared by the scrape worker and the verification
orchestrator:
1. Deep crawl of the business website
2. Data extraction (contacts, sitelinks, logo, social profiles)
3. Text intelligence enrichment and risk assessment (fallbacks tolerated)
4. Trust scoring
5. Merge of everything into the BusinessRecord

Steps 1-3 are skipped when the crawl yields no pages; scoring still runs so
the record carries a registry-only score.
"""

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from trustcrawler.core.models import (
    BusinessRecord,
    LogStatus,
    NewsSignal,
    RegistryData,
    VerificationStatus,
    VerificationType,
)
from trustcrawler.db.store import VerificationLogEntry
from trustcrawler.services.ai.enrichment import (
    EnrichmentData,
    RiskAssessment,
    SiteContext,
    TextIntelligenceAdapter,
)
from trustcrawler.services.crawler import CrawlResult, DeepCrawler
from trustcrawler.services.extraction import DataExtractor, EnrichedData, data_extractor
from trustcrawler.services.extraction.contact import is_professional_email
from trustcrawler.services.trust_engine import TrustEngine, TrustScore

logger = structlog.get_logger()


@dataclass
class SiteAnalysis:
    """Everything learned from one website visit."""
    crawl_ok: bool
    enriched: EnrichedData = field(default_factory=EnrichedData)
    enrichment: EnrichmentData = field(default_factory=EnrichmentData.fallback)
    risk: RiskAssessment = field(default_factory=RiskAssessment.neutral)
    enrichment_fallback: str | None = None
    risk_fallback: str | None = None
    failed_urls: list[str] = field(default_factory=list)

    @classmethod
    def failed(cls, failed_urls: list[str] | None = None) -> "SiteAnalysis":
        return cls(crawl_ok=False, failed_urls=list(failed_urls or []))


class BusinessEnricher:
    """Runs crawl, extraction and text intelligence for one website."""

    def __init__(
        self,
        crawler: DeepCrawler,
        adapter: TextIntelligenceAdapter,
        extractor: DataExtractor | None = None,
        max_pages: int = 20,
    ):
        self.crawler = crawler
        self.adapter = adapter
        self.extractor = extractor or data_extractor
        self.max_pages = max_pages
        self.log = logger.bind(component="BusinessEnricher")

    async def analyze(
        self,
        website_url: str,
        country_code: str | None = None,
        company_name: str | None = None,
        registry_status: str | None = None,
    ) -> SiteAnalysis:
        log = self.log.bind(website=website_url)

        crawl: CrawlResult = await self.crawler.crawl(website_url, max_pages=self.max_pages)
        if crawl.is_empty:
            log.info("Crawl returned no pages", failed_urls=len(crawl.failed_urls))
            return SiteAnalysis.failed(crawl.failed_urls)

        enriched = self.extractor.extract(crawl, country_code=country_code)
        context = SiteContext(
            content=enriched.content_sample,
            company_name=company_name or enriched.organization_name,
            website=crawl.base_url,
            country_code=country_code,
            registry_status=registry_status,
            emails=enriched.contact_info.emails,
            has_ssl=enriched.has_ssl,
        )

        enrichment_result = await self.adapter.enrich(context)
        risk_result = await self.adapter.assess_risk(context)

        analysis = SiteAnalysis(
            crawl_ok=True,
            enriched=enriched,
            enrichment=enrichment_result.value,
            risk=risk_result.value,
            enrichment_fallback=None if enrichment_result.ok else enrichment_result.reason,
            risk_fallback=None if risk_result.ok else risk_result.reason,
            failed_urls=crawl.failed_urls,
        )
        log.info(
            "Site analyzed",
            pages=enriched.indexed_pages_count,
            emails=len(enriched.contact_info.emails),
            sitelinks=len(enriched.sitelinks),
            enrichment_fallback=analysis.enrichment_fallback,
            risk_fallback=analysis.risk_fallback,
        )
        return analysis


def score_analysis(
    engine: TrustEngine,
    registry_data: RegistryData | None,
    analysis: SiteAnalysis,
    news_signals: list[NewsSignal] | None = None,
) -> TrustScore:
    return engine.score(
        registry_data,
        analysis.enriched,
        analysis.risk,
        news_signals=news_signals,
        enrichment=analysis.enrichment if analysis.crawl_ok else None,
    )


def merge_into_record(
    record: BusinessRecord,
    registry_data: RegistryData | None,
    analysis: SiteAnalysis,
    trust: TrustScore,
    now: datetime,
) -> BusinessRecord:
    """Return a copy of record carrying the new registry, site and score data.

    Website content is only replaced when the crawl succeeded, so a failed
    re-scrape keeps what an earlier scrape found. Crawl-state fields are left
    to the caller.
    """
    updates: dict = {
        "trust_score": trust.score,
        "trust_score_breakdown": trust.breakdown,
        "score_version": trust.version,
    }

    if registry_data is not None:
        updates.update(
            registry_data=registry_data,
            legal_name=registry_data.legal_name or record.legal_name,
            verification_status=VerificationStatus.VERIFIED,
            last_verified_at=now,
        )

    if analysis.crawl_ok:
        enriched = analysis.enriched
        enrichment = analysis.enrichment
        updates.update(
            company_description=enrichment.description or enriched.description,
            logo_url=enriched.logo_url,
            sitelinks=enriched.sitelinks,
            social_media=enriched.social_media,
            contact_info=enriched.contact_info,
            translations=enrichment.translations,
            industry_category=enrichment.industry_category,
            services=enrichment.services,
            products=enrichment.products,
            search_keywords=enrichment.search_keywords,
            technologies=enriched.technologies,
            business_hours=enriched.business_hours,
            indexed_pages_count=enriched.indexed_pages_count,
            quality_analysis=analysis.risk.to_quality_analysis(
                has_ssl=enriched.has_ssl,
                professional_email=any(
                    is_professional_email(e) for e in enriched.contact_info.emails
                ),
            ),
        )

    return record.model_copy(update=updates)


def verification_log_entries(
    registry_data: RegistryData | None,
    analysis: SiteAnalysis,
    trust: TrustScore,
) -> list[VerificationLogEntry]:
    """Audit entries for one verification run."""
    entries = [
        VerificationLogEntry(
            verification_type=VerificationType.REGISTRY,
            status=LogStatus.SUCCESS if registry_data is not None else LogStatus.FAILED,
            details={
                "source": registry_data.source if registry_data else None,
                "registry_score": trust.breakdown.registry.score,
            },
        )
    ]
    if analysis.crawl_ok:
        fallback = analysis.enrichment_fallback or analysis.risk_fallback
        entries.append(
            VerificationLogEntry(
                verification_type=VerificationType.AI_QUALITY,
                status=LogStatus.PARTIAL if fallback else LogStatus.SUCCESS,
                details={
                    "quality_score": trust.breakdown.quality.score,
                    "risk_level": analysis.risk.risk_level.value,
                    "fallback": fallback,
                },
            )
        )
    return entries
