"""
Trust Engine - deterministic credibility score for a business.

Score buckets (max 100):
- registry  35: Active 30, Liquidation 10, +5 for a registry check < 30 days old
- quality   30: description, detailed description, logo, services/products,
                translations, known industry, clean risk assessment; -5 per red flag
- social    15: any profile, two or more profiles, professional email
- technical 15: three or more sitelinks, HTTPS, more than five indexed pages
- news       5: recent (90 days) sentiment balance

Each bucket is clamped to [0, max] before summing, so the breakdown always
adds up to the stored total.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

import structlog

from trustcrawler.core.constants import UNKNOWN_INDUSTRY
from trustcrawler.core.models import (
    BucketScore,
    CompanyStatus,
    NewsSignal,
    RegistryData,
    RiskLevel,
    TrustScoreBreakdown,
)
from trustcrawler.services.ai.enrichment import EnrichmentData, RiskAssessment
from trustcrawler.services.extraction.contact import is_professional_email
from trustcrawler.services.extraction.extractor import EnrichedData

logger = structlog.get_logger()

SCORE_VERSION = 2

REGISTRY_MAX = 35
QUALITY_MAX = 30
SOCIAL_MAX = 15
TECHNICAL_MAX = 15
NEWS_MAX = 5

REGISTRY_FRESHNESS = timedelta(days=30)
NEWS_WINDOW = timedelta(days=90)
DETAILED_DESCRIPTION_CHARS = 200
HIGH_RISK_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


@dataclass
class TrustScore:
    score: int
    breakdown: TrustScoreBreakdown
    version: int = SCORE_VERSION


def _clamp(value: int, maximum: int) -> int:
    return max(0, min(maximum, value))


def trust_level(score: int) -> str:
    """Coarse level for display: low, medium, good or excellent."""
    if score >= 80:
        return "excellent"
    if score >= 65:
        return "good"
    if score >= 50:
        return "medium"
    return "low"


def label_key(score: int) -> str:
    """Translation key for the trust label shown next to the score."""
    if score >= 80:
        return "highlyTrusted"
    if score >= 70:
        return "trusted"
    if score >= 50:
        return "moderatelyTrusted"
    if score >= 40:
        return "requiresVerification"
    if score >= 20:
        return "lowTrust"
    return "notVerified"


class TrustEngine:
    """Pure scoring over registry, website and risk signals."""

    def __init__(self, now: datetime | None = None):
        # Fixed clock for tests; None means wall clock at scoring time
        self._now = now
        self.log = logger.bind(component="TrustEngine")

    def now(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    def score(
        self,
        registry_data: RegistryData | None,
        enriched: EnrichedData | None,
        risk: RiskAssessment | None,
        news_signals: list[NewsSignal] | None = None,
        enrichment: EnrichmentData | None = None,
    ) -> TrustScore:
        enriched = enriched or EnrichedData()
        risk = risk or RiskAssessment.neutral()

        breakdown = TrustScoreBreakdown(
            registry=BucketScore(score=self.registry_score(registry_data), max=REGISTRY_MAX),
            quality=BucketScore(score=self.quality_score(enriched, risk, enrichment), max=QUALITY_MAX),
            social=BucketScore(score=self.social_score(enriched), max=SOCIAL_MAX),
            technical=BucketScore(score=self.technical_score(enriched), max=TECHNICAL_MAX),
            news=BucketScore(score=self.news_score(news_signals), max=NEWS_MAX),
        )
        total = min(100, breakdown.total)

        self.log.debug(
            "Trust score computed",
            score=total,
            registry=breakdown.registry.score,
            quality=breakdown.quality.score,
            social=breakdown.social.score,
            technical=breakdown.technical.score,
            news=breakdown.news.score,
        )
        return TrustScore(score=total, breakdown=breakdown)

    # =========================================================================
    # Buckets
    # =========================================================================

    def registry_score(self, registry_data: RegistryData | None) -> int:
        if registry_data is None:
            return 0

        points = 0
        if registry_data.company_status == CompanyStatus.ACTIVE:
            points += 30
        elif registry_data.company_status == CompanyStatus.LIQUIDATION:
            points += 10

        verified_at = registry_data.last_verified_registry
        if verified_at is not None:
            if verified_at.tzinfo is None:
                verified_at = verified_at.replace(tzinfo=timezone.utc)
            if self.now() - verified_at < REGISTRY_FRESHNESS:
                points += 5

        return _clamp(points, REGISTRY_MAX)

    def quality_score(
        self,
        enriched: EnrichedData,
        risk: RiskAssessment,
        enrichment: EnrichmentData | None = None,
    ) -> int:
        description = (enrichment.description if enrichment else None) or enriched.description or ""
        industry = enrichment.industry_category if enrichment else enriched.industry_category

        points = 0
        if description:
            points += 5
        if len(description) > DETAILED_DESCRIPTION_CHARS:
            points += 5
        if enriched.logo_url:
            points += 5
        if enrichment and (enrichment.services or enrichment.products):
            points += 5
        if enrichment and len(enrichment.translations) >= 3:
            points += 5
        if industry and industry != UNKNOWN_INDUSTRY:
            points += 5

        if risk.assessed:
            if not risk.red_flags and risk.risk_level not in HIGH_RISK_LEVELS:
                points += 5
            points -= 5 * len(risk.red_flags)

        return _clamp(points, QUALITY_MAX)

    def social_score(self, enriched: EnrichedData) -> int:
        profiles = [url for url in enriched.social_media.values() if url]

        points = 0
        if profiles:
            points += 5
        if len(profiles) >= 2:
            points += 5
        if any(is_professional_email(email) for email in enriched.contact_info.emails):
            points += 5
        return _clamp(points, SOCIAL_MAX)

    def technical_score(self, enriched: EnrichedData) -> int:
        points = 0
        if len(enriched.sitelinks) >= 3:
            points += 5
        if enriched.has_ssl:
            points += 5
        if enriched.indexed_pages_count > 5:
            points += 5
        return _clamp(points, TECHNICAL_MAX)

    def news_score(self, news_signals: list[NewsSignal] | None) -> int:
        """Net sentiment of recent news mapped onto 0..5; neutral or absent news is 0."""
        if not news_signals:
            return 0

        cutoff = self.now() - NEWS_WINDOW
        recent = []
        for signal in news_signals:
            published = signal.published_at
            if published is not None and published.tzinfo is None:
                published = published.replace(tzinfo=timezone.utc)
            # Undated mentions count as recent
            if published is None or published >= cutoff:
                recent.append(signal)
        if not recent:
            return 0

        positive = sum(1 for s in recent if s.sentiment == "positive")
        negative = sum(1 for s in recent if s.sentiment == "negative")
        ratio = Decimal(positive - negative) / Decimal(len(recent))
        points = int((ratio * NEWS_MAX).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return _clamp(points, NEWS_MAX)


trust_engine = TrustEngine()
