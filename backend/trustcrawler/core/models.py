"""
Core models and types for Trust Crawler.

Pydantic schemas shared between the pipeline, the record store and the API.
ORM tables live in trustcrawler.db.models.
"""

from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class WebsiteStatus(str, Enum):
    """Crawl state of a business website."""
    UNSET = "unset"
    ACTIVE = "active"
    DEAD = "dead"
    NEEDS_RESCUE = "needs_rescue"
    RESCUE_FAILED = "rescue_failed"
    REGISTRY_FALLBACK = "registry_fallback"


# Records in these states are never picked up by the scheduler again
TERMINAL_WEBSITE_STATUSES = frozenset({WebsiteStatus.DEAD, WebsiteStatus.RESCUE_FAILED})


class CompanyStatus(str, Enum):
    """Normalized registry status."""
    ACTIVE = "Active"
    DISSOLVED = "Dissolved"
    LIQUIDATION = "Liquidation"
    UNKNOWN = "Unknown"


class SitelinkType(str, Enum):
    CONTACT = "contact"
    ABOUT = "about"
    TEAM = "team"
    PRODUCTS = "products"
    INVESTORS = "investors"
    NEWS = "news"
    OTHER = "other"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class VerificationType(str, Enum):
    REGISTRY = "registry"
    AI_QUALITY = "ai_quality"
    NEWS = "news"


class LogStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"


# =============================================================================
# Base Models
# =============================================================================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Registry
# =============================================================================


class RegistryData(BaseSchema):
    """Registry snapshot normalized across all registries."""
    org_nr: str | None = None
    legal_name: str | None = None
    registration_date: str | None = None
    company_status: CompanyStatus = CompanyStatus.UNKNOWN
    industry_codes: list[str] = Field(default_factory=list)
    employee_count: int | None = None
    vat_number: str | None = None
    vat_status: Literal["Active", "Inactive"] | None = None
    registered_address: str | None = None
    source: str | None = None
    last_verified_registry: datetime | None = None


# =============================================================================
# Extracted Website Data
# =============================================================================


class ContactInfo(BaseSchema):
    emails: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    vat_number: str | None = None


class Sitelink(BaseSchema):
    title: str
    url: str
    description: str | None = None
    type: SitelinkType = SitelinkType.OTHER
    score: float = 0.0


class Translation(BaseSchema):
    description: str = ""
    services: list[str] = Field(default_factory=list)


class NewsSignal(BaseSchema):
    """A news mention about the business."""
    title: str
    url: str | None = None
    sentiment: Literal["positive", "negative", "neutral"] = "neutral"
    published_at: datetime | None = None


class QualityAnalysis(BaseSchema):
    """Website quality and risk signals."""
    has_ssl: bool = False
    professional_email: bool = False
    is_scam: bool = False
    risk_level: RiskLevel = RiskLevel.LOW
    credibility_score: int = 50
    red_flags: list[str] = Field(default_factory=list)
    trust_signals: list[str] = Field(default_factory=list)
    ai_summary: str | None = None
    analyzed_at: datetime | None = None


# =============================================================================
# Scoring
# =============================================================================


class BucketScore(BaseSchema):
    score: int = 0
    max: int


class TrustScoreBreakdown(BaseSchema):
    """Auditable per-bucket score. Buckets always sum to the total."""
    registry: BucketScore
    quality: BucketScore
    social: BucketScore
    technical: BucketScore
    news: BucketScore

    @property
    def total(self) -> int:
        return (
            self.registry.score
            + self.quality.score
            + self.social.score
            + self.technical.score
            + self.news.score
        )


# =============================================================================
# Business Record
# =============================================================================


class BusinessRecord(BaseSchema):
    """Persisted view of a business entity."""

    id: UUID | None = None
    org_number: str
    country_code: str
    legal_name: str | None = None
    domain: str | None = None

    # Crawl state
    website_status: WebsiteStatus = WebsiteStatus.UNSET
    last_scraped_at: datetime | None = None
    scrape_count: int = 0
    next_scrape_at: datetime | None = None

    # Extracted content
    company_description: str | None = None
    logo_url: str | None = None
    sitelinks: list[Sitelink] = Field(default_factory=list)
    social_media: dict[str, str] = Field(default_factory=dict)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    translations: dict[str, Translation] = Field(default_factory=dict)
    industry_category: str | None = None
    services: list[str] = Field(default_factory=list)
    products: list[str] = Field(default_factory=list)
    search_keywords: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    business_hours: str | None = None
    indexed_pages_count: int = 0

    # Scoring
    trust_score: int = 0
    trust_score_breakdown: TrustScoreBreakdown | None = None
    score_version: int | None = None

    # Verification
    registry_data: RegistryData | None = None
    quality_analysis: QualityAnalysis | None = None
    news_signals: list[NewsSignal] = Field(default_factory=list)
    verification_status: VerificationStatus = VerificationStatus.PENDING
    last_verified_at: datetime | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None
