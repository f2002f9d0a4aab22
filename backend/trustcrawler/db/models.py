"""
SQLAlchemy ORM models for Trust Crawler.

Column types are dialect-neutral (Uuid, JSON) so the same tables run on
PostgreSQL in production and SQLite in tests.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from trustcrawler.core.models import VerificationStatus, WebsiteStatus
from trustcrawler.db.database import Base


def utcnow() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """Mixin for created_at and updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow
    )


# ==============================================================================
# Business Tables
# ==============================================================================


class BusinessModel(Base, TimestampMixin):
    """A registered business and everything learned about it."""

    __tablename__ = "businesses"
    __table_args__ = (
        UniqueConstraint("org_number", "country_code", name="uq_businesses_org_country"),
        Index("ix_businesses_scrape_eligibility", "website_status", "scrape_count", "last_scraped_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    org_number: Mapped[str] = mapped_column(String(50), nullable=False)
    country_code: Mapped[str] = mapped_column(String(2), nullable=False)
    legal_name: Mapped[str | None] = mapped_column(String(500))
    domain: Mapped[str | None] = mapped_column(String(255), index=True)

    # Crawl state
    website_status: Mapped[str] = mapped_column(String(30), default=WebsiteStatus.UNSET.value)
    last_scraped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    scrape_count: Mapped[int] = mapped_column(Integer, default=0)
    next_scrape_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Extracted content
    company_description: Mapped[str | None] = mapped_column(Text)
    logo_url: Mapped[str | None] = mapped_column(String(1000))
    sitelinks: Mapped[list] = mapped_column(JSON, default=list)
    social_media: Mapped[dict] = mapped_column(JSON, default=dict)
    contact_info: Mapped[dict] = mapped_column(JSON, default=dict)
    translations: Mapped[dict] = mapped_column(JSON, default=dict)
    industry_category: Mapped[str | None] = mapped_column(String(255))
    services: Mapped[list] = mapped_column(JSON, default=list)
    products: Mapped[list] = mapped_column(JSON, default=list)
    search_keywords: Mapped[list] = mapped_column(JSON, default=list)
    technologies: Mapped[list] = mapped_column(JSON, default=list)
    business_hours: Mapped[str | None] = mapped_column(String(500))
    indexed_pages_count: Mapped[int] = mapped_column(Integer, default=0)

    # Scoring
    trust_score: Mapped[int] = mapped_column(Integer, default=0, index=True)
    trust_score_breakdown: Mapped[dict | None] = mapped_column(JSON)
    score_version: Mapped[int | None] = mapped_column(Integer)

    # Verification
    registry_data: Mapped[dict | None] = mapped_column(JSON)
    quality_analysis: Mapped[dict | None] = mapped_column(JSON)
    news_signals: Mapped[list] = mapped_column(JSON, default=list)
    verification_status: Mapped[str] = mapped_column(String(20), default=VerificationStatus.PENDING.value)
    last_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    verification_logs: Mapped[list["VerificationLogModel"]] = relationship(
        back_populates="business", cascade="all, delete-orphan"
    )


class VerificationLogModel(Base):
    """Audit trail of verification runs."""

    __tablename__ = "verification_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("businesses.id", ondelete="CASCADE"), index=True
    )
    verification_type: Mapped[str] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20))
    details: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    business: Mapped["BusinessModel"] = relationship(back_populates="verification_logs")
