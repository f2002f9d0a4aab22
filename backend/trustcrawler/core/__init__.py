"""
Core package initialization.
"""

from trustcrawler.core.config import Settings, get_settings, settings
from trustcrawler.core.exceptions import StateStoreError, StoreError, TrustCrawlerError
from trustcrawler.core.models import (
    BusinessRecord,
    CompanyStatus,
    ContactInfo,
    RegistryData,
    RiskLevel,
    Sitelink,
    SitelinkType,
    TrustScoreBreakdown,
    VerificationStatus,
    WebsiteStatus,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "settings",
    # Errors
    "TrustCrawlerError",
    "StoreError",
    "StateStoreError",
    # Enums
    "WebsiteStatus",
    "CompanyStatus",
    "SitelinkType",
    "RiskLevel",
    "VerificationStatus",
    # Models
    "BusinessRecord",
    "ContactInfo",
    "RegistryData",
    "Sitelink",
    "TrustScoreBreakdown",
]
