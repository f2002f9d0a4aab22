"""
Data Extractor for Trust Crawler.

Turns a CrawlResult into EnrichedData without any network access:
- Contact info (emails, phones, tax identifier)
- Social profiles
- Classified sitelinks
- Logo
- Aggregated headings, meta descriptions, languages and images (capped)
- Technology fingerprints, business hours, JSON-LD blocks

Never raises for missing fields. An empty crawl yields defaults with
industry_category "Unknown".
"""

import re
from dataclasses import dataclass, field
from typing import Any

import structlog

from trustcrawler.core.constants import (
    HEADING_CAPS,
    IMAGE_CAP,
    META_DESCRIPTION_CAP,
    SOCIAL_PATTERNS,
    STRUCTURED_DATA_CAP,
    TECHNOLOGY_SIGNATURES,
    UNKNOWN_INDUSTRY,
)
from trustcrawler.core.models import ContactInfo, Sitelink
from trustcrawler.services.crawler.models import CrawlResult
from trustcrawler.services.extraction.contact import (
    extract_emails,
    extract_phones,
    extract_tax_id,
)
from trustcrawler.services.extraction.logo import find_logo
from trustcrawler.services.extraction.sitelinks import select_sitelinks

logger = structlog.get_logger()


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class EnrichedData:
    """Structured signals extracted from one crawl."""
    base_url: str | None = None
    description: str | None = None
    organization_name: str | None = None
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    social_media: dict[str, str] = field(default_factory=dict)
    sitelinks: list[Sitelink] = field(default_factory=list)
    logo_url: str | None = None
    headings: dict[str, list[str]] = field(
        default_factory=lambda: {"h1": [], "h2": [], "h3": []}
    )
    meta_descriptions: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    technologies: list[str] = field(default_factory=list)
    business_hours: str | None = None
    structured_data: list[dict[str, Any]] = field(default_factory=list)
    has_ssl: bool = False
    indexed_pages_count: int = 0
    industry_category: str = UNKNOWN_INDUSTRY
    content_sample: str = ""

    @property
    def is_empty(self) -> bool:
        return self.indexed_pages_count == 0


# =============================================================================
# Patterns
# =============================================================================

BUSINESS_HOURS_PATTERN = re.compile(
    r"((?:man|mon|mån|ma)[a-zæøåä]*\.?\s*[-–]\s*(?:fre|fri|pe)[a-zæøåä]*\.?:?\s*"
    r"(?:kl\.?\s*)?\d{1,2}(?:[:.]\d{2})?\s*[-–]\s*\d{1,2}(?:[:.]\d{2})?)",
    re.IGNORECASE,
)

ORGANIZATION_TYPES = {
    "organization", "corporation", "localbusiness", "store", "onlinestore",
    "professionalservice", "restaurant", "ngo",
}

CONTENT_SAMPLE_PAGES = 5
CONTENT_SAMPLE_PER_PAGE = 2000


def _union(groups: list[list[str]], cap: int) -> list[str]:
    merged: list[str] = []
    seen: set[str] = set()
    for group in groups:
        for item in group:
            key = item.strip()
            if key and key not in seen:
                seen.add(key)
                merged.append(key)
                if len(merged) >= cap:
                    return merged
    return merged


def _types_of(block: dict[str, Any]) -> set[str]:
    value = block.get("@type")
    if isinstance(value, str):
        return {value.lower()}
    if isinstance(value, list):
        return {v.lower() for v in value if isinstance(v, str)}
    return set()


# =============================================================================
# Data Extractor
# =============================================================================


class DataExtractor:
    """Pure, synchronous extraction over a finished crawl."""

    def __init__(self):
        self.log = logger.bind(component="DataExtractor")

    def extract(self, crawl: CrawlResult, country_code: str | None = None) -> EnrichedData:
        """Extract structured data from a crawl.

        Args:
            crawl: Finished crawl; pages[0] is the homepage
            country_code: Tried first when matching tax identifiers

        Returns:
            EnrichedData, all defaults for an empty crawl
        """
        data = EnrichedData(base_url=crawl.base_url, has_ssl=crawl.uses_https)
        if crawl.is_empty:
            data.has_ssl = False
            return data

        pages = crawl.pages
        homepage = pages[0]
        texts = [page.text_content for page in pages]
        data.indexed_pages_count = len(pages)

        # Contacts
        mailtos = [address for page in pages for address in page.mailto_links]
        vat_number = extract_tax_id(texts, country_code)
        data.contact_info = ContactInfo(
            emails=extract_emails(texts, mailtos),
            phones=extract_phones(texts, tax_id=vat_number),
            vat_number=vat_number,
        )

        data.social_media = self._extract_social(crawl)
        data.sitelinks = select_sitelinks(pages)
        data.logo_url = find_logo(homepage.raw_markup, homepage.url, crawl.images)

        # Aggregation
        for level, cap in HEADING_CAPS.items():
            data.headings[level] = _union([page.headings.get(level, []) for page in pages], cap)
        data.meta_descriptions = _union(
            [[page.meta_description] for page in pages if page.meta_description],
            META_DESCRIPTION_CAP,
        )
        data.languages = _union(
            [[page.meta_language] for page in pages if page.meta_language], 20
        )
        data.images = list(crawl.images[:IMAGE_CAP])
        data.structured_data = [
            block for page in pages for block in page.structured_data
        ][:STRUCTURED_DATA_CAP]

        data.technologies = self._detect_technologies(crawl)
        data.business_hours = self._extract_business_hours(data.structured_data, texts)
        data.organization_name, org_description = self._organization_info(data.structured_data)
        data.description = homepage.meta_description or org_description
        data.content_sample = self._content_sample(crawl)

        self.log.debug(
            "Extraction complete",
            base_url=crawl.base_url,
            pages=len(pages),
            emails=len(data.contact_info.emails),
            sitelinks=len(data.sitelinks),
            has_logo=data.logo_url is not None,
        )
        return data

    def _extract_social(self, crawl: CrawlResult) -> dict[str, str]:
        social: dict[str, str] = {}
        links = [link for page in crawl.pages for link in page.external_links]
        for network, pattern in SOCIAL_PATTERNS.items():
            regex = re.compile(pattern, re.IGNORECASE)
            for link in links:
                match = regex.match(link)
                if match:
                    social[network] = match.group(0).rstrip("/")
                    break
        return social

    def _detect_technologies(self, crawl: CrawlResult) -> list[str]:
        markup = " ".join(page.raw_markup.lower() for page in crawl.pages[:3])
        return [
            name for name, signatures in TECHNOLOGY_SIGNATURES.items()
            if any(signature in markup for signature in signatures)
        ]

    def _extract_business_hours(
        self, structured_data: list[dict[str, Any]], texts: list[str]
    ) -> str | None:
        for block in structured_data:
            hours = block.get("openingHours")
            if isinstance(hours, str) and hours.strip():
                return hours.strip()
            if isinstance(hours, list):
                joined = ", ".join(h for h in hours if isinstance(h, str))
                if joined:
                    return joined
        for text in texts:
            match = BUSINESS_HOURS_PATTERN.search(text)
            if match:
                return re.sub(r"\s+", " ", match.group(1)).strip()
        return None

    def _organization_info(self, structured_data: list[dict[str, Any]]) -> tuple[str | None, str | None]:
        for block in structured_data:
            if _types_of(block) & ORGANIZATION_TYPES:
                name = block.get("name") if isinstance(block.get("name"), str) else None
                description = (
                    block.get("description") if isinstance(block.get("description"), str) else None
                )
                return name, description
        return None, None

    def _content_sample(self, crawl: CrawlResult) -> str:
        parts = []
        for page in crawl.pages[:CONTENT_SAMPLE_PAGES]:
            header = f"## {page.title or page.url}"
            parts.append(f"{header}\n{page.text_content[:CONTENT_SAMPLE_PER_PAGE]}")
        return "\n\n".join(parts)


# Singleton instance
data_extractor = DataExtractor()
