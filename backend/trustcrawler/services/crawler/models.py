"""
Crawl result data classes.

A CrawlResult belongs to one crawl invocation and is discarded once the
extractor has consumed it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class PageResult:
    """One fetched HTML page."""
    url: str
    title: str | None = None
    text_content: str = ""
    raw_markup: str = ""
    headings: dict[str, list[str]] = field(
        default_factory=lambda: {"h1": [], "h2": [], "h3": []}
    )
    links: list[str] = field(default_factory=list)  # same host only
    external_links: list[str] = field(default_factory=list)
    mailto_links: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    meta_description: str | None = None
    meta_language: str | None = None
    structured_data: list[dict[str, Any]] = field(default_factory=list)
    depth: int = 0


@dataclass
class CrawlStats:
    started_at: datetime
    finished_at: datetime | None = None
    duration_ms: int = 0
    pages_attempted: int = 0
    pages_skipped: int = 0


@dataclass
class CrawlResult:
    """Aggregate of a deep crawl. pages[0] is always the homepage."""
    base_url: str
    stats: CrawlStats
    pages: list[PageResult] = field(default_factory=list)
    sitemap_urls: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    failed_urls: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """An unreachable site yields zero pages; callers treat it as a failure."""
        return not self.pages

    @property
    def homepage(self) -> PageResult | None:
        return self.pages[0] if self.pages else None

    @property
    def uses_https(self) -> bool:
        return self.base_url.lower().startswith("https://")
