"""
Deep Crawler for Trust Crawler.

Crawls a business website within a fixed page budget.
Features:
- Homepage first (always page 0); its final URL decides the crawl host
- robots.txt compliance via urllib.robotparser
- Sitemap seeding (robots.txt Sitemap: directives, then common paths)
- Breadth-first traversal of same-host links
- Bounded concurrent fetches through an asyncio.Semaphore
- Failed URLs are recorded and never retried within the same crawl
"""

import asyncio
import random
from collections import deque
from datetime import datetime, timezone

import httpx
import structlog

from trustcrawler.core.constants import IMAGE_CAP
from trustcrawler.services.crawler.models import CrawlResult, CrawlStats, PageResult
from trustcrawler.services.crawler.page_parser import parse_page
from trustcrawler.services.fetcher import Fetcher
from trustcrawler.services.sitemap import SitemapDiscovery
from trustcrawler.services.url_utils import (
    RobotsChecker,
    ensure_scheme,
    host_of,
    is_same_host,
    looks_like_html,
    normalize_url,
    origin_of,
)

logger = structlog.get_logger()

MIN_CONCURRENCY = 3
MAX_CONCURRENCY = 10


class DeepCrawler:
    """Bounded breadth-first crawler for a single site."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        fetcher: Fetcher | None = None,
        concurrency: int = 5,
        delay_range: tuple[float, float] = (0.5, 1.5),
        respect_robots: bool = True,
        sitemap_limit: int = 50,
    ):
        """Initialize crawler.

        Args:
            client: httpx AsyncClient shared by fetcher, robots and sitemap lookups
            fetcher: Page fetcher (defaults to a Fetcher on the same client)
            concurrency: Max in-flight page fetches, clamped to 3..10
            delay_range: Random politeness delay before each non-homepage fetch
            respect_robots: Skip URLs disallowed by robots.txt
            sitemap_limit: Max sitemap URLs used as seeds
        """
        self.client = client
        self.fetcher = fetcher or Fetcher(client)
        self.concurrency = max(MIN_CONCURRENCY, min(MAX_CONCURRENCY, concurrency))
        self.delay_range = delay_range
        self.respect_robots = respect_robots
        self.sitemap_limit = sitemap_limit
        self.log = logger.bind(component="DeepCrawler")

    async def crawl(self, start_url: str, max_pages: int = 20) -> CrawlResult:
        """Crawl a site starting at start_url.

        Args:
            start_url: Homepage URL or bare domain
            max_pages: Page budget, including the homepage

        Returns:
            CrawlResult with pages in visit order. Zero pages if the homepage
            could not be fetched.
        """
        start_url = normalize_url(ensure_scheme(start_url))
        result = CrawlResult(
            base_url=origin_of(start_url),
            stats=CrawlStats(started_at=datetime.now(timezone.utc)),
        )
        log = self.log.bind(start_url=start_url[:100])
        log.info("Starting deep crawl", max_pages=max_pages, concurrency=self.concurrency)

        if max_pages < 1:
            return self._finish(result)

        # Homepage is always page 0
        result.stats.pages_attempted += 1
        home = await self.fetcher.fetch(start_url)
        if home is None or not home.is_html:
            result.failed_urls.append(start_url)
            log.warning(
                "Homepage unreachable",
                reason="fetch_failed" if home is None else "not_html",
            )
            return self._finish(result)

        host = host_of(home.final_url)
        if not host:
            result.failed_urls.append(start_url)
            return self._finish(result)

        origin = origin_of(home.final_url)
        result.base_url = origin

        homepage = parse_page(home.text, home.final_url, host, depth=0)
        result.pages.append(homepage)

        robots = RobotsChecker(self.client) if self.respect_robots else None
        declared_sitemaps: list[str] = []
        if robots:
            await robots.load(origin)
            declared_sitemaps = robots.sitemaps(origin)

        sitemap = SitemapDiscovery(self.client, limit=self.sitemap_limit)
        result.sitemap_urls = await sitemap.discover(origin, declared_sitemaps)

        visited: set[str] = {start_url, normalize_url(home.final_url)}
        frontier: deque[tuple[str, int]] = deque()

        def enqueue(url: str, depth: int) -> None:
            normalized = normalize_url(url)
            if normalized in visited:
                return
            if not is_same_host(normalized, host) or not looks_like_html(normalized):
                return
            visited.add(normalized)
            frontier.append((normalized, depth))

        for url in result.sitemap_urls:
            enqueue(url, 1)
        for url in homepage.links:
            enqueue(url, 1)

        semaphore = asyncio.Semaphore(self.concurrency)
        seen_final: set[str] = {start_url, normalize_url(home.final_url)}

        while frontier and len(result.pages) < max_pages:
            wave: list[tuple[str, int]] = []
            while frontier and len(wave) < max_pages - len(result.pages):
                url, depth = frontier.popleft()
                if robots and not await robots.can_fetch(url):
                    log.debug("Blocked by robots.txt", url=url[:100])
                    result.stats.pages_skipped += 1
                    continue
                wave.append((url, depth))

            if not wave:
                break

            result.stats.pages_attempted += len(wave)
            pages = await asyncio.gather(
                *(self._fetch_page(url, depth, host, semaphore, result) for url, depth in wave)
            )

            for page in pages:
                if page is None:
                    continue
                final = normalize_url(page.url)
                if final in seen_final:
                    # Redirected onto an already crawled page
                    result.stats.pages_skipped += 1
                    continue
                seen_final.add(final)
                if len(result.pages) >= max_pages:
                    break
                result.pages.append(page)
                for link in page.links:
                    enqueue(link, page.depth + 1)

        return self._finish(result)

    async def _fetch_page(
        self,
        url: str,
        depth: int,
        host: str,
        semaphore: asyncio.Semaphore,
        result: CrawlResult,
    ) -> PageResult | None:
        async with semaphore:
            low, high = self.delay_range
            if high > 0:
                await asyncio.sleep(random.uniform(low, high))
            fetched = await self.fetcher.fetch(url)

        if fetched is None:
            result.failed_urls.append(url)
            return None
        if not fetched.is_html:
            self.log.debug("Skipping non-HTML response", url=url[:100], content_type=fetched.content_type)
            result.stats.pages_skipped += 1
            return None
        if not is_same_host(fetched.final_url, host):
            self.log.debug("Redirected off-site", url=url[:100], final_url=fetched.final_url[:100])
            result.stats.pages_skipped += 1
            return None

        try:
            return parse_page(fetched.text, fetched.final_url, host, depth=depth)
        except (ValueError, TypeError) as e:
            self.log.debug("Failed to parse page", url=url[:100], error=str(e))
            result.failed_urls.append(url)
            return None

    def _finish(self, result: CrawlResult) -> CrawlResult:
        images: list[str] = []
        for page in result.pages:
            for image in page.images:
                if image not in images:
                    images.append(image)
        result.images = images[:IMAGE_CAP]

        stats = result.stats
        stats.finished_at = datetime.now(timezone.utc)
        stats.duration_ms = int((stats.finished_at - stats.started_at).total_seconds() * 1000)

        self.log.info(
            "Deep crawl complete",
            base_url=result.base_url,
            pages=len(result.pages),
            failed=len(result.failed_urls),
            sitemap_urls=len(result.sitemap_urls),
            duration_ms=stats.duration_ms,
        )
        return result
