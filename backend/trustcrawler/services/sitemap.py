"""
Sitemap Discovery for Trust Crawler.

Seeds a crawl from sitemap.xml:
1. Sitemap: directives from robots.txt are tried first
2. Then common sitemap locations
3. Sitemap indexes are followed one level deep
4. At most `limit` page URLs are returned
"""

import re
from xml.etree import ElementTree

import httpx
import structlog

from trustcrawler.core.constants import SITEMAP_URL_LIMIT
from trustcrawler.services.user_agent import build_browser_headers

logger = structlog.get_logger()


SITEMAP_PATHS = [
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/wp-sitemap.xml",
    "/sitemap/sitemap.xml",
    "/sitemaps/sitemap.xml",
]

SITEMAP_NAMESPACE = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}


def parse_sitemap(xml_content: str) -> tuple[list[str], list[str]]:
    """
    Parse a sitemap document.

    Handles both regular sitemaps and sitemap indexes.

    Args:
        xml_content: Raw sitemap XML

    Returns:
        (page URLs, nested sitemap URLs)
    """
    urls: list[str] = []
    children: list[str] = []

    try:
        root = ElementTree.fromstring(xml_content.strip().encode("utf-8"))

        for loc in root.findall(".//sm:sitemap/sm:loc", SITEMAP_NAMESPACE):
            if loc.text:
                children.append(loc.text.strip())

        for loc in root.findall(".//sm:url/sm:loc", SITEMAP_NAMESPACE):
            if loc.text:
                urls.append(loc.text.strip())

        # Some sitemaps don't declare the namespace
        if not urls and not children:
            is_index = root.tag.lower().endswith("sitemapindex")
            for loc in root.iter("loc"):
                if loc.text:
                    (children if is_index else urls).append(loc.text.strip())

    except ElementTree.ParseError:
        # Regex fallback for malformed XML
        locs = [u.strip() for u in re.findall(r"<loc>\s*([^<]+?)\s*</loc>", xml_content)]
        if "<sitemapindex" in xml_content[:1000].lower():
            children = locs
        else:
            urls = locs

    return urls, children


class SitemapDiscovery:
    """Fetch and flatten a site's sitemap into a list of page URLs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        limit: int = SITEMAP_URL_LIMIT,
        timeout: float = 10.0,
    ):
        self.client = client
        self.limit = limit
        self.timeout = timeout
        self.log = logger.bind(component="SitemapDiscovery")

    async def discover(self, origin: str, declared: list[str] | None = None) -> list[str]:
        """Return up to `limit` page URLs from the first sitemap that has any."""
        candidates = list(declared or [])
        for path in SITEMAP_PATHS:
            url = f"{origin}{path}"
            if url not in candidates:
                candidates.append(url)

        for sitemap_url in candidates:
            urls = await self._collect(sitemap_url)
            if urls:
                self.log.info("Sitemap found", sitemap=sitemap_url, url_count=len(urls))
                return urls

        self.log.debug("No sitemap available", origin=origin)
        return []

    async def _collect(self, sitemap_url: str) -> list[str]:
        content = await self._fetch(sitemap_url)
        if not content:
            return []

        urls, children = parse_sitemap(content)
        seen = set(urls)

        # One level of sitemap index
        for child_url in children:
            if len(urls) >= self.limit:
                break
            child_content = await self._fetch(child_url)
            if not child_content:
                continue
            child_urls, _ = parse_sitemap(child_content)
            for url in child_urls:
                if url not in seen:
                    seen.add(url)
                    urls.append(url)

        return urls[: self.limit]

    async def _fetch(self, url: str) -> str | None:
        try:
            response = await self.client.get(
                url,
                headers=build_browser_headers(),
                timeout=self.timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            self.log.debug("Sitemap fetch failed", url=url[:100], error=str(e))
            return None

        if response.status_code != 200:
            return None

        content = response.text
        head = content[:1000]
        if head.lstrip().startswith("<?xml") or "<urlset" in head or "<sitemapindex" in head:
            return content
        return None
