"""
URL Utilities for Trust Crawler.

Provides:
- normalize_url: URL deduplication normalization
- ensure_scheme / origin_of: turn bare domains into crawlable URLs
- host_of / is_same_host: same-site checks (www. is ignored)
- RobotsChecker: robots.txt compliance and Sitemap: directives
"""

import re
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse
from urllib.robotparser import RobotFileParser

import httpx
import structlog

from trustcrawler.services.user_agent import build_browser_headers

logger = structlog.get_logger()


# =============================================================================
# Constants
# =============================================================================

# Query parameters to strip (tracking, session, etc.)
STRIP_PARAMS = {
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "fbclid", "gclid", "session_id", "sessionid", "sid", "ref", "referrer",
    "source", "tracking", "_ga", "_gl", "mc_cid", "mc_eid",
}

# Extensions that never lead to HTML pages
NON_HTML_EXTENSIONS = (
    ".pdf", ".zip", ".rar", ".gz", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico", ".bmp", ".tif", ".tiff",
    ".mp3", ".mp4", ".mov", ".avi", ".webm", ".css", ".js", ".json", ".xml", ".rss",
    ".woff", ".woff2", ".ttf", ".eot", ".exe", ".dmg",
)


# =============================================================================
# URL Normalization
# =============================================================================


def normalize_url(url: str) -> str:
    """Normalize URL for deduplication.

    - Strip tracking params (?utm_*, ?session_id, etc)
    - Remove anchors (#section)
    - Remove trailing slashes except for the root path
    - Lowercase scheme and hostname
    - Sort remaining query parameters

    Args:
        url: URL to normalize

    Returns:
        Normalized URL string
    """
    try:
        parsed = urlparse(url.strip())

        hostname = parsed.hostname.lower() if parsed.hostname else ""
        if parsed.port and parsed.port not in (80, 443):
            netloc = f"{hostname}:{parsed.port}"
        else:
            netloc = hostname

        path = re.sub(r"/+", "/", parsed.path)
        if not path:
            path = "/"
        if path != "/" and path.endswith("/"):
            path = path.rstrip("/")

        if parsed.query:
            params = parse_qs(parsed.query, keep_blank_values=True)
            filtered = {
                k: v for k, v in params.items()
                if k.lower() not in STRIP_PARAMS and not k.lower().startswith("utm_")
            }
            query = urlencode(sorted(filtered.items()), doseq=True)
        else:
            query = ""

        return urlunparse((
            parsed.scheme.lower(),
            netloc,
            path,
            "",  # params
            query,
            "",  # fragment removed
        ))
    except ValueError:
        return url


def ensure_scheme(url_or_domain: str) -> str:
    """Turn "example.no" into "https://example.no"."""
    value = url_or_domain.strip()
    if not re.match(r"^https?://", value, re.IGNORECASE):
        value = f"https://{value.lstrip('/')}"
    return value


def origin_of(url: str) -> str:
    """Scheme and netloc of a URL, e.g. https://www.example.no"""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def host_of(url: str) -> str | None:
    """Extract hostname from URL without www prefix."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.hostname:
        return None
    host = parsed.hostname.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def is_same_host(url: str, host: str) -> bool:
    """Check whether url belongs to host (www. ignored)."""
    return host_of(url) == host


def looks_like_html(url: str) -> bool:
    """Cheap extension check before spending a fetch on a URL."""
    path = urlparse(url).path.lower()
    return not path.endswith(NON_HTML_EXTENSIONS)


# =============================================================================
# Robots.txt Checker
# =============================================================================


class RobotsChecker:
    """Check robots.txt compliance for crawling.

    Caches robots.txt per origin to avoid repeated fetches and exposes the
    Sitemap: directives found in it.
    """

    USER_AGENT = "TrustCrawler"

    def __init__(self, client: httpx.AsyncClient, timeout: float = 5.0):
        self.client = client
        self.timeout = timeout
        self._cache: dict[str, RobotFileParser | None] = {}
        self._sitemaps: dict[str, list[str]] = {}
        self.log = logger.bind(component="RobotsChecker")

    async def load(self, origin: str) -> None:
        """Fetch and parse robots.txt for an origin if not cached yet."""
        if origin not in self._cache:
            await self._fetch_robots(origin)

    def sitemaps(self, origin: str) -> list[str]:
        """Sitemap URLs declared in robots.txt of a loaded origin."""
        return list(self._sitemaps.get(origin, []))

    async def can_fetch(self, url: str) -> bool:
        """Check if URL can be fetched according to robots.txt.

        Args:
            url: URL to check

        Returns:
            True if allowed to fetch, False if disallowed
        """
        origin = origin_of(url)
        await self.load(origin)

        rp = self._cache.get(origin)
        if rp is None:
            # No robots.txt or fetch failed - allow by default
            return True
        return rp.can_fetch(self.USER_AGENT, url)

    async def _fetch_robots(self, origin: str) -> None:
        """Fetch and parse robots.txt for origin."""
        robots_url = f"{origin}/robots.txt"
        try:
            response = await self.client.get(
                robots_url,
                headers=build_browser_headers(),
                timeout=self.timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            self.log.debug("Failed to fetch robots.txt", origin=origin, error=str(e))
            self._cache[origin] = None
            return

        if response.status_code != 200:
            self._cache[origin] = None
            return

        rp = RobotFileParser()
        rp.parse(response.text.splitlines())
        self._cache[origin] = rp
        self._sitemaps[origin] = list(rp.site_maps() or [])
        self.log.debug("Loaded robots.txt", origin=origin, sitemaps=len(self._sitemaps[origin]))
