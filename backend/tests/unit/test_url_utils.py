"""
Unit tests for URL utilities and robots.txt handling.
"""

import httpx
import pytest

from trustcrawler.services.url_utils import (
    RobotsChecker,
    ensure_scheme,
    host_of,
    is_same_host,
    looks_like_html,
    normalize_url,
    origin_of,
)


class TestNormalizeUrl:
    """Test URL normalization for deduplication."""

    def test_strips_tracking_params(self):
        url = "https://acme.no/produkter?utm_source=google&fbclid=abc&side=2"
        assert normalize_url(url) == "https://acme.no/produkter?side=2"

    def test_removes_fragment_and_trailing_slash(self):
        assert normalize_url("https://acme.no/om-oss/#team") == "https://acme.no/om-oss"

    def test_keeps_root_slash(self):
        assert normalize_url("https://acme.no") == "https://acme.no/"
        assert normalize_url("https://acme.no/") == "https://acme.no/"

    def test_lowercases_scheme_and_host(self):
        assert normalize_url("HTTPS://WWW.Acme.NO/Kontakt") == "https://www.acme.no/Kontakt"

    def test_sorts_query_params(self):
        assert normalize_url("https://acme.no/s?b=2&a=1") == "https://acme.no/s?a=1&b=2"

    def test_collapses_duplicate_slashes(self):
        assert normalize_url("https://acme.no//tjenester//ror") == "https://acme.no/tjenester/ror"

    def test_drops_default_port(self):
        assert normalize_url("https://acme.no:443/kontakt") == "https://acme.no/kontakt"
        assert normalize_url("http://acme.no:8080/kontakt") == "http://acme.no:8080/kontakt"


class TestHostHelpers:
    """Test scheme, origin and host helpers."""

    def test_ensure_scheme_adds_https(self):
        assert ensure_scheme("acme.no") == "https://acme.no"
        assert ensure_scheme("  www.acme.no/ ") == "https://www.acme.no/"

    def test_ensure_scheme_keeps_existing(self):
        assert ensure_scheme("http://acme.no") == "http://acme.no"

    def test_origin_of(self):
        assert origin_of("https://www.acme.no/om-oss?x=1") == "https://www.acme.no"

    def test_host_of_strips_www(self):
        assert host_of("https://www.Acme.no/kontakt") == "acme.no"
        assert host_of("not a url") is None

    def test_is_same_host_ignores_www(self):
        assert is_same_host("https://www.acme.no/a", "acme.no")
        assert not is_same_host("https://shop.acme.no/a", "acme.no")
        assert not is_same_host("https://facebook.com/acme", "acme.no")

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://acme.no/om-oss", True),
            ("https://acme.no/page.html", True),
            ("https://acme.no/brosjyre.pdf", False),
            ("https://acme.no/img/logo.PNG", False),
            ("https://acme.no/feed.xml", False),
        ],
    )
    def test_looks_like_html(self, url, expected):
        assert looks_like_html(url) is expected


class TestRobotsChecker:
    """Test robots.txt compliance."""

    @staticmethod
    def _client(robots: str | None, status: int = 200) -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/robots.txt" and robots is not None:
                return httpx.Response(status, text=robots)
            return httpx.Response(404)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_disallowed_path_is_blocked(self):
        robots = "User-agent: *\nDisallow: /intern/\n"
        async with self._client(robots) as client:
            checker = RobotsChecker(client)
            assert await checker.can_fetch("https://acme.no/om-oss")
            assert not await checker.can_fetch("https://acme.no/intern/rapport")

    @pytest.mark.asyncio
    async def test_missing_robots_allows_everything(self):
        async with self._client(None) as client:
            checker = RobotsChecker(client)
            assert await checker.can_fetch("https://acme.no/intern/rapport")

    @pytest.mark.asyncio
    async def test_sitemap_directives_are_exposed(self):
        robots = "User-agent: *\nAllow: /\nSitemap: https://acme.no/custom-sitemap.xml\n"
        async with self._client(robots) as client:
            checker = RobotsChecker(client)
            await checker.load("https://acme.no")
            assert checker.sitemaps("https://acme.no") == ["https://acme.no/custom-sitemap.xml"]

    @pytest.mark.asyncio
    async def test_robots_is_fetched_once_per_origin(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(200, text="User-agent: *\nDisallow:\n")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            checker = RobotsChecker(client)
            await checker.can_fetch("https://acme.no/a")
            await checker.can_fetch("https://acme.no/b")

        assert calls == ["/robots.txt"]
