"""
Unit tests for the DeepCrawler.

Sites are served from memory through httpx.MockTransport.
"""

import httpx
import pytest

pytestmark = pytest.mark.asyncio


def _html(title: str, *links: str) -> str:
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return f"<html><head><title>{title}</title></head><body>{anchors}<img src='/{title}.png'></body></html>"


class TestDeepCrawler:
    """Test the bounded breadth-first crawl."""

    async def test_crawls_three_page_site(self, mock_client, make_crawler, site_handler, acme_site) -> None:
        client = mock_client(site_handler(acme_site))

        result = await make_crawler(client).crawl("acme.no", max_pages=20)

        assert result.base_url == "https://acme.no"
        assert [page.url for page in result.pages] == [
            "https://acme.no/",
            "https://acme.no/kontakt",
            "https://acme.no/om-oss",
        ]
        assert result.pages[0].depth == 0
        assert all(page.depth == 1 for page in result.pages[1:])
        assert result.failed_urls == []
        assert result.uses_https
        assert result.stats.finished_at is not None

    async def test_page_budget_is_respected(self, mock_client, make_crawler, site_handler, acme_site) -> None:
        client = mock_client(site_handler(acme_site))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=2)

        assert len(result.pages) == 2
        assert result.pages[0].url == "https://acme.no/"

    async def test_unreachable_homepage_yields_empty_result(self, mock_client, make_crawler, site_handler) -> None:
        client = mock_client(site_handler({}))

        result = await make_crawler(client).crawl("https://nede.no", max_pages=10)

        assert result.is_empty
        assert result.homepage is None
        assert result.failed_urls == ["https://nede.no/"]

    async def test_failed_pages_recorded_once(self, mock_client, make_crawler, site_handler) -> None:
        pages = {
            "https://acme.no/": _html("home", "/borte", "/tjenester"),
            "https://acme.no/tjenester": _html("tjenester", "/borte"),
        }
        client = mock_client(site_handler(pages))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=10)

        assert [page.url for page in result.pages] == ["https://acme.no/", "https://acme.no/tjenester"]
        assert result.failed_urls == ["https://acme.no/borte"]

    async def test_off_site_links_not_followed(self, mock_client, make_crawler, site_handler) -> None:
        pages = {
            "https://acme.no/": _html("home", "https://other.no/", "https://shop.acme.no/", "/a"),
            "https://acme.no/a": _html("a"),
            "https://other.no/": _html("other"),
        }
        client = mock_client(site_handler(pages))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=10)

        assert [page.url for page in result.pages] == ["https://acme.no/", "https://acme.no/a"]

    async def test_breadth_first_depths(self, mock_client, make_crawler, site_handler) -> None:
        pages = {
            "https://acme.no/": _html("home", "/a"),
            "https://acme.no/a": _html("a", "/b"),
            "https://acme.no/b": _html("b"),
        }
        client = mock_client(site_handler(pages))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=10)

        assert [(page.url, page.depth) for page in result.pages] == [
            ("https://acme.no/", 0),
            ("https://acme.no/a", 1),
            ("https://acme.no/b", 2),
        ]

    async def test_robots_disallow_skips_pages(self, mock_client, make_crawler, site_handler) -> None:
        pages = {
            "https://acme.no/": _html("home", "/intern/rapport", "/om-oss"),
            "https://acme.no/intern/rapport": _html("rapport"),
            "https://acme.no/om-oss": _html("om"),
        }
        robots = {
            "https://acme.no/robots.txt": httpx.Response(200, text="User-agent: *\nDisallow: /intern/\n"),
        }
        client = mock_client(site_handler(pages, extra=robots))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=10)

        assert [page.url for page in result.pages] == ["https://acme.no/", "https://acme.no/om-oss"]
        assert result.stats.pages_skipped == 1

    async def test_sitemap_seeds_unlinked_pages(self, mock_client, make_crawler, site_handler) -> None:
        sitemap = (
            '<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<url><loc>https://acme.no/skjult</loc></url></urlset>"
        )
        pages = {
            "https://acme.no/": _html("home"),
            "https://acme.no/skjult": _html("skjult"),
        }
        client = mock_client(site_handler(pages, extra={"https://acme.no/sitemap.xml": httpx.Response(200, text=sitemap)}))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=10)

        assert result.sitemap_urls == ["https://acme.no/skjult"]
        assert [page.url for page in result.pages] == ["https://acme.no/", "https://acme.no/skjult"]

    async def test_images_collected_across_pages(self, mock_client, make_crawler, site_handler) -> None:
        pages = {
            "https://acme.no/": _html("home", "/a"),
            "https://acme.no/a": _html("a"),
        }
        client = mock_client(site_handler(pages))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=10)

        assert result.images == ["https://acme.no/home.png", "https://acme.no/a.png"]

    async def test_non_html_pages_skipped(self, mock_client, make_crawler, site_handler) -> None:
        pages = {"https://acme.no/": _html("home", "/data")}
        extra = {
            "https://acme.no/data": httpx.Response(
                200, text='{"a": 1}', headers={"content-type": "application/json"}
            ),
        }
        client = mock_client(site_handler(pages, extra=extra))

        result = await make_crawler(client).crawl("https://acme.no", max_pages=10)

        assert len(result.pages) == 1
        assert result.stats.pages_skipped == 1
        assert result.failed_urls == []

    async def test_concurrency_is_clamped(self, mock_client, make_crawler, site_handler) -> None:
        client = mock_client(site_handler({}))

        assert make_crawler(client, concurrency=1).concurrency == 3
        assert make_crawler(client, concurrency=50).concurrency == 10
