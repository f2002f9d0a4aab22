"""
Unit tests for sitelink classification and selection.
"""

from trustcrawler.core.models import SitelinkType
from trustcrawler.services.crawler.models import PageResult
from trustcrawler.services.extraction.sitelinks import (
    classify_page,
    score_page,
    select_sitelinks,
    sitelink_title,
)


class TestClassifyPage:
    """Test keyword classification by URL path and title."""

    def test_contact_confirmed_by_url_and_title(self):
        assert classify_page("https://acme.no/kontakt", "Kontakt oss - Acme") == (SitelinkType.CONTACT, True)

    def test_url_only_match(self):
        assert classify_page("https://acme.no/produkter/ror", None) == (SitelinkType.PRODUCTS, False)

    def test_title_only_match(self):
        assert classify_page("https://acme.no/side-42", "Om oss") == (SitelinkType.ABOUT, False)

    def test_legal_pages_are_denied(self):
        assert classify_page("https://acme.no/personvern", "Personvern") is None
        assert classify_page("https://acme.no/info/cookies", None) is None
        assert classify_page("https://acme.no/min-side", "Logg inn") is None

    def test_highest_priority_type_wins(self):
        link_type, _ = classify_page("https://acme.no/om-oss/kontakt", None)
        assert link_type == SitelinkType.CONTACT

    def test_unmatched_is_other(self):
        assert classify_page("https://acme.no/prosjekter", "Prosjekter") == (SitelinkType.OTHER, False)


class TestScoring:
    """Test sitelink scoring."""

    def test_confirmed_bonus(self):
        assert score_page("https://acme.no/kontakt", SitelinkType.CONTACT, True) == 105.0
        assert score_page("https://acme.no/kontakt", SitelinkType.CONTACT, False) == 100.0

    def test_depth_penalty(self):
        assert score_page("https://acme.no/a/b/c", SitelinkType.OTHER, False) == 4.0

    def test_score_floor(self):
        assert score_page("https://acme.no/a/b/c/d/e/f", SitelinkType.OTHER, False) == 1.0


class TestSitelinkTitle:
    """Test display titles."""

    def test_first_title_segment(self):
        page = PageResult(url="https://acme.no/om-oss", title="Om oss | Acme Rør AS")
        assert sitelink_title(page) == "Om oss"

    def test_falls_back_to_path(self):
        page = PageResult(url="https://acme.no/vare-tjenester.html")
        assert sitelink_title(page) == "Vare tjenester"


class TestSelectSitelinks:
    """Test best-per-type selection."""

    def _pages(self) -> list[PageResult]:
        return [
            PageResult(url="https://acme.no/", title="Acme Rør AS"),
            PageResult(url="https://acme.no/om-oss", title="Om oss | Acme"),
            PageResult(url="https://acme.no/kontakt", title="Kontakt oss - Acme"),
            PageResult(url="https://acme.no/om-oss/kontakt/skjema", title="Skjema"),
            PageResult(url="https://acme.no/personvern", title="Personvern"),
            PageResult(url="https://acme.no/nyheter", title="Nyheter", meta_description="Siste nytt fra Acme"),
            PageResult(url="https://acme.no/", title="Hjem"),
        ]

    def test_one_per_type_sorted_by_score(self):
        sitelinks = select_sitelinks(self._pages())

        assert [s.type for s in sitelinks] == [
            SitelinkType.CONTACT,
            SitelinkType.ABOUT,
            SitelinkType.NEWS,
        ]
        assert sitelinks[0].url == "https://acme.no/kontakt"
        assert sitelinks[2].description == "Siste nytt fra Acme"

    def test_homepage_and_denied_pages_excluded(self):
        urls = [s.url for s in select_sitelinks(self._pages())]
        assert "https://acme.no/" not in urls
        assert "https://acme.no/personvern" not in urls

    def test_limit(self):
        pages = [PageResult(url="https://acme.no/")] + [
            PageResult(url=f"https://acme.no/{slug}")
            for slug in ("kontakt", "om-oss", "team", "produkter", "investor", "nyheter", "prosjekter")
        ]
        assert len(select_sitelinks(pages)) == 6

    def test_single_page_site_has_none(self):
        assert select_sitelinks([PageResult(url="https://acme.no/")]) == []
