"""
Sitelink selection.

Every non-homepage page is classified into one SitelinkType by keywords in
its URL path and title. Legal boilerplate (privacy, cookies, terms) and
account pages are dropped. The best page per type is kept, at most 6,
sorted by score.
"""

import re
from urllib.parse import unquote, urlparse

from trustcrawler.core.constants import MAX_SITELINKS
from trustcrawler.core.models import Sitelink, SitelinkType
from trustcrawler.services.crawler.models import PageResult
from trustcrawler.services.url_utils import normalize_url


# =============================================================================
# Keywords
# =============================================================================

SITELINK_KEYWORDS: dict[SitelinkType, tuple[str, ...]] = {
    SitelinkType.CONTACT: (
        "kontakt", "contact", "kontakt-oss", "contact-us", "kontakta", "kontakta-oss",
        "yhteystiedot", "kontakt-os", "find-us", "finn-oss",
    ),
    SitelinkType.ABOUT: (
        "om-oss", "about", "about-us", "omoss", "om-os", "hvem-er-vi",
        "selskapet", "company", "historie", "history", "meista", "ueber-uns", "uber-uns",
    ),
    SitelinkType.TEAM: (
        "team", "ansatte", "people", "medarbeidere", "medarbetare", "staff",
        "ledelse", "leadership", "management", "henkilosto", "styret", "board",
    ),
    SitelinkType.PRODUCTS: (
        "produkter", "products", "product", "tjenester", "services", "service",
        "losninger", "solutions", "shop", "butikk", "tuotteet", "palvelut",
        "produkte", "leistungen", "sortiment",
    ),
    SitelinkType.INVESTORS: (
        "investor", "investors", "investor-relations", "ir", "aksjonaerer",
        "shareholders", "sijoittajat", "finansiell-informasjon",
    ),
    SitelinkType.NEWS: (
        "nyheter", "news", "aktuelt", "blog", "blogg", "press", "presse",
        "artikler", "articles", "uutiset", "nyheder", "pressroom", "media",
    ),
}

DENIED_KEYWORDS = (
    "privacy", "personvern", "personvernerklaering", "cookie", "cookies",
    "terms", "vilkar", "vilkaar", "betingelser", "gdpr", "tietosuoja",
    "datenschutz", "legal", "disclaimer", "login", "logg-inn", "sign-in",
    "signin", "register", "cart", "handlekurv", "checkout", "kassen",
)

TYPE_PRIORITY: dict[SitelinkType, int] = {
    SitelinkType.CONTACT: 100,
    SitelinkType.ABOUT: 90,
    SitelinkType.TEAM: 80,
    SitelinkType.PRODUCTS: 70,
    SitelinkType.INVESTORS: 70,
    SitelinkType.NEWS: 50,
    SitelinkType.OTHER: 10,
}

TITLE_SEPARATORS = re.compile(r"\s+[|\-–—:·]\s+")


# =============================================================================
# Classification
# =============================================================================


def _path_terms(url: str) -> set[str]:
    path = unquote(urlparse(url).path).lower()
    segments = [s for s in path.split("/") if s]
    terms = set(segments)
    for segment in segments:
        segment = re.sub(r"\.(html?|php|aspx?)$", "", segment)
        terms.add(segment)
        terms.update(t for t in re.split(r"[-_.]", segment) if t)
    return terms


def _title_terms(title: str | None) -> set[str]:
    if not title:
        return set()
    words = re.findall(r"\w+", title.lower())
    terms = set(words)
    terms.update(f"{a}-{b}" for a, b in zip(words, words[1:]))
    return terms


def classify_page(url: str, title: str | None = None) -> tuple[SitelinkType, bool] | None:
    """Classify a page.

    Returns:
        (type, matched_in_both_url_and_title), or None if the page is
        deny-listed and must never become a sitelink.
    """
    url_terms = _path_terms(url)
    title_terms = _title_terms(title)
    all_terms = url_terms | title_terms

    if any(keyword in all_terms for keyword in DENIED_KEYWORDS):
        return None

    best: SitelinkType | None = None
    for link_type, keywords in SITELINK_KEYWORDS.items():
        if any(keyword in all_terms for keyword in keywords):
            if best is None or TYPE_PRIORITY[link_type] > TYPE_PRIORITY[best]:
                best = link_type

    if best is None:
        return SitelinkType.OTHER, False

    keywords = SITELINK_KEYWORDS[best]
    in_url = any(k in url_terms for k in keywords)
    in_title = any(k in title_terms for k in keywords)
    return best, in_url and in_title


def score_page(url: str, link_type: SitelinkType, confirmed: bool) -> float:
    """Type priority, +5 when URL and title agree, -3 per extra path level."""
    depth = len([s for s in urlparse(url).path.split("/") if s])
    score = TYPE_PRIORITY[link_type] + (5 if confirmed else 0) - 3 * max(0, depth - 1)
    return float(max(score, 1))


def sitelink_title(page: PageResult) -> str:
    """Short display title: first part of the page title, else the last path segment."""
    if page.title:
        first = TITLE_SEPARATORS.split(page.title)[0].strip()
        if first:
            return first[:80]
    segments = [s for s in urlparse(page.url).path.split("/") if s]
    if segments:
        name = re.sub(r"\.(html?|php|aspx?)$", "", unquote(segments[-1]))
        return name.replace("-", " ").replace("_", " ").strip().capitalize()[:80]
    return page.url


# =============================================================================
# Selection
# =============================================================================


def select_sitelinks(pages: list[PageResult], limit: int = MAX_SITELINKS) -> list[Sitelink]:
    """Pick the best page per type from all non-homepage pages."""
    if len(pages) < 2:
        return []

    homepage_url = normalize_url(pages[0].url)
    best_per_type: dict[SitelinkType, Sitelink] = {}

    for page in pages[1:]:
        if normalize_url(page.url) == homepage_url:
            continue
        classified = classify_page(page.url, page.title)
        if classified is None:
            continue
        link_type, confirmed = classified
        candidate = Sitelink(
            title=sitelink_title(page),
            url=page.url,
            description=page.meta_description[:160] if page.meta_description else None,
            type=link_type,
            score=score_page(page.url, link_type, confirmed),
        )
        current = best_per_type.get(link_type)
        if current is None or candidate.score > current.score:
            best_per_type[link_type] = candidate

    ranked = sorted(best_per_type.values(), key=lambda s: s.score, reverse=True)
    return ranked[:limit]
