"""
HTML page parsing for the deep crawler.

Turns raw markup into a PageResult: title, visible text, headings, meta
description and language, same-host links, outbound links, mailto targets,
images and JSON-LD blocks.
"""

import json
import re
from typing import Any
from urllib.parse import unquote, urljoin, urlparse

import structlog
from bs4 import BeautifulSoup

from trustcrawler.services.crawler.models import PageResult
from trustcrawler.services.url_utils import is_same_host, looks_like_html, normalize_url

logger = structlog.get_logger()

# Elements whose text is never visible content
INVISIBLE_TAGS = ["script", "style", "noscript", "svg", "iframe", "template", "head"]

SKIPPED_HREF_PREFIXES = ("javascript:", "tel:", "#", "data:", "sms:", "whatsapp:")


def parse_page(html: str, url: str, host: str, depth: int = 0) -> PageResult:
    """Parse one HTML page fetched from `url` (the final URL after redirects)."""
    soup = BeautifulSoup(html, "lxml")

    page = PageResult(url=url, raw_markup=html, depth=depth)

    # JSON-LD has to be read before scripts are stripped
    page.structured_data = _extract_structured_data(soup)

    if soup.title and soup.title.get_text(strip=True):
        page.title = soup.title.get_text(strip=True)

    page.meta_description = _meta_content(soup, name="description") or _meta_content(
        soup, prop="og:description"
    )
    page.meta_language = _page_language(soup)

    _collect_links(soup, page, host)
    page.images = _extract_images(soup, url)

    for level in ("h1", "h2", "h3"):
        page.headings[level] = [
            text for tag in soup.find_all(level) if (text := _clean_text(tag.get_text(" ")))
        ]

    for tag in soup(INVISIBLE_TAGS):
        tag.decompose()
    body = soup.body or soup
    page.text_content = _clean_text(body.get_text(" "))

    return page


def _clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _meta_content(soup: BeautifulSoup, name: str | None = None, prop: str | None = None) -> str | None:
    if name:
        tag = soup.find("meta", attrs={"name": re.compile(f"^{re.escape(name)}$", re.I)})
    else:
        tag = soup.find("meta", attrs={"property": prop})
    if tag and tag.get("content"):
        content = _clean_text(tag["content"])
        return content or None
    return None


def _page_language(soup: BeautifulSoup) -> str | None:
    html_tag = soup.find("html")
    lang = html_tag.get("lang") if html_tag else None
    if not lang:
        lang = _meta_content(soup, prop="og:locale")
    if not lang:
        return None
    # nb-NO / en_GB -> nb / en
    primary = re.split(r"[-_]", lang.strip())[0].lower()
    return primary or None


def _collect_links(soup: BeautifulSoup, page: PageResult, host: str) -> None:
    seen_internal: set[str] = set()
    seen_external: set[str] = set()

    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        lowered = href.lower()

        if lowered.startswith("mailto:"):
            address = unquote(href[7:].split("?")[0]).strip().lower()
            if address and address not in page.mailto_links:
                page.mailto_links.append(address)
            continue
        if not href or lowered.startswith(SKIPPED_HREF_PREFIXES):
            continue

        absolute = urljoin(page.url, href)
        if urlparse(absolute).scheme not in ("http", "https"):
            continue

        if is_same_host(absolute, host):
            normalized = normalize_url(absolute)
            if normalized not in seen_internal and looks_like_html(normalized):
                seen_internal.add(normalized)
                page.links.append(normalized)
        elif absolute not in seen_external:
            seen_external.add(absolute)
            page.external_links.append(absolute)


def _extract_images(soup: BeautifulSoup, base_url: str) -> list[str]:
    images: list[str] = []
    for img in soup.find_all("img"):
        src = img.get("src") or img.get("data-src")
        if not src or src.startswith("data:"):
            continue
        absolute = urljoin(base_url, src.strip())
        if absolute not in images:
            images.append(absolute)
    return images


def _extract_structured_data(soup: BeautifulSoup) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = []
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed JSON-LD block")
            continue
        blocks.extend(_flatten_json_ld(data))
    return blocks


def _flatten_json_ld(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, list):
        return [item for entry in data for item in _flatten_json_ld(entry)]
    if isinstance(data, dict):
        if isinstance(data.get("@graph"), list):
            return _flatten_json_ld(data["@graph"])
        return [data]
    return []
