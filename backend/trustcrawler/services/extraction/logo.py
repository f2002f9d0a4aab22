"""
Logo extraction.

Order of preference:
1. Social preview image (og:image, twitter:image)
2. <img> whose src filename, class, id or alt mentions "logo"
3. Favicon / touch icon link
4. First discovered content image
"""

import re
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

LOGO_HINT = re.compile(r"logo", re.IGNORECASE)

# Tracking pixels and spacers are never logos
IGNORED_IMAGE_HINTS = ("pixel", "spacer", "blank.gif", "tracking", "facebook.com/tr", "1x1")

ICON_RELS = ("apple-touch-icon", "icon", "shortcut icon")


def _absolute(base_url: str, src: str | None) -> str | None:
    if not src or src.strip().startswith("data:"):
        return None
    url = urljoin(base_url, src.strip())
    if urlparse(url).scheme not in ("http", "https"):
        return None
    return url


def _social_preview(soup: BeautifulSoup, base_url: str) -> str | None:
    for attrs in ({"property": "og:image"}, {"property": "og:image:url"}, {"name": "twitter:image"}):
        tag = soup.find("meta", attrs=attrs)
        if tag:
            url = _absolute(base_url, tag.get("content"))
            if url:
                return url
    return None


def _logo_img(soup: BeautifulSoup, base_url: str) -> str | None:
    for img in soup.find_all("img"):
        src = img.get("src") or img.get("data-src")
        if not src:
            continue
        filename = urlparse(src).path.rsplit("/", 1)[-1]
        classes = " ".join(img.get("class") or [])
        hints = " ".join([filename, classes, img.get("id") or "", img.get("alt") or ""])
        if LOGO_HINT.search(hints):
            url = _absolute(base_url, src)
            if url:
                return url
    return None


def _favicon(soup: BeautifulSoup, base_url: str) -> str | None:
    for rel in ICON_RELS:
        for link in soup.find_all("link", href=True):
            link_rel = " ".join(link.get("rel") or []).lower()
            if link_rel == rel:
                url = _absolute(base_url, link["href"])
                if url:
                    return url
    return None


def find_logo(html: str, page_url: str, fallback_images: list[str] | None = None) -> str | None:
    """Find the most likely logo URL on a page."""
    if html:
        soup = BeautifulSoup(html, "lxml")
        for finder in (_social_preview, _logo_img, _favicon):
            url = finder(soup, page_url)
            if url:
                return url

    for image in fallback_images or []:
        lowered = image.lower()
        if not any(hint in lowered for hint in IGNORED_IMAGE_HINTS):
            return image
    return None
