"""
Contact extraction: emails, phone numbers and tax identifiers.

Strategy:
1. Emails are matched in visible text and mailto: links, lowercased and
   deduplicated, filtered against deny-lists, ranked by role and cut to 5
2. Phone candidates are kept only with 8-15 digits after stripping the rest,
   and never when the digits belong to the tax identifier
3. Tax identifiers come from a per-country pattern table, first match wins
"""

import re
from collections.abc import Iterable

from trustcrawler.core.constants import (
    DENIED_EMAIL_DOMAINS,
    DENIED_EMAIL_LOCALPARTS,
    DENIED_EMAIL_SUFFIXES,
    DEPARTMENT_EMAIL_KEYWORDS,
    EXECUTIVE_EMAIL_KEYWORDS,
    FREE_EMAIL_DOMAINS,
    GENERIC_VAT_PATTERN,
    MAX_EMAILS,
    MAX_PHONES,
    TAX_ID_PATTERNS,
)


# =============================================================================
# Patterns
# =============================================================================

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")

PHONE_PATTERN = re.compile(
    r"(?<![\w/])(?:\+|00)?\(?\d{1,4}\)?(?:[\s.\-]?\(?\d{1,4}\)?){2,6}(?![\w/])"
)

MIN_PHONE_DIGITS = 8
MAX_PHONE_DIGITS = 15


# =============================================================================
# Emails
# =============================================================================


def is_denied_email(email: str) -> bool:
    """Check an email against the noreply/disposable/vendor deny-lists."""
    if email.endswith(DENIED_EMAIL_SUFFIXES):
        return True
    local, _, domain = email.partition("@")
    if not local or not domain:
        return True
    if any(local == denied or local.startswith(f"{denied}.") or local.startswith(f"{denied}+")
           for denied in DENIED_EMAIL_LOCALPARTS):
        return True
    if domain in DENIED_EMAIL_DOMAINS or any(domain.endswith(f".{d}") for d in DENIED_EMAIL_DOMAINS):
        return True
    # Hashes in tracking addresses (e.g. sentry DSNs)
    if re.fullmatch(r"[0-9a-f]{24,}", local):
        return True
    return False


def email_rank(email: str) -> int:
    """0 = executive/contact, 1 = department, 2 = generic."""
    local = email.partition("@")[0]
    tokens = set(re.split(r"[._+\-]", local)) | {local}
    if any(keyword in tokens for keyword in EXECUTIVE_EMAIL_KEYWORDS):
        return 0
    if any(keyword in tokens for keyword in DEPARTMENT_EMAIL_KEYWORDS):
        return 1
    return 2


def extract_emails(texts: Iterable[str], mailto_links: Iterable[str] = (), limit: int = MAX_EMAILS) -> list[str]:
    """Find, filter and rank email addresses.

    Order of first appearance breaks ties within a rank, so mailto: targets
    win over addresses mentioned in running text.
    """
    found: list[str] = []
    seen: set[str] = set()

    def add(candidate: str) -> None:
        email = candidate.strip().strip(".").lower()
        if email in seen or not EMAIL_PATTERN.fullmatch(email):
            return
        seen.add(email)
        if not is_denied_email(email):
            found.append(email)

    for address in mailto_links:
        add(address)
    for text in texts:
        for match in EMAIL_PATTERN.findall(text or ""):
            add(match)

    ranked = sorted(enumerate(found), key=lambda item: (email_rank(item[1]), item[0]))
    return [email for _, email in ranked[:limit]]


def is_professional_email(email: str) -> bool:
    """An address on the company's own domain rather than a free mail provider."""
    domain = email.partition("@")[2].lower()
    return bool(domain) and domain not in FREE_EMAIL_DOMAINS


# =============================================================================
# Phones
# =============================================================================


def is_valid_phone(candidate: str) -> bool:
    digits = re.sub(r"\D", "", candidate)
    return MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def extract_phones(
    texts: Iterable[str],
    limit: int = MAX_PHONES,
    tax_id: str | None = None,
) -> list[str]:
    """Find phone numbers, deduplicated by their digits.

    Candidates whose digits are part of the page's tax identifier (an org
    or VAT number written with spaces) are dropped.
    """
    phones: list[str] = []
    seen_digits: set[str] = set()
    tax_digits = re.sub(r"\D", "", tax_id or "")

    for text in texts:
        for match in PHONE_PATTERN.finditer(text or ""):
            candidate = match.group(0).strip()
            if not is_valid_phone(candidate):
                continue
            digits = re.sub(r"\D", "", candidate)
            # Dates and years look like digit runs without separators
            if re.fullmatch(r"(?:19|20)\d{6}", digits):
                continue
            if tax_digits and digits in tax_digits:
                continue
            if digits in seen_digits:
                continue
            seen_digits.add(digits)
            phones.append(candidate)
            if len(phones) >= limit:
                return phones
    return phones


# =============================================================================
# Tax Identifiers
# =============================================================================


def _normalize_tax_id(value: str) -> str:
    return re.sub(r"\s+", "", value).upper()


def extract_tax_id(texts: Iterable[str], country_code: str | None = None) -> str | None:
    """Match tax/registration identifiers, first match wins.

    The record's own country is tried first, then the rest of the table,
    then a generic EU VAT pattern.
    """
    corpus = "\n".join(t for t in texts if t)
    if not corpus:
        return None

    countries = list(TAX_ID_PATTERNS)
    if country_code and country_code.upper() in TAX_ID_PATTERNS:
        countries.remove(country_code.upper())
        countries.insert(0, country_code.upper())

    for country in countries:
        for pattern in TAX_ID_PATTERNS[country]:
            match = re.search(pattern, corpus, re.IGNORECASE)
            if match:
                return _normalize_tax_id(match.group(1))

    match = re.search(GENERIC_VAT_PATTERN, corpus)
    if match:
        return _normalize_tax_id(match.group(1))
    return None
