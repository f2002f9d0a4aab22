"""
Companies House (United Kingdom) client.

API: https://api.company-information.service.gov.uk/company/{number}
Authentication is HTTP basic with the API key as username.
"""

import re

from trustcrawler.core.models import CompanyStatus, RegistryData
from trustcrawler.services.registry.base import RegistryLookup, join_address

COMPANIES_HOUSE_API_URL = "https://api.company-information.service.gov.uk"

COMPANY_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]{8}$")

STATUS_MAP: dict[str, CompanyStatus] = {
    "active": CompanyStatus.ACTIVE,
    "open": CompanyStatus.ACTIVE,
    "registered": CompanyStatus.ACTIVE,
    "dissolved": CompanyStatus.DISSOLVED,
    "closed": CompanyStatus.DISSOLVED,
    "converted-closed": CompanyStatus.DISSOLVED,
    "removed": CompanyStatus.DISSOLVED,
    "liquidation": CompanyStatus.LIQUIDATION,
    "receivership": CompanyStatus.LIQUIDATION,
    "administration": CompanyStatus.LIQUIDATION,
    "voluntary-arrangement": CompanyStatus.LIQUIDATION,
    "insolvency-proceedings": CompanyStatus.LIQUIDATION,
}


def normalize_company_number(identifier: str) -> str | None:
    """'1234567' -> '01234567'; 'sc 123456' -> 'SC123456'."""
    value = re.sub(r"\s", "", identifier or "").upper()
    if value.startswith("GB") and len(value) > 8:
        value = value[2:]
    if value.isdigit():
        value = value.zfill(8)
    return value if COMPANY_NUMBER_PATTERN.match(value) else None


class CompaniesHouseLookup(RegistryLookup):
    """UK company register."""

    source = "companies_house"

    def __init__(self, *args, api_key: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_key = api_key

    async def lookup(self, identifier: str) -> RegistryData | None:
        if not self.api_key:
            self.log.debug("Companies House API key not configured")
            return None

        number = normalize_company_number(identifier)
        if not number:
            return None

        data = await self._get_json(
            f"{COMPANIES_HOUSE_API_URL}/company/{number}",
            auth=(self.api_key, ""),
        )
        if data is None or data.get("errors"):
            return None

        raw_status = (data.get("company_status") or "").lower()
        address = data.get("registered_office_address") or {}

        return self._snapshot(
            org_nr=data.get("company_number") or number,
            legal_name=data.get("company_name"),
            registration_date=data.get("date_of_creation"),
            company_status=STATUS_MAP.get(raw_status, CompanyStatus.UNKNOWN),
            industry_codes=[str(code) for code in data.get("sic_codes") or []],
            registered_address=join_address(
                address.get("address_line_1"),
                address.get("address_line_2"),
                address.get("postal_code"),
                address.get("locality"),
            ),
        )
