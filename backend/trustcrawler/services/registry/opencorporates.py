"""
OpenCorporates aggregator client.

API: https://api.opencorporates.com/v0.4/companies/{jurisdiction}/{number}
Used as a secondary source behind national registries.
"""

import re

from trustcrawler.core.models import RegistryData
from trustcrawler.services.registry.base import RegistryLookup, status_from_keywords

OPENCORPORATES_API_URL = "https://api.opencorporates.com/v0.4"

LIQUIDATION_WORDS = ("liquidation", "receivership", "administration", "insolven", "bankrupt", "winding")
DISSOLVED_WORDS = ("dissolved", "inactive", "struck", "closed", "removed", "cancel", "deregistered", "deleted")
ACTIVE_WORDS = ("active", "live", "good standing", "registered", "current", "normal")


class OpenCorporatesLookup(RegistryLookup):
    """Company lookup in one OpenCorporates jurisdiction (e.g. "gb", "us_ca")."""

    source = "opencorporates"

    def __init__(self, *args, jurisdiction: str, api_token: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.jurisdiction = jurisdiction.lower()
        self.api_token = api_token

    async def lookup(self, identifier: str) -> RegistryData | None:
        if not self.api_token:
            self.log.debug("OpenCorporates API token not configured")
            return None

        number = re.sub(r"[\s]", "", identifier or "")
        if not re.fullmatch(r"[A-Za-z0-9\-]{2,30}", number):
            return None

        data = await self._get_json(
            f"{OPENCORPORATES_API_URL}/companies/{self.jurisdiction}/{number}",
            params={"api_token": self.api_token},
        )
        company = ((data or {}).get("results") or {}).get("company")
        if not isinstance(company, dict):
            return None

        industry_codes = []
        for entry in company.get("industry_codes") or []:
            code = (entry or {}).get("industry_code", {}).get("code") if isinstance(entry, dict) else None
            if code:
                industry_codes.append(str(code))

        raw_status = company.get("current_status")
        if not raw_status and company.get("dissolution_date"):
            raw_status = "dissolved"

        return self._snapshot(
            org_nr=company.get("company_number") or number,
            legal_name=company.get("name"),
            registration_date=company.get("incorporation_date"),
            company_status=status_from_keywords(
                raw_status, LIQUIDATION_WORDS, DISSOLVED_WORDS, ACTIVE_WORDS
            ),
            industry_codes=industry_codes,
            registered_address=company.get("registered_address_in_full"),
        )
