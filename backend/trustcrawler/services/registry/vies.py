"""
VIES (EU VAT Information Exchange System) client.

API: https://ec.europa.eu/taxation_customs/vies/rest-api/ms/{cc}/vat/{number}

One lookup instance serves one member state, so it fits the
per-country strategy map.
"""

import re

from trustcrawler.core.constants import EU_VAT_COUNTRIES
from trustcrawler.core.models import CompanyStatus, RegistryData
from trustcrawler.services.registry.base import RegistryLookup

VIES_API_URL = "https://ec.europa.eu/taxation_customs/vies/rest-api/ms"


def vies_country_code(country_code: str) -> str:
    """VIES uses EL for Greece."""
    code = country_code.upper()
    return "EL" if code == "GR" else code


class ViesLookup(RegistryLookup):
    """VAT number validation for one EU member state."""

    source = "vies"

    def __init__(self, *args, country_code: str, **kwargs):
        super().__init__(*args, **kwargs)
        self.country_code = vies_country_code(country_code)
        if self.country_code not in EU_VAT_COUNTRIES:
            raise ValueError(f"{country_code} is not a VIES member state")

    def _vat_digits(self, identifier: str) -> str | None:
        value = re.sub(r"[\s.\-]", "", identifier or "").upper()
        if value.startswith(self.country_code):
            value = value[len(self.country_code):]
        elif self.country_code == "EL" and value.startswith("GR"):
            value = value[2:]
        return value if re.fullmatch(r"[0-9A-Z+*]{2,14}", value) else None

    async def lookup(self, identifier: str) -> RegistryData | None:
        number = self._vat_digits(identifier)
        if not number:
            return None

        data = await self._get_json(f"{VIES_API_URL}/{self.country_code}/vat/{number}")
        if data is None or data.get("userError") not in (None, "VALID", "INVALID"):
            return None

        # An unregistered number is a miss, so the next source in the chain is tried
        if not data.get("isValid"):
            self.log.debug("VAT number not valid in VIES", country=self.country_code, number=number)
            return None

        vat_number = f"{self.country_code}{number}"
        name = data.get("name")
        address = data.get("address")
        return self._snapshot(
            org_nr=number,
            legal_name=name if name and name != "---" else None,
            registered_address=" ".join(address.split()) if address and address != "---" else None,
            company_status=CompanyStatus.ACTIVE,
            vat_number=vat_number,
            vat_status="Active",
        )
