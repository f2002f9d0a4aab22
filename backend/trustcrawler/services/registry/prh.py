"""
PRH / YTJ (Finland) open data client.

API: https://avoindata.prh.fi/opendata-ytj-api/v3/companies?businessId={id}
Business IDs look like 1234567-8.
"""

import re
from typing import Any

from trustcrawler.core.models import CompanyStatus, RegistryData
from trustcrawler.services.registry.base import RegistryLookup, join_address

PRH_API_URL = "https://avoindata.prh.fi/opendata-ytj-api/v3/companies"

BUSINESS_ID_PATTERN = re.compile(r"^\d{7}-\d$")

# companySituations codes
BANKRUPTCY_CODES = {"KONK"}
LIQUIDATION_CODES = {"SELTILA", "SANE", "SELVITYSTILA"}


def normalize_business_id(identifier: str) -> str | None:
    """'FI12345678' / '12345678' -> '1234567-8'."""
    value = re.sub(r"\s", "", identifier or "").upper()
    if value.startswith("FI"):
        value = value[2:]
    if re.fullmatch(r"\d{8}", value):
        value = f"{value[:7]}-{value[7]}"
    return value if BUSINESS_ID_PATTERN.match(value) else None


def _value(field: Any) -> Any:
    """v3 wraps scalars as {"value": ...}."""
    return field.get("value") if isinstance(field, dict) else field


class PrhLookup(RegistryLookup):
    """Finnish Patent and Registration Office."""

    source = "prh"

    async def lookup(self, identifier: str) -> RegistryData | None:
        business_id = normalize_business_id(identifier)
        if not business_id:
            return None

        data = await self._get_json(PRH_API_URL, params={"businessId": business_id})
        if data is None:
            return None
        companies = data.get("companies") or data.get("results") or []
        if not companies or not isinstance(companies[0], dict):
            return None
        company = companies[0]

        situations = {
            str(s.get("type", "")).upper()
            for s in company.get("companySituations") or []
            if isinstance(s, dict)
        }
        if company.get("endDate") or situations & BANKRUPTCY_CODES:
            status = CompanyStatus.DISSOLVED
        elif situations & LIQUIDATION_CODES or company.get("liquidations"):
            status = CompanyStatus.LIQUIDATION
        else:
            status = CompanyStatus.ACTIVE

        business_id_field = company.get("businessId")
        registration_date = (
            business_id_field.get("registrationDate")
            if isinstance(business_id_field, dict)
            else company.get("registrationDate")
        )

        return self._snapshot(
            org_nr=_value(business_id_field) or business_id,
            legal_name=self._current_name(company),
            registration_date=registration_date,
            company_status=status,
            industry_codes=self._industry_codes(company),
            vat_number=f"FI{business_id.replace('-', '')}",
            registered_address=self._address(company),
        )

    def _current_name(self, company: dict[str, Any]) -> str | None:
        if isinstance(company.get("name"), str):
            return company["name"]
        for name in company.get("names") or []:
            if isinstance(name, dict) and not name.get("endDate") and name.get("name"):
                return name["name"]
        return None

    def _industry_codes(self, company: dict[str, Any]) -> list[str]:
        line = company.get("mainBusinessLine")
        if isinstance(line, dict) and line.get("type"):
            return [str(line["type"])]
        return []

    def _address(self, company: dict[str, Any]) -> str | None:
        for address in company.get("addresses") or []:
            if not isinstance(address, dict):
                continue
            offices = address.get("postOffices") or []
            city = offices[0].get("city") if offices and isinstance(offices[0], dict) else address.get("city")
            return join_address(address.get("street"), address.get("postCode"), city)
        return None
