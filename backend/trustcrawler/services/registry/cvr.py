"""
CVR (Denmark) client via the cvrapi.dk gateway.

API: https://cvrapi.dk/api?search={cvr}&country=dk
"""

import re

from trustcrawler.core.models import CompanyStatus, RegistryData
from trustcrawler.services.registry.base import RegistryLookup, join_address

CVR_API_URL = "https://cvrapi.dk/api"

CVR_PATTERN = re.compile(r"^\d{8}$")


class CvrLookup(RegistryLookup):
    """Danish Central Business Register."""

    source = "cvr"

    async def lookup(self, identifier: str) -> RegistryData | None:
        cvr = re.sub(r"\D", "", identifier or "")
        if not CVR_PATTERN.match(cvr):
            return None

        data = await self._get_json(CVR_API_URL, params={"search": cvr, "country": "dk"})
        if data is None or data.get("error") or not data.get("vat"):
            return None

        if data.get("enddate") or data.get("creditbankrupt"):
            status = CompanyStatus.DISSOLVED
        elif data.get("creditstatus"):
            status = CompanyStatus.LIQUIDATION
        else:
            status = CompanyStatus.ACTIVE

        industry_codes = [str(data["industrycode"])] if data.get("industrycode") else []
        employees = data.get("employees")

        return self._snapshot(
            org_nr=str(data["vat"]),
            legal_name=data.get("name"),
            registration_date=data.get("startdate"),
            company_status=status,
            industry_codes=industry_codes,
            employee_count=employees if isinstance(employees, int) else None,
            vat_number=f"DK{data['vat']}",
            vat_status="Active" if status == CompanyStatus.ACTIVE else "Inactive",
            registered_address=join_address(
                data.get("address"),
                " ".join(str(p) for p in (data.get("zipcode"), data.get("city")) if p),
            ),
        )
