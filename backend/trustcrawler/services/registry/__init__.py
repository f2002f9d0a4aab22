"""
Business registry lookups.

One RegistryLookup per source, dispatched per country by RegistryVerifier.
"""

from trustcrawler.services.registry.base import RegistryLookup
from trustcrawler.services.registry.brreg import BrregLookup
from trustcrawler.services.registry.companies_house import CompaniesHouseLookup
from trustcrawler.services.registry.cvr import CvrLookup
from trustcrawler.services.registry.opencorporates import OpenCorporatesLookup
from trustcrawler.services.registry.prh import PrhLookup
from trustcrawler.services.registry.verifier import (
    RegistryVerifier,
    build_default_verifier,
    normalize_country,
)
from trustcrawler.services.registry.vies import ViesLookup

__all__ = [
    "RegistryLookup",
    "BrregLookup",
    "CompaniesHouseLookup",
    "CvrLookup",
    "PrhLookup",
    "ViesLookup",
    "OpenCorporatesLookup",
    "RegistryVerifier",
    "build_default_verifier",
    "normalize_country",
]
