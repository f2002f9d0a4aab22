"""
Text Intelligence Package

Provides a provider abstraction over OpenAI-compatible chat endpoints and a
defensive adapter that turns free-form responses into tagged results.
"""

from trustcrawler.services.ai.enrichment import (
    EnrichmentData,
    Fallback,
    Ok,
    RiskAssessment,
    SiteContext,
    TextIntelligenceAdapter,
)
from trustcrawler.services.ai.interface import TextIntelligence
from trustcrawler.services.ai.providers import create_provider

__all__ = [
    "EnrichmentData",
    "Fallback",
    "Ok",
    "RiskAssessment",
    "SiteContext",
    "TextIntelligence",
    "TextIntelligenceAdapter",
    "create_provider",
]
