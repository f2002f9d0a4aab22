"""
Provider Adapters Package

Contains implementations for each supported text provider.
To add a new provider:
1. Create a new file (e.g., myprovider.py) implementing BaseProvider
2. Import it here and add to PROVIDER_REGISTRY
"""

import structlog

from trustcrawler.core.config import Settings, get_settings
from trustcrawler.services.ai.providers.base import BaseProvider, ProviderConfig
from trustcrawler.services.ai.providers.custom import CustomProvider
from trustcrawler.services.ai.providers.openai import OpenAIProvider

logger = structlog.get_logger()

# Registry mapping provider_type string -> provider class
PROVIDER_REGISTRY: dict[str, type[BaseProvider]] = {
    "openai": OpenAIProvider,
    "custom": CustomProvider,
}


def create_provider(settings: Settings | None = None) -> BaseProvider | None:
    """Build the configured provider, or None when text intelligence is off."""
    settings = settings or get_settings()

    if not settings.is_ai_configured:
        logger.info("Text intelligence not configured, enrichment will use fallbacks")
        return None

    provider_cls = PROVIDER_REGISTRY[settings.ai_provider]
    config = ProviderConfig(
        model=settings.ai_model,
        api_url=settings.ai_api_url,
        api_key=settings.ai_api_key,
        timeout=settings.ai_timeout,
    )
    return provider_cls(config)


__all__ = [
    "PROVIDER_REGISTRY",
    "BaseProvider",
    "CustomProvider",
    "OpenAIProvider",
    "ProviderConfig",
    "create_provider",
]
