"""
Custom Provider

Adapter for any self-hosted OpenAI-compatible endpoint (vLLM, Ollama,
LiteLLM proxies, ...). The base URL is required.
"""

from trustcrawler.services.ai.providers.base import BaseProvider, ProviderConfig


class CustomProvider(BaseProvider):
    """Custom OpenAI-compatible endpoint."""

    def __init__(self, config: ProviderConfig):
        if not config.api_url:
            raise ValueError("CustomProvider requires an api_url")
        super().__init__(config)

    @property
    def provider_name(self) -> str:
        return "custom"
