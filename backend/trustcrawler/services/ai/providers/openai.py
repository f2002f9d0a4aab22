"""
OpenAI Provider

Adapter for OpenAI API (GPT models).
"""

from trustcrawler.services.ai.providers.base import BaseProvider


class OpenAIProvider(BaseProvider):
    """OpenAI provider adapter.

    Uses the standard OpenAI API endpoint.
    Default URL: https://api.openai.com/v1
    """

    DEFAULT_API_URL = "https://api.openai.com/v1"

    @property
    def provider_name(self) -> str:
        return "openai"
