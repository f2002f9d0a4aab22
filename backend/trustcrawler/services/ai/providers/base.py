"""
Base Provider Implementation

Common functionality shared across all OpenAI-compatible providers.
"""

from dataclasses import dataclass, field

import openai
import structlog
from openai import AsyncOpenAI

from trustcrawler.services.ai.interface import TextIntelligence

logger = structlog.get_logger()


@dataclass
class ProviderConfig:
    """Connection settings for a provider."""
    model: str
    api_url: str | None = None
    api_key: str | None = None
    timeout: float = 60.0
    json_mode: bool = True
    default_headers: dict[str, str] = field(default_factory=dict)


class BaseProvider(TextIntelligence):
    """Base class for OpenAI-compatible providers.

    Most hosted and local model servers speak the OpenAI chat completions
    format, so this base class provides the common implementation.
    """

    # Maximum tokens to output (prevents runaway generation)
    MAX_OUTPUT_TOKENS = 2048

    DEFAULT_API_URL: str | None = None

    def __init__(self, config: ProviderConfig):
        """Initialize provider from config.

        Args:
            config: Provider connection settings
        """
        self.config = config
        self._client: AsyncOpenAI | None = None

    @property
    def provider_name(self) -> str:
        return "base"

    @property
    def model_name(self) -> str:
        return self.config.model

    def _get_client(self) -> AsyncOpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=self.config.api_url or self.DEFAULT_API_URL,
                # Some providers (like local model servers) don't need an API key
                api_key=self.config.api_key or "not-required",
                timeout=self.config.timeout,
                default_headers=self.config.default_headers or None,
            )
        return self._client

    async def generate(self, prompt: str) -> str | None:
        """Send a single-turn prompt and return the raw completion text."""
        logger.info(
            "ai_generate_start",
            provider=self.provider_name,
            model=self.model_name,
            prompt_len=len(prompt),
        )

        request_kwargs = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.MAX_OUTPUT_TOKENS,
        }
        if self.config.json_mode:
            request_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._get_client().chat.completions.create(**request_kwargs)
        except openai.OpenAIError as e:
            logger.warning(
                "ai_generate_failed",
                provider=self.provider_name,
                model=self.model_name,
                error=str(e)[:300],
            )
            return None

        if not response.choices:
            return None
        content = response.choices[0].message.content

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.info(
            "ai_generate_success",
            provider=self.provider_name,
            model=self.model_name,
            response_len=len(content or ""),
            usage=usage,
        )
        return content or None
