"""
Text Intelligence Interface

Abstract base class defining the contract that all text providers must implement.
"""

from abc import ABC, abstractmethod


class TextIntelligence(ABC):
    """Abstract interface for generative text providers.

    Responses are untrusted text that may or may not parse as JSON.
    """

    @abstractmethod
    async def generate(self, prompt: str) -> str | None:
        """Generate a completion for a prompt.

        Args:
            prompt: Full prompt including content window

        Returns:
            Raw response text, or None if the provider produced nothing
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name for logging."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name being used."""
        pass
