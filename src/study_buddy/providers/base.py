"""
Base protocol for text generation providers

Defines the interface every provider implements so the study assistant can
summarize topics, write quizzes and chat without knowing which model runs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Any


class ProviderError(Exception):
    """Base exception for provider errors."""
    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded."""
    pass


class AuthenticationError(ProviderError):
    """Authentication failed."""
    pass


def provider_error_from(label: str, error: Exception) -> ProviderError:
    """
    Map an SDK exception onto the ProviderError family by its message.

    The SDKs raise their own exception trees; callers only ever see ours.
    """
    text = str(error).lower()
    if "rate" in text or "429" in text:
        return RateLimitError(f"{label} rate limit exceeded: {error}")
    if "auth" in text or "401" in text or "api key" in text:
        return AuthenticationError(f"{label} authentication failed: {error}")
    return ProviderError(f"{label} API error: {error}")


@dataclass
class ModelResponse:
    """Response from a text generation model."""
    content: str
    model: str
    provider: str
    usage: dict = field(default_factory=dict)
    raw_response: Optional[Any] = None

    @property
    def input_tokens(self) -> int:
        """Number of input tokens used."""
        return self.usage.get("input_tokens", 0)

    @property
    def output_tokens(self) -> int:
        """Number of output tokens used."""
        return self.usage.get("output_tokens", 0)

    @property
    def total_tokens(self) -> int:
        """Total tokens used."""
        return self.input_tokens + self.output_tokens

    @property
    def text(self) -> str:
        """Generated text with surrounding whitespace removed."""
        return (self.content or "").strip()


class ModelProvider(ABC):
    """
    Abstract base class for text generation providers.

    Providers implement generate() for a single prompt. Any failure talking
    to the backing service is raised as a ProviderError subclass.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'cloudflare', 'claude', 'deepseek')."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Default model ID for this provider."""
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        **kwargs
    ) -> ModelResponse:
        """
        Generate a response from the model.

        Args:
            prompt: The user prompt
            system: Optional system prompt
            model: Model ID (uses default if not specified)
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            **kwargs: Provider-specific options

        Returns:
            ModelResponse with generated content

        Raises:
            ProviderError: On API errors
            RateLimitError: When rate limited
            AuthenticationError: On auth failures
        """
        pass

    async def close(self):
        """Release any network resources held by the provider."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.default_model!r})"
