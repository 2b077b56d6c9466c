"""
Text generation providers for study-buddy

Supports multiple providers with a common interface.
Providers: Cloudflare Workers AI, Claude (Anthropic), DeepSeek, Mock
"""

from .base import (
    ModelProvider, ModelResponse, ProviderError, RateLimitError,
    AuthenticationError,
)
from .claude import ClaudeProvider
from .deepseek import DeepSeekProvider
from .cloudflare import CloudflareAIProvider
from .mock import MockProvider

__all__ = [
    # Base classes and types
    "ModelProvider",
    "ModelResponse",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    # Providers
    "ClaudeProvider",
    "DeepSeekProvider",
    "CloudflareAIProvider",
    "MockProvider",
    "get_provider",
]


def get_provider(name: str, **kwargs) -> ModelProvider:
    """
    Factory function to get a provider by name.

    Args:
        name: Provider name ('cloudflare', 'claude', 'deepseek', 'mock')
        **kwargs: Provider-specific options

    Returns:
        Configured ModelProvider instance

    Raises:
        ValueError: If provider name is unknown
    """
    providers = {
        "cloudflare": CloudflareAIProvider,
        "claude": ClaudeProvider,
        "deepseek": DeepSeekProvider,
        "mock": MockProvider,
    }

    if name not in providers:
        raise ValueError(f"Unknown provider: {name}. Valid options: {list(providers.keys())}")

    return providers[name](**kwargs)
