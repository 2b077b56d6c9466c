"""
Claude (Anthropic) provider

Reads ANTHROPIC_API_KEY unless a key is passed in.
"""

import os
from typing import Optional

from .base import (
    ModelProvider, ModelResponse, ProviderError, AuthenticationError,
    provider_error_from,
)


class ClaudeProvider(ModelProvider):
    """Anthropic Messages API adapter."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "claude-3-5-haiku-20241022",
    ):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self._default_model = default_model
        self._client = None

    def _get_client(self):
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError("No Anthropic API key. Set ANTHROPIC_API_KEY or pass api_key.")
            try:
                import anthropic
            except ImportError:
                raise ProviderError("anthropic package not installed. Run: pip install anthropic")
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        return self._client

    @property
    def name(self) -> str:
        return "claude"

    @property
    def default_model(self) -> str:
        return self._default_model

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
        client = self._get_client()
        request = {
            "model": model or self._default_model,
            "max_tokens": max_tokens,
            "temperature": min(1.0, max(0.0, temperature)),
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        try:
            response = await client.messages.create(**request)
        except Exception as e:
            raise provider_error_from("Claude", e)

        text = "".join(getattr(block, "text", "") for block in response.content or [])
        return ModelResponse(
            content=text,
            model=response.model,
            provider=self.name,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            raw_response=response,
        )

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
