"""
DeepSeek provider

Talks to DeepSeek's OpenAI-compatible chat completions API through the
openai SDK; pass base_url to point it at any other compatible endpoint.
"""

import os
from typing import Optional

from .base import (
    ModelProvider, ModelResponse, ProviderError, AuthenticationError,
    provider_error_from,
)


class DeepSeekProvider(ModelProvider):
    """OpenAI-compatible chat completions adapter. Reads DEEPSEEK_API_KEY."""

    BASE_URL = "https://api.deepseek.com"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "deepseek-chat",
        base_url: Optional[str] = None,
    ):
        self._api_key = api_key or os.getenv("DEEPSEEK_API_KEY")
        self._default_model = default_model
        self._base_url = base_url or self.BASE_URL
        self._client = None

    def _get_client(self):
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError("No DeepSeek API key. Set DEEPSEEK_API_KEY or pass api_key.")
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ProviderError("openai package not installed. Run: pip install openai")
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    @property
    def name(self) -> str:
        return "deepseek"

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
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})

        try:
            response = await client.chat.completions.create(
                model=model or self._default_model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            raise provider_error_from("DeepSeek", e)

        message = response.choices[0].message if response.choices else None
        usage = {}
        if response.usage:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }
        return ModelResponse(
            content=(message.content if message else None) or "",
            model=response.model,
            provider=self.name,
            usage=usage,
            raw_response=response,
        )

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
