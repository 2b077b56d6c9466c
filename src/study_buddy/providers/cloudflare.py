"""
Cloudflare Workers AI provider

Calls the Workers AI REST endpoint (`/accounts/{id}/ai/run/{model}`) with
httpx. Credentials come from CLOUDFLARE_API_TOKEN and CLOUDFLARE_ACCOUNT_ID.
"""

import os
from typing import Optional

import httpx

from .base import (
    ModelProvider, ModelResponse, ProviderError, RateLimitError,
    AuthenticationError,
)


class CloudflareAIProvider(ModelProvider):
    """Workers AI adapter; the default provider for study-buddy."""

    BASE_URL = "https://api.cloudflare.com/client/v4/accounts"

    def __init__(
        self,
        api_token: Optional[str] = None,
        account_id: Optional[str] = None,
        default_model: str = "@cf/meta/llama-3.1-8b-instruct",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            api_token: API token with Workers AI permission (falls back to env var)
            account_id: Account id (falls back to env var)
            default_model: Model used when generate() isn't given one
            client: Pre-built HTTP client; skips the credential check
        """
        self._api_token = api_token or os.getenv("CLOUDFLARE_API_TOKEN")
        self._account_id = account_id or os.getenv("CLOUDFLARE_ACCOUNT_ID")
        self._default_model = default_model
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            if not self._api_token or not self._account_id:
                raise AuthenticationError(
                    "Cloudflare credentials missing. Set CLOUDFLARE_API_TOKEN and CLOUDFLARE_ACCOUNT_ID."
                )
            self._client = httpx.AsyncClient(
                headers={"Authorization": f"Bearer {self._api_token}"},
                timeout=120.0,
            )
        return self._client

    @property
    def name(self) -> str:
        return "cloudflare"

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
        model = model or self._default_model
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})

        try:
            response = await client.post(
                f"{self.BASE_URL}/{self._account_id}/ai/run/{model}",
                json={"messages": messages, "max_tokens": max_tokens, "temperature": temperature},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimitError(f"Cloudflare rate limit exceeded: {e}")
            if status == 401:
                raise AuthenticationError(f"Cloudflare authentication failed: {e}")
            raise ProviderError(f"Cloudflare API error: {e}")
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Cloudflare request failed: {e}")

        if not data.get("success"):
            raise ProviderError(f"Cloudflare API error: {data.get('errors', [])}")

        result = data.get("result") or {}
        usage = result.get("usage") or {}
        return ModelResponse(
            content=result.get("response") or "",
            model=model,
            provider=self.name,
            usage={
                "input_tokens": usage.get("prompt_tokens", 0),
                "output_tokens": usage.get("completion_tokens", 0),
            },
            raw_response=data,
        )

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
