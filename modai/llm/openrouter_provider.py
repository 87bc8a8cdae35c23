import logging
from typing import Optional

import httpx

from .base import Completion, LLMProvider, TokenUsage
from .errors import ResponseValidationError, TransportError, upstream_error
from .keys import KeySelector

logger = logging.getLogger(__name__)


def openrouter_headers(api_key: str, site_url: str, site_name: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": site_url,
        "X-Title": site_name,
    }


class OpenRouterProvider(LLMProvider):
    """OpenRouter aggregator, called with raw JSON over httpx.

    One of the configured keys is picked per request by the key selector.
    """

    name = "openrouter"
    display_name = "OpenRouter"

    def __init__(
        self,
        key_selector: KeySelector,
        base_url: str = "https://openrouter.ai/api/v1",
        site_url: str = "http://localhost:3000",
        site_name: str = "MOD AI Assistant",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.key_selector = key_selector
        self.base_url = base_url.rstrip("/")
        self.site_url = site_url
        self.site_name = site_name
        self.timeout = timeout
        self._transport = transport

    async def complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        api_key = self.key_selector.select()
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=openrouter_headers(api_key, self.site_url, self.site_name),
                )
        except httpx.HTTPError as e:
            raise TransportError(f"OpenRouter request failed: {e}") from e

        if not resp.is_success:
            err = upstream_error(resp)
            logger.error("OpenRouter API error: %s", err.details)
            raise err

        try:
            data = resp.json()
        except ValueError as e:
            raise ResponseValidationError("Invalid response format from API") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices[0], dict) or not choices[0].get("message"):
            raise ResponseValidationError("Invalid response format from API", details=data)

        choice = choices[0]
        usage = data.get("usage")
        if isinstance(usage, dict):
            usage = TokenUsage(**{k: v for k, v in usage.items() if v is not None})
        else:
            usage = None
        return Completion(
            text=choice["message"].get("content") or "",
            usage=usage,
            finish_reason=choice.get("finish_reason") or "stop",
        )
