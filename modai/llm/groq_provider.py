from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI

from .base import Completion, LLMProvider, TokenUsage
from .errors import (
    ProviderConfigError,
    ResponseValidationError,
    TransportError,
    UpstreamHTTPError,
)


class GroqProvider(LLMProvider):
    """Groq fast-inference API provider (OpenAI-compatible)."""

    name = "groq"
    display_name = "Groq"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.groq.com/openai/v1",
        timeout: float = 120.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not api_key:
            raise ProviderConfigError("Groq API key not configured")
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIStatusError as e:
            message = e.body.get("message") if isinstance(e.body, dict) else None
            raise UpstreamHTTPError(
                message or f"API error: {e.status_code}", e.status_code, details=e.body
            ) from e
        except openai.APIConnectionError as e:
            raise TransportError(f"Groq request failed: {e}") from e

        if not response.choices:
            raise ResponseValidationError("Groq returned no choices")

        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )
        return Completion(
            text=choice.message.content or "",
            usage=usage,
            finish_reason=choice.finish_reason or "stop",
        )

    async def aclose(self) -> None:
        await self.client.close()
