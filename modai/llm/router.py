import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..config import LLMConfig
from .base import Completion, LLMProvider
from .catalog import get_model_by_id
from .groq_provider import GroqProvider
from .keys import KeySelector, build_key_selector
from .openrouter_provider import OpenRouterProvider

logger = logging.getLogger(__name__)

GROQ = GroqProvider.name
OPENROUTER = OpenRouterProvider.name

# Everything not listed here goes to the aggregator
FAST_INFERENCE_MODELS = frozenset({
    "llama-3.3-70b-versatile",
    "llama-3.1-8b-instant",
    "llama3-70b-8192",
    "llama3-8b-8192",
    "gemma2-9b-it",
})

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000

# USD per 1K tokens for models missing from the catalog
DEFAULT_INPUT_RATE = 0.001
DEFAULT_OUTPUT_RATE = 0.002


def route(model_id: str) -> str:
    return GROQ if model_id in FAST_INFERENCE_MODELS else OPENROUTER


def estimate_cost(model_id: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Rough cost estimate for display, not billing."""
    info = get_model_by_id(model_id)
    input_rate = info.pricing.input if info else DEFAULT_INPUT_RATE
    output_rate = info.pricing.output if info else DEFAULT_OUTPUT_RATE
    return (prompt_tokens * input_rate + completion_tokens * output_rate) / 1000


class ChatOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")


class ChatMetadata(BaseModel):
    tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0
    finish_reason: str = "stop"


class ChatResult(BaseModel):
    message: str
    model: str
    provider: str
    metadata: ChatMetadata

    def to_response(self) -> dict:
        return {
            "message": self.message,
            "model": self.model,
            "provider": self.provider,
            "metadata": {
                "tokens": self.metadata.tokens,
                "promptTokens": self.metadata.prompt_tokens,
                "completionTokens": self.metadata.completion_tokens,
                "cost": self.metadata.cost,
                "finishReason": self.metadata.finish_reason,
            },
        }


class ProviderRouter:
    """Picks the upstream provider for a model and shapes the request/response."""

    def __init__(
        self,
        config: LLMConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._transport = transport
        self._providers: dict[str, LLMProvider] = {}
        self.reset(config)

    def reset(self, config: Optional[LLMConfig] = None) -> None:
        """Drop cached providers so new keys take effect on the next request."""
        if config is None:
            config = self.config
        self.key_selector: KeySelector = build_key_selector(
            config.key_strategy, config.openrouter_api_keys
        )
        self.config = config
        self._providers.clear()

    async def reload(self, config: LLMConfig) -> None:
        """Close the cached providers' clients, then switch to *config*."""
        await self.aclose()
        self.reset(config)

    def _init_provider(self, provider_name: str) -> LLMProvider:
        if provider_name == GROQ:
            http_client = None
            if self._transport is not None:
                http_client = httpx.AsyncClient(transport=self._transport)
            return GroqProvider(
                api_key=self.config.groq_api_key,
                base_url=self.config.groq_base_url,
                timeout=self.config.request_timeout,
                http_client=http_client,
            )
        return OpenRouterProvider(
            key_selector=self.key_selector,
            base_url=self.config.openrouter_base_url,
            site_url=self.config.site_url,
            site_name=self.config.site_name,
            timeout=self.config.request_timeout,
            transport=self._transport,
        )

    def get_provider_for_model(self, model: str) -> LLMProvider:
        provider_name = route(model)
        if provider_name not in self._providers:
            self._providers[provider_name] = self._init_provider(provider_name)
        return self._providers[provider_name]

    def build_messages(self, message: str, history: list[dict]) -> list[dict]:
        return [
            {"role": "system", "content": self.config.system_prompt},
            *({"role": m["role"], "content": m["content"]} for m in history),
            {"role": "user", "content": message},
        ]

    async def chat(
        self,
        message: str,
        history: list[dict],
        model: str,
        options: Optional[ChatOptions] = None,
    ) -> ChatResult:
        options = options or ChatOptions()
        temperature = DEFAULT_TEMPERATURE if options.temperature is None else options.temperature
        max_tokens = options.max_tokens or DEFAULT_MAX_TOKENS

        provider = self.get_provider_for_model(model)
        logger.info("Routing model %s to %s", model, provider.display_name)
        completion: Completion = await provider.complete(
            self.build_messages(message, history),
            model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        usage = completion.usage
        metadata = ChatMetadata(finish_reason=completion.finish_reason)
        if usage is not None:
            metadata.tokens = usage.total_tokens
            metadata.prompt_tokens = usage.prompt_tokens
            metadata.completion_tokens = usage.completion_tokens
            metadata.cost = estimate_cost(model, usage.prompt_tokens, usage.completion_tokens)

        return ChatResult(
            message=completion.text,
            model=model,
            provider=provider.display_name,
            metadata=metadata,
        )

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()
        self._providers.clear()
