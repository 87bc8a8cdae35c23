"""Image generation through OpenRouter with a placeholder fallback."""

import asyncio
import logging
import random
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from ..llm.errors import ProviderError, ResponseValidationError, TransportError, upstream_error
from ..llm.keys import KeySelector
from ..llm.openrouter_provider import openrouter_headers

logger = logging.getLogger(__name__)

DEFAULT_SIZE = "1024x1024"


class FallbackPolicy(str, Enum):
    PLACEHOLDER = "placeholder"  # Substitute a placeholder and report success
    RAISE = "raise"


class ImageOptions(BaseModel):
    count: int = 1
    size: str = DEFAULT_SIZE
    quality: str = "standard"
    style: str = "vivid"


class GeneratedImage(BaseModel):
    url: str
    prompt: str
    model: str


class ImageMetadata(BaseModel):
    model: str
    prompt: str
    timestamp: str
    provider: str
    fallback: bool = False
    error: Optional[str] = None


class ImageResult(BaseModel):
    images: list[GeneratedImage]
    metadata: ImageMetadata


# (keywords, category, color), checked in order
_CATEGORY_RULES: list[tuple[set[str], str, str]] = [
    ({"person", "human", "man", "woman", "portrait"}, "portrait", "purple"),
    ({"landscape", "nature", "mountain", "forest", "ocean"}, "landscape", "green"),
    ({"city", "building", "urban", "street"}, "urban", "gray"),
    ({"animal", "cat", "dog", "bird", "wildlife"}, "animal", "orange"),
    ({"food", "cooking", "meal", "restaurant"}, "food", "red"),
]


def classify_prompt(prompt: str) -> tuple[str, str]:
    words = set(prompt.lower().split(" "))
    for keywords, category, color in _CATEGORY_RULES:
        if words & keywords:
            return category, color
    return "abstract", "blue"


def _parse_size(size: str) -> tuple[int, int]:
    try:
        width, height = (int(part) for part in size.lower().split("x"))
    except ValueError:
        return 1024, 1024
    return width, height


def placeholder_url(prompt: str, size: str = DEFAULT_SIZE) -> str:
    """Deterministic placeholder descriptor for *prompt*."""
    width, height = _parse_size(size)
    category, color = classify_prompt(prompt)
    text = prompt[:100] + "..." if len(prompt) > 100 else prompt
    return (
        f"/placeholder.svg?height={height}&width={width}"
        f"&text={quote(text, safe='')}&category={category}&color={color}"
    )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ImageService:
    def __init__(
        self,
        key_selector: KeySelector,
        base_url: str = "https://openrouter.ai/api/v1",
        site_url: str = "http://localhost:3000",
        site_name: str = "MOD AI Assistant",
        fallback_policy: FallbackPolicy = FallbackPolicy.PLACEHOLDER,
        placeholder_delay: tuple[float, float] = (2.0, 3.0),
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.key_selector = key_selector
        self.base_url = base_url.rstrip("/")
        self.site_url = site_url
        self.site_name = site_name
        self.fallback_policy = fallback_policy
        self.placeholder_delay = placeholder_delay
        self.timeout = timeout
        self._transport = transport

    async def _request(self, prompt: str, model: str, options: ImageOptions) -> list[str]:
        api_key = self.key_selector.select()
        payload = {
            "model": model,
            "prompt": prompt,
            "n": options.count,
            "size": options.size,
            "quality": options.quality,
            "style": options.style,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{self.base_url}/images/generations",
                    json=payload,
                    headers=openrouter_headers(api_key, self.site_url, self.site_name),
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Image request failed: {e}") from e

        if not resp.is_success:
            raise upstream_error(resp, "Image API")

        try:
            data = resp.json()
        except ValueError as e:
            raise ResponseValidationError("Invalid response format from image API") from e
        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ResponseValidationError("Image API response has no data list", details=data)
        urls = [
            item["url"] for item in items
            if isinstance(item, dict) and isinstance(item.get("url"), str) and item["url"]
        ]
        if not urls:
            raise ResponseValidationError("Image API returned no images", details=data)
        return urls

    async def generate(
        self, prompt: str, model: str, options: Optional[ImageOptions] = None
    ) -> ImageResult:
        options = options or ImageOptions()
        try:
            urls = await self._request(prompt, model, options)
        except ProviderError as e:
            if self.fallback_policy is FallbackPolicy.RAISE:
                raise
            logger.warning("Image generation failed, using placeholder: %s", e.message)
            return await self._placeholder(prompt, model, options, e)

        return ImageResult(
            images=[GeneratedImage(url=url, prompt=prompt, model=model) for url in urls],
            metadata=ImageMetadata(
                model=model,
                prompt=prompt,
                timestamp=_now_iso(),
                provider="OpenRouter",
            ),
        )

    async def _placeholder(
        self, prompt: str, model: str, options: ImageOptions, error: ProviderError
    ) -> ImageResult:
        low, high = self.placeholder_delay
        if high > 0:
            # Simulated generation latency
            await asyncio.sleep(random.uniform(low, high))
        return ImageResult(
            images=[
                GeneratedImage(
                    url=placeholder_url(prompt, options.size),
                    prompt=prompt,
                    model=model,
                )
            ],
            metadata=ImageMetadata(
                model=model,
                prompt=prompt,
                timestamp=_now_iso(),
                provider="MOD AI Placeholder",
                fallback=True,
                error=error.message,
            ),
        )
