"""Speech-to-text through Groq's Whisper endpoints."""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from ..llm.errors import (
    ProviderConfigError,
    ResponseValidationError,
    TransportError,
    upstream_error,
)

logger = logging.getLogger(__name__)

AUDIO_MODELS = [
    {
        "id": "whisper-large-v3",
        "name": "Whisper Large V3",
        "description": "Most accurate, slower processing",
    },
    {
        "id": "whisper-large-v3-turbo",
        "name": "Whisper Large V3 Turbo",
        "description": "Fast and accurate, recommended",
    },
]

SUPPORTED_LANGUAGES = [
    {"code": "auto", "name": "Auto-detect"},
    {"code": "en", "name": "English"},
    {"code": "es", "name": "Spanish"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "it", "name": "Italian"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "ru", "name": "Russian"},
    {"code": "ja", "name": "Japanese"},
    {"code": "ko", "name": "Korean"},
    {"code": "zh", "name": "Chinese"},
    {"code": "ar", "name": "Arabic"},
    {"code": "hi", "name": "Hindi"},
    {"code": "tr", "name": "Turkish"},
    {"code": "pl", "name": "Polish"},
    {"code": "nl", "name": "Dutch"},
]


class AudioResult(BaseModel):
    text: str
    language: Optional[str] = None
    duration: Optional[float] = None
    model: str
    action: str


class AudioService:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.groq.com/openai/v1",
        default_model: str = "whisper-large-v3",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self._transport = transport

    def endpoint_for(self, action: str) -> str:
        if action == "translate":
            return f"{self.base_url}/audio/translations"
        return f"{self.base_url}/audio/transcriptions"

    async def process(
        self,
        audio: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
        action: str = "transcribe",
        model: Optional[str] = None,
        language: Optional[str] = None,
        temperature: Optional[str] = None,
    ) -> AudioResult:
        """Transcribe (or translate to English when *action* is "translate")."""
        if not self.api_key:
            raise ProviderConfigError("Groq API key not configured")

        model = model or self.default_model
        form: dict[str, str] = {"model": model}
        if language and language != "auto":
            form["language"] = language
        if temperature:
            form["temperature"] = str(temperature)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self.endpoint_for(action),
                    data=form,
                    files={"file": (filename, audio, content_type)},
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Groq audio request failed: {e}") from e

        if not resp.is_success:
            err = upstream_error(resp, "Groq API")
            logger.error("Groq API error: %s", err.details)
            raise err

        try:
            result = resp.json()
        except ValueError as e:
            raise ResponseValidationError("Invalid response format from audio API") from e
        if not isinstance(result, dict) or "text" not in result:
            raise ResponseValidationError("Audio API response has no text", details=result)

        # Translation output is always English, whatever the source language was
        language_out = "en" if action == "translate" else result.get("language")
        return AudioResult(
            text=result["text"],
            language=language_out,
            duration=result.get("duration"),
            model=model,
            action=action,
        )
