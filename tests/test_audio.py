import asyncio

import httpx
import pytest

from modai.llm.errors import ProviderConfigError, UpstreamHTTPError
from modai.media.audio import AudioService


def _service(handler, api_key="groq-key") -> AudioService:
    return AudioService(api_key=api_key, transport=httpx.MockTransport(handler))


class Recorder:
    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def test_transcribe_posts_multipart_to_transcriptions():
    recorder = Recorder(httpx.Response(200, json={"text": "hello world", "language": "en", "duration": 1.5}))
    result = asyncio.run(
        _service(recorder).process(b"RIFF....", "clip.wav", "audio/wav", language="en")
    )

    request = recorder.requests[0]
    assert str(request.url) == "https://api.groq.com/openai/v1/audio/transcriptions"
    assert request.headers["authorization"] == "Bearer groq-key"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="model"' in body and b"whisper-large-v3" in body
    assert b'name="language"' in body
    assert b'filename="clip.wav"' in body

    assert result.text == "hello world"
    assert result.duration == 1.5
    assert result.action == "transcribe"


def test_auto_language_is_not_sent():
    recorder = Recorder(httpx.Response(200, json={"text": "hola"}))
    asyncio.run(_service(recorder).process(b"data", "a.mp3", language="auto"))
    assert b'name="language"' not in recorder.requests[0].content


def test_translate_uses_translations_endpoint():
    recorder = Recorder(httpx.Response(200, json={"text": "good morning"}))
    result = asyncio.run(
        _service(recorder).process(b"data", "a.mp3", action="translate", model="whisper-large-v3-turbo")
    )
    assert str(recorder.requests[0].url).endswith("/audio/translations")
    assert result.language == "en"
    assert result.model == "whisper-large-v3-turbo"


def test_translation_reports_english_even_when_source_language_is_returned():
    recorder = Recorder(httpx.Response(200, json={"text": "good morning", "language": "es"}))
    result = asyncio.run(_service(recorder).process(b"data", "a.mp3", action="translate"))
    assert result.language == "en"


def test_transcription_keeps_detected_language():
    recorder = Recorder(httpx.Response(200, json={"text": "buenos días", "language": "es"}))
    result = asyncio.run(_service(recorder).process(b"data", "a.mp3", action="transcribe"))
    assert result.language == "es"


def test_missing_key_fails_without_request():
    recorder = Recorder(httpx.Response(200, json={"text": ""}))
    with pytest.raises(ProviderConfigError):
        asyncio.run(_service(recorder, api_key="").process(b"data", "a.mp3"))
    assert recorder.requests == []


def test_upstream_error_keeps_status_and_message():
    recorder = Recorder(httpx.Response(413, json={"error": {"message": "file too large"}}))
    with pytest.raises(UpstreamHTTPError) as exc_info:
        asyncio.run(_service(recorder).process(b"data", "a.mp3"))
    assert exc_info.value.status_code == 413
    assert exc_info.value.message == "file too large"
