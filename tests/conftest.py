import os
import tempfile
from datetime import datetime, timedelta, timezone

# Keep the module-level app in modai.main away from the real ~/.modai
os.environ.setdefault("MODAI_CONFIG_DIR", tempfile.mkdtemp(prefix="modai-test-"))
for _var in ["GROQ_API_KEY"] + [f"OPENROUTER_API_KEY_{i}" for i in range(1, 6)]:
    os.environ.pop(_var, None)

import httpx
import pytest
from fastapi.testclient import TestClient

from modai.config import AppConfig
from modai.conversation.storage import ConversationStore
from modai.kvstore import MemoryKeyValueStore


class FakeClock:
    """Strictly increasing timestamps, one second apart."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def make_config(**llm_overrides) -> AppConfig:
    config = AppConfig()
    config.llm.openrouter_api_keys = ["or-key-1", "or-key-2"]
    config.llm.groq_api_key = "groq-key"
    config.image.placeholder_delay_min = 0
    config.image.placeholder_delay_max = 0
    for key, value in llm_overrides.items():
        setattr(config.llm, key, value)
    return config


def chat_completion(content: str = "Hi there!", prompt_tokens: int = 12, completion_tokens: int = 8) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv, clock):
    return ConversationStore(kv, max_conversations=50, max_messages=100, clock=clock)


@pytest.fixture
def make_client():
    """Build a TestClient whose upstream calls go to *handler*."""
    from modai.main import create_app

    def _make(handler=None, config=None, kv=None):
        transport = httpx.MockTransport(handler) if handler else None
        app = create_app(
            config=config or make_config(),
            kv=kv or MemoryKeyValueStore(),
            transport=transport,
        )
        return TestClient(app)

    return _make
