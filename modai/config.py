import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = (
    "You are MOD AI Assistant, a helpful and knowledgeable AI assistant. "
    "Provide accurate, helpful, and engaging responses to user queries."
)


class LLMConfig(BaseModel):
    groq_api_key: str = ""
    openrouter_api_keys: list[str] = []
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    site_url: str = "http://localhost:3000"  # Sent as HTTP-Referer to OpenRouter
    site_name: str = "MOD AI Assistant"
    default_model: str = "deepseek/deepseek-r1-0528:free"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    key_strategy: Literal["random", "round_robin"] = "random"
    request_timeout: float = 120.0


class MemoryConfig(BaseModel):
    max_conversations: int = 50
    max_messages_per_conversation: int = 100
    context_token_budget: int = 4000


class ImageConfig(BaseModel):
    default_model: str = "black-forest-labs/flux-schnell"
    fallback_policy: Literal["placeholder", "raise"] = "placeholder"
    placeholder_delay_min: float = 2.0
    placeholder_delay_max: float = 3.0


class AudioConfig(BaseModel):
    default_model: str = "whisper-large-v3"


class AppConfig(BaseModel):
    llm: LLMConfig = LLMConfig()
    memory: MemoryConfig = MemoryConfig()
    image: ImageConfig = ImageConfig()
    audio: AudioConfig = AudioConfig()


_config_dir = Path(os.environ.get("MODAI_CONFIG_DIR", Path.home() / ".modai"))
_config_file = _config_dir / "config.json"
_storage_file = _config_dir / "storage.json"

_OPENROUTER_KEY_VARS = [f"OPENROUTER_API_KEY_{i}" for i in range(1, 6)]


def _ensure_config_dir() -> None:
    _config_dir.mkdir(parents=True, exist_ok=True)


def get_storage_path() -> Path:
    return _storage_file


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Environment variables win over values from config.json."""
    groq_key = os.environ.get("GROQ_API_KEY", "")
    if groq_key:
        config.llm.groq_api_key = groq_key

    env_keys = [os.environ.get(var, "") for var in _OPENROUTER_KEY_VARS]
    env_keys = [k for k in env_keys if k]
    if env_keys:
        config.llm.openrouter_api_keys = env_keys

    site_url = os.environ.get("MODAI_SITE_URL", "")
    if site_url:
        config.llm.site_url = site_url
    site_name = os.environ.get("MODAI_SITE_NAME", "")
    if site_name:
        config.llm.site_name = site_name
    return config


def load_config() -> AppConfig:
    _ensure_config_dir()
    config = AppConfig()
    if _config_file.exists():
        try:
            data = json.loads(_config_file.read_text(encoding="utf-8"))
            config = AppConfig(**data)
        except (json.JSONDecodeError, OSError, ValueError):
            logger.warning("Failed to load %s, using defaults", _config_file)
    config.llm.openrouter_api_keys = [k for k in config.llm.openrouter_api_keys if k]
    return _apply_env_overrides(config)


def save_config(config: AppConfig) -> None:
    _ensure_config_dir()
    _config_file.write_text(
        config.model_dump_json(indent=2),
        encoding="utf-8",
    )


_current_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    global _current_config
    if _current_config is None:
        _current_config = load_config()
    return _current_config


def update_config(config: AppConfig) -> AppConfig:
    global _current_config
    save_config(config)
    _current_config = config
    return _current_config
