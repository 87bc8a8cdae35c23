"""Construction of the per-application service objects kept on ``app.state``."""

import logging
from typing import Any, Optional

import httpx

from .auth import AuthService
from .config import AppConfig
from .conversation.chat import ChatService
from .conversation.storage import ConversationStore
from .kvstore import KeyValueStore
from .llm.router import ProviderRouter
from .media.audio import AudioService
from .media.images import FallbackPolicy, ImageService

logger = logging.getLogger(__name__)


def init_services(
    state: Any,
    config: AppConfig,
    kv: KeyValueStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    state.config = config
    state.kv = kv
    state.transport = transport
    state.store = ConversationStore(
        kv,
        max_conversations=config.memory.max_conversations,
        max_messages=config.memory.max_messages_per_conversation,
    )
    state.router = ProviderRouter(config.llm, transport=transport)
    state.chat = ChatService(
        state.store, state.router, token_budget=config.memory.context_token_budget
    )
    state.auth = AuthService(kv)
    _init_media(state, config)


def _init_media(state: Any, config: AppConfig) -> None:
    state.images = ImageService(
        key_selector=state.router.key_selector,
        base_url=config.llm.openrouter_base_url,
        site_url=config.llm.site_url,
        site_name=config.llm.site_name,
        fallback_policy=FallbackPolicy(config.image.fallback_policy),
        placeholder_delay=(
            config.image.placeholder_delay_min,
            config.image.placeholder_delay_max,
        ),
        timeout=config.llm.request_timeout,
        transport=state.transport,
    )
    state.audio = AudioService(
        api_key=config.llm.groq_api_key,
        base_url=config.llm.groq_base_url,
        default_model=config.audio.default_model,
        timeout=config.llm.request_timeout,
        transport=state.transport,
    )


async def apply_config(state: Any, config: AppConfig) -> None:
    """Re-point live services at *config* without dropping stored conversations."""
    await state.router.reload(config.llm)
    state.config = config
    state.store.max_conversations = config.memory.max_conversations
    state.store.max_messages = config.memory.max_messages_per_conversation
    state.chat.token_budget = config.memory.context_token_budget
    _init_media(state, config)
    logger.info("Applied updated configuration")


async def close_services(state: Any) -> None:
    await state.router.aclose()
