import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from ..kvstore import CONVERSATIONS_KEY, KeyValueStore
from .models import (
    Conversation,
    ConversationMessage,
    ConversationSummary,
    MessageMetadata,
    Role,
    new_id,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Conversation"
TITLE_MAX_CHARS = 50


def make_title(content: str) -> str:
    return content[:TITLE_MAX_CHARS] + ("..." if len(content) > TITLE_MAX_CHARS else "")


class ConversationStore:
    """Owns every conversation and persists the whole set on each mutation.

    In-memory state is the source of truth. A failed write to the key/value
    medium is logged and retried implicitly by the next mutation.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        max_conversations: int = 50,
        max_messages: int = 100,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._kv = kv
        self.max_conversations = max_conversations
        self.max_messages = max_messages
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._conversations: dict[str, Conversation] = {}
        self._current_id: Optional[str] = None
        self._load()

    # ---- Persistence ----

    def _load(self) -> None:
        raw = self._kv.get(CONVERSATIONS_KEY)
        if not raw:
            return
        try:
            self._conversations = self._parse(raw)
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            logger.error("Failed to load conversations from storage: %s", e)
            self._conversations = {}

    def _persist(self) -> None:
        try:
            self._kv.set(CONVERSATIONS_KEY, self._serialize())
        except Exception as e:
            logger.error("Failed to save conversations to storage: %s", e)

    def _serialize(self) -> str:
        return json.dumps(
            [c.model_dump(mode="json") for c in self._conversations.values()],
            indent=2,
            ensure_ascii=False,
        )

    @staticmethod
    def _parse(raw: str) -> dict[str, Conversation]:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("Conversation payload must be a JSON array")
        parsed: dict[str, Conversation] = {}
        for item in data:
            conv = Conversation.model_validate(item)
            parsed[conv.id] = conv
        return parsed

    # ---- Capacity ----

    def _evict_conversations(self) -> None:
        while len(self._conversations) > self.max_conversations:
            # min() keeps the first of equal timestamps, i.e. the earliest inserted
            oldest = min(self._conversations.values(), key=lambda c: c.updated_at)
            del self._conversations[oldest.id]
            if self._current_id == oldest.id:
                self._current_id = None
            logger.info("Evicted conversation %s (store limit %d)", oldest.id, self.max_conversations)

    def _trim_messages(self, conv: Conversation) -> None:
        if len(conv.messages) > self.max_messages:
            conv.messages = conv.messages[-self.max_messages:]

    # ---- CRUD ----

    def create_conversation(self, model: str) -> str:
        now = self._clock()
        conv_id = new_id("conv")
        while conv_id in self._conversations:
            conv_id = new_id("conv")
        self._conversations[conv_id] = Conversation(
            id=conv_id,
            title=DEFAULT_TITLE,
            model=model,
            messages=[],
            created_at=now,
            updated_at=now,
        )
        self._current_id = conv_id
        self._evict_conversations()
        self._persist()
        return conv_id

    def add_message(
        self,
        conv_id: str,
        content: str,
        role: Role,
        model: Optional[str] = None,
        metadata: Optional[MessageMetadata] = None,
    ) -> Optional[ConversationMessage]:
        """Append a message; returns None (and changes nothing) for an unknown id."""
        conv = self._conversations.get(conv_id)
        if conv is None:
            logger.warning("Dropping message for unknown conversation %s", conv_id)
            return None

        now = self._clock()
        message = ConversationMessage(
            content=content,
            role=role,
            timestamp=now,
            model=model,
            metadata=metadata,
        )
        is_first_user_message = role == "user" and not any(
            m.role == "user" for m in conv.messages
        )
        conv.messages.append(message)
        conv.updated_at = now

        if is_first_user_message and conv.title == DEFAULT_TITLE:
            conv.title = make_title(content)

        self._trim_messages(conv)
        self._persist()
        return message.model_copy(deep=True)

    def set_model(self, conv_id: str, model: str) -> bool:
        conv = self._conversations.get(conv_id)
        if conv is None:
            return False
        conv.model = model
        self._persist()
        return True

    def get_conversation(self, conv_id: str) -> Optional[Conversation]:
        conv = self._conversations.get(conv_id)
        return conv.model_copy(deep=True) if conv else None

    def list_conversations(self) -> list[Conversation]:
        """All conversations, most recently updated first."""
        convs = sorted(
            self._conversations.values(), key=lambda c: c.updated_at, reverse=True
        )
        return [c.model_copy(deep=True) for c in convs]

    def list_summaries(self) -> list[ConversationSummary]:
        return [ConversationSummary.from_conversation(c) for c in self.list_conversations()]

    def delete_conversation(self, conv_id: str) -> bool:
        existed = self._conversations.pop(conv_id, None) is not None
        if self._current_id == conv_id:
            self._current_id = None
        self._persist()
        return existed

    def set_current(self, conv_id: str) -> bool:
        if conv_id not in self._conversations:
            return False
        self._current_id = conv_id
        return True

    def get_current_id(self) -> Optional[str]:
        return self._current_id

    def clear(self) -> None:
        self._conversations.clear()
        self._current_id = None
        self._persist()

    # ---- Export / import ----

    def export_conversations(self) -> str:
        """Serialized snapshot of every conversation (the current marker is not included)."""
        return self._serialize()

    def import_conversations(self, payload: str) -> bool:
        """Replace the whole store with *payload*; malformed input leaves it untouched."""
        try:
            incoming = self._parse(payload)
        except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as e:
            logger.error("Failed to import conversations: %s", e)
            return False

        for conv in incoming.values():
            self._trim_messages(conv)
        self._conversations = incoming
        if self._current_id not in self._conversations:
            self._current_id = None
        self._evict_conversations()
        self._persist()
        logger.info("Imported %d conversations", len(self._conversations))
        return True

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conv_id: object) -> bool:
        return conv_id in self._conversations
