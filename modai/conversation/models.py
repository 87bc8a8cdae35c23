import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from older exports are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class MessageMetadata(BaseModel):
    """Informational only; nothing branches on these values."""

    tokens: Optional[int] = None
    cost: Optional[float] = None
    provider: Optional[str] = None


class ConversationMessage(BaseModel):
    id: str = Field(default_factory=lambda: new_id("msg"))
    content: str
    role: Role
    timestamp: datetime = Field(default_factory=_now)
    model: Optional[str] = None  # Set on assistant messages
    metadata: Optional[MessageMetadata] = None

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Conversation(BaseModel):
    # Exports from the web UI use createdAt/updatedAt
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str = "New Conversation"
    model: str = ""
    messages: list[ConversationMessage] = []
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc_dates(cls, value: datetime) -> datetime:
        return _as_utc(value)


class ConversationSummary(BaseModel):
    """Lightweight metadata for the conversation list."""

    id: str
    title: str
    model: str = ""
    message_count: int = 0
    preview: str = ""  # First ~80 chars of first user message
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_conversation(cls, conv: Conversation) -> "ConversationSummary":
        preview = ""
        for m in conv.messages:
            if m.role == "user":
                preview = m.content[:80]
                break
        return cls(
            id=conv.id,
            title=conv.title,
            model=conv.model,
            message_count=len(conv.messages),
            preview=preview,
            created_at=conv.created_at,
            updated_at=conv.updated_at,
        )
