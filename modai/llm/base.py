from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Completion(BaseModel):
    text: str
    usage: Optional[TokenUsage] = None
    finish_reason: str = "stop"


class LLMProvider(ABC):
    """Abstract base class for chat completion providers."""

    name: str
    display_name: str

    @abstractmethod
    async def complete(
        self,
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        """Send messages and get a complete response."""
        ...

    async def aclose(self) -> None:
        """Release any pooled connections."""
        return None
