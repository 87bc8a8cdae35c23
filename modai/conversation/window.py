"""Context window selection: the most recent messages that fit a token budget."""

import math
from typing import Callable, Optional

from .models import Conversation, ConversationMessage

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough approximation: 1 token ~ 4 characters, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def select_context(
    conversation: Optional[Conversation],
    token_budget: int,
    estimator: Callable[[str], int] = estimate_tokens,
) -> list[ConversationMessage]:
    """Return the longest suffix of messages whose estimate fits *token_budget*.

    A non-empty conversation always yields at least its most recent message,
    even when that message alone exceeds the budget (or the budget is <= 0).
    The result is in chronological order.
    """
    if conversation is None:
        return []

    selected: list[ConversationMessage] = []
    total = 0
    for message in reversed(conversation.messages):
        cost = estimator(message.content)
        if total + cost > token_budget and selected:
            break
        selected.append(message)
        total += cost
    selected.reverse()
    return selected
