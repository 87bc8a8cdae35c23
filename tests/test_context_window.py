"""Tests for context window selection."""

import pytest

from modai.conversation.models import Conversation, ConversationMessage
from modai.conversation.window import estimate_tokens, select_context


def _conversation(*contents: str) -> Conversation:
    roles = ["user", "assistant"]
    return Conversation(
        id="conv_test",
        messages=[
            ConversationMessage(content=c, role=roles[i % 2]) for i, c in enumerate(contents)
        ],
    )


def test_estimate_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_empty_conversation_gives_empty_result():
    assert select_context(_conversation(), 4000) == []
    assert select_context(None, 4000) == []


def test_everything_fits():
    conv = _conversation("a" * 8, "b" * 8, "c" * 8)
    selected = select_context(conv, 100)
    assert [m.content for m in selected] == [m.content for m in conv.messages]


def test_keeps_most_recent_suffix_within_budget():
    # 3, 2, 2, 1 tokens
    conv = _conversation("a" * 12, "b" * 8, "c" * 8, "d" * 4)
    selected = select_context(conv, 4)
    assert [m.content for m in selected] == ["c" * 8, "d" * 4]


def test_budget_boundary_is_inclusive():
    conv = _conversation("a" * 8, "b" * 8)
    assert len(select_context(conv, 4)) == 2
    assert len(select_context(conv, 3)) == 1


def test_oversized_latest_message_is_still_returned():
    conv = _conversation("short", "z" * 400)
    selected = select_context(conv, 10)
    assert [m.content for m in selected] == ["z" * 400]


@pytest.mark.parametrize("budget", [0, -5])
def test_non_positive_budget_returns_latest_message(budget):
    conv = _conversation("first", "second")
    selected = select_context(conv, budget)
    assert [m.content for m in selected] == ["second"]


@pytest.mark.parametrize("budget", [0, 1, 3, 7, 20, 1000])
def test_result_is_contiguous_suffix_in_order(budget):
    conv = _conversation(*("m" * n for n in (5, 13, 2, 9, 30, 4, 4)))
    selected = select_context(conv, budget)

    assert selected, "non-empty conversation must yield at least one message"
    assert selected == conv.messages[-len(selected):]
    assert selected[-1] == conv.messages[-1]


def test_messages_are_not_modified():
    conv = _conversation("hello world", "how are you")
    selected = select_context(conv, 1000)
    assert [m.content for m in selected] == ["hello world", "how are you"]


def test_custom_estimator():
    conv = _conversation("one two", "three four five")
    by_words = lambda text: len(text.split())
    selected = select_context(conv, 3, estimator=by_words)
    assert [m.content for m in selected] == ["three four five"]
