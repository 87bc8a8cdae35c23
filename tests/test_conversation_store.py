"""Tests for the conversation store."""

import json

import pytest

from modai.conversation.models import MessageMetadata
from modai.conversation.storage import DEFAULT_TITLE, ConversationStore
from modai.kvstore import CONVERSATIONS_KEY, KeyValueStore, MemoryKeyValueStore


class FailingKeyValueStore(KeyValueStore):
    def __init__(self):
        self.attempts = 0

    def get(self, key):
        return None

    def set(self, key, value):
        self.attempts += 1
        raise OSError("disk full")

    def delete(self, key):
        pass


class TestCreateAndAppend:
    def test_first_user_message_sets_title(self, store):
        conv_id = store.create_conversation("model-a")
        store.add_message(conv_id, "Hello", "user")

        conv = store.get_conversation(conv_id)
        assert conv.title == "Hello"
        assert len(conv.messages) == 1
        assert conv.model == "model-a"

    def test_create_marks_current(self, store):
        conv_id = store.create_conversation("model-a")
        assert store.get_current_id() == conv_id

    def test_long_first_message_is_truncated_in_title(self, store):
        conv_id = store.create_conversation("model-a")
        content = "x" * 80
        store.add_message(conv_id, content, "user")
        assert store.get_conversation(conv_id).title == "x" * 50 + "..."

    def test_exactly_fifty_chars_has_no_ellipsis(self, store):
        conv_id = store.create_conversation("model-a")
        store.add_message(conv_id, "y" * 50, "user")
        assert store.get_conversation(conv_id).title == "y" * 50

    def test_first_assistant_message_keeps_placeholder_title(self, store):
        conv_id = store.create_conversation("model-a")
        store.add_message(conv_id, "Welcome!", "assistant")
        assert store.get_conversation(conv_id).title == DEFAULT_TITLE

    def test_title_is_set_once(self, store):
        conv_id = store.create_conversation("model-a")
        store.add_message(conv_id, "First question", "user")
        store.add_message(conv_id, "Answer", "assistant")
        store.add_message(conv_id, "Second question", "user")
        assert store.get_conversation(conv_id).title == "First question"

    def test_store_assigns_id_and_timestamp(self, store, clock):
        conv_id = store.create_conversation("model-a")
        message = store.add_message(
            conv_id,
            "Reply",
            "assistant",
            model="model-a",
            metadata=MessageMetadata(tokens=20, cost=0.001, provider="OpenRouter"),
        )
        assert message.id.startswith("msg_")
        assert message.timestamp == clock.current
        assert message.metadata.provider == "OpenRouter"
        assert store.get_conversation(conv_id).updated_at == clock.current

    def test_append_to_unknown_conversation_is_noop(self, store, kv):
        assert store.add_message("conv_missing", "Hello", "user") is None
        assert len(store) == 0
        assert kv.get(CONVERSATIONS_KEY) is None

    def test_conversation_ids_are_unique(self, store):
        ids = {store.create_conversation("m") for _ in range(30)}
        assert len(ids) == 30

    def test_get_returns_a_copy(self, store):
        conv_id = store.create_conversation("model-a")
        conv = store.get_conversation(conv_id)
        conv.title = "edited outside the store"
        assert store.get_conversation(conv_id).title == DEFAULT_TITLE


class TestCapacity:
    def test_messages_capped_to_most_recent(self, kv, clock):
        store = ConversationStore(kv, max_messages=5, clock=clock)
        conv_id = store.create_conversation("m")
        for i in range(12):
            store.add_message(conv_id, f"message {i}", "user" if i % 2 == 0 else "assistant")

        messages = store.get_conversation(conv_id).messages
        assert len(messages) == 5
        assert [m.content for m in messages] == [f"message {i}" for i in range(7, 12)]

    def test_trimming_does_not_reset_title(self, kv, clock):
        store = ConversationStore(kv, max_messages=2, clock=clock)
        conv_id = store.create_conversation("m")
        store.add_message(conv_id, "Original topic", "user")
        for i in range(4):
            store.add_message(conv_id, f"reply {i}", "assistant")
        store.add_message(conv_id, "Another question", "user")
        assert store.get_conversation(conv_id).title == "Original topic"

    def test_oldest_updated_conversation_is_evicted(self, kv, clock):
        store = ConversationStore(kv, max_conversations=3, clock=clock)
        first = store.create_conversation("m")
        second = store.create_conversation("m")
        third = store.create_conversation("m")
        # Touch the first so the second becomes the stalest
        store.add_message(first, "still here", "user")

        fourth = store.create_conversation("m")

        remaining = {c.id for c in store.list_conversations()}
        assert remaining == {first, third, fourth}
        assert second not in store

    def test_eviction_keeps_count_at_limit(self, kv, clock):
        store = ConversationStore(kv, max_conversations=4, clock=clock)
        created = [store.create_conversation("m") for _ in range(10)]
        assert len(store) == 4
        assert {c.id for c in store.list_conversations()} == set(created[-4:])


class TestListDeleteCurrent:
    def test_list_sorted_by_updated_at_desc(self, store):
        a = store.create_conversation("m")
        b = store.create_conversation("m")
        c = store.create_conversation("m")
        store.add_message(a, "bump", "user")
        assert [conv.id for conv in store.list_conversations()] == [a, c, b]

    def test_delete_clears_current_marker(self, store):
        conv_id = store.create_conversation("m")
        assert store.delete_conversation(conv_id) is True
        assert store.get_current_id() is None
        assert store.get_conversation(conv_id) is None

    def test_delete_other_keeps_current(self, store):
        a = store.create_conversation("m")
        b = store.create_conversation("m")
        store.delete_conversation(a)
        assert store.get_current_id() == b

    def test_set_current_requires_existing_id(self, store):
        a = store.create_conversation("m")
        store.create_conversation("m")
        assert store.set_current(a) is True
        assert store.get_current_id() == a
        assert store.set_current("conv_nope") is False
        assert store.get_current_id() == a

    def test_set_model_does_not_touch_past_messages(self, store):
        conv_id = store.create_conversation("model-a")
        store.add_message(conv_id, "hi", "assistant", model="model-a")
        assert store.set_model(conv_id, "model-b") is True

        conv = store.get_conversation(conv_id)
        assert conv.model == "model-b"
        assert conv.messages[0].model == "model-a"

    def test_clear(self, store):
        store.create_conversation("m")
        store.create_conversation("m")
        store.clear()
        assert len(store) == 0
        assert store.get_current_id() is None


class TestPersistence:
    def test_every_mutation_is_persisted(self, store, kv):
        conv_id = store.create_conversation("m")
        store.add_message(conv_id, "Hello", "user")
        data = json.loads(kv.get(CONVERSATIONS_KEY))
        assert data[0]["id"] == conv_id
        assert data[0]["messages"][0]["content"] == "Hello"

    def test_reload_from_medium(self, store, kv, clock):
        conv_id = store.create_conversation("m")
        store.add_message(conv_id, "Hello", "user")

        reloaded = ConversationStore(kv, clock=clock)
        conv = reloaded.get_conversation(conv_id)
        assert conv.title == "Hello"
        assert reloaded.get_current_id() is None

    def test_corrupt_medium_starts_empty(self, clock):
        kv = MemoryKeyValueStore({CONVERSATIONS_KEY: "{not json"})
        store = ConversationStore(kv, clock=clock)
        assert len(store) == 0

    def test_persist_failure_is_logged_not_raised(self, clock, caplog):
        kv = FailingKeyValueStore()
        store = ConversationStore(kv, clock=clock)
        conv_id = store.create_conversation("m")
        store.add_message(conv_id, "Hello", "user")

        assert kv.attempts == 2
        assert store.get_conversation(conv_id).messages[0].content == "Hello"
        assert "Failed to save conversations" in caplog.text


class TestExportImport:
    def test_round_trip(self, store, kv, clock):
        a = store.create_conversation("model-a")
        store.add_message(a, "Hello", "user")
        store.add_message(a, "Hi!", "assistant", model="model-a")
        b = store.create_conversation("model-b")
        store.add_message(b, "Another", "user")
        exported = store.export_conversations()

        other = ConversationStore(MemoryKeyValueStore(), clock=clock)
        assert other.import_conversations(exported) is True

        for conv in store.list_conversations():
            copy = other.get_conversation(conv.id)
            assert [m.id for m in copy.messages] == [m.id for m in conv.messages]
            assert [m.content for m in copy.messages] == [m.content for m in conv.messages]
            assert copy.title == conv.title

    def test_export_excludes_current_marker(self, store):
        store.create_conversation("m")
        data = json.loads(store.export_conversations())
        assert isinstance(data, list)
        assert "current" not in json.dumps(data)

    @pytest.mark.parametrize(
        "payload",
        ["not json", '{"id": "x"}', '[{"title": "no id"}]', '[{"id": "c", "messages": [{"role": "robot", "content": "x"}]}]'],
    )
    def test_malformed_import_leaves_store_untouched(self, store, payload):
        conv_id = store.create_conversation("m")
        store.add_message(conv_id, "keep me", "user")

        assert store.import_conversations(payload) is False
        assert len(store) == 1
        assert store.get_conversation(conv_id).messages[0].content == "keep me"
        assert store.get_current_id() == conv_id

    def test_import_replaces_everything(self, store):
        old = store.create_conversation("m")
        payload = json.dumps([
            {
                "id": "conv_imported",
                "title": "Imported",
                "model": "openai/gpt-4o",
                "messages": [
                    {"id": "msg_1", "content": "hi", "role": "user", "timestamp": "2024-05-01T10:00:00.000Z"}
                ],
                "createdAt": "2024-05-01T10:00:00.000Z",
                "created_at": "2024-05-01T10:00:00.000Z",
                "updated_at": "2024-05-01T10:00:00.000Z",
            }
        ])
        assert store.import_conversations(payload) is True
        assert old not in store
        assert store.get_current_id() is None
        assert store.get_conversation("conv_imported").messages[0].content == "hi"

    def test_import_reads_camel_case_timestamps(self, kv, clock):
        store = ConversationStore(kv, max_conversations=2, clock=clock)
        payload = json.dumps([
            {
                "id": f"conv_{day}",
                "title": f"day {day}",
                "messages": [],
                "createdAt": f"2024-03-0{day}T08:00:00.000Z",
                "updatedAt": f"2024-03-0{day}T09:00:00.000Z",
            }
            for day in (3, 1, 2)
        ])
        assert store.import_conversations(payload) is True

        assert [c.id for c in store.list_conversations()] == ["conv_3", "conv_2"]
        conv = store.get_conversation("conv_2")
        assert conv.updated_at.isoformat() == "2024-03-02T09:00:00+00:00"
        assert conv.created_at.isoformat() == "2024-03-02T08:00:00+00:00"

        exported = json.loads(store.export_conversations())
        assert "updated_at" in exported[0]

    def test_import_enforces_limits(self, kv, clock):
        store = ConversationStore(kv, max_conversations=2, max_messages=3, clock=clock)
        convs = []
        for i in range(4):
            convs.append({
                "id": f"conv_{i}",
                "title": f"c{i}",
                "messages": [{"content": str(j), "role": "user"} for j in range(5)],
                "created_at": f"2024-01-0{i + 1}T00:00:00+00:00",
                "updated_at": f"2024-01-0{i + 1}T00:00:00+00:00",
            })
        assert store.import_conversations(json.dumps(convs)) is True
        assert {c.id for c in store.list_conversations()} == {"conv_2", "conv_3"}
        assert [m.content for m in store.get_conversation("conv_3").messages] == ["2", "3", "4"]
