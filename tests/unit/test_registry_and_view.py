"""Unit tests for ConversationRegistry pruning and the read-side view."""
from inbox_events import (
    Conversation,
    ConversationRegistry,
    is_visible,
    visible_conversations,
)


class TestPruneIfEmpty:
    def test_absent_conversation(self) -> None:
        registry = ConversationRegistry()
        assert registry.prune_if_empty("missing") is True

    def test_empty_conversation_removed(self) -> None:
        registry = ConversationRegistry()
        registry.get_or_create("c1")
        assert registry.prune_if_empty("c1") is True
        assert "c1" not in registry

    def test_non_empty_conversation_kept(self) -> None:
        registry = ConversationRegistry()
        conversation = registry.get_or_create("c1")
        conversation.message_count = 1
        assert registry.prune_if_empty("c1") is False
        assert "c1" in registry


class TestGetOrCreate:
    def test_returns_same_instance(self) -> None:
        registry = ConversationRegistry()
        first = registry.get_or_create("c1")
        first.subject = "hi"
        assert registry.get_or_create("c1") is first
        assert len(registry) == 1

    def test_created_in_default_shape(self) -> None:
        conversation = ConversationRegistry().get_or_create("c1")
        assert conversation.id == "c1"
        assert conversation.is_empty()


class TestVisibleConversations:
    BLOCKED = frozenset({"John_Doe"})

    def test_blocked_assignee_hidden(self) -> None:
        assert not is_visible(Conversation(id="c1", assigned_user="John_Doe"), self.BLOCKED)

    def test_unassigned_visible(self) -> None:
        assert is_visible(Conversation(id="c1"), self.BLOCKED)

    def test_other_assignee_visible(self) -> None:
        assert is_visible(Conversation(id="c1", assigned_user="Jane"), self.BLOCKED)

    def test_sorted_newest_first(self) -> None:
        conversations = [
            Conversation(id="a", last_updated_timestamp=1),
            Conversation(id="b", last_updated_timestamp=3),
            Conversation(id="c", last_updated_timestamp=2),
        ]
        result = visible_conversations(conversations, self.BLOCKED)
        assert [c.id for c in result] == ["b", "c", "a"]

    def test_filters_and_sorts(self) -> None:
        conversations = [
            Conversation(id="a", last_updated_timestamp=5, assigned_user="John_Doe"),
            Conversation(id="b", last_updated_timestamp=1),
            Conversation(id="c", last_updated_timestamp=9, assigned_user="Jane"),
        ]
        result = visible_conversations(conversations, self.BLOCKED)
        assert [c.id for c in result] == ["c", "b"]

    def test_empty(self) -> None:
        assert visible_conversations([], self.BLOCKED) == []

    def test_returns_copies(self) -> None:
        original = Conversation(id="a", subject="before")
        result = visible_conversations([original], self.BLOCKED)
        result[0].subject = "after"
        assert original.subject == "before"
