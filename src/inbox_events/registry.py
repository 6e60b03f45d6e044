"""Mapping from conversation id to its current aggregate."""
from typing import Dict, Iterator, Optional

from inbox_events.models import Conversation


class ConversationRegistry:
    """Owns the live :class:`Conversation` aggregates.

    Entries are created lazily on the first admitted event and pruned when
    they fall back to the default shape.
    """

    def __init__(self) -> None:
        self._conversations: Dict[str, Conversation] = {}

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def __iter__(self) -> Iterator[Conversation]:
        return iter(self._conversations.values())

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def get_or_create(self, conversation_id: str) -> Conversation:
        """Return the aggregate for ``conversation_id``, creating an empty one."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            conversation = Conversation(id=conversation_id)
            self._conversations[conversation_id] = conversation
        return conversation

    def prune_if_empty(self, conversation_id: str) -> bool:
        """Remove the entry if it is in the default shape.

        Returns:
            True if no entry remains for ``conversation_id`` (it was absent
            or has just been removed), False if a non-empty entry was kept.
        """
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return True
        if conversation.is_empty():
            del self._conversations[conversation_id]
            return True
        return False

    def clear(self) -> None:
        self._conversations.clear()
