"""Read-side projection of conversations for display."""
from typing import AbstractSet, Iterable, List

from inbox_events.models import Conversation


def is_visible(conversation: Conversation, blocked_users: AbstractSet[str]) -> bool:
    """A conversation is hidden while it is assigned to a blocked user."""
    return conversation.assigned_user is None or conversation.assigned_user not in blocked_users


def visible_conversations(
    conversations: Iterable[Conversation],
    blocked_users: AbstractSet[str],
) -> List[Conversation]:
    """Filter out blocked assignments and sort by recency, newest first.

    Returns copies, so callers cannot mutate the originals. Ties keep the
    iteration order of ``conversations``.
    """
    visible = [
        conversation.model_copy()
        for conversation in conversations
        if is_visible(conversation, blocked_users)
    ]
    visible.sort(key=lambda c: c.last_updated_timestamp, reverse=True)
    return visible
