"""
inbox-events: Conversation-state reducer for support-chat style inboxes.

This library folds an unordered, possibly duplicated stream of conversation
events (messages, assignments, typing notifications) into per-conversation
aggregates, and exposes them sorted by recency with blocked assignees
filtered out.

Example:
    >>> from inbox_events import InboxReducer
    >>> reducer = InboxReducer(blocked_users=["John_Doe"])
    >>> reducer.apply_event({
    ...     "type": "messageReceived",
    ...     "data": {"timestamp": 1, "conversationId": "c1", "body": "hello"},
    ... })
    >>> [c.blurb for c in reducer.list_conversations()]
    ['hello']
"""

__version__ = "1.0.0"

# Core data models
from inbox_events.models import (
    MESSAGE_RECEIVED,
    ASSIGNED,
    UNASSIGNED,
    TYPING_STARTED,
    TYPING_STOPPED,
    CONVERSATION_EVENT_TYPES,
    EventKind,
    EventData,
    ConversationEvent,
    Conversation,
    InboxAnomaly,
    InboxEventsError,
    ValidationError,
    parse_event_kind,
)

# Settings
from inbox_events.config import InboxSettings

# Components
from inbox_events.dedup import DedupGuard, dedup_key
from inbox_events.typing_tracker import TypingTracker, typing_phrase
from inbox_events.registry import ConversationRegistry
from inbox_events.view import is_visible, visible_conversations

# Reducer
from inbox_events.reducer import (
    InboxReducer,
    ReducedInboxState,
    reduce_conversation_events,
)

__all__ = [
    # Version
    "__version__",
    # Event kinds
    "MESSAGE_RECEIVED",
    "ASSIGNED",
    "UNASSIGNED",
    "TYPING_STARTED",
    "TYPING_STOPPED",
    "CONVERSATION_EVENT_TYPES",
    "EventKind",
    "parse_event_kind",
    # Models
    "EventData",
    "ConversationEvent",
    "Conversation",
    "InboxAnomaly",
    # Exceptions
    "InboxEventsError",
    "ValidationError",
    # Settings
    "InboxSettings",
    # Components
    "DedupGuard",
    "dedup_key",
    "TypingTracker",
    "typing_phrase",
    "ConversationRegistry",
    "is_visible",
    "visible_conversations",
    # Reducer
    "InboxReducer",
    "ReducedInboxState",
    "reduce_conversation_events",
]
