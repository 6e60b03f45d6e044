"""Conversation event reducer.

Folds an unordered, possibly duplicated stream of conversation events into
per-conversation aggregates. Each event is applied at most once, and an
event older than its conversation's newest accepted event is ignored.

Admission pipeline for each event:
  parse -> validate -> stale check -> dedup -> dispatch -> watermark.

None of the rejection paths raise. Each one is logged on the
``inbox_events.reducer`` logger and recorded as an :class:`InboxAnomaly`.
The reducer is synchronous and not thread-safe; hosts that deliver events
concurrently must serialize calls into it.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import (
    Any,
    Callable,
    Deque,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from inbox_events.config import InboxSettings
from inbox_events.dedup import DedupGuard, dedup_key
from inbox_events.models import (
    Conversation,
    ConversationEvent,
    EventKind,
    InboxAnomaly,
    Timestamp,
)
from inbox_events.registry import ConversationRegistry
from inbox_events.typing_tracker import TypingTracker
from inbox_events.view import visible_conversations

logger = logging.getLogger("inbox_events.reducer")

EventInput = Union[ConversationEvent, Mapping[str, Any]]
AnomalyCallback = Callable[[InboxAnomaly], None]


class ReducedInboxState(BaseModel):
    """Frozen snapshot of a reducer: visible conversations plus diagnostics."""

    model_config = ConfigDict(frozen=True)

    conversations: Tuple[Conversation, ...] = ()
    anomalies: Tuple[InboxAnomaly, ...] = ()
    event_count: int = 0


class InboxReducer:
    """Owns the registry, dedup guard and typing tracker for one inbox.

    Args:
        settings: Reducer settings; defaults to :class:`InboxSettings` loaded
            from the environment.
        blocked_users: Users whose assigned conversations are hidden from
            :meth:`list_conversations`. Overrides ``settings.blocked_users``.
        on_anomaly: Optional callback invoked with every recorded anomaly.
    """

    def __init__(
        self,
        settings: Optional[InboxSettings] = None,
        *,
        blocked_users: Optional[Iterable[str]] = None,
        on_anomaly: Optional[AnomalyCallback] = None,
    ) -> None:
        self.settings = settings if settings is not None else InboxSettings()
        if blocked_users is None:
            blocked_users = self.settings.blocked_users
        self._blocked_users: FrozenSet[str] = frozenset(blocked_users)
        self._on_anomaly = on_anomaly
        self._registry = ConversationRegistry()
        self._dedup = DedupGuard()
        self._typing = TypingTracker()
        self._anomalies: Deque[InboxAnomaly] = deque(
            maxlen=self.settings.anomaly_history
        )
        self._event_count = 0
        self._handlers: Dict[EventKind, Callable[[Conversation, ConversationEvent], None]] = {
            EventKind.MESSAGE_RECEIVED: self._on_message_received,
            EventKind.ASSIGNED: self._on_assigned,
            EventKind.UNASSIGNED: self._on_unassigned,
            EventKind.TYPING_STARTED: self._on_typing_started,
            EventKind.TYPING_STOPPED: self._on_typing_stopped,
        }

    # ── Write path ────────────────────────────────────────────────────────────

    def apply_event(self, event: EventInput) -> None:
        """Fold one event into the conversation state."""
        self._event_count += 1
        parsed = self._parse(event)
        if parsed is None:
            return

        data = parsed.data
        timestamp = data.timestamp
        conversation_id = data.conversation_id

        if not timestamp:
            logger.warning("Event is missing a timestamp: %r", parsed)
            self._record(
                "missing_timestamp", parsed, "Event is missing a timestamp"
            )
            return
        if not conversation_id:
            logger.warning("Event is missing a conversationId: %r", parsed)
            self._record(
                "missing_conversation_id", parsed, "Event is missing a conversationId"
            )
            return

        existing = self._registry.get(conversation_id)
        if existing is not None and existing.last_updated_timestamp > timestamp:
            logger.debug(
                "Discarding stale event %r (watermark %s)",
                parsed,
                existing.last_updated_timestamp,
            )
            self._record(
                "stale_event",
                parsed,
                f"Older than watermark {existing.last_updated_timestamp}",
                notify=False,
            )
            return

        key = dedup_key(conversation_id, timestamp)
        if key in self._dedup:
            logger.info("Event already processed: %s", key)
            self._record("duplicate_event", parsed, f"Event already processed: {key}")
            return
        self._dedup.record(conversation_id, timestamp)

        conversation = self._registry.get_or_create(conversation_id)
        kind = parsed.kind
        if kind is None:
            logger.warning("Unknown event type: %s", parsed.type)
            self._record(
                "unknown_event_type", parsed, f"Unknown event type: {parsed.type!r}"
            )
            # leave the key free for a corrected resend
            self._dedup.forget(conversation_id, timestamp)
            self._registry.prune_if_empty(conversation_id)
            return

        self._handlers[kind](conversation, parsed)
        conversation.last_updated_timestamp = timestamp
        if self.settings.compact_dedup_keys:
            self._dedup.compact(conversation_id, timestamp)

    def apply_events(self, events: Iterable[EventInput]) -> None:
        """Apply events in iteration order."""
        for event in events:
            self.apply_event(event)

    def _parse(self, event: EventInput) -> Optional[ConversationEvent]:
        if isinstance(event, ConversationEvent):
            return event
        try:
            return ConversationEvent.model_validate(event)
        except PydanticValidationError as exc:
            logger.warning("Discarding malformed event: %s", exc)
            self._append(InboxAnomaly(
                kind="malformed_payload",
                event_type=_raw_type(event),
                message=f"Payload validation failed: {exc}",
            ))
            return None

    # ── Event handlers ────────────────────────────────────────────────────────

    def _on_message_received(
        self, conversation: Conversation, event: ConversationEvent
    ) -> None:
        data = event.data
        if data.subject is not None:
            conversation.subject = data.subject
        conversation.message_count += 1
        if self._typing.is_typing(conversation.id):
            # the typing indicator stays visible until the last typist stops
            self._typing.stash_body(conversation.id, self._excerpt(data.body or ""))
        elif data.body is not None:
            conversation.blurb = self._excerpt(data.body)

    def _on_assigned(self, conversation: Conversation, event: ConversationEvent) -> None:
        conversation.assigned_user = event.data.user

    def _on_unassigned(self, conversation: Conversation, event: ConversationEvent) -> None:
        conversation.assigned_user = None

    def _on_typing_started(
        self, conversation: Conversation, event: ConversationEvent
    ) -> None:
        conversation.blurb = self._typing.start_typing(conversation.id, event.data.user)

    def _on_typing_stopped(
        self, conversation: Conversation, event: ConversationEvent
    ) -> None:
        conversation.blurb = self._typing.stop_typing(conversation.id, event.data.user)

    def _excerpt(self, body: str) -> str:
        return body[: self.settings.blurb_max_length]

    # ── Diagnostics ───────────────────────────────────────────────────────────

    def _record(
        self,
        kind: str,
        event: ConversationEvent,
        message: str,
        *,
        notify: bool = True,
    ) -> None:
        anomaly = InboxAnomaly(
            kind=kind,
            event_type=event.type,
            conversation_id=event.data.conversation_id,
            timestamp=event.data.timestamp,
            message=message,
        )
        self._append(anomaly, notify=notify)

    def _append(self, anomaly: InboxAnomaly, *, notify: bool = True) -> None:
        self._anomalies.append(anomaly)
        if notify and self._on_anomaly is not None:
            self._on_anomaly(anomaly)

    @property
    def anomalies(self) -> Tuple[InboxAnomaly, ...]:
        """Recorded anomalies, oldest first."""
        return tuple(self._anomalies)

    # ── Read path ─────────────────────────────────────────────────────────────

    @property
    def blocked_users(self) -> FrozenSet[str]:
        return self._blocked_users

    def set_blocked_users(self, users: Iterable[str]) -> None:
        """Replace the block-list; takes effect on the next read."""
        self._blocked_users = frozenset(users)

    def list_conversations(self) -> List[Conversation]:
        """Conversations not assigned to a blocked user, most recent first."""
        return visible_conversations(self._registry, self._blocked_users)

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Copy of a conversation's state, regardless of the block-list."""
        conversation = self._registry.get(conversation_id)
        return conversation.model_copy() if conversation is not None else None

    def has_conversation(self, conversation_id: str) -> bool:
        return conversation_id in self._registry

    def is_processed(self, conversation_id: str, timestamp: Timestamp) -> bool:
        """Whether the (conversation, timestamp) key is still retained.

        With ``compact_dedup_keys`` on, keys older than the watermark are
        dropped and report False; such events are rejected as stale anyway.
        """
        return self._dedup.seen(conversation_id, timestamp)

    def typing_users(self, conversation_id: str) -> List[str]:
        return self._typing.typing_users(conversation_id)

    def snapshot(self) -> ReducedInboxState:
        return ReducedInboxState(
            conversations=tuple(self.list_conversations()),
            anomalies=self.anomalies,
            event_count=self._event_count,
        )

    def reset(self) -> None:
        """Drop all state, including processed keys and anomaly history."""
        self._registry.clear()
        self._dedup.clear()
        self._typing.clear()
        self._anomalies.clear()
        self._event_count = 0


def _raw_type(event: Any) -> Optional[str]:
    if isinstance(event, Mapping):
        raw = event.get("type", event.get("kind"))
        if isinstance(raw, str):
            return raw
    return None


def reduce_conversation_events(
    events: Iterable[EventInput],
    *,
    blocked_users: Optional[Iterable[str]] = None,
    settings: Optional[InboxSettings] = None,
) -> ReducedInboxState:
    """Deterministic reducer: Iterable[event] -> ReducedInboxState.

    Folds the events, in the order given, through a fresh
    :class:`InboxReducer` and returns its snapshot. Feeding the same
    events a second time does not change the result.
    """
    reducer = InboxReducer(settings, blocked_users=blocked_users)
    reducer.apply_events(events)
    return reducer.snapshot()
