"""Core data models for the inbox-events library."""
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Event time as sent by producers: epoch integers or fractional seconds
Timestamp = Union[int, float]

# Wire spellings of the known event kinds
MESSAGE_RECEIVED: str = "messageReceived"
ASSIGNED: str = "assigned"
UNASSIGNED: str = "unassigned"
TYPING_STARTED: str = "typingStarted"
TYPING_STOPPED: str = "typingStopped"

CONVERSATION_EVENT_TYPES: FrozenSet[str] = frozenset({
    MESSAGE_RECEIVED,
    ASSIGNED,
    UNASSIGNED,
    TYPING_STARTED,
    TYPING_STOPPED,
})


class EventKind(str, Enum):
    """Event kinds the reducer knows how to fold."""

    MESSAGE_RECEIVED = MESSAGE_RECEIVED
    ASSIGNED = ASSIGNED
    UNASSIGNED = UNASSIGNED
    TYPING_STARTED = TYPING_STARTED
    TYPING_STOPPED = TYPING_STOPPED


def parse_event_kind(value: str) -> Optional[EventKind]:
    """Resolve a raw event type string to an EventKind.

    Returns None for kinds this library does not recognise; callers route
    those through the unknown-event path instead of failing.
    """
    for member in EventKind:
        if member.value == value:
            return member
    return None


class EventData(BaseModel):
    """Payload carried by every conversation event.

    All fields are optional here: an event missing its timestamp or
    conversation id is still a well-formed object, and is turned away by
    the reducer with a warning rather than at construction time.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    timestamp: Optional[Timestamp] = Field(
        None, description="Event time; also the ordering watermark"
    )
    conversation_id: Optional[str] = Field(
        None,
        alias="conversationId",
        description="Identifier of the conversation this event modifies",
    )
    user: Optional[str] = Field(
        None, description="Acting or assigned user, depending on the kind"
    )
    subject: Optional[str] = Field(None, description="Message subject")
    body: Optional[str] = Field(None, description="Message body")


class ConversationEvent(BaseModel):
    """A tagged conversation event: an open ``type`` string plus its data.

    The tag is read from either a ``type`` or a ``kind`` key.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = Field(
        ...,
        validation_alias=AliasChoices("type", "kind"),
        description="Event kind (e.g., 'messageReceived', 'assigned')",
    )
    data: EventData = Field(..., description="Kind-specific event data")

    @property
    def kind(self) -> Optional[EventKind]:
        return parse_event_kind(self.type)

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"ConversationEvent(type={self.type}, "
            f"conversation={self.data.conversation_id}, "
            f"timestamp={self.data.timestamp})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to its wire-shaped dictionary."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationEvent":
        """Deserialize event from dictionary."""
        return cls.model_validate(data)


class Conversation(BaseModel):
    """Current aggregate state of one conversation.

    Instances returned from read paths are copies; only the reducer
    mutates the registry-owned originals.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1, description="Stable conversation identifier")
    assigned_user: Optional[str] = Field(
        None, description="Assigned user, or None when unassigned"
    )
    subject: str = Field("", description="Subject of the most recent message")
    blurb: str = Field(
        "", description="Latest message excerpt or typing-indicator phrase"
    )
    message_count: int = Field(0, ge=0, description="Accepted message events")
    last_updated_timestamp: Timestamp = Field(
        0, description="Timestamp of the most recent accepted event"
    )

    def is_empty(self) -> bool:
        """True when every field except ``id`` holds its default value."""
        return (
            self.assigned_user is None
            and self.subject == ""
            and self.blurb == ""
            and self.message_count == 0
            and self.last_updated_timestamp == 0
        )

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"Conversation(id={self.id}, "
            f"assigned={self.assigned_user}, "
            f"messages={self.message_count}, "
            f"updated={self.last_updated_timestamp})"
        )


class InboxAnomaly(BaseModel):
    """Non-fatal issue recorded while applying an event.

    Valid kind values: "missing_timestamp", "missing_conversation_id",
    "duplicate_event", "stale_event", "unknown_event_type",
    "malformed_payload".
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    event_type: Optional[str] = None
    conversation_id: Optional[str] = None
    timestamp: Optional[Timestamp] = None
    message: str


# Custom Exceptions
class InboxEventsError(Exception):
    """Base exception for all library errors."""
    pass


class ValidationError(InboxEventsError):
    """A value handed to the library violates its contract."""
    pass
