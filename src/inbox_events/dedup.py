"""At-most-once admission for conversation events.

Events are identified by the (conversation_id, timestamp) pair. The pair
is serialized to a composite key of the form ``"<conversation_id>-<timestamp>"``.
"""
from typing import Dict, Set

from inbox_events.models import Timestamp, ValidationError


def dedup_key(conversation_id: str, timestamp: Timestamp) -> str:
    """Build the composite dedup key for an event.

    Integral floats render like ints, so ``1`` and ``1.0`` share a key.

    Raises:
        ValidationError: If either part is missing.
    """
    if not conversation_id:
        raise ValidationError("dedup key requires a conversation_id")
    if timestamp is None:
        raise ValidationError("dedup key requires a timestamp")
    if isinstance(timestamp, float) and timestamp.is_integer():
        timestamp = int(timestamp)
    return f"{conversation_id}-{timestamp}"


class DedupGuard:
    """Set of processed dedup keys, indexed per conversation.

    Keys are only removed by :meth:`forget` (rollback of an event whose
    kind turned out to be unknown) or by :meth:`compact`, which drops keys
    that the stale-event check already makes unreachable.
    """

    def __init__(self) -> None:
        self._keys: Set[str] = set()
        self._by_conversation: Dict[str, Dict[Timestamp, str]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def seen(self, conversation_id: str, timestamp: Timestamp) -> bool:
        return dedup_key(conversation_id, timestamp) in self._keys

    def record(self, conversation_id: str, timestamp: Timestamp) -> str:
        """Mark the event as processed and return its key."""
        key = dedup_key(conversation_id, timestamp)
        self._keys.add(key)
        self._by_conversation.setdefault(conversation_id, {})[timestamp] = key
        return key

    def forget(self, conversation_id: str, timestamp: Timestamp) -> None:
        """Reverse a :meth:`record` so the same event can be applied later."""
        key = dedup_key(conversation_id, timestamp)
        self._keys.discard(key)
        per_conversation = self._by_conversation.get(conversation_id)
        if per_conversation is None:
            return
        per_conversation.pop(timestamp, None)
        if not per_conversation:
            del self._by_conversation[conversation_id]

    def compact(self, conversation_id: str, watermark: Timestamp) -> int:
        """Drop keys of a conversation older than its watermark.

        An event older than the watermark is discarded as stale before
        dedup is consulted, so these keys can never match again. Keys at
        the watermark itself are kept.

        Returns:
            Number of keys dropped.
        """
        per_conversation = self._by_conversation.get(conversation_id)
        if not per_conversation:
            return 0
        expired = [ts for ts in per_conversation if ts < watermark]
        for ts in expired:
            self._keys.discard(per_conversation.pop(ts))
        return len(expired)

    def clear(self) -> None:
        self._keys.clear()
        self._by_conversation.clear()
