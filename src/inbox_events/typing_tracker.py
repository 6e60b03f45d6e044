"""Per-conversation tracking of users who are currently typing."""
from typing import Dict, List, Optional


def typing_phrase(users: List[str]) -> str:
    """Render the "who is typing" indicator for a list of users.

    >>> typing_phrase([])
    ''
    >>> typing_phrase(["ana"])
    'ana is replying...'
    >>> typing_phrase(["ana", "bo"])
    'ana, bo are replying...'
    """
    if not users:
        return ""
    if len(users) == 1:
        return f"{users[0]} is replying..."
    return f"{', '.join(users)} are replying..."


class TypingTracker:
    """Typing sets and pending message bodies, keyed by conversation id.

    A conversation appears in the typing map only while at least one user
    is typing in it. A message that arrives while someone is typing is
    held as the pending body and handed back whenever the last typist
    stops; it stays held until a later message during typing replaces it.
    """

    def __init__(self) -> None:
        # dict keys keep insertion order for the indicator phrase
        self._typing: Dict[str, Dict[str, None]] = {}
        self._pending_body: Dict[str, str] = {}

    def is_typing(self, conversation_id: str) -> bool:
        return bool(self._typing.get(conversation_id))

    def typing_users(self, conversation_id: str) -> List[str]:
        return list(self._typing.get(conversation_id, ()))

    def phrase(self, conversation_id: str) -> str:
        return typing_phrase(self.typing_users(conversation_id))

    def start_typing(self, conversation_id: str, user: Optional[str]) -> str:
        """Add ``user`` to the typing set and return the indicator phrase.

        A missing user leaves the membership unchanged.
        """
        if user is not None:
            self._typing.setdefault(conversation_id, {})[user] = None
        return self.phrase(conversation_id)

    def stop_typing(self, conversation_id: str, user: Optional[str]) -> str:
        """Remove ``user`` from the typing set and return the new blurb.

        When nobody is left typing the conversation's entry is dropped and
        the most recent pending body (or "" if none was ever held) is
        returned; otherwise the recomputed indicator phrase is returned.
        """
        users = self._typing.get(conversation_id)
        if users is not None and user is not None:
            users.pop(user, None)
        if not users:
            self._typing.pop(conversation_id, None)
            return self._pending_body.get(conversation_id, "")
        return self.phrase(conversation_id)

    def stash_body(self, conversation_id: str, body: str) -> None:
        """Hold a message body until typing in the conversation ends."""
        self._pending_body[conversation_id] = body

    def pending_body(self, conversation_id: str) -> Optional[str]:
        return self._pending_body.get(conversation_id)

    def clear(self) -> None:
        self._typing.clear()
        self._pending_body.clear()
