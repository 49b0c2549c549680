"""
Consumer-side views of relayed events.

Relay delivery is at-least-once: a retried emit can hand a client the same
message twice. These structures are what a consumer keeps locally and they
are idempotent to duplicates by entity id.
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, List, Optional, TypeVar

from eonchat.schemas.events import extract_id

T = TypeVar("T")


def entity_id(record: dict) -> Optional[str]:
    return extract_id(record.get("id")) or extract_id(record.get("_id"))


class ConversationFeed:
    """Messages of one open conversation, deduplicated by message id."""

    def __init__(self, messages: Iterable[dict] = ()):
        self._messages: List[dict] = []
        self._seen: set = set()
        for message in messages:
            self.append(message)

    def append(self, message: dict) -> bool:
        """Add ``message`` unless one with the same id is already visible."""
        message_id = entity_id(message)
        if message_id is not None:
            if message_id in self._seen:
                return False
            self._seen.add(message_id)
        self._messages.append(message)
        return True

    @property
    def messages(self) -> List[dict]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)


class _Stack(Generic[T]):
    def __init__(self, items: Iterable[T] = ()):
        self.items: List[T] = list(items)

    def push(self, item: T) -> None:
        self.items.append(item)

    def pop(self) -> Optional[T]:
        return self.items.pop() if self.items else None

    def peek(self) -> Optional[T]:
        return self.items[-1] if self.items else None

    def is_empty(self) -> bool:
        return not self.items

    def view(self) -> List[T]:
        """Newest first."""
        return list(reversed(self.items))

    def __len__(self) -> int:
        return len(self.items)


class NotificationStack(_Stack[dict]):
    """Notification badges; the server feeds them oldest first."""


class RequestStack(_Stack[dict]):
    """Pending friend requests, newest on top, one entry per request id."""

    def push(self, item: dict) -> None:
        request_id = entity_id(item)
        if request_id is not None and any(entity_id(i) == request_id for i in self.items):
            return
        super().push(item)

    def remove(self, request_id: Any) -> Optional[dict]:
        request_id = extract_id(request_id)
        for index, item in enumerate(self.items):
            if entity_id(item) == request_id:
                return self.items.pop(index)
        return None
