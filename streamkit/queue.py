"""In-memory topic queues and trackers for reading back what was written to them."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

Headers = dict[str, bytes]


def merge_headers(
    base: Optional[Mapping[str, bytes]], extra: Optional[Mapping[str, bytes]]
) -> Headers:
    """Return a new header dict holding ``base`` overridden by ``extra``.

    Neither argument is modified.
    """
    merged: Headers = dict(base or {})
    merged.update(extra or {})
    return merged


@dataclass(frozen=True)
class Message:
    """A single message stored in a queue."""

    offset: int
    key: str
    value: Optional[bytes]
    headers: Headers = field(default_factory=dict)


class Queue:
    """An append-only, thread-safe list of messages for one topic."""

    def __init__(self, topic: str) -> None:
        self.topic = topic
        self._lock = threading.Lock()
        self._messages: list[Message] = []

    @property
    def hwm(self) -> int:
        """The offset the next pushed message will get."""
        with self._lock:
            return len(self._messages)

    def push(
        self, key: str, value: Optional[bytes], headers: Optional[Mapping[str, bytes]] = None
    ) -> int:
        """Append a message and return its offset."""
        with self._lock:
            offset = len(self._messages)
            self._messages.append(Message(offset, key, value, dict(headers or {})))
            return offset

    def message(self, offset: int) -> Message:
        """Return the message stored at ``offset``."""
        if offset < 0:
            raise IndexError(f"negative offset {offset}")
        with self._lock:
            return self._messages[offset]

    def messages_from_offset(self, offset: int) -> list[Message]:
        """Return all messages starting at ``offset``."""
        with self._lock:
            return self._messages[max(offset, 0):]

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


class QueueTracker:
    """Reads messages of a queue one by one, starting from its end at creation."""

    def __init__(self, queue: Queue, codec_lookup: Callable[[str], Any]) -> None:
        self._queue = queue
        self._codec_lookup = codec_lookup
        self.next_offset = queue.hwm

    @property
    def topic(self) -> str:
        return self._queue.topic

    def next(self) -> Optional[tuple[str, Any]]:
        """Return ``(key, decoded value)`` of the next message, or None."""
        item = self.next_with_headers()
        if item is None:
            return None
        _, key, value = item
        return key, value

    def next_with_headers(self) -> Optional[tuple[Headers, str, Any]]:
        """Return ``(headers, key, decoded value)`` of the next message, or None."""
        item = self.next_raw_with_headers()
        if item is None:
            return None
        headers, key, raw = item
        decoded = self._codec_lookup(self._queue.topic).decode(raw)
        return headers, key, decoded

    def next_raw(self) -> Optional[tuple[str, Optional[bytes]]]:
        """Return ``(key, raw value)`` of the next message, or None."""
        item = self.next_raw_with_headers()
        if item is None:
            return None
        _, key, value = item
        return key, value

    def next_raw_with_headers(self) -> Optional[tuple[Headers, str, Optional[bytes]]]:
        """Return ``(headers, key, raw value)`` of the next message, or None."""
        if self.next_offset >= len(self._queue):
            return None
        msg = self._queue.message(self.next_offset)
        self.next_offset += 1
        return msg.headers, msg.key, msg.value

    def seek(self, offset: int) -> None:
        """Move the tracker so the next read returns the message at ``offset``."""
        self.next_offset = offset

    def hwm(self) -> int:
        """The high water mark of the tracked queue."""
        return self._queue.hwm