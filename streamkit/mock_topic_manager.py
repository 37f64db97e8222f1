"""A topic manager backed by in-memory queues, for tests."""

from __future__ import annotations

from typing import Callable, Mapping

from streamkit.queue import Queue
from streamkit.topic_manager import OFFSET_NEWEST, OFFSET_OLDEST, TopicManagerError

# The mock keeps every topic in a single partition.
_PARTITIONS = (0,)


class MockTopicManager:
    """Mimics the topic manager with single-partition in-memory topics."""

    def __init__(self, queue_provider: Callable[[str], Queue]) -> None:
        self._queue_provider = queue_provider
        self.closed = False

    def ensure_table_exists(self, topic: str, npar: int) -> None:
        """Create the table's queue; only one partition is supported."""
        if npar != len(_PARTITIONS):
            raise TopicManagerError("Mock only supports 1 partition")
        self._queue_provider(topic)

    def ensure_stream_exists(self, topic: str, npar: int) -> None:
        """Create the stream's queue."""
        self._queue_provider(topic)

    def ensure_topic_exists(
        self, topic: str, npar: int, rfactor: int, config: Mapping[str, str]
    ) -> None:
        """Create the topic's queue."""
        self._queue_provider(topic)

    def partitions(self, topic: str) -> list[int]:
        """Every topic has exactly partition 0."""
        return list(_PARTITIONS)

    def get_offset(self, topic: str, partition_id: int, time: int) -> int:
        """Return the newest offset for OFFSET_NEWEST and 0 otherwise."""
        queue = self._queue_provider(topic)
        if time == OFFSET_NEWEST:
            return queue.hwm
        if time == OFFSET_OLDEST:
            return 0
        # Timestamps are not stored, so any time resolves to the oldest offset.
        return 0

    def close(self) -> None:
        """Mark the manager as closed; there is nothing else to release."""
        self.closed = True