"""Producers that forward emitted messages into the in-memory tester."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

logger = logging.getLogger(__name__)

Emitter = Callable[..., Any]


class ProducerMock:
    """Forwards every emit to an emit handler, which queues the message."""

    def __init__(self, emitter: Emitter) -> None:
        self._emitter = emitter
        self.closed = False

    def emit(self, topic: str, key: str, value: Optional[bytes]) -> Any:
        """Emit a message without headers and return the handler's promise."""
        return self._emitter(topic, key, value)

    def emit_with_headers(
        self, topic: str, key: str, value: Optional[bytes], headers: Mapping[str, bytes]
    ) -> Any:
        """Emit a message with headers and return the handler's promise."""
        return self._emitter(topic, key, value, headers=headers)

    def close(self) -> None:
        """Mark the producer as closed; there are no resources to release."""
        logger.debug("Closing producer mock")
        self.closed = True


class FlushingProducer:
    """Wraps a producer and waits for all consumers after every emit."""

    def __init__(self, producer: Any, flush: Callable[[], Any]) -> None:
        self._producer = producer
        self._flush = flush

    def emit(self, topic: str, key: str, value: Optional[bytes]) -> Any:
        promise = self._producer.emit(topic, key, value)
        self._flush()
        return promise

    def emit_with_headers(
        self, topic: str, key: str, value: Optional[bytes], headers: Mapping[str, bytes]
    ) -> Any:
        promise = self._producer.emit_with_headers(topic, key, value, headers)
        self._flush()
        return promise

    def close(self) -> Any:
        return self._producer.close()