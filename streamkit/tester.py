"""An in-memory stand-in for Kafka used to test processors, views and emitters."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from streamkit.mock_topic_manager import MockTopicManager
from streamkit.producer import FlushingProducer, ProducerMock
from streamkit.queue import Headers, Queue, QueueTracker, merge_headers

logger = logging.getLogger(__name__)


class TesterError(Exception):
    """Raised when the tester is used inconsistently."""


@dataclass
class _EmitOptions:
    headers: Headers = field(default_factory=dict)


EmitOption = Callable[[_EmitOptions], None]


def with_headers(headers: Mapping[str, bytes]) -> EmitOption:
    """An emit option adding ``headers``; later options override earlier ones."""

    def apply(opts: _EmitOptions) -> None:
        opts.headers = merge_headers(opts.headers, headers)

    return apply


def _apply_options(options: tuple[EmitOption, ...]) -> _EmitOptions:
    opts = _EmitOptions()
    for option in options:
        option(opts)
    return opts


class _MemoryStorage:
    """A key/value store kept in a dict; iteration is in key order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, bytes] = {}
        self.closed = False

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def close(self) -> None:
        with self._lock:
            self.closed = True


@dataclass
class _Client:
    client_id: str
    required_topics: set[str] = field(default_factory=set)
    catchup: Callable[[], int] = lambda: 0


class Tester:
    """Holds topic queues, codecs and table storages in memory."""

    def __init__(self) -> None:
        self._clients_lock = threading.RLock()
        self._clients: dict[str, _Client] = {}
        self._codecs_lock = threading.RLock()
        self._codecs: dict[str, Any] = {}
        self._queues_lock = threading.Lock()
        self._queues: dict[str, Queue] = {}
        self._storages_lock = threading.Lock()
        self._storages: dict[str, _MemoryStorage] = {}
        self._tmgr = MockTopicManager(self.get_or_create_queue)
        self._producer = ProducerMock(self._handle_emit)

    def get_or_create_queue(self, topic: str) -> Queue:
        """Return the queue of ``topic``, creating it if needed."""
        with self._queues_lock:
            queue = self._queues.get(topic)
            if queue is None:
                queue = self._queues[topic] = Queue(topic)
            return queue

    def register_codec(self, topic: str, codec: Any) -> None:
        """Register the codec of ``topic``; a codec of another type is an error."""
        with self._codecs_lock:
            self.get_or_create_queue(topic)
            existing = self._codecs.get(topic)
            if existing is not None and type(existing) is not type(codec):
                raise TesterError(
                    f"There are different codecs for the same topic ({codec!r}, {existing!r})"
                )
            self._codecs[topic] = codec

    def codec_for_topic(self, topic: str) -> Any:
        """Return the codec registered for ``topic``."""
        with self._codecs_lock:
            try:
                return self._codecs[topic]
            except KeyError:
                raise TesterError(f"no codec for topic {topic} registered") from None

    def register_view(self, table: str, codec: Any) -> str:
        """Register a view on ``table`` and return its client id."""
        self.register_codec(table, codec)
        client = self._next_client()
        client.required_topics.add(table)
        return client.client_id

    def register_emitter(self, topic: str, codec: Any) -> None:
        """Register an emitter's topic and codec."""
        self.register_codec(topic, codec)

    def producer_builder(self) -> Callable[..., ProducerMock]:
        """A builder returning the shared producer mock."""

        def build(brokers: Any, client_id: str, hasher: Any = None) -> ProducerMock:
            return self._producer

        return build

    def emitter_producer_builder(self) -> Callable[..., FlushingProducer]:
        """A builder returning a producer that waits for consumers after each emit."""
        inner = self.producer_builder()

        def build(brokers: Any, client_id: str, hasher: Any = None) -> FlushingProducer:
            return FlushingProducer(inner(brokers, client_id, hasher), self._wait_for_clients)

        return build

    def topic_manager_builder(self) -> Callable[[Any], MockTopicManager]:
        """A builder returning the shared mock topic manager."""

        def build(brokers: Any) -> MockTopicManager:
            return self._tmgr

        return build

    def storage_builder(self) -> Callable[[str, int], _MemoryStorage]:
        """A builder returning the in-memory storage of a topic."""

        def build(topic: str, partition: int) -> _MemoryStorage:
            return self._get_or_create_storage(topic)

        return build

    def table_value(self, table: str, key: str) -> Any:
        """Return the decoded value of ``key`` in ``table``, or None."""
        with self._storages_lock:
            storage = self._storages.get(table)
        if storage is None:
            raise TesterError(f"topic {table} does not exist")
        item = storage.get(key)
        if item is None:
            return None
        try:
            return self.codec_for_topic(table).decode(item)
        except TesterError:
            raise
        except Exception as exc:
            raise TesterError(
                f"error decoding value from storage (table={table}, key={key}, "
                f"value={item!r}): {exc}"
            ) from exc

    def set_table_value(self, table: str, key: str, value: Any) -> None:
        """Encode ``value`` and store it under ``key`` in ``table``."""
        storage = self._get_or_create_storage(table)
        codec = self.codec_for_topic(table)
        try:
            data = codec.encode(value)
        except Exception as exc:
            raise TesterError(
                f"error encoding value (table={table}, key={key}, value={value!r}): {exc}"
            ) from exc
        storage.set(key, data)

    def get_table_keys(self, table: str) -> list[str]:
        """Return the keys of ``table`` in order."""
        with self._storages_lock:
            storage = self._storages.get(table)
        if storage is None:
            raise TesterError(f"topic {table} does not exist")
        return storage.keys()

    def clear_values(self) -> None:
        """Delete all values of all tables."""
        with self._storages_lock:
            for topic, storage in self._storages.items():
                logger.debug("clearing all values from storage for topic %s", topic)
                for key in storage.keys():
                    storage.delete(key)

    def new_queue_tracker(self, topic: str) -> QueueTracker:
        """A tracker reading messages pushed to ``topic`` from now on."""
        return QueueTracker(self.get_or_create_queue(topic), self.codec_for_topic)

    def consume(self, topic: str, key: str, msg: Any, *args: EmitOption) -> None:
        """Push an encoded message to ``topic`` and wait for consumers."""
        opts = _apply_options(args)
        if msg is None:
            data = None
        else:
            try:
                data = self.codec_for_topic(topic).encode(msg)
            except TesterError:
                raise
            except Exception as exc:
                raise TesterError(f"Error encoding value {msg!r}: {exc}") from exc
        self._push_message(topic, key, data, opts.headers)
        self._wait_for_clients()

    def catchup(self) -> None:
        """Wait until all pending messages are consumed."""
        self._wait_for_clients()

    def _next_client(self) -> _Client:
        with self._clients_lock:
            client = _Client(client_id=f"client-{len(self._clients)}")
            self._clients[client.client_id] = client
            return client

    def _handle_emit(
        self,
        topic: str,
        key: str,
        value: Optional[bytes],
        headers: Optional[Mapping[str, bytes]] = None,
    ) -> Future:
        opts = _apply_options((with_headers(headers or {}),))
        promise: Future = Future()
        promise.set_result(self._push_message(topic, key, value, opts.headers))
        return promise

    def _push_message(
        self, topic: str, key: str, data: Optional[bytes], headers: Mapping[str, bytes]
    ) -> int:
        return self.get_or_create_queue(topic).push(key, data, headers)

    def _get_or_create_storage(self, table: str) -> _MemoryStorage:
        with self._storages_lock:
            storage = self._storages.get(table)
            if storage is None:
                storage = self._storages[table] = _MemoryStorage()
            return storage

    def _wait_for_clients(self) -> None:
        logger.debug("waiting for consumers")
        with self._clients_lock:
            while sum(client.catchup() for client in self._clients.values()):
                pass
        logger.debug("waiting for consumers done")