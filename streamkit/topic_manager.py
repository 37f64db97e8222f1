"""Creation and verification of Kafka topics through a cluster client and admin."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Mapping, Optional

OFFSET_NEWEST = -1
OFFSET_OLDEST = -2

V0_10_0_0 = (0, 10, 0, 0)
V0_11_0_0 = (0, 11, 0, 0)

_POLL_INTERVAL = 1.0


class TopicManagerError(Exception):
    """Raised when a topic cannot be checked, created or configured."""


class TopicNotFoundError(TopicManagerError):
    """Raised when a topic does not exist in the cluster."""

    def __init__(self, topic: str = "") -> None:
        super().__init__(f"topic {topic} not found" if topic else "topic not found")
        self.topic = topic


class MismatchBehavior(enum.IntEnum):
    """How a difference between a topic's actual and requested settings is treated."""

    IGNORE = 0
    WARN = 1
    FAIL = 2


@dataclass
class _TableSettings:
    replication: int = 2
    cleanup_policy: str = ""


@dataclass
class _StreamSettings:
    replication: int = 2
    retention: timedelta = timedelta(hours=1)
    cleanup_policy: str = ""


@dataclass
class TopicManagerConfig:
    """Options used when creating and checking table and stream topics.

    ``create_topic_timeout`` is in seconds; 0 disables waiting for creation.
    """

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    table: _TableSettings = field(default_factory=_TableSettings)
    stream: _StreamSettings = field(default_factory=_StreamSettings)
    create_topic_timeout: float = 10.0
    mismatch_behavior: MismatchBehavior = MismatchBehavior.IGNORE
    no_create: bool = False

    def stream_cleanup_policy(self) -> str:
        """The cleanup policy for streams, ``delete`` unless overridden."""
        return self.stream.cleanup_policy or "delete"

    def table_cleanup_policy(self) -> str:
        """The cleanup policy for tables, ``compact`` unless overridden."""
        return self.table.cleanup_policy or "compact"


def _version_at_least(version: Any, minimum: tuple) -> bool:
    return tuple(version) >= minimum


def check_broker(broker: Any, config: Any) -> None:
    """Open a connection to ``broker`` and make sure it is connected."""
    if config is None:
        config = {}
    try:
        broker.open(config)
    except Exception as exc:
        raise TopicManagerError(f"error opening broker connection: {exc}") from exc
    try:
        connected = broker.connected()
    except Exception as exc:
        raise TopicManagerError(f"cannot connect to broker {broker.addr()}: {exc}") from exc
    if not connected:
        raise TopicManagerError(f"cannot connect to broker {broker.addr()}: not connected")


def new_topic_manager(
    client: Any,
    admin: Any,
    config: Optional[TopicManagerConfig],
    check: Callable[[Any, Any], None] = check_broker,
) -> "TopicManager":
    """Validate the client and its first broker, then build a topic manager."""
    if client is None:
        raise TopicManagerError("cannot create topic manager with nil client")
    if config is None:
        raise TopicManagerError("cannot create topic manager with nil config")
    if admin is None:
        raise TopicManagerError("cannot create topic manager with nil admin")

    client_config = client.config()
    version = client_config.version
    if not _version_at_least(version, V0_10_0_0):
        version_text = ".".join(str(part) for part in version)
        raise TopicManagerError(
            "the topic manager needs kafka version v0.10.0.0 or higher to function. "
            f"Version is {version_text}"
        )

    active_brokers = client.brokers()
    if not active_brokers:
        raise TopicManagerError("no brokers active in current client")

    check(active_brokers[0], client_config)
    return TopicManager(client, admin, config)


class TopicManager:
    """Checks that topics exist with the requested settings, creating them if allowed."""

    def __init__(self, client: Any, admin: Any, config: TopicManagerConfig) -> None:
        self.client = client
        self.admin = admin
        self.config = config

    def close(self) -> None:
        """Close the underlying client."""
        self.client.close()

    def partitions(self, topic: str) -> list[int]:
        """Return the partition ids of ``topic``; raise TopicNotFoundError if missing."""
        # Refreshing all metadata rather than the topic's avoids auto-creating it.
        try:
            self.client.refresh_metadata()
        except Exception as exc:
            raise TopicManagerError(f"error refreshing metadata {exc}") from exc
        if topic in self.client.topics():
            return list(self.client.partitions(topic))
        raise TopicNotFoundError(topic)

    def get_offset(self, topic: str, partition_id: int, time: int) -> int:
        """Return the offset of ``topic``/``partition_id`` for the given time or marker."""
        return self.client.get_offset(topic, partition_id, time)

    def ensure_stream_exists(self, topic: str, npar: int) -> None:
        """Make sure a stream topic exists with the configured settings."""
        retention_ms = self.config.stream.retention // timedelta(milliseconds=1)
        self._ensure_exists(
            topic,
            npar,
            self.config.stream.replication,
            {
                "cleanup.policy": self.config.stream_cleanup_policy(),
                "retention.ms": str(retention_ms),
            },
        )

    def ensure_table_exists(self, topic: str, npar: int) -> None:
        """Make sure a log-compacted table topic exists."""
        self._ensure_exists(
            topic,
            npar,
            self.config.table.replication,
            {"cleanup.policy": self.config.table_cleanup_policy()},
        )

    def ensure_topic_exists(
        self, topic: str, npar: int, rfactor: int, config: Mapping[str, str]
    ) -> None:
        """Make sure a topic exists with the given partitions, replication and config."""
        self._ensure_exists(topic, npar, rfactor, config)

    def _create_topic(
        self, topic: str, npar: int, rfactor: int, config: Mapping[str, str]
    ) -> None:
        entries = dict(config)
        self.config.logger.debug(
            "creating topic %s with npar=%d, rfactor=%d, config=%r", topic, npar, rfactor, entries
        )
        try:
            self.admin.create_topic(
                topic,
                num_partitions=npar,
                replication_factor=rfactor,
                config_entries=entries,
                validate_only=False,
            )
        except Exception as exc:
            raise TopicManagerError(
                f"error creating topic {topic}, npar={npar}, rfactor={rfactor}, "
                f"config={entries!r}: {exc}"
            ) from exc
        self._wait_for_created(topic)

    def _handle_config_mismatch(self, message: str) -> None:
        behavior = self.config.mismatch_behavior
        if behavior == MismatchBehavior.WARN:
            self.config.logger.warning("Warning: %s", message)
        elif behavior == MismatchBehavior.FAIL:
            raise TopicManagerError(message)

    def _ensure_exists(
        self, topic: str, npar: int, rfactor: int, config: Mapping[str, str]
    ) -> None:
        try:
            partitions = self.partitions(topic)
        except TopicNotFoundError:
            partitions = []
        except Exception as exc:
            raise TopicManagerError(f"error checking topic: {exc}") from exc

        if not partitions:
            if self.config.no_create:
                raise TopicManagerError(
                    f"topic {topic} does not exist but the manager is configured with "
                    "NoCreate, so it will not attempt to create it"
                )
            self._create_topic(topic, npar, rfactor, config)
            return

        if len(partitions) != npar:
            self._handle_config_mismatch(
                f"partition count mismatch for topic {topic}. "
                f"Need {npar}, but existing topic has {len(partitions)}"
            )
            return

        if not self._admin_supported():
            return

        cfg_map = self._topic_config_map(topic)
        for key, value in config.items():
            entry = cfg_map.get(key)
            if entry is None:
                self._handle_config_mismatch(
                    f"config for topic {topic} did not contain requested key {key}"
                )
                return
            if entry.value != value:
                self._handle_config_mismatch(
                    f"unexpected config value for topic {topic}. "
                    f"Expected {key}={value}. Got {key}={entry.value}"
                )
                return

        min_replicas = self._topic_min_replicas(topic)
        if min_replicas != rfactor:
            self._handle_config_mismatch(
                f"unexpected replication factor for topic {topic}. "
                f"Expected {rfactor}, got {min_replicas}"
            )

    def _wait_for_created(self, topic: str) -> None:
        timeout = self.config.create_topic_timeout
        if not timeout:
            return
        deadline = time.monotonic() + timeout
        while (remaining := deadline - time.monotonic()) > 0:
            try:
                self.partitions(topic)
                return
            except TopicNotFoundError:
                time.sleep(min(_POLL_INTERVAL, remaining))
            except Exception as exc:
                raise TopicManagerError(f"error checking topic: {exc}") from exc
        raise TopicManagerError(f"waiting for topic {topic} to be created timed out")

    def _admin_supported(self) -> bool:
        return _version_at_least(self.client.config().version, V0_11_0_0)

    def _topic_config_map(self, topic: str) -> dict[str, Any]:
        try:
            entries = self.admin.describe_config(topic)
        except Exception as exc:
            raise TopicManagerError(f"Error getting config for topic {topic}: {exc}") from exc
        return {entry.name: entry for entry in entries or ()}

    def _topic_min_replicas(self, topic: str) -> int:
        try:
            topics_meta = self.admin.describe_topics([topic])
        except Exception as exc:
            raise TopicManagerError(f"Error describing topic {topic}: {exc}") from exc
        if topics_meta is None or len(topics_meta) != 1:
            raise TopicManagerError(f"cannot find meta data for topic {topic}")

        replicas_min = 0
        for part in topics_meta[0].partitions:
            count = len(part.replicas)
            if replicas_min == 0 or count < replicas_min:
                replicas_min = count
        return replicas_min