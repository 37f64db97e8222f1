import pytest

from streamkit.mock_topic_manager import MockTopicManager
from streamkit.queue import Queue
from streamkit.topic_manager import OFFSET_NEWEST, OFFSET_OLDEST, TopicManagerError


@pytest.fixture
def queues():
    return {}


@pytest.fixture
def tm(queues):
    return MockTopicManager(lambda topic: queues.setdefault(topic, Queue(topic)))


def test_ensure_table_requires_single_partition(tm, queues):
    with pytest.raises(TopicManagerError, match="1 partition"):
        tm.ensure_table_exists("table", 2)
    assert "table" not in queues
    tm.ensure_table_exists("table", 1)
    assert set(queues) == {"table"}


def test_ensure_stream_and_topic_create_queues(tm, queues):
    tm.ensure_stream_exists("stream", 4)
    tm.ensure_topic_exists("topic", 3, 2, {"a": "b"})
    assert set(queues) == {"stream", "topic"}
    queues["stream"].push("a", b"1")
    assert tm.get_offset("stream", 0, OFFSET_NEWEST) == 1
    assert tm.get_offset("topic", 0, OFFSET_NEWEST) == 0


def test_partitions_single(tm):
    assert tm.partitions("anything") == [0]


def test_get_offset(tm, queues):
    tm.ensure_stream_exists("stream", 1)
    queues["stream"].push("a", b"1")
    queues["stream"].push("b", b"2")
    assert tm.get_offset("stream", 0, OFFSET_NEWEST) == queues["stream"].hwm
    assert tm.get_offset("stream", 0, OFFSET_OLDEST) == 0
    assert tm.get_offset("stream", 0, 1234567) == tm.get_offset("stream", 0, OFFSET_OLDEST)


def test_get_offset_creates_queue(tm, queues):
    assert tm.get_offset("fresh", 0, OFFSET_NEWEST) == 0
    assert "fresh" in queues


def test_close_returns_none(tm, queues):
    assert tm.close() is None
    tm.ensure_stream_exists("after-close", 1)
    assert "after-close" in queues