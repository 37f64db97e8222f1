import pytest

from streamkit.topic_manager import OFFSET_NEWEST, TopicManagerError
from streamkit.tester import Tester, TesterError, with_headers


class StringCodec:
    def encode(self, value):
        return value.encode()

    def decode(self, data):
        return data.decode()


class Int64Codec:
    def encode(self, value):
        return str(value).encode()

    def decode(self, data):
        return int(data)


@pytest.fixture
def gkt():
    return Tester()


def test_set_and_get_table_values(gkt):
    gkt.register_view("test", StringCodec())
    gkt.set_table_value("test", "key", "value")
    assert gkt.table_value("test", "not-existent") is None
    assert gkt.table_value("test", "key") == "value"
    assert gkt.get_table_keys("test") == ["key"]
    gkt.set_table_value("test", "key2", "value")
    assert gkt.get_table_keys("test") == ["key", "key2"]


def test_table_value_unknown_table(gkt):
    with pytest.raises(TesterError):
        gkt.table_value("missing", "key")
    with pytest.raises(TesterError):
        gkt.get_table_keys("missing")


def test_clear_values(gkt):
    gkt.register_view("test", Int64Codec())
    gkt.set_table_value("test", "a", 1)
    gkt.set_table_value("test", "b", 2)
    gkt.clear_values()
    assert gkt.get_table_keys("test") == []


def test_codec_conflict(gkt):
    gkt.register_codec("topic", StringCodec())
    gkt.register_codec("topic", StringCodec())
    with pytest.raises(TesterError, match="different codecs"):
        gkt.register_codec("topic", Int64Codec())


def test_codec_for_unknown_topic(gkt):
    with pytest.raises(TesterError, match="no codec"):
        gkt.codec_for_topic("unknown")


def test_register_view_client_ids(gkt):
    assert gkt.register_view("a", StringCodec()) == "client-0"
    assert gkt.register_view("b", StringCodec()) == "client-1"


def test_consume_with_headers(gkt):
    gkt.register_emitter("input", StringCodec())
    tracker = gkt.new_queue_tracker("input")
    gkt.consume(
        "input",
        "key",
        "some-message",
        with_headers({"Header1": b"value 1", "Header2": b"value 2"}),
        with_headers({"Header2": b"value 2b", "Header3": b"value 3"}),
    )
    headers, key, value = tracker.next_with_headers()
    assert key == "key"
    assert value == "some-message"
    assert headers == {"Header1": b"value 1", "Header2": b"value 2b", "Header3": b"value 3"}
    assert tracker.next() is None


def test_consume_none_pushes_empty_value(gkt):
    tracker = gkt.new_queue_tracker("input")
    gkt.consume("input", "key", None)
    assert tracker.next_raw() == ("key", None)


def test_consume_unregistered_topic(gkt):
    with pytest.raises(TesterError):
        gkt.consume("nowhere", "key", "value")


def test_producer_builder_emit(gkt):
    producer = gkt.producer_builder()([], "client")
    gkt.register_emitter("out", Int64Codec())
    tracker = gkt.new_queue_tracker("out")
    promise = producer.emit("out", "k", b"15")
    assert promise.result() == gkt.get_or_create_queue("out").hwm - 1
    assert tracker.next() == ("k", 15)


def test_emitter_producer_with_headers(gkt):
    producer = gkt.emitter_producer_builder()([], "client")
    gkt.register_emitter("out", StringCodec())
    tracker = gkt.new_queue_tracker("out")
    producer.emit_with_headers("out", "k", b"v", {"h": b"x"})
    assert tracker.next_with_headers() == ({"h": b"x"}, "k", "v")


def test_topic_manager_builder(gkt):
    tmgr = gkt.topic_manager_builder()([])
    gkt.get_or_create_queue("t").push("k", b"v")
    assert tmgr.get_offset("t", 0, OFFSET_NEWEST) == gkt.get_or_create_queue("t").hwm
    with pytest.raises(TopicManagerError):
        tmgr.ensure_table_exists("t", 2)


def test_storage_builder_shares_storage(gkt):
    gkt.register_view("table", StringCodec())
    storage = gkt.storage_builder()("table", 0)
    storage.set("key", b"stored")
    assert gkt.table_value("table", "key") == "stored"
    assert gkt.storage_builder()("table", 3) is storage


def test_catchup_leaves_queues_unchanged(gkt):
    gkt.register_emitter("input", StringCodec())
    gkt.consume("input", "k", "v")
    before = gkt.get_or_create_queue("input").hwm
    gkt.catchup()
    assert gkt.get_or_create_queue("input").hwm == before