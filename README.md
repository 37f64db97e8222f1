# streamkit

Building blocks for applications that work with partitioned, log-based topics
(Kafka-style streams and compacted tables):

- `streamkit.topic_manager` checks that topics exist with the requested
  settings and creates them when allowed.
- `streamkit.tester`, `streamkit.queue`, `streamkit.producer` and
  `streamkit.mock_topic_manager` provide an in-memory stand-in for a cluster:
  topic queues, codecs, table storage, producers and a topic manager.
- `streamkit.actions` and `streamkit.action_server` run named background
  actions that can be started and stopped.
- `streamkit.query_server` looks up keys in named sources and renders the
  values for display. `streamkit.index_server` lists registered components.

The package has no runtime dependencies.

## Installation

```
pip install streamkit
```

To run the test suite:

```
pip install "streamkit[test]"
pytest
```

## Topic management

`new_topic_manager(client, admin, config, check=check_broker)` builds a
`TopicManager`. It refuses a missing client, admin or config, requires the
client's version to be at least `(0, 10, 0, 0)`, requires at least one active
broker, and runs `check` on the first broker. `check_broker` calls
`broker.open(config)` and `broker.connected()`, and raises if either fails.

The client and admin are your own objects. They need these methods:

- client: `config()` (an object with a `version` tuple), `brokers()`,
  `refresh_metadata()`, `topics()`, `partitions(topic)`,
  `get_offset(topic, partition, time)`, `close()`
- admin: `create_topic(topic, num_partitions=..., replication_factor=...,
  config_entries=..., validate_only=False)`, `describe_config(topic)` (entries
  with `name` and `value`), `describe_topics([topic])` (metadata whose
  `partitions` each have `replicas`)

```python
from streamkit.topic_manager import (
    MismatchBehavior,
    TopicManagerConfig,
    new_topic_manager,
)

config = TopicManagerConfig()
config.mismatch_behavior = MismatchBehavior.FAIL

manager = new_topic_manager(client, admin, config)
manager.ensure_stream_exists("clicks", 8)
manager.ensure_table_exists("user-table", 8)
manager.ensure_topic_exists("audit", 4, 3, {"retention.ms": "86400000"})
manager.close()
```

`TopicManagerConfig` defaults:

- `table.replication` and `stream.replication` are 2.
- `stream.retention` is one hour.
- The cleanup policies are `delete` for streams and `compact` for tables,
  unless `stream.cleanup_policy` or `table.cleanup_policy` is set.
- `create_topic_timeout` is 10 seconds. After creating a topic, the manager
  polls until the topic appears. 0 turns this off.
- `mismatch_behavior` is `MismatchBehavior.IGNORE`.
- `no_create` is `False`. When true, a missing topic is an error instead of
  being created.

When a topic already exists, its partition count is compared with the request.
If the client's version is at least `(0, 11, 0, 0)`, the requested config
entries and the smallest replica count among its partitions are compared too.
A difference is ignored, logged as a warning, or raised, according to
`mismatch_behavior`.

Errors are raised as `TopicManagerError`. `partitions()` raises
`TopicNotFoundError`, a subclass, for a missing topic. `OFFSET_NEWEST` (-1) and
`OFFSET_OLDEST` (-2) are the markers for `get_offset`.

## In-memory testing

`Tester` keeps one `Queue` per topic, one codec per topic, and one in-memory
storage per table. A codec is any object with `encode(value) -> bytes` and
`decode(bytes) -> value`. If you register a codec of a different type for a
topic that already has one, `TesterError` is raised.

```python
from streamkit.tester import Tester, with_headers

tester = Tester()
tester.register_emitter("output", my_codec)

tracker = tester.new_queue_tracker("output")
producer = tester.producer_builder()([], "client-0", None)
producer.emit("output", "key", my_codec.encode("hello"))

key, value = tracker.next()          # None once the queue is exhausted
assert key == "key" and value == "hello"
```

`QueueTracker` starts at the end of the queue as it was when the tracker was
created. It offers `next()`, `next_with_headers()`, `next_raw()`,
`next_raw_with_headers()`, `seek(offset)` and `hwm()`.

Table values can be written and read back directly:

```python
tester.register_view("users", my_codec)
tester.set_table_value("users", "alice", {"age": 30})
tester.table_value("users", "alice")   # decoded value, or None
tester.get_table_keys("users")         # keys in sorted order
tester.clear_values()
```

`consume(topic, key, msg, *options)` encodes `msg` with the topic's codec and
pushes it to the topic's queue. A `None` message is pushed as `None`. Headers
are added with `with_headers`. When several are given, later ones override
earlier ones:

```python
tester.consume("input", "key", "payload", with_headers({"trace": b"abc"}))
```

Further builders:

- `emitter_producer_builder()` wraps the producer in a `FlushingProducer`.
- `topic_manager_builder()` returns the shared `MockTopicManager`. Every topic
  has the single partition 0. `ensure_table_exists` accepts only one
  partition. `get_offset` returns the queue's high water mark for
  `OFFSET_NEWEST` and 0 otherwise.
- `storage_builder()` returns the in-memory storage of a table.

## Actions

```python
from streamkit.action_server import ActionServer

def reindex(cancel, value):
    while not cancel.is_set():
        ...

server = ActionServer("/actions")
server.attach_func_action("reindex", "rebuild the index", reindex)
server.start_action("reindex", "full")   # returns "/actions"
server.stop_action("reindex")
```

An action's function receives a `threading.Event` that is set on stop, and
the value it was started with. It should return once the event is set.

`Action` runs in a daemon thread and records the following:

- `start_time()` and `finished_time()`, as RFC 3339 strings or
  `not started` / `not finished`.
- `is_running()`.
- `error`, the exception raised by the last run, if any.

Starting a running action stops it first.

`start_action` and `stop_action` return the location to redirect to. For an
unknown action, an action already running, or one not running, that location
carries an `error` query parameter. `index(error)` returns the overview
parameters, with the actions sorted by name.

## Queries and index

```python
from streamkit.query_server import QueryServer

queries = QueryServer("/query")
queries.attach_source("users", lambda key: {"name": key})
queries.key("users", " alice ")["value"]   # indented JSON
```

The getter receives the key with surrounding whitespace stripped.
`default_humanizer` renders values as indented JSON with sorted keys. Another
callable can be passed as `humanizer`. `index()`, `source(name)` and
`key(name, key)` return page parameters. Problems are reported under
`warning` or `error` in those parameters; no exception is raised.

`IndexServer.add_component(provider, name)` records a `Component` with the
provider's `base_path`. `index()` lists the recorded components.

## What this package does not do

- It contains no cluster client. `TopicManager` works only through the client
  and admin objects you pass in.
- It has no stream processors, views or consumers. The `Tester` stores queues,
  codecs and tables, but nothing in the package reads the queues on its own.
  `consume()` and `catchup()` therefore only push messages.
- The action, query and index servers serve no HTTP and render no HTML. They
  return redirect locations and page parameters for a web layer of your own.