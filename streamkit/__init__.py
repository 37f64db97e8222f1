"""Topic management, an in-memory stream tester, and action, query and index helpers."""

__version__ = "0.1.0"
__all__ = [
    "topic_manager",
    "queue",
    "mock_topic_manager",
    "producer",
    "tester",
    "actions",
    "action_server",
    "query_server",
    "index_server",
]