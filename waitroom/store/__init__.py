"""
Queue store module.
Contains the store protocol, its Redis and in-memory implementations,
and process-wide connection management.
"""

from waitroom.store.base import QueueStore
from waitroom.store.connection import close_store, create_store, get_store, init_store
from waitroom.store.memory_store import InMemoryQueueStore
from waitroom.store.redis_store import RedisQueueStore

__all__ = [
    "QueueStore",
    "InMemoryQueueStore",
    "RedisQueueStore",
    "create_store",
    "init_store",
    "close_store",
    "get_store",
]
