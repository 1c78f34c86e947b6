"""
Queue store connection management.
Holds the process-wide store shared by request handlers and the scheduler.
"""

import logging

from waitroom.config import get_settings
from waitroom.store.base import QueueStore
from waitroom.store.memory_store import InMemoryQueueStore
from waitroom.store.redis_store import RedisQueueStore

logger = logging.getLogger(__name__)

# Global store instance
_store: QueueStore | None = None


def create_store() -> QueueStore:
    """
    Create a queue store for the configured backend.

    Returns:
        QueueStore: A new, unshared store instance.
    """
    settings = get_settings()
    if settings.store_backend == "memory":
        return InMemoryQueueStore()
    return RedisQueueStore.from_url(
        settings.redis_url,
        timeout_seconds=settings.store_timeout_seconds,
        scan_count=settings.store_scan_count,
        max_connections=settings.redis_max_connections,
    )


async def init_store() -> QueueStore:
    """
    Initialize the process-wide queue store.
    Should be called on application startup.
    """
    global _store
    if _store is None:
        _store = create_store()
        logger.info(
            "Queue store initialized",
            extra={"backend": get_settings().store_backend},
        )
    return _store


async def close_store() -> None:
    """
    Close the process-wide queue store.
    Should be called on application shutdown.
    """
    global _store
    if _store is not None:
        await _store.close()
        _store = None
        logger.info("Queue store closed")


def get_store() -> QueueStore:
    """
    Get the process-wide queue store.

    Raises:
        RuntimeError: If the store is not initialized.
    """
    if _store is None:
        raise RuntimeError("Queue store not initialized. Call init_store() first.")
    return _store
