"""
Ordered queue store protocol.

A store is a keyed collection of sorted sets. Every operation round-trips
to the backing store; implementations must make add_if_absent, pop_min
and move_min atomic per key.
"""

from collections.abc import AsyncIterator, Iterable
from typing import Protocol

from waitroom.types.queue import QueueEntry


class QueueStore(Protocol):
    """Contract shared by the Redis and in-memory queue stores."""

    async def add_if_absent(self, key: str, member: str, score: float) -> bool:
        """
        Insert a member only if it is not already in the set.

        Members inserted with equal scores rank in insertion order.

        Returns:
            True if the member was inserted.
        """
        ...

    async def rank(self, key: str, member: str) -> int | None:
        """Zero-based ascending rank of a member, or None if absent."""
        ...

    async def pop_min(self, key: str, count: int) -> list[QueueEntry]:
        """Remove and return up to `count` lowest-scored members, lowest first."""
        ...

    async def add_many(self, key: str, entries: Iterable[QueueEntry]) -> int:
        """Insert or re-score entries, returning how many were new members."""
        ...

    async def move_min(
        self,
        source: str,
        destination: str,
        count: int,
        score: float,
    ) -> list[QueueEntry]:
        """
        Pop up to `count` lowest-scored members of `source` and add them to
        `destination` with `score`, as one atomic step.

        Returns:
            The entries popped from `source`, with their original scores.
        """
        ...

    async def size(self, key: str) -> int:
        """Number of members in the set."""
        ...

    def scan_keys(self, pattern: str) -> AsyncIterator[str]:
        """
        Lazily enumerate keys matching a glob pattern.

        Enumeration is one-shot and not linearizable: keys created or
        removed during the scan may be missed or reported twice.
        """
        ...

    async def ping(self) -> bool:
        """Check the store is reachable."""
        ...

    async def close(self) -> None:
        """Release connections held by the store."""
        ...
