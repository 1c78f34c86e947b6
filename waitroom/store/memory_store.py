"""
In-memory queue store for local development and tests.
"""

import bisect
import fnmatch
import itertools
import logging
from collections.abc import AsyncIterator, Iterable

from waitroom.types.queue import QueueEntry

logger = logging.getLogger(__name__)


class _SortedSet:
    """
    Sorted set ordered by (score, insertion sequence).

    Ties on score keep insertion order, so members registered within the
    same second are ranked first-come first-served.
    """

    def __init__(self) -> None:
        self._order: list[tuple[float, int, str]] = []
        self._index: dict[str, tuple[float, int, str]] = {}

    def __len__(self) -> int:
        return len(self._order)

    def add(self, member: str, score: float, seq: int) -> bool:
        if member in self._index:
            return False
        item = (score, seq, member)
        bisect.insort(self._order, item)
        self._index[member] = item
        return True

    def upsert(self, member: str, score: float, seq: int) -> bool:
        """Add a member or move an existing one to `score`; True if new."""
        item = self._index.get(member)
        if item is None:
            return self.add(member, score, seq)
        del self._order[bisect.bisect_left(self._order, item)]
        del self._index[member]
        self.add(member, score, seq)
        return False

    def rank(self, member: str) -> int | None:
        item = self._index.get(member)
        if item is None:
            return None
        return bisect.bisect_left(self._order, item)

    def pop_min(self, count: int) -> list[QueueEntry]:
        popped = self._order[:count]
        del self._order[:count]
        for _, _, member in popped:
            del self._index[member]
        return [QueueEntry(member=member, score=score) for score, _, member in popped]


class InMemoryQueueStore:
    """
    Process-local queue store.

    Operations never suspend between reading and writing a set, so each
    call is atomic with respect to other tasks on the event loop.
    Not shared across processes.
    """

    def __init__(self) -> None:
        self._sets: dict[str, _SortedSet] = {}
        self._seq = itertools.count()

    def _get(self, key: str) -> _SortedSet | None:
        return self._sets.get(key)

    def _get_or_create(self, key: str) -> _SortedSet:
        zset = self._sets.get(key)
        if zset is None:
            zset = self._sets[key] = _SortedSet()
        return zset

    def _drop_if_empty(self, key: str) -> None:
        # Like Redis, an empty sorted set stops existing.
        zset = self._sets.get(key)
        if zset is not None and not zset:
            del self._sets[key]

    async def add_if_absent(self, key: str, member: str, score: float) -> bool:
        return self._get_or_create(key).add(member, score, next(self._seq))

    async def rank(self, key: str, member: str) -> int | None:
        zset = self._get(key)
        if zset is None:
            return None
        return zset.rank(member)

    async def pop_min(self, key: str, count: int) -> list[QueueEntry]:
        zset = self._get(key)
        if zset is None or count <= 0:
            return []
        popped = zset.pop_min(count)
        self._drop_if_empty(key)
        return popped

    async def add_many(self, key: str, entries: Iterable[QueueEntry]) -> int:
        zset = self._get_or_create(key)
        added = sum(
            1 for entry in entries if zset.upsert(entry.member, entry.score, next(self._seq))
        )
        self._drop_if_empty(key)
        return added

    async def move_min(
        self,
        source: str,
        destination: str,
        count: int,
        score: float,
    ) -> list[QueueEntry]:
        popped = await self.pop_min(source, count)
        if popped:
            await self.add_many(
                destination,
                [QueueEntry(member=entry.member, score=score) for entry in popped],
            )
        return popped

    async def size(self, key: str) -> int:
        zset = self._get(key)
        return len(zset) if zset is not None else 0

    async def scan_keys(self, pattern: str) -> AsyncIterator[str]:
        # Snapshot so concurrent mutation cannot break iteration.
        for key in list(self._sets):
            if fnmatch.fnmatchcase(key, pattern):
                yield key

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        logger.debug("In-memory queue store closed")
