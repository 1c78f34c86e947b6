"""
Redis-backed queue store.

Each queue set is a Redis sorted set. Atomicity comes from Redis itself:
Lua scripts for add-if-absent and for the wait -> proceed move, ZPOPMIN
for pops. Scores stay in unix seconds; registrations within one second
get a fractional sequence so ties keep arrival order.
"""

import asyncio
import logging
import math
from collections.abc import AsyncIterator, Awaitable, Iterable
from typing import Any, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from waitroom.errors import StoreUnavailableError
from waitroom.types.queue import QueueEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Sequence counters only need to outlive the second they number
SEQUENCE_TTL_SECONDS = 60

# KEYS[1] = set, KEYS[2] = per-second sequence, ARGV[1] = member, ARGV[2] = whole seconds,
# ARGV[3] = sequence TTL
ADD_IF_ABSENT_SCRIPT = """
if redis.call('ZSCORE', KEYS[1], ARGV[1]) then
    return 0
end
local seq = redis.call('INCR', KEYS[2])
redis.call('EXPIRE', KEYS[2], ARGV[3])
local score = string.format('%.6f', tonumber(ARGV[2]) + seq / 1000000)
return redis.call('ZADD', KEYS[1], 'NX', score, ARGV[1])
"""

# KEYS[1] = source, KEYS[2] = destination, ARGV[1] = count, ARGV[2] = score
MOVE_MIN_SCRIPT = """
local popped = redis.call('ZPOPMIN', KEYS[1], ARGV[1])
for i = 1, #popped, 2 do
    redis.call('ZADD', KEYS[2], ARGV[2], popped[i])
end
return popped
"""


class RedisQueueStore:
    """
    Queue store over a shared redis.asyncio client.

    Every call is bounded by `timeout_seconds`. Timeouts and Redis errors
    surface as StoreUnavailableError and are never retried here.
    """

    def __init__(
        self,
        client: redis.Redis,
        timeout_seconds: float = 2.0,
        scan_count: int = 100,
    ):
        """
        Initialize the store.

        Args:
            client: Redis client created with decode_responses=True.
            timeout_seconds: Upper bound for each store call.
            scan_count: COUNT hint passed to SCAN.
        """
        self._redis = client
        self._timeout = timeout_seconds
        self._scan_count = scan_count
        self._add_if_absent_script = client.register_script(ADD_IF_ABSENT_SCRIPT)
        self._move_min_script = client.register_script(MOVE_MIN_SCRIPT)

    @classmethod
    def from_url(
        cls,
        url: str,
        timeout_seconds: float = 2.0,
        scan_count: int = 100,
        max_connections: int = 50,
    ) -> "RedisQueueStore":
        """Create a store with its own connection pool."""
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=max_connections,
            socket_connect_timeout=timeout_seconds,
            socket_timeout=timeout_seconds,
        )
        return cls(client, timeout_seconds=timeout_seconds, scan_count=scan_count)

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            async with asyncio.timeout(self._timeout):
                return await awaitable
        except TimeoutError as e:
            logger.warning(
                "Queue store call timed out",
                extra={"operation": operation, "timeout_seconds": self._timeout},
            )
            raise StoreUnavailableError(
                f"Redis {operation} timed out after {self._timeout}s"
            ) from e
        except RedisError as e:
            logger.warning(
                "Queue store call failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise StoreUnavailableError(f"Redis {operation} failed: {e}") from e

    async def add_if_absent(self, key: str, member: str, score: float) -> bool:
        """
        Insert `member` unless present.

        The stored score is `floor(score)` plus a per-second sequence in
        millionths, so members added within the same second rank in the
        order they arrived. Up to 999999 insertions per key per second
        keep their second.
        """
        second = math.floor(score)
        added = await self._call(
            "add_if_absent",
            self._add_if_absent_script(
                keys=[key, f"{key}:seq:{second}"],
                args=[member, second, SEQUENCE_TTL_SECONDS],
            ),
        )
        return added == 1

    async def rank(self, key: str, member: str) -> int | None:
        return await self._call("zrank", self._redis.zrank(key, member))

    async def pop_min(self, key: str, count: int) -> list[QueueEntry]:
        if count <= 0:
            return []
        popped = await self._call("zpopmin", self._redis.zpopmin(key, count))
        return [QueueEntry(member=member, score=float(score)) for member, score in popped]

    async def add_many(self, key: str, entries: Iterable[QueueEntry]) -> int:
        mapping = {entry.member: entry.score for entry in entries}
        if not mapping:
            return 0
        return await self._call("zadd", self._redis.zadd(key, mapping))

    async def move_min(
        self,
        source: str,
        destination: str,
        count: int,
        score: float,
    ) -> list[QueueEntry]:
        if count <= 0:
            return []
        flat: list[Any] = await self._call(
            "move_min",
            self._move_min_script(keys=[source, destination], args=[count, score]),
        )
        return [
            QueueEntry(member=flat[i], score=float(flat[i + 1]))
            for i in range(0, len(flat), 2)
        ]

    async def size(self, key: str) -> int:
        return await self._call("zcard", self._redis.zcard(key))

    async def scan_keys(self, pattern: str) -> AsyncIterator[str]:
        cursor = 0
        while True:
            cursor, keys = await self._call(
                "scan",
                self._redis.scan(cursor=cursor, match=pattern, count=self._scan_count),
            )
            for key in keys:
                yield key
            if cursor == 0:
                break

    async def ping(self) -> bool:
        return bool(await self._call("ping", self._redis.ping()))

    async def close(self) -> None:
        await self._redis.aclose()
        logger.info("Redis queue store closed")
