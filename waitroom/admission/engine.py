"""
Admission engine.

Implements the per-queue state machine on top of two sorted sets:

    Unregistered --register--> Waiting --admit (batched)--> Admitted

Membership in the wait or proceed set *is* the state. The engine keeps no
state between calls and takes no locks; every read and write goes to the
queue store, whose atomic primitives are the only synchronization point.
"""

import logging
import time
from collections.abc import AsyncIterator, Callable

from waitroom.constants import (
    RANK_ADMITTED,
    RANK_NOT_WAITING,
    SPAN_ADMIT,
    SPAN_REGISTER,
    USER_QUEUE_WAIT_KEY_FOR_SCAN,
    QueueState,
    proceed_key,
    queue_name_from_wait_key,
    wait_key,
)
from waitroom.errors import AlreadyRegisteredError, TokenMismatchError
from waitroom.observability.metrics import MetricsCollector, get_metrics
from waitroom.observability.tracing import get_tracer
from waitroom.store.base import QueueStore
from waitroom.tokens import TokenIssuer

logger = logging.getLogger(__name__)


class AdmissionEngine:
    """
    Orchestrates registration, batched admission and admission queries.

    Store errors (StoreUnavailableError) propagate unchanged; nothing is
    retried here.
    """

    def __init__(
        self,
        store: QueueStore,
        token_issuer: TokenIssuer,
        clock: Callable[[], float] = time.time,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Queue store shared process-wide.
            token_issuer: Issuer used for admission tokens.
            clock: Returns the current unix time in seconds.
            metrics: Metrics collector; defaults to the global one.
        """
        self._store = store
        self._tokens = token_issuer
        self._clock = clock
        self._metrics = metrics or get_metrics()

    def _now(self) -> int:
        # Scores use whole seconds to match existing stored data.
        return int(self._clock())

    async def register(self, queue: str, user_id: int | str) -> int:
        """
        Add a user to the wait queue.

        Args:
            queue: Queue name.
            user_id: User identifier.

        Returns:
            1-based rank in the wait queue, or RANK_ADMITTED (0) if the user
            was promoted before the rank could be read.

        Raises:
            AlreadyRegisteredError: If the user is already waiting.
        """
        member = str(user_id)
        key = wait_key(queue)

        with get_tracer().start_as_current_span(SPAN_REGISTER) as span:
            span.set_attribute("queue", queue)

            inserted = await self._store.add_if_absent(key, member, self._now())
            if not inserted:
                self._metrics.record_registration(queue, "duplicate")
                raise AlreadyRegisteredError(queue, user_id)

            self._metrics.record_registration(queue, "accepted")

            rank = await self._store.rank(key, member)
            if rank is None:
                logger.info(
                    "User promoted before rank read",
                    extra={"queue": queue, "user_id": member},
                )
                return RANK_ADMITTED

            return rank + 1

    async def admit(self, queue: str, count: int) -> int:
        """
        Move up to `count` earliest-registered users from wait to proceed.

        Safe to call redundantly: it only moves whatever is currently at the
        head of the wait queue.

        Args:
            queue: Queue name.
            count: Maximum number of users to admit.

        Returns:
            Number of users actually admitted.
        """
        if count <= 0:
            return 0

        with get_tracer().start_as_current_span(SPAN_ADMIT) as span:
            span.set_attribute("queue", queue)
            span.set_attribute("requested", count)

            moved = await self._store.move_min(
                wait_key(queue),
                proceed_key(queue),
                count,
                self._now(),
            )

            span.set_attribute("admitted", len(moved))
            self._metrics.record_admitted(queue, len(moved))

            if moved:
                logger.info(
                    "Admitted users",
                    extra={"queue": queue, "requested": count, "admitted": len(moved)},
                )
            return len(moved)

    async def is_admitted(self, queue: str, user_id: int | str) -> bool:
        """Check whether a user is in the proceed set."""
        rank = await self._store.rank(proceed_key(queue), str(user_id))
        return rank is not None

    async def is_admitted_with_token(
        self,
        queue: str,
        user_id: int | str,
        token: str | None,
    ) -> bool:
        """
        Check admission for a user presenting a token.

        The token is checked first and a mismatch is a rejection of its own,
        distinct from "not admitted yet".

        Raises:
            TokenMismatchError: If `token` was not issued for (queue, user_id).
        """
        if not self._tokens.verify(queue, user_id, token):
            raise TokenMismatchError(queue, user_id)
        return await self.is_admitted(queue, user_id)

    async def wait_rank(self, queue: str, user_id: int | str) -> int:
        """
        Get a user's position in the wait queue.

        Returns:
            1-based rank, or -1 if not waiting (never registered or already
            admitted).
        """
        rank = await self._store.rank(wait_key(queue), str(user_id))
        if rank is None:
            return RANK_NOT_WAITING
        return rank + 1

    def issue_token(self, queue: str, user_id: int | str) -> str:
        """Issue the admission token for a user."""
        return self._tokens.generate(queue, user_id)

    async def get_state(self, queue: str, user_id: int | str) -> QueueState:
        """
        Derive a user's state from set membership.

        The wait set is read first: a promotion between the two reads then
        reports ADMITTED rather than UNREGISTERED.
        """
        if await self.wait_rank(queue, user_id) != RANK_NOT_WAITING:
            return QueueState.WAITING
        if await self.is_admitted(queue, user_id):
            return QueueState.ADMITTED
        return QueueState.UNREGISTERED

    async def queue_depth(self, queue: str) -> tuple[int, int]:
        """
        Get the number of waiting and admitted users.

        Returns:
            Tuple of (waiting, admitted).
        """
        waiting = await self._store.size(wait_key(queue))
        admitted = await self._store.size(proceed_key(queue))
        self._metrics.update_queue_depth(queue, waiting, admitted)
        return waiting, admitted

    async def list_queues(self) -> AsyncIterator[str]:
        """
        Enumerate queues that currently have waiting users.

        Eventually consistent: queues created or drained during the scan may
        be missed or reported twice.
        """
        async for key in self._store.scan_keys(USER_QUEUE_WAIT_KEY_FOR_SCAN):
            name = queue_name_from_wait_key(key)
            if name is not None:
                yield name
