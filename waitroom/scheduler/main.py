"""
Admission scheduler.

Periodically admits a fixed batch of users from every queue that has
waiting users, independently of request traffic. Each cycle is
idempotent: a missed or repeated cycle changes throughput, never which
users get admitted first.
"""

import asyncio
import logging
import signal

from waitroom.admission.engine import AdmissionEngine
from waitroom.config import Settings, get_settings
from waitroom.constants import SPAN_SCHEDULER_CYCLE
from waitroom.observability.logging import setup_logging
from waitroom.observability.metrics import get_metrics
from waitroom.observability.tracing import get_tracer
from waitroom.store.connection import close_store, init_store
from waitroom.tokens import get_token_issuer
from waitroom.types.queue import AdmissionResult

logger = logging.getLogger(__name__)


class AdmissionScheduler:
    """
    Fixed-delay admission loop.

    Runs after an initial delay, then:
    1. Enumerates queues with waiting users
    2. Admits up to `batch_size` users from each
    3. Sleeps `interval` seconds and repeats

    Configuration is read once at construction; when disabled every
    cycle returns immediately.
    """

    def __init__(self, engine: AdmissionEngine, settings: Settings | None = None):
        """
        Initialize the scheduler.

        Args:
            engine: Admission engine to drive.
            settings: Settings to read; defaults to the cached settings.
        """
        settings = settings or get_settings()
        self.engine = engine
        self.enabled = settings.scheduler_enabled
        self.initial_delay = settings.scheduler_initial_delay_seconds
        self.interval = settings.scheduler_interval_seconds
        self.batch_size = settings.scheduler_batch_size
        self._running = False
        self._metrics = get_metrics()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler loop."""
        logger.info(
            f"Admission scheduler starting with interval {self.interval}s",
            extra={"enabled": self.enabled, "batch_size": self.batch_size},
        )
        self._running = True

        await asyncio.sleep(self.initial_delay)

        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                self._metrics.record_scheduler_cycle("failed")
                logger.exception(f"Error in admission scheduler loop: {e}")

            await asyncio.sleep(self.interval)

        logger.info("Admission scheduler stopped")

    async def stop(self) -> None:
        """Stop the scheduler after the current cycle."""
        logger.info("Admission scheduler stopping")
        self._running = False

    async def run_once(self) -> list[AdmissionResult]:
        """
        Run a single admission cycle.

        Returns:
            One result per queue visited; empty when scheduling is disabled.
        """
        if not self.enabled:
            logger.info("Scheduling passed")
            self._metrics.record_scheduler_cycle("skipped")
            return []

        logger.info("Scheduling called")
        results: list[AdmissionResult] = []

        with get_tracer().start_as_current_span(SPAN_SCHEDULER_CYCLE) as span:
            async for queue in self.engine.list_queues():
                admitted = await self.engine.admit(queue, self.batch_size)
                await self.engine.queue_depth(queue)
                results.append(
                    AdmissionResult(queue=queue, requested=self.batch_size, admitted=admitted)
                )
                logger.info(
                    f"Tried {self.batch_size} and allowed {admitted} members of {queue} queue",
                    extra={"queue": queue, "requested": self.batch_size, "admitted": admitted},
                )
            span.set_attribute("queues", len(results))

        self._metrics.record_scheduler_cycle("admitted")
        return results


async def run_async() -> None:
    """Run the scheduler as a standalone process."""
    setup_logging()
    store = await init_store()

    scheduler = AdmissionScheduler(AdmissionEngine(store, get_token_issuer()))

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(scheduler.stop())
        )

    try:
        await scheduler.start()
    finally:
        await close_store()


def run() -> None:
    """Run the scheduler."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
