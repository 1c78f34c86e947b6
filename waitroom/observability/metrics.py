"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from waitroom.constants import (
    METRIC_ADMITTED,
    METRIC_API_LATENCY,
    METRIC_API_REQUESTS,
    METRIC_QUEUE_DEPTH,
    METRIC_REGISTRATIONS,
    METRIC_SCHEDULER_CYCLES,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the waiting room.

    Collects metrics for:
    - Registrations (accepted or rejected as duplicates)
    - Admitted users
    - Wait/proceed queue depth
    - Scheduler cycles
    - API requests
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.registrations = Counter(
            METRIC_REGISTRATIONS,
            "Total number of wait queue registrations",
            ["queue", "outcome"],
            registry=self._registry,
        )

        self.admitted = Counter(
            METRIC_ADMITTED,
            "Total number of users moved from wait to proceed",
            ["queue"],
            registry=self._registry,
        )

        # Depth gauge (by queue and set)
        self.queue_depth = Gauge(
            METRIC_QUEUE_DEPTH,
            "Number of users in a queue set",
            ["queue", "state"],
            registry=self._registry,
        )

        self.scheduler_cycles = Counter(
            METRIC_SCHEDULER_CYCLES,
            "Total number of admission scheduler cycles",
            ["outcome"],
            registry=self._registry,
        )

        self.api_requests = Counter(
            METRIC_API_REQUESTS,
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )

        self.api_latency = Histogram(
            METRIC_API_LATENCY,
            "API request latency in seconds",
            ["method", "endpoint"],
            buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
            registry=self._registry,
        )

    def record_registration(self, queue: str, outcome: str) -> None:
        """Record a registration attempt."""
        self.registrations.labels(queue=queue, outcome=outcome).inc()

    def record_admitted(self, queue: str, count: int) -> None:
        """Record users admitted from a queue."""
        if count > 0:
            self.admitted.labels(queue=queue).inc(count)

    def update_queue_depth(self, queue: str, waiting: int, admitted: int) -> None:
        """Update wait and proceed depth for a queue."""
        self.queue_depth.labels(queue=queue, state="waiting").set(waiting)
        self.queue_depth.labels(queue=queue, state="admitted").set(admitted)

    def record_scheduler_cycle(self, outcome: str) -> None:
        """Record a scheduler cycle outcome (admitted, skipped, failed)."""
        self.scheduler_cycles.labels(outcome=outcome).inc()

    def record_api_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration_seconds: float,
    ) -> None:
        """Record an API request."""
        self.api_requests.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        self.api_latency.labels(method=method, endpoint=endpoint).observe(
            duration_seconds
        )

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
