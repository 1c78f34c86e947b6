"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from waitroom.observability.logging import bind_request_context, setup_logging
from waitroom.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from waitroom.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "bind_request_context",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
]
