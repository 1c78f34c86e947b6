"""
Structured logging setup using structlog.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any, TextIO

import structlog
from opentelemetry import trace

from waitroom.config import Settings, get_settings

# Libraries whose INFO output drowns out queue events
_NOISY_LOGGERS = ("uvicorn.access", "redis", "httpx")

# Request parameters copied onto every log record of that request
_REQUEST_CONTEXT_KEYS = ("queue", "user_id")


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the current OpenTelemetry trace and span ids to a log record."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def setup_logging(settings: Settings | None = None, stream: TextIO | None = None) -> None:
    """
    Configure structured logging for the application.

    Routes both structlog and standard library loggers through one
    handler (stdout unless `stream` is given), rendered as JSON or for the console depending
    on `log_format`.

    Args:
        settings: Settings to read; defaults to the cached settings.
        stream: Output stream; defaults to stdout.
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Run for structlog and stdlib records alike
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    if settings.log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    # Single handler; repeated setup replaces rather than duplicates it
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(params: Mapping[str, str]) -> None:
    """
    Replace the bound log context with the queue and user of a request.

    Records from any logger in the same context, structlog or stdlib,
    then carry `queue` and `user_id` without passing them explicitly.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        **{key: params[key] for key in _REQUEST_CONTEXT_KEYS if key in params}
    )
