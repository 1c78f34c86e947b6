"""
Pytest configuration and shared fixtures.
"""

import io
import logging
import os
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

# Use the in-memory store BEFORE any imports that read settings
os.environ.setdefault("STORE_BACKEND", "memory")

from waitroom.admission import AdmissionEngine, get_admission_engine  # noqa: E402
from waitroom.api.main import create_app  # noqa: E402
from waitroom.config import Settings  # noqa: E402
from waitroom.observability.logging import setup_logging  # noqa: E402
from waitroom.observability.metrics import MetricsCollector  # noqa: E402
from waitroom.store import InMemoryQueueStore, get_store  # noqa: E402
from waitroom.tokens import TokenIssuer  # noqa: E402


class FakeClock:
    """Settable clock returning unix seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """Isolated Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def metrics(metrics_registry: CollectorRegistry) -> MetricsCollector:
    return MetricsCollector(registry=metrics_registry)


@pytest.fixture
def store() -> InMemoryQueueStore:
    return InMemoryQueueStore()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer()


@pytest.fixture
def engine(
    store: InMemoryQueueStore,
    token_issuer: TokenIssuer,
    clock: FakeClock,
    metrics: MetricsCollector,
) -> AdmissionEngine:
    """Admission engine over an in-memory store and a fixed clock."""
    return AdmissionEngine(store, token_issuer, clock=clock, metrics=metrics)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with an enabled, fast scheduler."""
    return Settings(
        store_backend="memory",
        log_level="DEBUG",
        log_format="console",
        scheduler_enabled=True,
        scheduler_initial_delay_seconds=0,
        scheduler_interval_seconds=0,
        scheduler_batch_size=3,
    )


@pytest.fixture
def app(engine: AdmissionEngine, store: InMemoryQueueStore) -> FastAPI:
    """Create a FastAPI app wired to the test engine and store."""
    app = create_app()
    app.dependency_overrides[get_admission_engine] = lambda: engine
    app.dependency_overrides[get_store] = lambda: store
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def json_log(test_settings: Settings) -> Generator[io.StringIO]:
    """Capture application logs as JSON lines, restoring logging afterwards."""
    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level

    buffer = io.StringIO()
    setup_logging(test_settings.model_copy(update={"log_format": "json"}), stream=buffer)
    yield buffer

    root_logger.handlers = handlers
    root_logger.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
