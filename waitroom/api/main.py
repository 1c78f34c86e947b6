"""
FastAPI application entry point.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from waitroom import __version__
from waitroom.admission import AdmissionEngine
from waitroom.api.routes import health_router, queue_router
from waitroom.config import get_settings
from waitroom.errors import WaitingRoomError
from waitroom.observability.logging import bind_request_context, setup_logging
from waitroom.observability.metrics import get_metrics, setup_metrics
from waitroom.observability.tracing import instrument_fastapi, setup_tracing
from waitroom.scheduler import AdmissionScheduler
from waitroom.store import close_store, init_store
from waitroom.tokens import get_token_issuer
from waitroom.types.api import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Opens the queue store and runs the admission scheduler as a background
    task alongside request handling.
    """
    settings = get_settings()

    # Startup
    setup_logging()
    setup_metrics()
    if settings.otel_enabled:
        setup_tracing()
    store = await init_store()

    scheduler = AdmissionScheduler(AdmissionEngine(store, get_token_issuer()), settings)
    scheduler_task = asyncio.create_task(scheduler.start())

    logger.info("Application started")

    yield

    # Shutdown
    await scheduler.stop()
    scheduler_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await scheduler_task
    await close_store()
    logger.info("Application shutdown")


async def waiting_room_error_handler(request: Request, exc: WaitingRoomError) -> JSONResponse:
    """Render waiting room errors as {"error": code, "detail": message}."""
    if exc.status_code >= 500:
        logger.error(
            f"Request failed: {exc.message}",
            extra={"path": request.url.path, "error": exc.code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.code, detail=exc.message).model_dump(),
    )


async def bind_log_context(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Middleware tagging log records with the request's queue and user id."""
    bind_request_context(request.query_params)
    return await call_next(request)


async def record_request_metrics(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Middleware recording request count and latency per route."""
    start = time.perf_counter()
    response = await call_next(request)

    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    get_metrics().record_api_request(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code,
        duration_seconds=time.perf_counter() - start,
    )
    return response


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Waiting Room API",
        description="Virtual waiting room with batched admission",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(record_request_metrics)
    app.middleware("http")(bind_log_context)
    app.add_exception_handler(WaitingRoomError, waiting_room_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(queue_router)

    if settings.otel_enabled:
        instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    app = create_app()

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    run()
