"""
Health check routes.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from waitroom import __version__
from waitroom.errors import StoreUnavailableError
from waitroom.observability.metrics import get_metrics
from waitroom.store import QueueStore, get_store
from waitroom.types.api import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


async def _store_reachable(store: QueueStore) -> bool:
    try:
        return await store.ping()
    except StoreUnavailableError as e:
        logger.warning(f"Queue store health check failed: {e}")
        return False


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health of the API and queue store connection.",
)
async def health_check(
    store: QueueStore = Depends(get_store),
) -> HealthResponse:
    """
    Perform a health check.

    Returns:
        HealthResponse with service and store status.
    """
    store_status = "healthy" if await _store_reachable(store) else "unhealthy"

    return HealthResponse(
        status="healthy" if store_status == "healthy" else "degraded",
        version=__version__,
        store=store_status,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the service is ready to receive traffic.",
)
async def readiness_check(
    store: QueueStore = Depends(get_store),
) -> dict:
    """Kubernetes readiness probe endpoint."""
    return {"ready": await _store_reachable(store)}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    """Kubernetes liveness probe endpoint."""
    return {"alive": True}


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    metrics_collector = get_metrics()
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
