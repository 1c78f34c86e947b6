"""
API routes module.
"""

from waitroom.api.routes.health import router as health_router
from waitroom.api.routes.queue import router as queue_router

__all__ = ["queue_router", "health_router"]
