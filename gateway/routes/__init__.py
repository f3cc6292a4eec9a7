"""API routes package."""

from gateway.routes.health_routes import router as health_router
from gateway.routes.piece_routes import router as piece_router

__all__ = ["health_router", "piece_router"]
