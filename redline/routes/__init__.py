"""API routes package."""

from redline.routes.comparisons import router as comparisons_router
from redline.routes.health import router as health_router

__all__ = ["comparisons_router", "health_router"]
