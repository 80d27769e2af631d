"""Routers package for the webhook server."""

from src.server.routers.health import router as health_router
from src.server.routers.hubspot import router as hubspot_router

__all__ = [
    "health_router",
    "hubspot_router",
]
