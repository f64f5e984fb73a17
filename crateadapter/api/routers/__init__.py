"""API routers package."""

from crateadapter.api.routers.health import router as health_router
from crateadapter.api.routers.remote import router as remote_router

__all__ = [
    "health_router",
    "remote_router",
]
