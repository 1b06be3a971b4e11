"""API routers for Fitsoul."""

from fitsoul.routers.auth import router as auth_router
from fitsoul.routers.sse import router as sse_router

__all__ = [
    "auth_router",
    "sse_router",
]
