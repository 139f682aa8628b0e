"""
API routers.
"""

from app.api.routers.herd import router as herd_router

__all__ = [
    "herd_router",
]
