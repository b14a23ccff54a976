"""API routers, mounted under the configured prefix."""

from stream11.api.routers.auth import router as auth_router
from stream11.api.routers.predictions import router as predictions_router
from stream11.api.routers.status import router as status_router

ALL_ROUTERS = [auth_router, predictions_router, status_router]

__all__ = ["ALL_ROUTERS"]
