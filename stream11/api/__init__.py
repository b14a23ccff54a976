"""
HTTP layer: the FastAPI application, its dependencies and routers.
"""

from stream11.api.app import create_app

__all__ = ["create_app"]
