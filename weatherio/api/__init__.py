"""API router definitions."""

from fastapi import APIRouter

from .overrides import router as overrides_router
from .routes import health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(overrides_router)

__all__ = ["api_router"]
