from fastapi import FastAPI

from .auth import router as auth_router
from .conversations import router as conversations_router
from .health import router as health_router
from .notifications import router as notifications_router
from .realtime import router as realtime_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(conversations_router)
    app.include_router(notifications_router)
    app.include_router(realtime_router)
