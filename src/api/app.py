"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from .errors import install_error_handlers
from .metrics import instrument_app, router as metrics_router
from .routers import events, health, transcribe
from .settings import get_settings


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.version)
    app.include_router(health.router)
    app.include_router(events.router)
    app.include_router(transcribe.router)
    app.include_router(metrics_router)
    instrument_app(app)
    install_error_handlers(app)
    return app
