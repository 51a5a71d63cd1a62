"""
FastAPI application exposing the chat service over REST.

Run with ``uvicorn --factory thinkchat.main:create_app`` or ``thinkchat-server``.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI

from thinkchat.core.otel_config import setup_opentelemetry
from thinkchat.infrastructure.app_factory import AppFactory
from thinkchat.routes.chat_routes import router as chat_router
from thinkchat.routes.context_routes import router as context_router
from thinkchat.version import VERSION

logger = logging.getLogger(__name__)


def create_app(factory: Optional[AppFactory] = None, configure_logging: bool = True) -> FastAPI:
    """Build the FastAPI app around an AppFactory."""
    factory = factory or AppFactory()
    settings = factory.get_config_manager().app_settings

    otel_config = setup_opentelemetry(settings, settings.app_name) if configure_logging else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting %s backend", settings.app_name)
        service = factory.create_chat_service()
        app.state.chat_service = service
        await service.load_chats_from_storage()
        await service.load_contexts_from_storage()

        yield

        logger.info("Shutting down %s backend", settings.app_name)
        await service.flush()
        if service.write_behind.failures:
            logger.warning("%d storage writes failed during this run", len(service.write_behind.failures))

    app = FastAPI(
        title="thinkchat",
        description="Chat backend with structured AI thinking",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.factory = factory

    @app.get("/api/health")
    async def health():
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "responder_configured": factory.get_responder() is not None,
        }

    app.include_router(chat_router)
    app.include_router(context_router)

    if otel_config is not None:
        otel_config.instrument_fastapi(app)
    return app
