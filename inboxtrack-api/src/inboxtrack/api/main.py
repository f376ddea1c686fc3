"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from inboxtrack.infrastructure import get_settings, get_sqlite_client
from inboxtrack.infrastructure.log_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    # Fail fast: a bad encryption key or missing LLM key raises here
    from inboxtrack.application.use_cases.process_notification import get_process_notification_use_case

    get_sqlite_client()
    get_process_notification_use_case()
    logger.info("Ingestion pipeline ready")

    yield

    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Job application tracking from a Gmail change stream",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from inboxtrack.api.routes import router
    from inboxtrack.infrastructure.http import gmail_webhook_router, realtime_router

    app.include_router(router)
    app.include_router(gmail_webhook_router)
    app.include_router(realtime_router)

    return app


# Create app instance
app = create_app()
