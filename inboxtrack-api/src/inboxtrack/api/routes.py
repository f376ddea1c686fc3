"""
API routes for the InboxTrack service.

Read endpoints used by clients to refresh state on (re)connect.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel

from inboxtrack.domain import ApplicationRecord
from inboxtrack.infrastructure import SQLiteClient, get_settings, get_sqlite_client
from inboxtrack.infrastructure.stores import SQLiteApplicationStore

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    services: dict[str, str]


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/health", response_model=HealthResponse)
def health(sqlite: SQLiteClient = Depends(get_sqlite_client)) -> HealthResponse:
    """Health check with storage status."""
    services = {}
    try:
        sqlite.ping()
        services["sqlite"] = "connected"
    except Exception as e:
        logger.error(f"Health check: sqlite unavailable: {e}")
        services["sqlite"] = "unavailable"

    return HealthResponse(
        status="healthy" if services["sqlite"] == "connected" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=get_settings().app_version,
        services=services,
    )


@router.get("/users/{user_id}/applications", response_model=list[ApplicationRecord])
def list_applications(
    user_id: str,
    sqlite: SQLiteClient = Depends(get_sqlite_client),
) -> list[ApplicationRecord]:
    """All tracked applications of a user, most recently updated first."""
    # Sync handler: sqlite blocks, so this runs in the threadpool
    return SQLiteApplicationStore(sqlite).list_for_user(user_id)
