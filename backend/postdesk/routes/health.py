"""
PostDesk — Health Check Route
===============================

GET /health for container probes. Every page reads the posts table, so the
service is healthy exactly when the database answers `SELECT 1`:

    healthy    database connected     → 200
    unhealthy  database disconnected  → 503
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from postdesk import __version__
from postdesk import database
from postdesk.schemas.post import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_started_at = time.monotonic()


async def database_reachable() -> bool:
    """Probe through the module-level engine (patched in tests)."""
    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", e)
        return False
    return True


@router.get(
    "/health",
    name="health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check() -> JSONResponse:
    reachable = await database_reachable()
    body = HealthResponse(
        status="healthy" if reachable else "unhealthy",
        version=__version__,
        database="connected" if reachable else "disconnected",
        uptime_seconds=round(time.monotonic() - _started_at, 2),
    )
    return JSONResponse(status_code=200 if reachable else 503, content=body.model_dump())
