"""
Health router — liveness plus a database connectivity check.

Returns 200 with status "healthy" when the database answers, or 503 with
status "degraded" so load balancers stop routing traffic to this instance.
"""

import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from transfer_api.database import Database
from transfer_api.dependencies import get_database

router = APIRouter()

logger = structlog.get_logger()


async def _check_database(database: Database) -> dict:
    start = time.perf_counter()
    try:
        await database.ping()
        check = {"status": "healthy", "message": "connected"}
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("database_health_check_failed", error=str(exc))
        check = {"status": "unhealthy", "message": "connection failed"}
    check["duration_ms"] = round((time.perf_counter() - start) * 1000)
    return check


@router.get("/health", tags=["Health"])
async def health_check(
    request: Request,
    database: Database = Depends(get_database),
):
    """Report service status and database connectivity."""
    settings = request.app.state.settings
    database_check = await _check_database(database)
    overall = "healthy" if database_check["status"] == "healthy" else "degraded"

    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content={
            "status": overall,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "checks": {"database": database_check},
        },
    )
