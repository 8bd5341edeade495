"""Health check endpoint.

Reports database connectivity and overall application readiness.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


async def _check_database() -> dict[str, str]:
    """Check database connectivity via SELECT 1."""
    from tabula.infra.persistence.database import get_database_manager

    try:
        await asyncio.to_thread(get_database_manager().ping)
    except Exception as exc:
        logger.warning("health_check_database_unhealthy", extra={"error": str(exc)})
        return {"status": "error", "detail": type(exc).__name__}
    return {"status": "ok"}


@router.get("/healthz")
async def healthz() -> Any:
    """Return 200 when the database answers, 503 otherwise."""
    checks = {"database": await _check_database()}
    all_ok = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(
        content={"status": "ok" if all_ok else "degraded", "checks": checks},
        status_code=200 if all_ok else 503,
    )
