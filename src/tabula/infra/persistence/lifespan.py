"""Database lifespan hook: fail startup on an unreachable store, dispose on shutdown."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from tabula.foundation.application.contributions import (
    LifespanContribution,
    LifespanPriority,
)
from tabula.infra.persistence.database import get_database_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _database_lifespan(app: Any) -> AsyncIterator[None]:
    manager = get_database_manager()
    # ping() blocks on the driver
    await asyncio.to_thread(manager.ping)
    settings = manager.settings
    logger.info(
        "database_ready",
        extra={
            "sqlite": settings.is_sqlite,
            "max_connections": None
            if settings.is_sqlite
            else settings.pool_size + settings.max_overflow,
        },
    )
    try:
        yield
    finally:
        manager.dispose()
        logger.info("database_disposed")


lifespan_contribution = LifespanContribution(_database_lifespan, LifespanPriority.DATABASE)
