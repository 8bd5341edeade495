"""Workspace lifespan hook: optional schema bootstrap.

Runs after the database hook has verified connectivity.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from tabula.domain.workspace.infrastructure.tables import metadata
from tabula.foundation.application.contributions import (
    LifespanContribution,
    LifespanPriority,
)
from tabula.infra.persistence.database import get_database_manager

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _workspace_lifespan(app: Any) -> AsyncIterator[None]:
    """Create the workspace tables when ``DATABASE_CREATE_SCHEMA`` is set.

    ``create_all`` only creates missing tables; existing ones are untouched.

    Args:
        app: The application instance (unused but required by protocol).
    """
    manager = get_database_manager()
    if manager.settings.create_schema:
        await asyncio.to_thread(metadata.create_all, manager.get_sync_engine())
        logger.info("workspace_schema_ready", extra={"tables": sorted(metadata.tables)})
    yield


lifespan_contribution = LifespanContribution(
    hook=_workspace_lifespan, priority=LifespanPriority.SCHEMA
)
