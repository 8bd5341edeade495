"""Tabula Infra Persistence -- database settings, engine and session factories."""

from tabula.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    get_database_manager,
    get_sync_session_factory,
)
from tabula.infra.persistence.lifespan import lifespan_contribution

__all__ = [
    "DatabaseManager",
    "DatabaseSettings",
    "get_database_manager",
    "get_sync_session_factory",
    "lifespan_contribution",
]
