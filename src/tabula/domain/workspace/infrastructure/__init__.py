"""Workspace infrastructure -- SQLAlchemy tables and record store."""

from tabula.domain.workspace.infrastructure.record_store import SqlRecordStore
from tabula.domain.workspace.infrastructure.tables import WORKSPACE_TABLES, metadata

__all__ = ["WORKSPACE_TABLES", "SqlRecordStore", "metadata"]
