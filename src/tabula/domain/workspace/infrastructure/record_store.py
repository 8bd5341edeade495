"""SQLAlchemy implementation of RecordStorePort.

Each call is one short synchronous transaction run in a worker thread via
``asyncio.to_thread``; each delete commits on its own. All statements are
restricted to the store's tenant.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from tabula.domain.workspace.infrastructure.tables import WORKSPACE_TABLES
from tabula.foundation.domain.exceptions import RecordStoreError

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping, Sequence

    from sqlalchemy import Column, Table
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class SqlRecordStore:
    """Tenant-scoped batched find/delete over the workspace tables.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        tenant_id: Tenant every statement is restricted to.
        tables: Category name -> table mapping.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        tenant_id: str,
        tables: Mapping[str, Table] = WORKSPACE_TABLES,
    ) -> None:
        self._session_factory = session_factory
        self._tenant_id = tenant_id
        self._tables = tables

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    async def find_in(
        self,
        category: str,
        field: str,
        values: Collection[str],
        fields: Sequence[str],
    ) -> list[dict[str, Any]]:
        """Find records of ``category`` whose ``field`` is in ``values``."""
        if not values:
            return []
        return await asyncio.to_thread(
            partial(self._find_in_sync, category, field, list(values), list(fields))
        )

    async def delete_in(self, category: str, field: str, values: Collection[str]) -> int:
        """Delete records of ``category`` whose ``field`` is in ``values``."""
        if not values:
            return 0
        return await asyncio.to_thread(
            partial(self._delete_in_sync, category, field, list(values))
        )

    def _find_in_sync(
        self,
        category: str,
        field: str,
        values: list[str],
        fields: list[str],
    ) -> list[dict[str, Any]]:
        table = self._table("find", category)
        stmt = select(*(self._column("find", table, f) for f in fields)).where(
            table.c.tenant_id == self._tenant_id,
            self._column("find", table, field).in_(values),
        )
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            self._log_failure("find", category, len(values))
            raise RecordStoreError("find", category, type(exc).__name__) from exc
        return [dict(row) for row in rows]

    def _delete_in_sync(self, category: str, field: str, values: list[str]) -> int:
        table = self._table("delete", category)
        stmt = delete(table).where(
            table.c.tenant_id == self._tenant_id,
            self._column("delete", table, field).in_(values),
        )
        try:
            with self._session_factory() as session:
                result = session.execute(stmt)
                session.commit()
        except SQLAlchemyError as exc:
            self._log_failure("delete", category, len(values))
            raise RecordStoreError("delete", category, type(exc).__name__) from exc

        deleted = result.rowcount  # type: ignore[attr-defined]
        if not isinstance(deleted, int) or deleted < 0:
            raise RecordStoreError("delete", category, f"unusable deleted count {deleted!r}")
        return deleted

    def _table(self, operation: str, category: str) -> Table:
        try:
            return self._tables[category]
        except KeyError:
            raise RecordStoreError(operation, category, "unknown category") from None

    def _column(self, operation: str, table: Table, name: str) -> Column[Any]:
        if name not in table.c:
            raise RecordStoreError(operation, table.name, f"unknown field '{name}'")
        return table.c[name]

    def _log_failure(self, operation: str, category: str, value_count: int) -> None:
        logger.error(
            "record_store_operation_failed",
            extra={
                "operation": operation,
                "category": category,
                "value_count": value_count,
                "tenant_id": self._tenant_id,
            },
            exc_info=True,
        )
