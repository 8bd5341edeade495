"""Port interface for the batched record store.

This module defines the RecordStorePort protocol used by the purge workflow
to read and delete records by category without coupling to a specific
database. Every operation is a single batched round trip keyed by a set of
field values.

Example:
    >>> from tabula.foundation.domain.ports import RecordStorePort
    >>> async def count_projects(store: RecordStorePort, owner_ids: set[str]) -> int:
    ...     rows = await store.find_in("projects", "created_by", owner_ids, ("project_id",))
    ...     return len(rows)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence


@runtime_checkable
class RecordStorePort(Protocol):
    """Port for batched find/delete operations per record category.

    Implementations are request-scoped and may restrict every operation to
    a single tenant. Failures surface as ``RecordStoreError``; implementations
    never retry on their own.
    """

    async def find_in(
        self,
        category: str,
        field: str,
        values: Collection[str],
        fields: Sequence[str],
    ) -> list[dict[str, Any]]:
        """Find records whose ``field`` is in ``values``.

        Args:
            category: Record category (e.g. "users", "projects").
            field: Field matched against ``values``.
            values: Values to match. Must be non-empty.
            fields: Projection; only these fields are returned.

        Returns:
            One dict per matching record, keyed by the projected field names.

        Raises:
            RecordStoreError: If the store fails or the category/field is unknown.
        """
        ...

    async def delete_in(
        self,
        category: str,
        field: str,
        values: Collection[str],
    ) -> int:
        """Delete records whose ``field`` is in ``values``.

        Args:
            category: Record category.
            field: Field matched against ``values``.
            values: Values to match. Must be non-empty.

        Returns:
            Number of records the store actually removed. Records that are
            already absent contribute zero; this is not an error.

        Raises:
            RecordStoreError: If the store fails or the category/field is unknown.
        """
        ...
