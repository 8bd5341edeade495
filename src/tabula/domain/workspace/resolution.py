"""Resolution of canonical identifiers to stored root records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tabula.domain.workspace.graph import WORKSPACE_GRAPH
from tabula.domain.workspace.outcomes import (
    NotFound,
    ResolutionResult,
    ResolvedEntity,
    WrongRole,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tabula.domain.workspace.graph import DependencyGraph
    from tabula.foundation.domain.ports import RecordStorePort

logger = logging.getLogger(__name__)


class EntityResolver:
    """Looks up accepted identifiers among the graph's root records.

    All identifiers are resolved in a single batched ``find_in`` against the
    root category, keyed by its display key (email).

    Args:
        store: Record store scoped to the acting tenant.
        graph: Dependency graph whose root category holds the targets.
        role_field: Field of the root record holding its role.
    """

    def __init__(
        self,
        store: RecordStorePort,
        graph: DependencyGraph = WORKSPACE_GRAPH,
        role_field: str = "role",
    ) -> None:
        self._store = store
        self._graph = graph
        self._role_field = role_field

    async def resolve(self, accepted: Sequence[str], expected_role: str) -> ResolutionResult:
        """Classify each accepted identifier as valid, missing, or wrong role.

        Args:
            accepted: Canonical, deduplicated identifiers.
            expected_role: Role a record must carry to be purged.

        Returns:
            Valid entities and per-identifier misses, both in ``accepted`` order.

        Raises:
            RecordStoreError: If the lookup fails.
        """
        if not accepted:
            return ResolutionResult(valid=())

        root = self._graph.root
        key_field = root.display_key_field or root.id_field
        rows = await self._store.find_in(
            root.name,
            key_field,
            accepted,
            (root.id_field, key_field, self._role_field),
        )
        by_key = {str(row[key_field]).lower(): row for row in rows}

        valid: list[ResolvedEntity] = []
        invalid: list[NotFound | WrongRole] = []
        for identifier in accepted:
            row = by_key.get(identifier)
            if row is None:
                invalid.append(NotFound(identifier))
                continue
            role = str(row[self._role_field])
            if role != expected_role:
                invalid.append(
                    WrongRole(identifier, actual_role=role, expected_role=expected_role)
                )
                continue
            valid.append(
                ResolvedEntity(
                    identifier=identifier,
                    internal_id=str(row[root.id_field]),
                    role=role,
                    stored_key=str(row[key_field]),
                )
            )

        logger.debug(
            "entities_resolved",
            extra={"requested": len(accepted), "valid": len(valid), "invalid": len(invalid)},
        )
        return ResolutionResult(valid=tuple(valid), invalid=tuple(invalid))
