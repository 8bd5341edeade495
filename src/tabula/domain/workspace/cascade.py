"""Ordered multi-phase deletion of dependents followed by their roots."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from tabula.domain.workspace.graph import WORKSPACE_GRAPH
from tabula.foundation.domain.exceptions import RecordStoreError
from tabula.infra.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tabula.domain.workspace.graph import DependencyGraph
    from tabula.domain.workspace.outcomes import CascadeSet, PurgeState, ResolvedEntity
    from tabula.foundation.domain.ports import RecordStorePort

logger = get_logger(__name__)


def describe_failure(exc: BaseException) -> str:
    """Short "Type: message" text for a failure that is not a store error."""
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


class CascadeInterruptedError(RecordStoreError):
    """A delete phase failed after the cascade had started.

    Phases that completed before the failure stay applied; nothing is rolled
    back.

    Attributes:
        state: Accumulator as of the failing phase (completed counts only).
        failed_category: Category whose delete call failed.
    """

    error_code: str = "CASCADE_INTERRUPTED"

    def __init__(self, state: PurgeState, failed_category: str, cause: Exception) -> None:
        reason = cause.reason if isinstance(cause, RecordStoreError) else describe_failure(cause)
        super().__init__("delete", failed_category, reason)
        self.state = state
        self.failed_category = failed_category


class CascadeExecutor:
    """Deletes a cascade set in reverse topological order of the graph.

    One batched ``delete_in`` per non-empty phase; empty phases issue no
    store call. Dependents are addressed by their id field, roots by their
    display key. Removed counts are taken from the store as reported; a count
    that differs from the number requested is logged and recorded as a
    discrepancy, never corrected.

    Args:
        store: Record store scoped to the acting tenant.
        graph: Dependency graph defining phase order.
    """

    def __init__(self, store: RecordStorePort, graph: DependencyGraph = WORKSPACE_GRAPH) -> None:
        self._store = store
        self._graph = graph

    def phases(
        self,
        cascade: CascadeSet,
        roots: Sequence[ResolvedEntity],
    ) -> list[tuple[str, str, list[str]]]:
        """Planned ``(category, field, values)`` delete calls, in execution order."""
        root = self._graph.root
        planned: list[tuple[str, str, list[str]]] = []
        for name in self._graph.deletion_order():
            if name == root.name and root.display_key_field:
                planned.append((name, root.display_key_field, [r.delete_key for r in roots]))
            elif name == root.name:
                planned.append((name, root.id_field, [r.internal_id for r in roots]))
            else:
                category = self._graph.category(name)
                planned.append((name, category.id_field, sorted(cascade.ids(name))))
        return planned

    async def execute(
        self,
        state: PurgeState,
        cascade: CascadeSet,
        roots: Sequence[ResolvedEntity],
    ) -> PurgeState:
        """Run every delete phase and return the updated accumulator.

        Args:
            state: Accumulator from the previous phases.
            cascade: Dependents to delete.
            roots: Resolved root records to delete last.

        Returns:
            New state with a count for every phase (zero for skipped ones).

        Raises:
            CascadeInterruptedError: If a delete call fails for any reason.
                Carries the state accumulated up to the failing phase.
        """
        for category, field, values in self.phases(cascade, roots):
            if not values:
                state = replace(state, deleted_counts={**state.deleted_counts, category: 0})
                continue

            state = replace(state, deletion_started=True)
            try:
                deleted = await self._store.delete_in(category, field, values)
            except Exception as exc:
                raise CascadeInterruptedError(state, category, exc) from exc

            state = state.with_count(category, requested=len(values), deleted=deleted)
            logger.info(
                "purge_phase_completed",
                category=category,
                requested=len(values),
                deleted=deleted,
            )
            if deleted != len(values):
                logger.warning(
                    "purge_count_mismatch",
                    category=category,
                    requested=len(values),
                    deleted=deleted,
                )

        return state
