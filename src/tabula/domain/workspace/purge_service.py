"""Orchestration of the bulk Project Manager purge.

Runs the phases in order, threading one :class:`PurgeState` through them:

    actor lookup -> normalize -> resolve -> aggregate -> delete -> report

The aggregate-then-delete sequence holds no lock and no transaction across
phases. A dependent created by a concurrent request after aggregation is not
deleted, and two overlapping purges may both report the same roots; the
second one sees zero removed for records the first already deleted.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

from tabula.domain.workspace.aggregation import DependencyAggregator
from tabula.domain.workspace.cascade import (
    CascadeExecutor,
    CascadeInterruptedError,
    describe_failure,
)
from tabula.domain.workspace.graph import WORKSPACE_GRAPH
from tabula.domain.workspace.normalization import normalize
from tabula.domain.workspace.outcomes import PurgeOutcome, PurgeState, PurgeStatus
from tabula.domain.workspace.reporting import build_batch_result, report
from tabula.domain.workspace.resolution import EntityResolver
from tabula.domain.workspace.settings import PurgeSettings, get_purge_settings
from tabula.foundation.domain.exceptions import RecordStoreError
from tabula.infra.observability import get_logger

if TYPE_CHECKING:
    from tabula.domain.workspace.graph import DependencyGraph
    from tabula.foundation.domain.ports import RecordStorePort
    from tabula.foundation.domain.principal import Principal

logger = get_logger(__name__)

ADMINS_CATEGORY = "admins"
ADMIN_IDENTITY_UNVERIFIED = "Server Error: Could not verify admin identity."


class ProjectManagerPurgeService:
    """Deletes Project Manager accounts together with everything they own.

    Args:
        store: Record store scoped to the acting tenant.
        settings: Role configuration; loaded from the environment if omitted.
        graph: Dependency graph rooted at the user category.
    """

    def __init__(
        self,
        store: RecordStorePort,
        settings: PurgeSettings | None = None,
        graph: DependencyGraph = WORKSPACE_GRAPH,
    ) -> None:
        self._store = store
        self._settings = settings or get_purge_settings()
        self._graph = graph
        self._resolver = EntityResolver(store, graph)
        self._aggregator = DependencyAggregator(store, graph)
        self._executor = CascadeExecutor(store, graph)

    async def actor_email(self, principal: Principal) -> str | None:
        """Email stored for the acting admin, or None if no admin record exists.

        The stored address is authoritative for the self-deletion check; the
        token's email claim is not trusted for it.

        Raises:
            RecordStoreError: If the lookup fails.
        """
        rows = await self._store.find_in(
            ADMINS_CATEGORY, "user_id", [str(principal.user_id)], ("user_id", "email")
        )
        if not rows or not rows[0].get("email"):
            return None
        return str(rows[0]["email"])

    async def purge(self, principal: Principal, raw_identifiers: Any) -> PurgeOutcome:
        """Run the full purge for one request.

        Args:
            principal: Authenticated actor holding the privileged role.
            raw_identifiers: The ``identifiers`` value from the request body.

        Returns:
            Outcome with status 200, 207, 400 (nothing survived
            normalization), 404 (nothing resolved) or 500 (any failure after
            the actor lookup began, partial counts included).

        Raises:
            BadInputError: If ``raw_identifiers`` is not a non-empty list.
        """
        log = logger.bind(actor=principal.subject, tenant_id=principal.tenant_id)
        label = self._settings.target_label
        state = PurgeState()

        try:
            actor_email = await self.actor_email(principal)
        except RecordStoreError as exc:
            log.error("purge_failed", phase="actor_lookup", error=exc.message)
            return report(state, label, failed=True, error=exc.message, graph=self._graph)
        except Exception as exc:
            log.error("purge_failed", phase="actor_lookup", exc_info=True)
            return report(
                state, label, failed=True, error=describe_failure(exc), graph=self._graph
            )
        if actor_email is None:
            log.error("purge_failed", phase="actor_lookup", error="admin record missing")
            return PurgeOutcome(
                status=PurgeStatus.SERVER_ERROR,
                message=ADMIN_IDENTITY_UNVERIFIED,
                result=build_batch_result(state, self._graph, failed=True),
            )

        normalized = normalize(raw_identifiers, actor_email)
        state = replace(state, normalized=normalized)
        log.info(
            "purge_started",
            requested=len(raw_identifiers),
            accepted=len(normalized.accepted),
            rejected=len(normalized.rejected),
        )
        if not normalized.accepted:
            return self._finish(log, state)

        try:
            resolved = await self._resolver.resolve(normalized.accepted, self._settings.target_role)
            state = replace(state, resolved=resolved)
            if not resolved.valid:
                return self._finish(log, state)

            cascade = await self._aggregator.aggregate([e.internal_id for e in resolved.valid])
            state = replace(state, cascade=cascade)
            log.info("purge_dependents_aggregated", roots=len(resolved.valid), **cascade.sizes())

            state = await self._executor.execute(state, cascade, resolved.valid)
        except CascadeInterruptedError as exc:
            log.error(
                "purge_failed",
                phase="delete",
                category=exc.failed_category,
                completed=dict(exc.state.deleted_counts),
                error=exc.message,
            )
            return report(exc.state, label, failed=True, error=exc.message, graph=self._graph)
        except RecordStoreError as exc:
            log.error("purge_failed", phase=exc.operation, category=exc.category, error=exc.message)
            return report(state, label, failed=True, error=exc.message, graph=self._graph)
        except Exception as exc:
            # Malformed rows or an unreachable store outside the store contract
            log.error("purge_failed", phase="unexpected", exc_info=True)
            return report(
                state, label, failed=True, error=describe_failure(exc), graph=self._graph
            )

        return self._finish(log, state)

    def _finish(self, log: Any, state: PurgeState) -> PurgeOutcome:
        outcome = report(state, self._settings.target_label, graph=self._graph)
        log.info(
            "purge_completed",
            status=int(outcome.status),
            valid=len(outcome.result.valid_processed),
            invalid_or_skipped=len(outcome.result.invalid_or_skipped),
            deleted=dict(outcome.result.deleted_counts),
        )
        return outcome
