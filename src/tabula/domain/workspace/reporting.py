"""Assembly of the final batch result and its status classification."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tabula.domain.workspace.graph import WORKSPACE_GRAPH
from tabula.domain.workspace.outcomes import (
    BatchResult,
    PurgeOutcome,
    PurgeStatus,
)

if TYPE_CHECKING:
    from tabula.domain.workspace.graph import DependencyGraph
    from tabula.domain.workspace.outcomes import PurgeState, Rejection


def build_batch_result(
    state: PurgeState,
    graph: DependencyGraph = WORKSPACE_GRAPH,
    *,
    failed: bool = False,
) -> BatchResult:
    """Merge every phase recorded in ``state`` into one result.

    Normalization rejections come first (input order), then resolution
    misses (accepted order). Deleted counts list every graph category in
    deletion order, zero where nothing was removed or the phase never ran.
    A failed run that had already issued a delete is flagged as possibly
    partially applied; committed phases are never rolled back.
    """
    rejections: list[Rejection] = []
    if state.normalized is not None:
        rejections.extend(state.normalized.rejected)
    valid: tuple[str, ...] = ()
    if state.resolved is not None:
        rejections.extend(state.resolved.invalid)
        valid = tuple(entity.identifier for entity in state.resolved.valid)

    counts = {name: state.deleted_counts.get(name, 0) for name in graph.deletion_order()}
    return BatchResult(
        valid_processed=valid,
        invalid_or_skipped=tuple(rejections),
        deleted_counts=counts,
        count_discrepancies=state.discrepancies,
        possibly_partially_applied=failed and state.deletion_started,
    )


def classify(state: PurgeState, *, failed: bool = False) -> PurgeStatus:
    """Map the accumulated state to an HTTP-style status.

    Args:
        state: Accumulator after the last phase that ran.
        failed: True when a phase raised an unexpected error.
    """
    if failed:
        return PurgeStatus.SERVER_ERROR
    if state.normalized is None or not state.normalized.accepted:
        return PurgeStatus.BAD_INPUT
    if state.resolved is None or not state.resolved.valid:
        return PurgeStatus.NOT_FOUND
    if state.normalized.rejected or state.resolved.invalid:
        return PurgeStatus.MULTI_STATUS
    return PurgeStatus.OK


def summary_message(status: PurgeStatus, result: BatchResult, target_label: str) -> str:
    """Human-readable one-line summary for ``status``."""
    if status is PurgeStatus.BAD_INPUT:
        return f"No valid {target_label} emails provided for deletion."
    if status is PurgeStatus.NOT_FOUND:
        return f"No valid {target_label}s found to delete based on provided emails."
    if status is PurgeStatus.SERVER_ERROR:
        return f"Server error during bulk {target_label} deletion."
    return (
        f"Deletion process completed for {len(result.valid_processed)} {target_label}(s). "
        f"{len(result.invalid_or_skipped)} email(s) were invalid or skipped."
    )


def report(
    state: PurgeState,
    target_label: str,
    *,
    failed: bool = False,
    error: str | None = None,
    graph: DependencyGraph = WORKSPACE_GRAPH,
) -> PurgeOutcome:
    """Build the complete outcome for the HTTP layer.

    Args:
        state: Accumulator after the last phase that ran.
        target_label: Name of the purged role used in the message.
        failed: True when a phase raised an unexpected error.
        error: Short failure description appended to the 500 message.
        graph: Graph defining the reported categories.
    """
    status = classify(state, failed=failed)
    result = build_batch_result(state, graph, failed=failed)
    message = summary_message(status, result, target_label)
    if error:
        message = f"{message[:-1]}: {error}"
    return PurgeOutcome(status=status, message=message, result=result)
