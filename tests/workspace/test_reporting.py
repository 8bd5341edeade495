"""Unit tests for tabula.domain.workspace.reporting."""

from __future__ import annotations

import pytest

from tabula.domain.workspace.outcomes import (
    InvalidFormat,
    IsSelf,
    NormalizationResult,
    NotFound,
    PurgeState,
    PurgeStatus,
    ResolutionResult,
    ResolvedEntity,
    WrongRole,
)
from tabula.domain.workspace.reporting import build_batch_result, classify, report

PM1 = ResolvedEntity(identifier="pm1@x.com", internal_id="u-pm1", role="ProjectManager")


def _state(
    accepted: tuple[str, ...] = ("pm1@x.com",),
    rejected: tuple[InvalidFormat | IsSelf, ...] = (),
    valid: tuple[ResolvedEntity, ...] | None = (PM1,),
    invalid: tuple[NotFound | WrongRole, ...] = (),
) -> PurgeState:
    resolved = None if valid is None else ResolutionResult(valid=valid, invalid=invalid)
    return PurgeState(
        normalized=NormalizationResult(accepted=accepted, rejected=rejected),
        resolved=resolved,
    )


@pytest.mark.unit
class TestClassify:
    def test_all_valid_is_ok(self) -> None:
        assert classify(_state()) is PurgeStatus.OK

    def test_normalization_rejection_is_multi_status(self) -> None:
        assert classify(_state(rejected=(InvalidFormat("bad"),))) is PurgeStatus.MULTI_STATUS

    def test_resolution_miss_is_multi_status(self) -> None:
        state = _state(
            accepted=("pm1@x.com", "ghost@x.com"),
            invalid=(NotFound("ghost@x.com"),),
        )
        assert classify(state) is PurgeStatus.MULTI_STATUS

    def test_nothing_resolved_is_not_found(self) -> None:
        state = _state(valid=(), invalid=(NotFound("pm1@x.com"),))
        assert classify(state) is PurgeStatus.NOT_FOUND

    def test_nothing_accepted_is_bad_input(self) -> None:
        state = _state(accepted=(), rejected=(IsSelf("actor@x.com"),), valid=None)
        assert classify(state) is PurgeStatus.BAD_INPUT

    def test_failure_wins(self) -> None:
        assert classify(_state(), failed=True) is PurgeStatus.SERVER_ERROR


@pytest.mark.unit
class TestBuildBatchResult:
    def test_partition_of_identifiers(self) -> None:
        state = _state(
            accepted=("pm1@x.com", "ghost@x.com", "dev@x.com"),
            rejected=(InvalidFormat("bad"), IsSelf("actor@x.com")),
            invalid=(
                NotFound("ghost@x.com"),
                WrongRole("dev@x.com", actual_role="Developer", expected_role="ProjectManager"),
            ),
        )
        result = build_batch_result(state)
        assert result.valid_processed == ("pm1@x.com",)
        assert [r.identifier for r in result.invalid_or_skipped] == [
            "bad",
            "actor@x.com",
            "ghost@x.com",
            "dev@x.com",
        ]
        assert not set(result.valid_processed) & {
            r.identifier for r in result.invalid_or_skipped
        }

    def test_counts_cover_every_category_in_deletion_order(self) -> None:
        state = _state().with_count("tasks", requested=3, deleted=3)
        result = build_batch_result(state)
        assert list(result.deleted_counts) == [
            "tasks",
            "assignments",
            "teams",
            "projects",
            "users",
        ]
        assert result.deleted_counts["tasks"] == 3
        assert result.deleted_counts["users"] == 0
        assert result.possibly_partially_applied is False

    def test_failed_run_after_first_delete_is_flagged(self) -> None:
        state = _state().with_count("tasks", requested=3, deleted=3)
        assert build_batch_result(state, failed=True).possibly_partially_applied is True
        assert build_batch_result(_state(), failed=True).possibly_partially_applied is False

    def test_empty_state(self) -> None:
        result = build_batch_result(PurgeState())
        assert result.valid_processed == ()
        assert result.invalid_or_skipped == ()
        assert result.possibly_partially_applied is False


@pytest.mark.unit
class TestReport:
    def test_success_message(self) -> None:
        outcome = report(_state(rejected=(InvalidFormat("bad"),)), "Project Manager")
        assert outcome.status is PurgeStatus.MULTI_STATUS
        assert outcome.success is False
        assert outcome.message == (
            "Deletion process completed for 1 Project Manager(s). "
            "1 email(s) were invalid or skipped."
        )

    def test_ok_is_the_only_success(self) -> None:
        assert report(_state(), "Project Manager").success is True

    def test_not_found_message(self) -> None:
        outcome = report(_state(valid=()), "Project Manager")
        assert outcome.message == (
            "No valid Project Managers found to delete based on provided emails."
        )

    def test_bad_input_message(self) -> None:
        outcome = report(_state(accepted=(), valid=None), "Project Manager")
        assert outcome.message == "No valid Project Manager emails provided for deletion."

    def test_failure_message_includes_error(self) -> None:
        outcome = report(_state(), "Project Manager", failed=True, error="store down")
        assert outcome.status is PurgeStatus.SERVER_ERROR
        assert outcome.message == "Server error during bulk Project Manager deletion: store down"
