"""Unit tests for result and event models."""

from datetime import datetime, timedelta

import pytest

from label_syncer.models.errors import DeletionBlocked, LabelNotFound, LabelSyncError, RemoteOperationFailed
from label_syncer.models.results import (
    AncestorReport,
    EditEvent,
    OperationFailure,
    RowChangeResult,
    SyncResult,
)
from label_syncer.models.sync_run import SyncRun


class TestEditEvent:
    def test_values_are_trimmed(self):
        event = EditEvent(row=2, column=2, old_value="  Old ", new_value="New  ")

        assert event.old_value == "Old"
        assert event.new_value == "New"

    def test_cleared_cell_becomes_empty_string(self):
        event = EditEvent(row=2, column=2, old_value="Old", new_value=None)

        assert event.new_value == ""


class TestSyncResult:
    def test_empty_result_is_noop(self):
        result = SyncResult()

        assert result.total_changes == 0
        assert result.is_noop

    def test_total_changes_counts_both_directions(self):
        result = SyncResult(created_in_gmail=["Work"], added_to_sheet=["Personal", "Bills"])

        assert result.total_changes == 3
        assert not result.is_noop

    def test_repairs_are_not_changes_but_not_noop(self):
        result = SyncResult(ids_repaired=["Work"])

        assert result.total_changes == 0
        assert not result.is_noop

    def test_to_dict(self):
        result = SyncResult(
            created_in_gmail=["Work"],
            failures=[OperationFailure("Bad", "create", "boom")],
        )

        assert result.to_dict() == {
            "created_in_gmail": ["Work"],
            "added_to_sheet": [],
            "ids_repaired": [],
            "failures": ['create "Bad": boom'],
        }


class TestRowChangeResult:
    def test_invalid_action_raises(self):
        with pytest.raises(ValueError, match="Invalid action"):
            RowChangeResult(action="move", status="success", row_index=2)

    def test_invalid_status_raises(self):
        with pytest.raises(ValueError, match="Invalid status"):
            RowChangeResult(action="create", status="done", row_index=2)

    def test_noop(self):
        result = RowChangeResult.noop(3, "Work", "Work")

        assert result.action == "noop"
        assert result.status == "skipped"
        assert result.ok

    @pytest.mark.parametrize(
        "status,ok",
        [("success", True), ("exists", True), ("conflict", False), ("failed", False)],
    )
    def test_ok(self, status, ok):
        assert RowChangeResult(action="create", status=status, row_index=2).ok is ok


class TestAncestorReport:
    def test_ok_without_failures(self):
        assert AncestorReport(created_remote=["A"]).ok

    def test_not_ok_with_failures(self):
        assert not AncestorReport(failures=[OperationFailure("A", "create parent", "x")]).ok


class TestErrors:
    def test_deletion_blocked_message(self):
        error = DeletionBlocked("Old", 3)

        assert str(error) == 'Cannot delete label "Old" as it still has 3 threads using it.'
        assert error.tagged_count == 3
        assert isinstance(error, LabelSyncError)

    def test_remote_operation_failed_message(self):
        error = RemoteOperationFailed("create", "Work", RuntimeError("409 conflict"))

        assert str(error) == 'Failed to create label "Work": 409 conflict'
        assert isinstance(error.cause, RuntimeError)

    def test_label_not_found(self):
        assert str(LabelNotFound("Work")) == 'Label "Work" not found'


class TestSyncRun:
    def test_invalid_trigger_raises(self):
        now = datetime.now()

        with pytest.raises(ValueError, match="Invalid trigger"):
            SyncRun(trigger="cron", started_at=now, finished_at=now)

    def test_finish_before_start_raises(self):
        now = datetime.now()

        with pytest.raises(ValueError, match="Finish time cannot be before start time"):
            SyncRun(trigger="manual", started_at=now, finished_at=now - timedelta(seconds=1))

    def test_duration_and_total_changes(self):
        start = datetime(2025, 1, 1, 12, 0, 0)
        run = SyncRun(
            trigger="open",
            started_at=start,
            finished_at=start + timedelta(seconds=5),
            created_in_gmail=["Work"],
            added_to_sheet=["Personal"],
        )

        assert run.duration_seconds == 5.0
        assert run.total_changes == 2
