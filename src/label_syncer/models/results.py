"""Outcome types returned by the sync engine and the row-change processor."""

from dataclasses import dataclass, field
from typing import Optional

ROW_ACTIONS = ("create", "rename", "delete", "noop")
ROW_STATUSES = ("success", "exists", "conflict", "failed", "skipped")


@dataclass(frozen=True)
class EditEvent:
    """
    A single-cell edit delivered by the trigger layer.

    Attributes:
        row: 1-based row of the edited cell
        column: 1-based column of the edited cell
        old_value: Cell value before the edit
        new_value: Cell value after the edit
    """

    row: int
    column: int
    old_value: Optional[str] = ""
    new_value: Optional[str] = ""

    def __post_init__(self) -> None:
        # Cleared cells arrive as None
        object.__setattr__(self, "old_value", (self.old_value or "").strip())
        object.__setattr__(self, "new_value", (self.new_value or "").strip())


@dataclass(frozen=True)
class OperationFailure:
    """A label whose create/delete/modify failed during a pass."""

    label_name: str
    operation: str
    message: str

    def __str__(self) -> str:
        return f'{self.operation} "{self.label_name}": {self.message}'


@dataclass(frozen=True)
class BatchFailure:
    """
    One re-tagging batch that did not fully apply during a rename.

    Attributes:
        phase: "add" or "remove"
        batch_number: 1-based batch position within its phase
        thread_ids: Threads of the batch whose modify failed
        message: Error detail
    """

    phase: str
    batch_number: int
    thread_ids: tuple[str, ...]
    message: str


@dataclass
class AncestorReport:
    """What ensuring a label's ancestors actually changed."""

    created_remote: list[str] = field(default_factory=list)
    added_local: list[str] = field(default_factory=list)
    failures: list[OperationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class SyncResult:
    """
    Summary of one reconciliation pass.

    Attributes:
        created_in_gmail: Names created in Gmail because the sheet had them
        added_to_sheet: Names appended to the sheet because Gmail had them
        ids_repaired: Names whose stored ID was stale or missing
        failures: Per-label failures; the pass continued past each one
    """

    created_in_gmail: list[str] = field(default_factory=list)
    added_to_sheet: list[str] = field(default_factory=list)
    ids_repaired: list[str] = field(default_factory=list)
    failures: list[OperationFailure] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        """Labels synchronized between the two stores."""
        return len(self.created_in_gmail) + len(self.added_to_sheet)

    @property
    def is_noop(self) -> bool:
        """True when the stores were already congruent."""
        return self.total_changes == 0 and not self.ids_repaired and not self.failures

    def to_dict(self) -> dict:
        return {
            "created_in_gmail": list(self.created_in_gmail),
            "added_to_sheet": list(self.added_to_sheet),
            "ids_repaired": list(self.ids_repaired),
            "failures": [str(failure) for failure in self.failures],
        }


@dataclass
class RowChangeResult:
    """
    Outcome of processing one edit to the name column.

    Attributes:
        action: "create", "rename", "delete" or "noop"
        status: "success", "exists", "conflict", "failed" or "skipped"
        row_index: Edited row
        old_name: Name before the edit
        new_name: Name after the edit
        label_id: Label ID left in the row's ID cell ("" if cleared)
        message: Human-readable summary
        tagged_count: Threads tagged with the label (delete/rename)
        batch_failures: Re-tagging batches that failed during a rename
        ancestors_created: Parent labels created in Gmail
    """

    action: str
    status: str
    row_index: int
    old_name: str = ""
    new_name: str = ""
    label_id: str = ""
    message: str = ""
    tagged_count: int = 0
    batch_failures: list[BatchFailure] = field(default_factory=list)
    ancestors_created: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.action not in ROW_ACTIONS:
            raise ValueError(f"Invalid action: {self.action}. Must be one of {ROW_ACTIONS}")
        if self.status not in ROW_STATUSES:
            raise ValueError(f"Invalid status: {self.status}. Must be one of {ROW_STATUSES}")

    @property
    def ok(self) -> bool:
        """False for conflicts and failures."""
        return self.status in ("success", "exists", "skipped")

    @classmethod
    def noop(cls, row_index: int, old_name: str = "", new_name: str = "", message: str = "") -> "RowChangeResult":
        return cls(
            action="noop",
            status="skipped",
            row_index=row_index,
            old_name=old_name,
            new_name=new_name,
            message=message,
        )
