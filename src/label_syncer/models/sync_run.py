"""Persisted record of one reconciliation pass."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

SYNC_TRIGGERS = ("manual", "open")


@dataclass
class SyncRun:
    """
    Attributes:
        trigger: What started the pass ("manual" or "open")
        started_at: Pass start
        finished_at: Pass end
        created_in_gmail: Names created in Gmail
        added_to_sheet: Names appended to the sheet
        ids_repaired: Count of sheet IDs overwritten with Gmail's
        failures: Failure descriptions
        id: Database row ID (None until saved)
    """

    trigger: str
    started_at: datetime
    finished_at: datetime
    created_in_gmail: list[str] = field(default_factory=list)
    added_to_sheet: list[str] = field(default_factory=list)
    ids_repaired: int = 0
    failures: list[str] = field(default_factory=list)
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.trigger not in SYNC_TRIGGERS:
            raise ValueError(f"Invalid trigger: {self.trigger}. Must be one of {SYNC_TRIGGERS}")

        if self.finished_at < self.started_at:
            raise ValueError("Finish time cannot be before start time")

    @property
    def total_changes(self) -> int:
        return len(self.created_in_gmail) + len(self.added_to_sheet)

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()
