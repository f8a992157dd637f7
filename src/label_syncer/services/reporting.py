"""Human-readable summaries of sync and row-change outcomes."""

from typing import List, Tuple

from label_syncer.lib.utils import quote_list
from label_syncer.models.results import RowChangeResult, SyncResult

# Notification titles by row-change status
_LEVELS = {
    "success": "Success",
    "exists": "Info",
    "skipped": "Info",
    "conflict": "Warning",
    "failed": "Error",
}


def format_sync_summary(result: SyncResult, title: str = "Sync") -> List[Tuple[str, str]]:
    """
    Build the notifications shown after a reconciliation pass.

    Args:
        result: Outcome of the pass
        title: Prefix for the summary line ("Sync" or "Auto Sync")

    Returns:
        (title, message) pairs in display order
    """
    messages: List[Tuple[str, str]] = []

    if result.total_changes == 0:
        messages.append((f"{title} Complete", f"{title} complete: No changes needed"))
    else:
        messages.append(
            (
                f"{title} Complete",
                f"{title} complete: {result.total_changes} label(s) synchronized",
            )
        )

    if result.created_in_gmail:
        messages.append(
            (
                "Labels Created in Gmail",
                f"Labels found in spreadsheet but not in Gmail: {quote_list(result.created_in_gmail)}. "
                "These labels have been created in Gmail.",
            )
        )

    if result.added_to_sheet:
        messages.append(
            (
                "Labels Added to Spreadsheet",
                f"Labels found in Gmail but not in spreadsheet: {quote_list(result.added_to_sheet)}. "
                "These labels have been added to spreadsheet.",
            )
        )

    for failure in result.failures:
        messages.append(("Error", f"Error syncing label {failure}"))

    return messages


def format_row_change(result: RowChangeResult) -> Tuple[str, str]:
    """
    Build the notification for one processed edit.

    Returns:
        (level, message) where level is Success, Info, Warning or Error
    """
    level = _LEVELS[result.status]
    message = result.message

    if result.ancestors_created:
        message = f"{message} Parent label(s) created: {quote_list(result.ancestors_created)}."

    for failure in result.batch_failures:
        message += (
            f" Batch {failure.batch_number} ({failure.phase}) failed for "
            f"{len(failure.thread_ids)} thread(s): {failure.message}."
        )

    return level, message.strip()
