"""Merge sync between the label sheet and Gmail."""

import threading
from typing import Iterable, Optional

from label_syncer.lib.logger import get_structured_logger
from label_syncer.models.errors import DirectoryUnavailable, LabelSyncError
from label_syncer.models.hierarchy import HierarchyPath
from label_syncer.models.label import LocalRow, RemoteLabel
from label_syncer.models.results import OperationFailure, SyncResult
from label_syncer.services.hierarchy import HierarchyResolver
from label_syncer.services.label_directory import LabelDirectoryClient
from label_syncer.storage.label_table import LabelTable

logger = get_structured_logger(__name__, log_file="sync.log")


class ReconciliationEngine:
    """
    Converges the sheet and Gmail by adding what each side is missing.

    The engine never deletes or renames anything: a name present on only
    one side is always copied to the other, because "renamed" and "one
    created plus one deleted" cannot be told apart from two snapshots.
    """

    def __init__(
        self,
        table: LabelTable,
        directory: LabelDirectoryClient,
        lock: Optional[threading.Lock] = None,
    ):
        self.table = table
        self.directory = directory
        self.lock = lock or threading.Lock()

    def reconcile(
        self,
        rows: Optional[Iterable[LocalRow]] = None,
        remote_labels: Optional[Iterable[RemoteLabel]] = None,
    ) -> SyncResult:
        """
        Run one merge-sync pass. Never raises for per-label failures.

        Args:
            rows: Current sheet rows (read from the table when omitted)
            remote_labels: Current Gmail labels (listed when omitted; a
                failed listing is treated as an empty set)

        Returns:
            SyncResult listing what was created, added and repaired
        """
        with self.lock:
            rows = list(rows) if rows is not None else self.table.rows()
            if remote_labels is None:
                remote_labels = self.directory.list_all_or_empty()

            result = SyncResult()
            remote_index = {
                label.name: label.id
                for label in remote_labels
                if label.is_user_label
            }
            initial_remote = dict(remote_index)

            # Later rows overwrite earlier rows with the same name
            local_index: dict[str, LocalRow] = {}
            for row in rows:
                if not row.is_blank:
                    local_index[row.name] = row

            local_names = set(local_index)
            resolver = HierarchyResolver()

            for name, row in local_index.items():
                if name in initial_remote:
                    self._repair_id(row, remote_index[name], result)
                else:
                    self._create_in_gmail(name, row, resolver, remote_index, local_names, result)

            self._adopt_remote_labels(local_names, remote_index, result)

            logger.log_sync_result(result)
            return result

    def _create_in_gmail(
        self,
        name: str,
        row: LocalRow,
        resolver: HierarchyResolver,
        remote_index: dict[str, str],
        local_names: set[str],
        result: SyncResult,
    ) -> None:
        """Create a sheet-only label (parents first) and write its ID back."""
        try:
            HierarchyPath.parse(name)
        except ValueError as error:
            logger.error("Skipping invalid label name", label=name, error=error)
            result.failures.append(OperationFailure(name, "create", str(error)))
            return

        # An ancestor created earlier in this pass may be this very name
        if name in remote_index:
            self._repair_id(row, remote_index[name], result)
            return

        report = resolver.ensure_ancestors(name, self.table, self.directory, remote_index, local_names)
        result.created_in_gmail.extend(report.created_remote)
        result.added_to_sheet.extend(report.added_local)
        result.failures.extend(report.failures)

        try:
            label_id = self.directory.create(name)
            remote_index[name] = label_id
            self.table.set_id(row.row_index, label_id)
            row.label_id = label_id
            result.created_in_gmail.append(name)
            logger.log_label_operation("create", name, "success", label_id=label_id, row=row.row_index)
        except LabelSyncError as error:
            logger.log_label_operation("create", name, "failed", error=error)
            result.failures.append(OperationFailure(name, "create", str(error)))

    def _repair_id(self, row: LocalRow, remote_id: str, result: SyncResult) -> None:
        """Overwrite a stale or missing ID in the sheet with Gmail's."""
        if row.label_id == remote_id:
            return

        try:
            self.table.set_id(row.row_index, remote_id)
            row.label_id = remote_id
            result.ids_repaired.append(row.name)
            logger.debug(f'Updated ID for existing label "{row.name}": {remote_id}')
        except LabelSyncError as error:
            logger.log_label_operation("repair id", row.name, "failed", error=error)
            result.failures.append(OperationFailure(row.name, "repair id", str(error)))

    def _adopt_remote_labels(
        self,
        local_names: set[str],
        remote_index: dict[str, str],
        result: SyncResult,
    ) -> None:
        """Append a sheet row for every Gmail label the sheet does not list."""
        try:
            current = {label.name: label.id for label in self.directory.list_all()}
        except DirectoryUnavailable as error:
            logger.warning("Re-listing Gmail labels failed, using the pass snapshot", error=error)
            current = dict(remote_index)

        for name, label_id in current.items():
            if name in local_names:
                continue

            try:
                row = self.table.append(name, label_id)
                local_names.add(name)
                result.added_to_sheet.append(name)
                logger.debug(f'Added Gmail label "{name}" to spreadsheet at row {row}')
            except LabelSyncError as error:
                logger.log_label_operation("add to sheet", name, "failed", error=error)
                result.failures.append(OperationFailure(name, "add to sheet", str(error)))
