"""Single-row edit handling: create, rename and delete Gmail labels."""

import threading
from typing import Optional

from label_syncer.lib.config import SheetConfig, SyncConfig, sheet_config, sync_config
from label_syncer.lib.logger import get_structured_logger
from label_syncer.lib.utils import batch_items
from label_syncer.models.errors import DeletionBlocked, LabelSyncError, RemoteOperationFailed
from label_syncer.models.hierarchy import HierarchyPath
from label_syncer.models.results import BatchFailure, EditEvent, RowChangeResult
from label_syncer.services.hierarchy import HierarchyResolver
from label_syncer.services.label_directory import LabelDirectoryClient
from label_syncer.storage.label_table import LabelTable

logger = get_structured_logger(__name__, log_file="sync.log")


class RowChangeProcessor:
    """
    Applies one edit of the name column to Gmail.

    The (old, new) pair of the edited cell decides the action:

    ========== ====================== =========
    old        new                    action
    ========== ====================== =========
    empty      non-empty              create
    non-empty  empty                  delete
    non-empty  non-empty, different   rename
    anything   same as old            no-op
    ========== ====================== =========
    """

    def __init__(
        self,
        table: LabelTable,
        directory: LabelDirectoryClient,
        layout: Optional[SheetConfig] = None,
        settings: Optional[SyncConfig] = None,
        lock: Optional[threading.Lock] = None,
    ):
        """
        Args:
            table: Local label store
            directory: Gmail label directory
            layout: Sheet layout used to filter edit events (default: module config)
            settings: Sync settings, for the re-tagging batch size (default: module config)
            lock: Lock serializing this processor with other sync entry points
        """
        self.table = table
        self.directory = directory
        self.layout = layout or sheet_config
        self.batch_size = (settings or sync_config).batch_size
        self.lock = lock or threading.Lock()

    def handle_edit(self, event: EditEvent) -> RowChangeResult:
        """
        Entry point for edit events. Never raises.

        Edits outside the name column or inside the header are ignored.
        """
        if event.column != self.layout.name_column or event.row <= self.layout.header_row:
            return RowChangeResult.noop(event.row, message="Edit outside the label name column")

        logger.debug("Change detected in name column", row=event.row)

        with self.lock:
            try:
                return self.process(event.row, event.old_value, event.new_value)
            except Exception as error:
                logger.error(
                    "Unexpected error processing edit",
                    row=event.row,
                    old=event.old_value,
                    new=event.new_value,
                    error=error,
                )
                return RowChangeResult(
                    action="noop",
                    status="failed",
                    row_index=event.row,
                    old_name=event.old_value,
                    new_name=event.new_value,
                    message=f"Error processing label change: {error}",
                )

    def process(self, row: int, old_name: str, new_name: str) -> RowChangeResult:
        """Classify an (old, new) name pair and apply the matching operation."""
        old_name = (old_name or "").strip()
        new_name = (new_name or "").strip()
        logger.debug(f'Processing label change: "{old_name}" -> "{new_name}"', row=row)

        if old_name == new_name:
            return RowChangeResult.noop(row, old_name, new_name)

        if not old_name:
            return self.create(row, new_name)

        if not new_name:
            return self.delete(row, old_name)

        return self.rename(row, old_name, new_name)

    def create(self, row: int, name: str, action: str = "create", old_name: str = "") -> RowChangeResult:
        """
        Create ``name`` in Gmail (after its parents) and store its ID in the row.

        A label that already exists is adopted instead of duplicated.
        """
        result = RowChangeResult(action=action, status="failed", row_index=row, old_name=old_name, new_name=name)

        try:
            HierarchyPath.parse(name)
            remote_index = self.directory.name_index()

            existing_id = remote_index.get(name)
            if existing_id:
                self.table.set_id(row, existing_id)
                result.status = "exists"
                result.label_id = existing_id
                result.message = f'Label "{name}" already exists in Gmail.'
                logger.log_label_operation(action, name, "exists", label_id=existing_id)
                return result

            ancestors = HierarchyResolver().ensure_ancestors(name, self.table, self.directory, remote_index)
            result.ancestors_created = ancestors.created_remote

            self.directory.create(name)

            new_id = self.directory.find_id(name)
            if not new_id:
                result.message = f'Created label "{name}" but couldn\'t retrieve its ID'
                logger.log_label_operation(action, name, "failed", reason="id not found after create")
                return result

            self.table.set_id(row, new_id)
            result.status = "success"
            result.label_id = new_id
            result.message = f'New label "{name}" created in Gmail.'
            if ancestors.failures:
                result.message += " " + _describe_parent_failures(ancestors.failures)

            logger.log_label_operation(action, name, "success", label_id=new_id)
            return result

        except (LabelSyncError, ValueError) as error:
            result.message = f'Error creating label "{name}": {error}'
            logger.log_label_operation(action, name, "failed", error=error)
            return result

    def delete(self, row: int, name: str) -> RowChangeResult:
        """
        Delete ``name`` from Gmail unless threads still use it.

        A label in use is kept and its name is written back into the row.
        """
        result = RowChangeResult(action="delete", status="failed", row_index=row, old_name=name)

        try:
            label_id = self.directory.find_id(name)

            if not label_id:
                self.table.clear_id(row)
                result.status = "success"
                result.message = f'Label "{name}" not found, nothing to delete'
                logger.log_label_operation("delete", name, "success", reason="not in Gmail")
                return result

            try:
                self._guard_deletion(label_id, name)
            except DeletionBlocked as blocked:
                self.table.set_name(row, name)
                result.status = "conflict"
                result.label_id = label_id
                result.new_name = name
                result.tagged_count = blocked.tagged_count
                result.message = str(blocked)
                logger.warning(str(blocked), row=row)
                return result

            self.directory.delete(label_id, name)
            self.table.clear_id(row)
            result.status = "success"
            result.message = f'The label "{name}" has been deleted from Gmail.'
            logger.log_label_operation("delete", name, "success", label_id=label_id)
            return result

        except LabelSyncError as error:
            result.message = f'Error deleting label "{name}": {error}'
            logger.log_label_operation("delete", name, "failed", error=error)
            return result

    def rename(self, row: int, old_name: str, new_name: str) -> RowChangeResult:
        """
        Move every thread from ``old_name`` to ``new_name`` and drop the old label.

        All add batches finish before any remove batch starts. If an add
        batch fails the old label is kept, so no thread loses its tag.
        """
        result = RowChangeResult(action="rename", status="failed", row_index=row, old_name=old_name, new_name=new_name)

        try:
            new_path = HierarchyPath.parse(new_name)
            # Renaming "A" to "A/B" turns the old label into the new one's parent
            keep_old = old_name in new_path.ancestors()
            remote_index = self.directory.name_index()

            old_id = remote_index.get(old_name)
            if not old_id:
                logger.debug(f'Old label "{old_name}" not found, creating new label "{new_name}" instead')
                return self.create(row, new_name, action="rename", old_name=old_name)

            ancestors = HierarchyResolver().ensure_ancestors(new_name, self.table, self.directory, remote_index)
            result.ancestors_created = ancestors.created_remote

            threads = self.directory.threads_with_label(old_id, old_name)
            result.tagged_count = len(threads)
            logger.debug(f'Found {len(threads)} threads with label "{old_name}"')

            new_id = remote_index.get(new_name) or self.directory.create(new_name)
            self.table.set_id(row, new_id)
            result.label_id = new_id

            batches = batch_items(threads, self.batch_size)
            result.batch_failures.extend(
                self._apply_batches("add", new_id, new_name, batches)
            )
            if result.batch_failures:
                result.message = (
                    f'Renamed "{old_name}" to "{new_name}" only partially: '
                    f"{len(result.batch_failures)} batch(es) failed to tag threads. "
                    f'The label "{old_name}" was kept.'
                )
                logger.log_label_operation("rename", old_name, "failed", new_name=new_name, failed_batches=len(result.batch_failures))
                return result

            result.batch_failures.extend(
                self._apply_batches("remove", old_id, old_name, batches)
            )

            if not keep_old:
                self.directory.delete(old_id, old_name)

            result.status = "success"
            result.message = f'The label "{old_name}" has been renamed to "{new_name}" within Gmail.'
            if keep_old:
                result.message += f' "{old_name}" was kept as its parent label.'
            if result.batch_failures:
                result.message += f" {len(result.batch_failures)} batch(es) failed to untag threads."
            logger.log_label_operation("rename", old_name, "success", new_name=new_name, threads=len(threads))
            return result

        except (LabelSyncError, ValueError) as error:
            result.message = f'Error updating label from "{old_name}" to "{new_name}": {error}'
            logger.log_label_operation("rename", old_name, "failed", new_name=new_name, error=error)
            return result

    def _guard_deletion(self, label_id: str, name: str) -> None:
        """Raise DeletionBlocked if any thread is tagged with the label."""
        threads = self.directory.threads_with_label(label_id, name)
        if threads:
            raise DeletionBlocked(name, len(threads))

    def _apply_batches(
        self,
        phase: str,
        label_id: str,
        label_name: str,
        batches: list[list[str]],
    ) -> list[BatchFailure]:
        """Add or remove one label across thread batches, sequentially."""
        modify = (
            self.directory.add_label_to_threads
            if phase == "add"
            else self.directory.remove_label_from_threads
        )

        failures = []
        for number, batch in enumerate(batches, 1):
            try:
                failed_ids = modify(label_id, batch)
                message = f"{len(failed_ids)} of {len(batch)} threads failed"
            except RemoteOperationFailed as error:
                failed_ids = list(batch)
                message = str(error)

            if failed_ids:
                logger.error(
                    f"Batch {phase} failed",
                    label=label_name,
                    batch=f"{number}/{len(batches)}",
                    failed=len(failed_ids),
                )
                failures.append(
                    BatchFailure(
                        phase=phase,
                        batch_number=number,
                        thread_ids=tuple(failed_ids),
                        message=message,
                    )
                )

        return failures


def _describe_parent_failures(failures: list) -> str:
    names = ", ".join(f'"{failure.label_name}"' for failure in failures)
    return f"Could not create parent label(s) {names}."
