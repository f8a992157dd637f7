"""Trigger-layer entry points: edit events, manual sync and sheet open."""

import threading
from datetime import datetime
from typing import Optional

from label_syncer.lib.config import SheetConfig, SyncConfig, sheet_config, sync_config
from label_syncer.lib.logger import enable_debug_logging, get_structured_logger
from label_syncer.lib.settings_db import SettingsDatabase
from label_syncer.models.errors import LabelSyncError
from label_syncer.models.results import EditEvent, OperationFailure, RowChangeResult, SyncResult
from label_syncer.services.label_directory import LabelDirectoryClient
from label_syncer.services.reconciler import ReconciliationEngine
from label_syncer.services.row_processor import RowChangeProcessor
from label_syncer.storage.label_table import LabelTable

logger = get_structured_logger(__name__, log_file="sync.log")


class SyncCoordinator:
    """
    Wires the engine and the row processor to one table, one directory and
    one lock, so an edit and a sync pass never run at the same time.
    """

    def __init__(
        self,
        table: LabelTable,
        directory: LabelDirectoryClient,
        settings_db: Optional[SettingsDatabase] = None,
        layout: Optional[SheetConfig] = None,
        settings: Optional[SyncConfig] = None,
    ):
        self.table = table
        self.directory = directory
        self.settings_db = settings_db
        self.settings = settings or sync_config
        self.lock = threading.Lock()

        if self.settings.debug_mode:
            enable_debug_logging()

        self.engine = ReconciliationEngine(table, directory, lock=self.lock)
        self.processor = RowChangeProcessor(
            table,
            directory,
            layout=layout or sheet_config,
            settings=self.settings,
            lock=self.lock,
        )

    def on_edit(self, event: EditEvent) -> RowChangeResult:
        """Handle one cell edit and audit it."""
        result = self.processor.handle_edit(event)
        if self.settings_db is not None:
            self.settings_db.log_label_operation(result)
        return result

    def run_sync(self, trigger: str = "manual") -> SyncResult:
        """Run a full merge sync and record it. Never raises."""
        started_at = datetime.now()
        logger.info("Starting label sync", trigger=trigger)

        try:
            result = self.engine.reconcile()
        except (LabelSyncError, ValueError) as error:
            logger.error("Label sync aborted", trigger=trigger, error=error)
            result = SyncResult(failures=[OperationFailure("*", "sync", str(error))])
        except Exception as error:
            logger.error("Unexpected error during label sync", trigger=trigger, error=error)
            result = SyncResult(failures=[OperationFailure("*", "sync", str(error))])

        if self.settings_db is not None:
            self.settings_db.record_sync_run(result, trigger=trigger, started_at=started_at)

        return result

    def on_open(self) -> Optional[SyncResult]:
        """
        Sheet-open hook: label the ID column, hide it where supported, and run
        a sync only when auto-sync is enabled.

        Returns:
            The sync result, or None when auto-sync is off
        """
        try:
            self.table.ensure_header()
        except LabelSyncError as error:
            logger.error("Failed to set up the Label ID column", error=error)

        hide_id_column = getattr(self.table, "hide_id_column", None)
        if hide_id_column is not None:
            hide_id_column()

        if self.settings_db is None or not self.settings_db.get_auto_sync_enabled():
            logger.debug("Auto sync disabled, skipping sync on open")
            return None

        return self.run_sync(trigger="open")

    def toggle_auto_sync(self) -> bool:
        """Flip the persisted auto-sync flag; returns the new value."""
        if self.settings_db is None:
            raise RuntimeError("Auto sync needs a settings database")
        return self.settings_db.toggle_auto_sync()
