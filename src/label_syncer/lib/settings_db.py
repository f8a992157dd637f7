"""SQLite store for user settings, sync history and row-change audit log."""

import json
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

from label_syncer.lib.config import app_config, storage_config
from label_syncer.lib.logger import get_logger
from label_syncer.lib.migrations import MigrationManager
from label_syncer.models.results import RowChangeResult, SyncResult
from label_syncer.models.sync_run import SyncRun

logger = get_logger(__name__)

AUTO_SYNC_KEY = "autoSyncEnabled"


class SettingsDatabase:
    """Persisted settings read by the trigger layer, plus sync history."""

    def __init__(self, db_path: Path | None = None):
        """
        Initialize settings database.

        Args:
            db_path: Path to SQLite database file (default: storage_config.settings_db_path)
        """
        from label_syncer.lib.utils import ensure_secure_directory, ensure_secure_file

        self.db_path = db_path or storage_config.settings_db_path

        ensure_secure_directory(self.db_path.parent, mode=0o700)

        MigrationManager(self.db_path).migrate()

        self._connection: sqlite3.Connection | None = None

        ensure_secure_file(self.db_path, mode=0o600)

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create persistent database connection."""
        if self._connection is None:
            self._connection = sqlite3.Connection(str(self.db_path))
            self._connection.row_factory = sqlite3.Row
            logger.debug("Created persistent database connection")

        return self._connection

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "SettingsDatabase":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        row = self.connection.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str) -> None:
        with self.connection:
            self.connection.execute(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )
        logger.debug(f"Saved setting {key}={value}")

    def get_auto_sync_enabled(self) -> bool:
        """Whether opening the sheet should run a full sync."""
        return self.get_setting(AUTO_SYNC_KEY, "false") == "true"

    def set_auto_sync_enabled(self, enabled: bool) -> None:
        self.set_setting(AUTO_SYNC_KEY, "true" if enabled else "false")

    def toggle_auto_sync(self) -> bool:
        """Flip the auto-sync flag; returns the new value."""
        enabled = not self.get_auto_sync_enabled()
        self.set_auto_sync_enabled(enabled)
        return enabled

    def record_sync_run(
        self,
        result: SyncResult,
        trigger: str,
        started_at: datetime,
        finished_at: datetime | None = None,
    ) -> SyncRun:
        """
        Save the outcome of a reconciliation pass.

        Returns:
            The saved SyncRun with its database ID
        """
        run = SyncRun(
            trigger=trigger,
            started_at=started_at,
            finished_at=finished_at or datetime.now(),
            created_in_gmail=list(result.created_in_gmail),
            added_to_sheet=list(result.added_to_sheet),
            ids_repaired=len(result.ids_repaired),
            failures=[str(failure) for failure in result.failures],
        )

        with self.connection:
            cursor = self.connection.execute(
                """
                INSERT INTO sync_runs
                (triggered_by, started_at, finished_at, created_in_gmail, added_to_sheet,
                 ids_repaired, failures)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    run.trigger,
                    run.started_at.isoformat(),
                    run.finished_at.isoformat(),
                    json.dumps(run.created_in_gmail),
                    json.dumps(run.added_to_sheet),
                    run.ids_repaired,
                    json.dumps(run.failures),
                ),
            )
            run.id = cursor.lastrowid

        logger.debug(f"Recorded sync run {run.id} ({trigger})")
        return run

    def list_sync_runs(self, limit: int = 10) -> list[SyncRun]:
        """Most recent sync runs first."""
        rows = self.connection.execute(
            "SELECT * FROM sync_runs ORDER BY started_at DESC, id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._row_to_run(row) for row in rows]

    def last_sync_run(self) -> SyncRun | None:
        runs = self.list_sync_runs(limit=1)
        return runs[0] if runs else None

    def log_label_operation(self, result: RowChangeResult) -> None:
        """Append a processed edit to the audit log. No-ops are not logged."""
        if result.action == "noop" and result.status == "skipped":
            return

        with self.connection:
            self.connection.execute(
                """
                INSERT INTO label_operations
                (action, status, row_index, old_name, new_name, label_id, message, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    result.action,
                    result.status,
                    result.row_index,
                    result.old_name,
                    result.new_name,
                    result.label_id,
                    result.message,
                    datetime.now().isoformat(),
                ),
            )

    def get_operation_log(self, limit: int = 50) -> list[dict]:
        """Most recent audited edits first."""
        rows = self.connection.execute(
            "SELECT * FROM label_operations ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [dict(row) for row in rows]

    def cleanup_old_history(self, days_to_keep: int | None = None) -> int:
        """
        Delete sync runs and audited edits older than the retention window.

        Returns:
            Number of rows deleted
        """
        days = days_to_keep or app_config.keep_history_days
        cutoff = (datetime.now() - timedelta(days=days)).isoformat()

        with self.connection:
            runs = self.connection.execute(
                "DELETE FROM sync_runs WHERE started_at < ?", (cutoff,)
            ).rowcount
            operations = self.connection.execute(
                "DELETE FROM label_operations WHERE timestamp < ?", (cutoff,)
            ).rowcount

        logger.info(f"Cleaned up {runs} sync runs and {operations} operations older than {days} days")
        return runs + operations

    @staticmethod
    def _row_to_run(row: sqlite3.Row) -> SyncRun:
        return SyncRun(
            id=row["id"],
            trigger=row["triggered_by"],
            started_at=datetime.fromisoformat(row["started_at"]),
            finished_at=datetime.fromisoformat(row["finished_at"]),
            created_in_gmail=json.loads(row["created_in_gmail"]),
            added_to_sheet=json.loads(row["added_to_sheet"]),
            ids_repaired=row["ids_repaired"],
            failures=json.loads(row["failures"]),
        )
