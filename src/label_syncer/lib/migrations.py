"""Database migration system for schema evolution."""

import sqlite3
from dataclasses import dataclass
from pathlib import Path

from label_syncer.lib.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Migration:
    """Represents a database migration."""

    version: int
    description: str
    upgrade_sql: list[str]
    downgrade_sql: list[str] | None = None


# Migration registry - all migrations must be registered here in version order
MIGRATIONS = [
    Migration(
        version=1,
        description="Settings and sync history",
        upgrade_sql=[
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS sync_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                triggered_by TEXT NOT NULL,
                started_at TEXT NOT NULL,
                finished_at TEXT NOT NULL,
                created_in_gmail TEXT NOT NULL,
                added_to_sheet TEXT NOT NULL,
                ids_repaired INTEGER NOT NULL DEFAULT 0,
                failures TEXT NOT NULL
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_sync_runs_started
            ON sync_runs(started_at)
            """,
        ],
        downgrade_sql=[
            "DROP INDEX IF EXISTS idx_sync_runs_started",
            "DROP TABLE IF EXISTS sync_runs",
            "DROP TABLE IF EXISTS settings",
        ],
    ),
    Migration(
        version=2,
        description="Row-change operation log",
        upgrade_sql=[
            """
            CREATE TABLE IF NOT EXISTS label_operations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                action TEXT NOT NULL,
                status TEXT NOT NULL,
                row_index INTEGER NOT NULL,
                old_name TEXT,
                new_name TEXT,
                label_id TEXT,
                message TEXT,
                timestamp TEXT NOT NULL
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_label_ops_timestamp
            ON label_operations(timestamp)
            """,
        ],
        downgrade_sql=[
            "DROP INDEX IF EXISTS idx_label_ops_timestamp",
            "DROP TABLE IF EXISTS label_operations",
        ],
    ),
]


class MigrationManager:
    """Applies and rolls back schema migrations, tracked in ``schema_version``."""

    def __init__(self, db_path: Path):
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.Connection(str(self.db_path))
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                description TEXT NOT NULL,
                applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        return conn

    def get_current_version(self) -> int:
        """Highest applied migration version (0 for a fresh database)."""
        conn = self._connect()
        try:
            version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
            return version or 0
        finally:
            conn.close()

    def migrate(self, target_version: int | None = None) -> None:
        """
        Apply pending migrations up to ``target_version`` (default: latest).

        Raises:
            ValueError: If the target version is negative
            sqlite3.Error: If a migration statement fails; the whole run is rolled back
        """
        target = max(m.version for m in MIGRATIONS) if target_version is None else target_version
        if target < 0:
            raise ValueError(f"Invalid target version: {target}")

        current = self.get_current_version()
        if current >= target:
            logger.debug(f"Settings database already at version {current}")
            return

        conn = self._connect()
        try:
            with conn:
                for migration in MIGRATIONS:
                    if not current < migration.version <= target:
                        continue

                    logger.info(f"Applying migration {migration.version}: {migration.description}")
                    for sql in migration.upgrade_sql:
                        conn.execute(sql)
                    conn.execute(
                        "INSERT INTO schema_version (version, description) VALUES (?, ?)",
                        (migration.version, migration.description),
                    )
        except sqlite3.Error as e:
            logger.error(f"Migration failed: {e}")
            raise
        finally:
            conn.close()

        logger.info(f"Settings database migrated from version {current} to {target}")

    def rollback(self, target_version: int) -> None:
        """
        Undo migrations newer than ``target_version``, newest first.

        Raises:
            ValueError: If a migration on the way has no downgrade path
        """
        current = self.get_current_version()
        if current <= target_version:
            return

        conn = self._connect()
        try:
            with conn:
                for migration in reversed(MIGRATIONS):
                    if not target_version < migration.version <= current:
                        continue

                    if not migration.downgrade_sql:
                        raise ValueError(f"Migration {migration.version} has no downgrade path")

                    logger.warning(f"Rolling back migration {migration.version}")
                    for sql in migration.downgrade_sql:
                        conn.execute(sql)
                    conn.execute("DELETE FROM schema_version WHERE version = ?", (migration.version,))
        finally:
            conn.close()

    def get_migration_history(self) -> list[dict]:
        """Applied migrations in version order."""
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT version, description, applied_at FROM schema_version ORDER BY version"
            ).fetchall()
        finally:
            conn.close()

        return [
            {"version": version, "description": description, "applied_at": applied_at}
            for version, description, applied_at in rows
        ]
