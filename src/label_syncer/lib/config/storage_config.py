"""Storage and file path configuration."""

import os
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class StorageConfig:
    """Configuration for file storage."""

    # Base directory
    home_dir: Path

    # Subdirectories (derived from home_dir)
    log_dir: Path

    # Settings and sync history database
    settings_db_path: Path

    # OAuth client secrets downloaded from Google Cloud Console
    credentials_path: Path

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Create config from environment variables."""
        home_dir_str = os.getenv("LABEL_SYNCER_HOME")
        home_dir = Path(home_dir_str) if home_dir_str else Path.home() / ".label_syncer"

        credentials_str = os.getenv("LABEL_SYNC_CREDENTIALS")
        return cls(
            home_dir=home_dir,
            log_dir=home_dir / "logs",
            settings_db_path=home_dir / "settings.db",
            credentials_path=Path(credentials_str) if credentials_str else Path("credentials.json"),
        )

    def ensure_directories(self) -> None:
        """Create necessary directories with secure permissions."""
        from label_syncer.lib.utils import ensure_secure_directory

        ensure_secure_directory(self.home_dir, mode=0o700)
        ensure_secure_directory(self.log_dir, mode=0o700)

    def validate(self) -> None:
        """Validate configuration."""
        if self.settings_db_path.suffix != ".db":
            raise ValueError(f"Settings database must be a .db file, got {self.settings_db_path}")

    def get_credentials_path(self) -> Path:
        """Get the path to the OAuth client secrets file."""
        return self.credentials_path
