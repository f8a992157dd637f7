"""Application-level configuration."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Configuration for application settings."""

    # Sync history retention
    keep_history_days: int = 90

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create config from environment variables."""
        return cls(
            keep_history_days=int(os.getenv("KEEP_HISTORY_DAYS", "90")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """Validate configuration."""
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(
                f"Log level must be one of {valid_log_levels}, got {self.log_level}"
            )

        if self.keep_history_days <= 0:
            raise ValueError("Keep history days must be positive")
