"""Label synchronization settings."""

import os
from dataclasses import dataclass

# Gmail rejects batch requests with more than 1000 calls
MAX_BATCH_SIZE = 1000


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for reconciliation and row-change processing."""

    # Threads re-tagged per request batch during a rename
    batch_size: int = 100

    # Verbose operation logging
    debug_mode: bool = False

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Create config from environment variables."""
        return cls(
            batch_size=int(os.getenv("LABEL_SYNC_BATCH_SIZE", "100")),
            debug_mode=os.getenv("LABEL_SYNC_DEBUG", "false").lower() == "true",
        )

    def validate(self) -> None:
        """Validate configuration."""
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ValueError(
                f"Batch size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
