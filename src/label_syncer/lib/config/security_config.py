"""Credential and file security configuration."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SecurityConfig:
    """Configuration for credential storage and file permissions."""

    # OS keyring identifiers for the OAuth refresh token
    keyring_service: str = "label_syncer"
    keyring_username: str = "google_refresh_token"

    # Tighten permissions on credentials/database files automatically
    auto_fix_permissions: bool = True

    @classmethod
    def from_env(cls) -> "SecurityConfig":
        """Create config from environment variables."""
        return cls(
            keyring_service=os.getenv("LABEL_SYNC_KEYRING_SERVICE", "label_syncer"),
            auto_fix_permissions=os.getenv("AUTO_FIX_PERMISSIONS", "true").lower() == "true",
        )

    def validate(self) -> None:
        """Validate configuration."""
        if not self.keyring_service or not self.keyring_username:
            raise ValueError("Keyring identifiers cannot be empty")
