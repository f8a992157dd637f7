"""Configuration management for the label syncer."""

from dotenv import load_dotenv

from label_syncer.lib.config.gmail_config import GmailConfig
from label_syncer.lib.config.sheet_config import SheetConfig
from label_syncer.lib.config.sync_config import SyncConfig
from label_syncer.lib.config.storage_config import StorageConfig
from label_syncer.lib.config.app_config import AppConfig
from label_syncer.lib.config.security_config import SecurityConfig

# Load environment variables from .env file
load_dotenv()

# Load and validate all configs
gmail_config = GmailConfig.from_env()
sheet_config = SheetConfig.from_env()
sync_config = SyncConfig.from_env()
storage_config = StorageConfig.from_env()
app_config = AppConfig.from_env()
security_config = SecurityConfig.from_env()

# Validate
gmail_config.validate()
sheet_config.validate()
sync_config.validate()
storage_config.validate()
app_config.validate()
security_config.validate()

__all__ = [
    "gmail_config",
    "sheet_config",
    "sync_config",
    "storage_config",
    "app_config",
    "security_config",
    "GmailConfig",
    "SheetConfig",
    "SyncConfig",
    "StorageConfig",
    "AppConfig",
    "SecurityConfig",
]
