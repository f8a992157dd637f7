"""Label entity models for both stores."""

from dataclasses import dataclass
from typing import Optional

# Reserved names that are never synced, whatever type the API reports
RESERVED_LABEL_NAMES = frozenset({"INBOX", "SENT", "DRAFT", "TRASH", "SPAM"})
CATEGORY_PREFIX = "CATEGORY_"


@dataclass(frozen=True)
class RemoteLabel:
    """
    Represents a label in the Gmail account.

    Attributes:
        id: Gmail label ID, assigned by Gmail
        name: Full label path, e.g. "Projects/Acme"
        type: Label type ("user" or "system")
    """

    id: str
    name: str
    type: str = "user"

    def __post_init__(self) -> None:
        """Validate label data after initialization."""
        if not self.id:
            raise ValueError("Label ID cannot be empty")
        if not self.name:
            raise ValueError("Label name cannot be empty")
        if self.type not in ("user", "system"):
            raise ValueError(f"Invalid label type: {self.type}. Must be 'user' or 'system'")

    @property
    def is_user_label(self) -> bool:
        """Check if this is a user-created label."""
        return self.type == "user"

    @property
    def is_system_label(self) -> bool:
        """Check if this is a Gmail system label."""
        return self.type == "system"

    def to_dict(self) -> dict:
        """Convert label to dictionary."""
        return {"id": self.id, "name": self.name, "type": self.type}

    @staticmethod
    def is_reserved(label_id: str, name: str, api_type: Optional[str] = None) -> bool:
        """Whether a label resource describes a system label."""
        return (
            api_type == "system"
            or name in RESERVED_LABEL_NAMES
            or name.startswith(CATEGORY_PREFIX)
            or label_id.startswith(CATEGORY_PREFIX)
        )

    @classmethod
    def from_gmail_label(cls, label: dict) -> "RemoteLabel":
        """
        Create RemoteLabel instance from a Gmail API label resource.

        Args:
            label: Gmail API label resource

        Returns:
            RemoteLabel instance
        """
        label_id = label["id"]
        label_name = label["name"]
        is_system = cls.is_reserved(label_id, label_name, label.get("type"))

        return cls(
            id=label_id,
            name=label_name,
            type="system" if is_system else "user",
        )

    def __str__(self) -> str:
        return self.name


@dataclass
class LocalRow:
    """
    One row of the label sheet.

    Attributes:
        row_index: 1-based sheet row
        name: Label path typed by the user ("" for a blank row)
        label_id: Gmail label ID written back by the syncer ("" if unknown)
    """

    row_index: int
    name: str = ""
    label_id: str = ""

    def __post_init__(self) -> None:
        if self.row_index <= 0:
            raise ValueError(f"Row index must be positive, got {self.row_index}")
        self.name = self.name or ""
        self.label_id = self.label_id or ""

    @property
    def is_blank(self) -> bool:
        """Rows without a name take no part in syncing."""
        return not self.name

    def to_dict(self) -> dict:
        """Convert row to dictionary."""
        return {"row_index": self.row_index, "name": self.name, "label_id": self.label_id}
