"""Error taxonomy for label synchronization."""

from typing import Optional


class LabelSyncError(Exception):
    """Base class for all label synchronization errors."""


class DirectoryUnavailable(LabelSyncError):
    """Remote label listing failed or returned no usable payload."""


class LabelNotFound(LabelSyncError):
    """An expected label is absent from the remote directory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Label "{name}" not found')


class DeletionBlocked(LabelSyncError):
    """Deletion refused because threads are still tagged with the label."""

    def __init__(self, label_name: str, tagged_count: int):
        self.label_name = label_name
        self.tagged_count = tagged_count
        super().__init__(
            f'Cannot delete label "{label_name}" as it still has '
            f"{tagged_count} threads using it."
        )


class RemoteOperationFailed(LabelSyncError):
    """A create, delete, list or modify call against Gmail raised an error."""

    def __init__(
        self,
        operation: str,
        label_name: str,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.label_name = label_name
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f'Failed to {operation} label "{label_name}"{detail}')


class SheetAccessError(LabelSyncError):
    """Reading or writing the label sheet failed."""
