"""Pytest configuration and shared fixtures."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Keep logs and databases out of the real home directory
os.environ.setdefault("LABEL_SYNCER_HOME", tempfile.mkdtemp(prefix="label_syncer_tests_"))

from label_syncer.lib.config import SheetConfig, SyncConfig  # noqa: E402
from label_syncer.models.errors import (  # noqa: E402
    DirectoryUnavailable,
    LabelNotFound,
    RemoteOperationFailed,
)
from label_syncer.models.label import RemoteLabel  # noqa: E402
from label_syncer.storage.label_table import InMemoryLabelTable  # noqa: E402


class FakeGmailDirectory:
    """
    In-memory stand-in for LabelDirectoryClient.

    Labels are kept as name -> ID, thread tags as thread ID -> label IDs.
    Every remote call is appended to ``calls`` so tests can assert ordering.
    """

    def __init__(self, labels=None):
        self.labels: dict[str, str] = dict(labels or {})
        self.thread_labels: dict[str, set[str]] = {}
        self.calls: list[tuple] = []

        # Failure injection
        self.unavailable = False
        self.fail_create: set[str] = set()
        self.fail_add_batches: set[int] = set()
        self.fail_remove_batches: set[int] = set()

        self._next_id = 100
        self._batch_counts = {"add": 0, "remove": 0}

    def tag(self, name: str, count: int, prefix: str = "thread") -> list[str]:
        """Tag ``count`` new threads with the named label."""
        label_id = self.labels[name]
        thread_ids = [f"{prefix}_{n}" for n in range(count)]
        for thread_id in thread_ids:
            self.thread_labels.setdefault(thread_id, set()).add(label_id)
        return thread_ids

    def threads_tagged(self, name: str) -> list[str]:
        label_id = self.labels[name]
        return sorted(t for t, ids in self.thread_labels.items() if label_id in ids)

    def calls_named(self, kind: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == kind]

    def list_all(self):
        self.calls.append(("list",))
        if self.unavailable:
            raise DirectoryUnavailable("Label listing returned no payload")
        return [RemoteLabel(id=label_id, name=name) for name, label_id in self.labels.items()]

    def list_all_or_empty(self):
        try:
            return self.list_all()
        except DirectoryUnavailable:
            return []

    def name_index(self):
        return {label.name: label.id for label in self.list_all()}

    def find_id(self, name):
        return self.name_index().get(name)

    def id_of(self, name):
        label_id = self.find_id(name)
        if label_id is None:
            raise LabelNotFound(name)
        return label_id

    def create(self, name):
        self.calls.append(("create", name))
        if name in self.fail_create:
            raise RemoteOperationFailed("create", name, RuntimeError("backend error"))
        if name in self.labels:
            raise RemoteOperationFailed("create", name, RuntimeError("Label name exists or conflicts"))

        label_id = f"Label_{self._next_id}"
        self._next_id += 1
        self.labels[name] = label_id
        return label_id

    def delete(self, label_id, name=None):
        self.calls.append(("delete", label_id))
        for label_name, existing_id in list(self.labels.items()):
            if existing_id == label_id:
                del self.labels[label_name]
                for ids in self.thread_labels.values():
                    ids.discard(label_id)
                return
        raise RemoteOperationFailed("delete", name or label_id, RuntimeError("Not Found"))

    def threads_with_label(self, label_id, name=None):
        self.calls.append(("threads", label_id))
        return sorted(t for t, ids in self.thread_labels.items() if label_id in ids)

    def add_label_to_threads(self, label_id, thread_ids):
        return self._modify("add", label_id, thread_ids, self.fail_add_batches)

    def remove_label_from_threads(self, label_id, thread_ids):
        return self._modify("remove", label_id, thread_ids, self.fail_remove_batches)

    def _modify(self, phase, label_id, thread_ids, failing):
        self._batch_counts[phase] += 1
        self.calls.append((phase, label_id, len(thread_ids)))
        if self._batch_counts[phase] in failing:
            return list(thread_ids)

        for thread_id in thread_ids:
            ids = self.thread_labels.setdefault(thread_id, set())
            if phase == "add":
                ids.add(label_id)
            else:
                ids.discard(label_id)
        return []


@pytest.fixture
def directory():
    """Empty fake Gmail label directory."""
    return FakeGmailDirectory()


@pytest.fixture
def make_directory():
    """Factory for a fake Gmail directory pre-loaded with name -> ID labels."""
    return FakeGmailDirectory


@pytest.fixture
def table():
    """Empty in-memory label sheet with one header row."""
    return InMemoryLabelTable()


@pytest.fixture
def layout():
    """Default sheet layout: ID in column A, name in column B, header in row 1."""
    return SheetConfig(spreadsheet_id="spreadsheet123")


@pytest.fixture
def sync_settings():
    """Sync settings with the standard re-tagging batch size."""
    return SyncConfig(batch_size=100)


@pytest.fixture
def settings_db(tmp_path):
    """Settings database in a temporary directory."""
    from label_syncer.lib.settings_db import SettingsDatabase

    db = SettingsDatabase(tmp_path / "settings.db")
    yield db
    db.close()


@pytest.fixture
def sample_gmail_labels_response():
    """Sample Gmail API labels list response."""
    return {
        "labels": [
            {"id": "INBOX", "name": "INBOX", "type": "system"},
            {"id": "CATEGORY_SOCIAL", "name": "CATEGORY_SOCIAL", "type": "system"},
            {"id": "Label_123", "name": "Work", "type": "user"},
            {"id": "Label_456", "name": "Personal", "type": "user"},
            {"id": "Label_789", "name": "Projects/Acme", "type": "user"},
        ]
    }


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "contract: marks tests as contract tests (API mocking)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (several components together)"
    )
